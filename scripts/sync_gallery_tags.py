#!/usr/bin/env python3
"""CLI wrapper for syncing the gallery tag snapshot."""

from __future__ import annotations

import sys

from gallery_search.scripts.sync_gallery_tags import main


if __name__ == "__main__":
    sys.exit(main())
