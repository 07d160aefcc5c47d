#!/usr/bin/env python3
"""CLI wrapper for indexing a gallery manifest."""

from __future__ import annotations

import sys

from gallery_search.scripts.index_gallery import main


if __name__ == "__main__":
    sys.exit(main())
