#!/usr/bin/env python3
"""Snapshot the remote tag and image listings for the static site fallback.

Fetches ``/tags`` and ``/images`` from a running gallery-search service and
writes them to ``data/gallery-tags.json``. The image listing is optional: if
it cannot be fetched the snapshot is written with an empty image list.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import anyio
import httpx
from pydantic import ValidationError
from rich.console import Console

from gallery_search.config import Settings
from gallery_search.logging_setup import configure_logging

logger = logging.getLogger(__name__)
console = Console()

DEFAULT_TIMEOUT_SECONDS = 30.0


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Write the gallery tag/image snapshot used by the static site."
    )
    parser.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="Base URL of the gallery-search service (default: SYNC_ENDPOINT).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Snapshot path (default: SYNC_OUTPUT_PATH).",
    )
    return parser.parse_args(argv)


async def fetch_json(client: httpx.AsyncClient, url: str) -> Any:
    response = await client.get(url)
    response.raise_for_status()
    return response.json()


async def build_snapshot(client: httpx.AsyncClient, endpoint: str) -> dict[str, Any]:
    """Fetch tags (required) and images (best effort) from ``endpoint``."""
    base = endpoint.rstrip("/")
    tags = await fetch_json(client, f"{base}/tags")
    if not isinstance(tags, list):
        raise ValueError("Tag listing is not a JSON array")

    images: list[Any] = []
    try:
        fetched = await fetch_json(client, f"{base}/images")
        if not isinstance(fetched, list):
            raise ValueError("Image listing is not a JSON array")
        images = fetched
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning(
            "Image metadata endpoint not available, proceeding with tags only: %s",
            exc,
        )

    return {
        "tags": sorted(str(tag) for tag in tags),
        "images": images,
        "lastSynced": datetime.now(timezone.utc).isoformat(),
    }


def write_snapshot(snapshot: dict[str, Any], output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")


async def _run(endpoint: str, output: Path) -> int:
    console.print(f"Endpoint: {endpoint}")
    async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT_SECONDS) as client:
        try:
            snapshot = await build_snapshot(client, endpoint)
        except (httpx.HTTPError, ValueError) as exc:
            console.print(f"[red]Error:[/red] {exc}")
            console.print(
                "[dim]The gallery-search service may not be deployed yet.[/dim]"
            )
            return 1

    try:
        write_snapshot(snapshot, output)
    except OSError as exc:
        console.print(f"[red]Could not write {output}:[/red] {exc}")
        return 1
    console.print(f"Written to: {output}")
    console.print(f"  Tags: {len(snapshot['tags'])}")
    console.print(f"  Images: {len(snapshot['images'])}")
    console.print(f"  Synced at: {snapshot['lastSynced']}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        settings = Settings()
    except ValidationError as exc:
        console.print("[red]Configuration error:[/red]")
        for error in exc.errors():
            field = error.get("loc", ("unknown",))[0]
            console.print(f"  [yellow]{field}[/yellow]: {error.get('msg')}")
        return 1
    configure_logging(settings.log_level)
    endpoint = args.endpoint or settings.sync_endpoint
    output = args.output or Path(settings.sync_output_path)
    return anyio.run(_run, endpoint, output)


if __name__ == "__main__":
    sys.exit(main())
