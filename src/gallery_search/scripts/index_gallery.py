#!/usr/bin/env python3
"""Index a JSON manifest of gallery images into the vector index."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import anyio
from pydantic import ValidationError
from rich.console import Console

from gallery_search.config import Settings
from gallery_search.errors import GallerySearchError
from gallery_search.logging_setup import configure_logging
from gallery_search.runtime import GalleryServices

console = Console()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Index gallery images from a JSON manifest."
    )
    parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help='Manifest file: a list of images or {"images": [...]}.',
    )
    parser.add_argument(
        "--start",
        type=int,
        default=0,
        help="Skip this many images (resume offset after a partial failure).",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Override INDEX_BATCH_SIZE for this run.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the batch result as JSON to stdout.",
    )
    return parser.parse_args(argv)


def load_manifest(path: Path) -> list[dict[str, Any]]:
    """Read image descriptions from ``path``."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("images")
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain an image list")
    return data


def _validate_args(args: argparse.Namespace) -> None:
    if args.start < 0:
        raise ValueError("--start must be >= 0")
    if args.batch_size is not None and args.batch_size <= 0:
        raise ValueError("--batch-size must be > 0")


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    images = load_manifest(args.input)[args.start :]
    if args.batch_size is not None:
        settings = settings.model_copy(update={"index_batch_size": args.batch_size})

    async with GalleryServices.from_settings(settings) as services:
        with console.status(f"Indexing {len(images)} images..."):
            result = await services.indexer.index_batch(images)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0 if result.success else 2
    if result.success:
        console.print(f"[green]Indexed {result.indexed} images.[/green]")
        return 0

    resume_at = args.start + result.indexed
    console.print(
        f"[yellow]Indexed {result.indexed} images before failure:[/yellow] "
        f"{result.error.message if result.error else 'unknown error'}"
    )
    console.print(f"Resume with: --start {resume_at}")
    return 2


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        _validate_args(args)
        settings = Settings()
    except ValueError as exc:
        # pydantic's ValidationError is a ValueError subclass.
        if isinstance(exc, ValidationError):
            console.print("[red]Configuration error:[/red]")
            for error in exc.errors():
                field = error.get("loc", ("unknown",))[0]
                console.print(f"  [yellow]{field}[/yellow]: {error.get('msg')}")
        else:
            console.print(f"[red]{exc}[/red]")
        return 1
    configure_logging(settings.log_level)

    try:
        return anyio.run(_run, args, settings)
    except GallerySearchError as exc:
        console.print(f"[red]{exc.code}[/red]: {exc.message}")
        if exc.detail is not None:
            console.print(f"  detail: {exc.detail}")
        return 2
    except (OSError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
