"""Command-line interface for serving and querying the gallery index."""

from __future__ import annotations

import argparse
import json
from typing import Any

import anyio
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from gallery_search.config import Settings
from gallery_search.errors import GallerySearchError
from gallery_search.logging_setup import configure_logging
from gallery_search.runtime import GalleryServices

console = Console()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Gallery search CLI (HTTP server + index queries)."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve_parser.add_argument("--host", type=str, default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8787)

    search_parser = subparsers.add_parser("search", help="Run a semantic search.")
    search_parser.add_argument("query", type=str, help="Natural language query.")
    search_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of results (clamped to 100).",
    )
    search_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit results as JSON to stdout.",
    )

    tags_parser = subparsers.add_parser("tags", help="List every indexed tag.")
    tags_parser.add_argument("--json", action="store_true", help="Emit JSON.")

    images_parser = subparsers.add_parser("images", help="List indexed images.")
    images_parser.add_argument("--json", action="store_true", help="Emit JSON.")

    return parser.parse_args(argv)


def _load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as exc:
        console.print("[red]Configuration error:[/red]")
        for error in exc.errors():
            field = error.get("loc", ("unknown",))[0]
            msg = error.get("msg", "Invalid value")
            console.print(f"  [yellow]{field}[/yellow]: {msg}")
        raise


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


async def _run_search(args: argparse.Namespace, settings: Settings) -> int:
    async with GalleryServices.from_settings(settings) as services:
        results = await services.searcher.search(args.query, args.limit)

    if args.json:
        _print_json([result.to_dict() for result in results])
        return 0
    if not results:
        console.print("[dim]No matches.[/dim]")
        return 0

    table = Table("Score", "Id", "Caption", "Tags")
    for result in results:
        table.add_row(
            f"{result.score:.4f}",
            result.id,
            str(result.metadata.get("caption", "")),
            ", ".join(str(tag) for tag in result.metadata.get("tags", []) or []),
        )
    console.print(table)
    return 0


async def _run_tags(args: argparse.Namespace, settings: Settings) -> int:
    async with GalleryServices.from_settings(settings) as services:
        tags = await services.catalog.list_tags()
    if args.json:
        _print_json(tags)
    else:
        for tag in tags:
            console.print(tag)
    return 0


async def _run_images(args: argparse.Namespace, settings: Settings) -> int:
    async with GalleryServices.from_settings(settings) as services:
        images = await services.catalog.list_images()
    if args.json:
        _print_json(images)
        return 0
    table = Table("Id", "Project", "Src")
    for image in images:
        table.add_row(
            str(image.get("id", "")),
            str(image.get("project", "")),
            str(image.get("src", "")),
        )
    console.print(table)
    return 0


def _serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from gallery_search.api.app import create_app

    uvicorn.run(
        create_app(settings),
        host=args.host,
        port=args.port,
        log_level=settings.log_level.lower(),
    )
    return 0


_COMMANDS = {
    "search": _run_search,
    "tags": _run_tags,
    "images": _run_images,
}


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        settings = _load_settings()
    except ValidationError:
        return 1
    configure_logging(settings.log_level)

    if args.command == "serve":
        return _serve(args, settings)

    handler = _COMMANDS.get(args.command)
    if handler is None:
        return 1
    try:
        return anyio.run(handler, args, settings)
    except GallerySearchError as exc:
        console.print(f"[red]{exc.code}[/red]: {exc.message}")
        return 2
    except ValueError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
