"""Command-line interface for gensaga."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from gensaga.core.config.loader import load_app_config
from gensaga.core.config.models import AppConfig
from gensaga.core.media import GenerationParams, MediaKind
from gensaga.core.saga import GenerationRequest, StatusUpdate
from gensaga.core.session import GenSession
from gensaga.core.utils.logging import configure_logging

console = Console()
logger = logging.getLogger(__name__)


def _load_config(path: str | None) -> AppConfig:
    config = load_app_config(Path(path) if path else None)
    configure_logging(
        level=config.logging.level,
        format_string=config.logging.format,
        filename=config.logging.filename,
        structured=config.logging.structured,
    )
    return config


def list_models(args: argparse.Namespace) -> int:
    """Print the model catalog."""
    config = _load_config(args.app_config)
    session = GenSession(app_config=config)
    kinds = [MediaKind(args.kind)] if args.kind else list(MediaKind)

    for kind in kinds:
        table = Table(title=f"{kind.value.title()} models")
        table.add_column("ID")
        table.add_column("Label")
        table.add_column("Provider")
        table.add_column("Credits", justify="right")
        table.add_column("Queued")
        for model in session.catalog.sorted_models(kind):
            label = f"{model.label} [green]NEW[/green]" if model.is_new else model.label
            table.add_row(
                model.id,
                label,
                model.provider,
                str(model.price(GenerationParams())),
                "yes" if model.is_queued else "no",
            )
        console.print(table)
    return 0


def _params_from_args(args: argparse.Namespace) -> GenerationParams:
    fields = {
        "aspect_ratio": args.aspect_ratio,
        "num_images": args.num_images,
        "resolution": args.resolution,
        "quality": args.quality,
        "duration": args.duration,
        "attachment_urls": tuple(args.attach or ()),
    }
    return GenerationParams(**{k: v for k, v in fields.items() if v is not None})


async def generate_async(args: argparse.Namespace) -> int:
    """Run one generation and print the result.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    config = _load_config(args.app_config)
    session = GenSession(app_config=config, identity=args.identity)
    try:
        settings = await session.settings.load(MediaKind(args.kind))
        model_id = args.model or settings.model_id
        params = settings.to_params().model_copy(
            update=_params_from_args(args).model_dump(exclude_unset=True)
        )

        if args.offline:
            local_id = await session.queue_generation(args.prompt, model_id, params)
            console.print(f"[yellow]Queued for sync:[/yellow] {local_id}")
            return 0

        def on_status(update: StatusUpdate) -> None:
            console.print(f"  [dim]{update.progress:5.1f}%[/dim] {update.state.value}")

        console.print(f"[bold]Generating with {model_id}...[/bold]")
        result = await session.generate(
            GenerationRequest(
                prompt=args.prompt,
                model_id=model_id,
                kind=MediaKind(args.kind),
                params=params,
            ),
            on_status=on_status,
        )

        if not result.success:
            console.print(f"[red]ERROR: {result.error}[/red]")
            return 1

        await session.settings.save(MediaKind(args.kind), model_id=model_id)
        console.print(f"[green]Generation {result.generation_id} completed[/green]")
        console.print(f"   Credits: {result.credits}")
        for item in result.media:
            console.print(f"   {item.url}")
        return 0
    finally:
        await session.aclose()


async def sync_async(args: argparse.Namespace) -> int:
    """Replay queued offline actions."""
    config = _load_config(args.app_config)
    session = GenSession(app_config=config, identity=args.identity)
    try:
        reports = await session.sync_offline()
    finally:
        await session.aclose()

    failed = 0
    for name, report in zip(("generations", "asset actions"), reports, strict=True):
        if report.skipped:
            console.print(f"[yellow]{name}: skipped[/yellow]")
            continue
        console.print(
            f"{name}: {len(report.synced)} synced, {len(report.failed)} failed, "
            f"{report.cleared} cleared"
        )
        for local_id, error in report.failed.items():
            console.print(f"   [red]{local_id}: {error}[/red]")
        failed += len(report.failed)
    return 1 if failed else 0


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="gensaga",
        description="gensaga - credit and slot managed media generation",
    )
    p.add_argument(
        "--app-config",
        default=None,
        help="Path to app config (.yaml/.json, default: gensaga.yaml)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    models = sub.add_parser("models", help="List available models")
    models.add_argument("--kind", choices=[k.value for k in MediaKind], default=None)

    gen = sub.add_parser("generate", help="Generate images or a video")
    gen.add_argument("--prompt", required=True, help="Text prompt")
    gen.add_argument("--model", default=None, help="Model id (default: last used)")
    gen.add_argument("--kind", choices=[k.value for k in MediaKind], default="image")
    gen.add_argument("--aspect-ratio", default=None)
    gen.add_argument("--num-images", type=int, default=None)
    gen.add_argument("--resolution", default=None)
    gen.add_argument("--quality", default=None)
    gen.add_argument("--duration", type=int, default=None)
    gen.add_argument("--attach", action="append", help="Attachment image URL (repeatable)")
    gen.add_argument("--identity", default="local", help="Signed-in user id")
    gen.add_argument("--offline", action="store_true", help="Queue instead of generating")

    sync = sub.add_parser("sync", help="Replay actions queued while offline")
    sync.add_argument("--identity", default="local", help="Signed-in user id")

    return p


def main() -> None:
    """Main entry point for CLI."""
    p = build_arg_parser()
    args = p.parse_args()

    if args.cmd == "models":
        sys.exit(list_models(args))
    elif args.cmd == "generate":
        sys.exit(asyncio.run(generate_async(args)))
    elif args.cmd == "sync":
        sys.exit(asyncio.run(sync_async(args)))
