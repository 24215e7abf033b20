"""Command-line interface for the Snap Card Generator."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from snap_card_generator import __version__
from snap_card_generator.assembler import CardAssembler, GenerationPhase, PhaseState
from snap_card_generator.client import OpenAIClient
from snap_card_generator.collection import CardCollection
from snap_card_generator.config import Settings
from snap_card_generator.exceptions import CardGenerationError, ConfigurationError
from snap_card_generator.models import CardRecord
from snap_card_generator.prompts import PromptRegistry
from snap_card_generator.storage import DisplayIdCounter, PreferenceStore

console = Console()


def setup_logging(verbose: bool = False, level_name: str = "INFO") -> None:
    """Set up logging configuration. ``verbose`` forces DEBUG."""
    level = logging.DEBUG if verbose else logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Turn photos into collectible monster trading cards",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Generate command
    generate_parser = subparsers.add_parser(
        "generate", help="Generate a card from a photo"
    )
    generate_parser.add_argument("photo", type=Path, help="Path to the photo")
    generate_parser.add_argument(
        "--keep",
        action="store_true",
        help="Add the generated card to your collection",
    )
    generate_parser.add_argument(
        "--chat-model",
        help="Chat/vision model (e.g. gpt-4o, gpt-4o-mini)",
    )
    generate_parser.add_argument(
        "--image-model",
        help="Image model (e.g. dall-e-3, dall-e-2)",
    )

    # Collection commands
    subparsers.add_parser("list", help="List collected cards")
    release_parser = subparsers.add_parser(
        "release", help="Remove a card from your collection"
    )
    release_parser.add_argument("card_id", help="Id of the card to release")

    return parser


def print_card(card: CardRecord) -> None:
    """Render a card to the console."""
    table = Table(title=f"#{card.display_id:03d} {card.title}", show_header=False)
    table.add_column("Category", style="bold")
    table.add_column("Value")
    for entry in card.stats:
        table.add_row(entry.category, entry.value.display)
    console.print(table)
    console.print(f"[italic]{card.description}[/italic]")
    console.print(f"[blue]🖼  {card.image_reference}[/blue]")
    console.print(f"[dim]id: {card.id}[/dim]")


def _report_phase(phase: GenerationPhase) -> None:
    if phase.state is PhaseState.IN_PROGRESS:
        console.print(f"[cyan]…[/cyan] {phase.label}")


def run_generate(args: argparse.Namespace, settings: Settings) -> int:
    """Run the generate command."""
    if not args.photo.is_file():
        console.print(f"[red]✗[/red] Photo not found: {args.photo}")
        return 1

    if args.chat_model:
        settings.chat_model = args.chat_model
    if args.image_model:
        settings.image_model = args.image_model

    try:
        client = OpenAIClient.from_settings(settings)
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] {escape(e.describe())}")
        return 1

    store = PreferenceStore(settings.store_path)
    assembler = CardAssembler(
        client=client,
        counter=DisplayIdCounter(store),
        prompts=PromptRegistry.default(),
        on_progress=_report_phase,
    )

    phase = asyncio.run(assembler.run(args.photo.read_bytes()))
    if phase.state is not PhaseState.SUCCEEDED or phase.card is None:
        console.print(f"[red]✗[/red] {escape(phase.error or '')}")
        return 1

    console.print(f"[green]✓[/green] Generated card: {phase.card.title}")
    print_card(phase.card)

    if args.keep:
        CardCollection(store).add(phase.card)
        console.print("[green]✓[/green] Added to your collection")
    return 0


def run_list(settings: Settings) -> int:
    """Run the list command."""
    collection = CardCollection(PreferenceStore(settings.store_path))
    if not len(collection):
        console.print("Your collection is empty.")
        return 0

    table = Table(title="Collected cards")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Stats")
    table.add_column("Id", style="dim")
    for card in collection:
        stats = ", ".join(str(entry) for entry in card.stats)
        table.add_row(str(card.display_id), card.title, stats, card.id)
    console.print(table)
    return 0


def run_release(args: argparse.Namespace, settings: Settings) -> int:
    """Run the release command."""
    collection = CardCollection(PreferenceStore(settings.store_path))
    if collection.remove(args.card_id):
        console.print(f"[green]✓[/green] Released card {args.card_id}")
        return 0
    console.print(f"[red]✗[/red] No collected card with id {args.card_id}")
    return 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        settings = Settings()
    except ValidationError as e:
        console.print(f"[red]✗[/red] Invalid configuration: {escape(str(e))}")
        return 1

    setup_logging(args.verbose or settings.debug, settings.log_level)

    try:
        if args.command == "generate":
            return run_generate(args, settings)
        if args.command == "list":
            return run_list(settings)
        if args.command == "release":
            return run_release(args, settings)
    except CardGenerationError as e:
        console.print(f"[red]✗[/red] {escape(e.describe())}")
        return 1

    return 1


if __name__ == "__main__":
    sys.exit(main())
