"""Command-line interface for docbrowse."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

# Verify core dependencies
try:
    import aiohttp  # noqa: F401
    import bs4  # noqa: F401
    import markdownify  # noqa: F401
    import pydantic  # noqa: F401
    import rich  # noqa: F401
    import yaml  # noqa: F401
except ImportError as e:
    print(f"\nERROR: Missing required dependency: {e.name}", file=sys.stderr)
    print("\nDocbrowse requires all core dependencies to be installed.", file=sys.stderr)
    print("\nRecommended fixes:", file=sys.stderr)
    print("  1. For pipx users: pipx reinstall docbrowse --force", file=sys.stderr)
    print("  2. For pip users: pip install --upgrade --force-reinstall docbrowse", file=sys.stderr)
    print("  3. For development: pip install -e .[dev]", file=sys.stderr)
    sys.exit(1)

from rich.console import Console
from rich.markdown import Markdown
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .core.browser import Browser
from .logging_config import setup_logging
from .models.config import BrowserConfig
from .models.document import Document
from .models.events import BrowserEvent, EventType


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="docbrowse",
        description="Load a web page as Markdown, preferring native Markdown when the server offers it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print a page as Markdown
  docbrowse https://docs.example.com

  # Bare hosts and search terms work too
  docbrowse example.com
  docbrowse "python asyncio tutorial"

  # Render in the terminal
  docbrowse https://example.com --render

  # Skip content negotiation and derive Markdown from HTML
  docbrowse https://example.com --no-accept-markdown
        """,
    )

    parser.add_argument(
        "url",
        help="URL, host name or search terms",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        metavar="FILE",
        help="YAML configuration file",
    )

    # Fetch settings
    fetch_group = parser.add_argument_group("fetch settings")
    fetch_group.add_argument(
        "--no-accept-markdown",
        action="store_true",
        help="Do not ask the server for text/markdown",
    )
    fetch_group.add_argument(
        "--no-convert",
        action="store_true",
        help="Keep HTML as-is instead of deriving Markdown",
    )

    # Output control
    output_group = parser.add_argument_group("output control")
    output_mode = output_group.add_mutually_exclusive_group()
    output_mode.add_argument(
        "--render",
        action="store_true",
        help="Render the Markdown in the terminal",
    )
    output_mode.add_argument(
        "--raw-html",
        action="store_true",
        help="Print the original HTML instead of the Markdown",
    )
    output_group.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: WARNING)",
    )
    output_group.add_argument(
        "--log-file",
        type=Path,
        default=None,
        metavar="FILE",
        help="Also write logs to this file",
    )

    return parser


def build_config(args: argparse.Namespace) -> BrowserConfig:
    """Merge the config file (if any) with command-line overrides."""
    config = BrowserConfig.from_yaml_file(args.config) if args.config else BrowserConfig()

    settings_kwargs: dict = {}
    if args.no_accept_markdown:
        settings_kwargs["send_accept_markdown"] = False
    if args.no_convert:
        settings_kwargs["auto_convert"] = False
    if settings_kwargs:
        settings = config.settings.model_copy(update=settings_kwargs)
        config = config.model_copy(update={"settings": settings})

    updates: dict = {}
    if args.log_level:
        updates["log_level"] = args.log_level
    if args.log_file:
        updates["log_file"] = args.log_file
    if updates:
        config = config.model_copy(update=updates)

    return config


def print_document(console: Console, document: Document, args: argparse.Namespace) -> None:
    """Write the document to the console in the requested form."""
    if args.raw_html:
        text = document.raw_markup or document.body
        console.print(text, markup=False, highlight=False, soft_wrap=True)
    elif args.render:
        console.print(Markdown(document.body))
    else:
        console.print(document.body, markup=False, highlight=False, soft_wrap=True)


def run_browser(args: argparse.Namespace) -> int:
    """Load the requested page and print it."""
    console = Console()
    err_console = Console(stderr=True)

    try:
        config = build_config(args)
    except Exception as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    setup_logging(level=config.log_level, log_file=config.log_file, force=True)

    async def run() -> int:
        async with Browser(config) as browser:
            session = browser.session

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=err_console,
                transient=True,
            ) as progress:
                task = progress.add_task("Starting...", total=None)

                def on_event(event: BrowserEvent) -> None:
                    if event.type == EventType.LOADING_STARTED:
                        progress.update(task, description=f"[cyan]Loading {event.url}")
                    elif event.type == EventType.LOADING_FINISHED:
                        progress.update(task, description=f"[green]{event.title}")

                session.subscribe(on_event)
                result = await session.navigate(args.url)
                session.unsubscribe(on_event)

            if not result.success:
                err_console.print(f"[red]Error:[/red] {result.error}")
                return 1

            document = session.active_tab.document
            if document is None:
                err_console.print("[red]Error:[/red] No document loaded")
                return 1

            print_document(console, document, args)

            if document.is_error:
                err_console.print(f"[red]Failed:[/red] {document.url} - {document.error}")
                return 1
            return 0

    try:
        return asyncio.run(run())
    except KeyboardInterrupt:
        err_console.print("[yellow]Interrupted[/yellow]")
        return 130


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run_browser(args)


if __name__ == "__main__":
    sys.exit(main())
