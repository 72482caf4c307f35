"""Command-line interface for Wirthmage.

Provides commands for converting images in batch, writing a settings
file, and listing the available size presets and outline styles.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from wirthmage.batch import BatchConverter, BatchReport
from wirthmage.colors import OUTLINE_NAMES, OUTLINE_STYLES, color_to_css
from wirthmage.config import (
    COLOR_CHOICES,
    ConverterSettings,
    load_settings,
    save_settings,
)
from wirthmage.dimension import DIMENSION_PRESETS
from wirthmage.errors import WirthmageError
from wirthmage.logging import get_logger, setup_logging
from wirthmage.models import OutputType

logger = get_logger("cli")
console = Console()


def _setup_logging(
    verbose: bool, json_logs: bool = False, log_file: Path | None = None
) -> None:
    """Configure logging based on the verbosity and output flags."""
    setup_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        verbose=verbose,
        log_file=str(log_file) if log_file else None,
        json_logs=json_logs,
    )


@click.group()
@click.version_option(package_name="wirthmage")
def main() -> None:
    """Wirthmage — convert images into small indexed BMP/PNG/JPEG assets."""


@main.command()
@click.argument(
    "inputs",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Directory that receives the converted files",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Settings YAML; command-line options override it",
)
@click.option(
    "--size",
    type=click.Choice(["ASIS", *DIMENSION_PRESETS], case_sensitive=False),
    help="Output size preset",
)
@click.option("--x2/--no-x2", "scale_x2", default=None, help="Also write a 2× output")
@click.option("--x4/--no-x4", "scale_x4", default=None, help="Also write a 4× output")
@click.option(
    "--type",
    "output_type",
    type=click.Choice([t.value for t in OutputType], case_sensitive=False),
    help="Output format",
)
@click.option(
    "--colors",
    type=click.Choice([str(c) for c in COLOR_CHOICES]),
    help="Palette size (0 keeps full color)",
)
@click.option("--mask/--no-mask", default=None, help="Make the top-left color transparent")
@click.option(
    "--outline",
    type=click.Choice(["none", *OUTLINE_NAMES]),
    help="Outline style (requires --mask)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable detailed logging")
@click.option("--log-json", is_flag=True, help="Emit log lines as JSON")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write logs to this file",
)
def convert(
    inputs: tuple[Path, ...],
    output_dir: Path,
    config_path: Path | None,
    size: str | None,
    scale_x2: bool | None,
    scale_x4: bool | None,
    output_type: str | None,
    colors: str | None,
    mask: bool | None,
    outline: str | None,
    verbose: bool,
    log_json: bool,
    log_file: Path | None,
) -> None:
    """Convert INPUTS into OUTPUT_DIR.

    Files are named ``{name}{suffix}{ext}`` with suffix "", ".x2" or ".x4".

    Example:

        \b
        wirthmage convert photos/*.png -o out --size CARD --x2 \\
            --type BMP --colors 16 --mask --outline black
    """
    _setup_logging(verbose, json_logs=log_json, log_file=log_file)

    try:
        settings = load_settings(config_path) if config_path else ConverterSettings()
        overrides: dict[str, Any] = {
            "output_size": size.upper() if size else None,
            "scale_x2": scale_x2,
            "scale_x4": scale_x4,
            "output_type": output_type.upper() if output_type else None,
            "colors": int(colors) if colors is not None else None,
            "mask": mask,
            "outline": outline,
        }
        updates = {k: v for k, v in overrides.items() if v is not None}
        if updates:
            settings = ConverterSettings(**{**settings.model_dump(), **updates})

        scales = ", ".join(f"x{factor}" for factor, _ in settings.scales())
        console.print(
            f"[bold green]✓[/] {len(inputs)} input(s) → [bold]{output_dir}[/] "
            f"({settings.output_type.value}, {settings.output_size}, {scales})"
        )

        report = _run_batch(settings, list(inputs), output_dir)

    except WirthmageError as e:
        console.print(f"[bold red]✗[/] Conversion failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[bold yellow]⚠[/] Conversion interrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print(f"[bold red]✗[/] Unexpected error: {e}")
        if verbose:
            console.print_exception()
        sys.exit(1)

    console.print(f"[bold green]✓[/] Wrote {len(report.written)} file(s)")
    if report.failures:
        console.print(f"[bold yellow]⚠[/] {len(report.failures)} input(s) failed:")
        for path, message in report.failures.items():
            console.print(f"  • {path}: {message}")
    if report.cancelled:
        console.print(
            f"[bold yellow]⚠[/] Cancelled after {report.processed} of {len(inputs)} input(s)"
        )
        sys.exit(130)
    if report.failures:
        sys.exit(1)


async def _convert_until_interrupted(
    converter: BatchConverter,
    inputs: list[Path],
    progress_callback: Callable[[str, int, int], None],
    cancel_event: threading.Event,
) -> BatchReport:
    """Run the batch with SIGINT turned into a request to stop between files."""
    loop = asyncio.get_running_loop()

    def _request_stop() -> None:
        if not cancel_event.is_set():
            console.print("\n[bold yellow]⚠[/] Stopping after the current file...")
        cancel_event.set()

    try:
        loop.add_signal_handler(signal.SIGINT, _request_stop)
        trapped = True
    except (NotImplementedError, RuntimeError, ValueError):
        # no loop signal handlers here (Windows, or not the main thread)
        logger.debug("SIGINT not trapped; Ctrl-C aborts the current file")
        trapped = False

    try:
        return await converter.run(
            inputs,
            progress_callback=progress_callback,
            cancel_event=cancel_event,
        )
    finally:
        if trapped:
            loop.remove_signal_handler(signal.SIGINT)


def _run_batch(
    settings: ConverterSettings, inputs: list[Path], output_dir: Path
) -> BatchReport:
    """Run the batch with a progress bar; Ctrl-C stops after the current file."""
    cancel_event = threading.Event()
    converter = BatchConverter(settings, output_dir)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("[cyan]Converting...", total=len(inputs))

        def progress_callback(stage_name: str, current: int, total: int) -> None:
            if stage_name == "item":
                progress.update(task, completed=current)

        return asyncio.run(
            _convert_until_interrupted(
                converter, inputs, progress_callback, cancel_event
            )
        )


@main.group()
def settings() -> None:
    """Manage converter settings files."""


@settings.command()
@click.argument("settings_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing file")
def init(settings_path: Path, force: bool) -> None:
    """Write a settings file with the default values.

    SETTINGS_PATH: Where to write the YAML file
    """
    if settings_path.exists() and not force:
        console.print(
            f"[bold red]✗[/] {settings_path} already exists (use --force to overwrite)"
        )
        sys.exit(1)
    save_settings(ConverterSettings(), settings_path)
    console.print(f"[bold green]✓[/] Settings written to [bold]{settings_path}[/]")


@main.command()
def presets() -> None:
    """List the size presets and outline styles."""
    sizes = Table(title="Size presets")
    sizes.add_column("Name")
    sizes.add_column("x1", justify="right")
    sizes.add_column("x2", justify="right")
    sizes.add_column("x4", justify="right")
    for name, dim in DIMENSION_PRESETS.items():
        sizes.add_row(name, str(dim), str(dim.scale(2)), str(dim.scale(4)))
    console.print(sizes)

    outlines = Table(title="Outline styles")
    outlines.add_column("Name")
    outlines.add_column("Inner")
    outlines.add_column("Outer")
    for name in OUTLINE_NAMES:
        inner, outer = OUTLINE_STYLES[name]
        outlines.add_row(
            name,
            color_to_css(inner) if inner else "-",
            color_to_css(outer) if outer else "-",
        )
    console.print(outlines)


if __name__ == "__main__":
    main()
