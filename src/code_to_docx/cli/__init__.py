from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..config import AppConfig, ReadErrorPolicy, load_config
from ..core import ConversionService
from ..errors import ConversionError
from ..logging import configure_logging, stderr_console
from ..models import ConversionResult

console = Console()

app = typer.Typer(help="Convert your code to a Word document.", add_completion=False)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"code-to-docx {__version__}")
        raise typer.Exit()


def _fail(exc: ConversionError) -> None:
    stderr_console.print(f"Error: {exc}", style="red", markup=False, highlight=False, soft_wrap=True)
    raise typer.Exit(1) from exc


def _print_pages(result: ConversionResult) -> None:
    table = Table(title="Included files")
    table.add_column("File")
    table.add_column("Lines", justify="right")
    for heading in result.pages:
        table.add_row(heading, str(result.line_counts.get(heading, 0)))
    console.print(table)


@app.command()
def convert(
    input_dir: Path = typer.Option(..., "--input", "-i", help="The input directory to scan."),
    output: Path | None = typer.Option(None, "--output", "-o", help="The output file to write to [default: output.docx]."),
    overwrite: bool | None = typer.Option(
        None, "--overwrite/--no-overwrite", help="Replace the output file if it already exists."
    ),
    extensions: list[str] | None = typer.Option(
        None,
        "--extensions",
        "-e",
        help="File extension to include; repeat or comma-separate [default: rs,py,js,ts,html,css,scss,md,txt].",
    ),
    size_font: int | None = typer.Option(None, "--size-font", "-s", min=1, help="Font size of the code [default: 8]."),
    heading_size: int | None = typer.Option(
        None, "--heading-size", "-H", min=1, help="Font size of the file headings [default: 12]."
    ),
    font_family_heading: str | None = typer.Option(
        None, "--font-family-heading", "-f", help="Font family of the file headings [default: Calibri Light]."
    ),
    sort_entries: bool | None = typer.Option(
        None, "--sort/--no-sort", help="Visit directory entries in name order [default: sort]."
    ),
    on_read_error: ReadErrorPolicy | None = typer.Option(
        None,
        "--on-read-error",
        case_sensitive=False,
        help="Abort on an unreadable matched file, or skip it [default: abort].",
    ),
    config: Path | None = typer.Option(None, "--config", help="Path to a TOML file with default settings."),
    list_files: bool = typer.Option(False, "--list", help="Print the files that were included."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every file as it is added."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
) -> None:
    """Scan a directory and write its source files into one .docx document."""

    configure_logging(verbose)
    try:
        cfg: AppConfig = load_config(config, input_dir=input_dir).with_overrides(
            output_path=output,
            overwrite=overwrite,
            extensions=extensions or None,
            sort_entries=sort_entries,
            on_read_error=on_read_error,
            code_font_size=size_font,
            heading_font_size=heading_size,
            heading_font_family=font_family_heading,
        )
        result = ConversionService(cfg).convert()
    except ConversionError as exc:
        _fail(exc)
        return

    if list_files:
        _print_pages(result)
    console.print(f"[green]Success[/green]: {result.summary}", highlight=False)
    if result.warnings:
        console.print(f"{len(result.warnings)} warning(s) were logged.", highlight=False)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
