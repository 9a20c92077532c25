"""CLI interface for schemagate using Typer framework."""

import json as jsonlib
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from schemagate import __description__, __version__
from schemagate.compiler import StagePipeline
from schemagate.config import EngineConfig, LogLevel, load_config
from schemagate.errors import SchemaGateError, ValidationFailedError
from schemagate.models import Document, RuleSetSource
from schemagate.service import ValidationService
from schemagate.validation import ValidationReport

app = typer.Typer(
    name="schemagate",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich"
)

console = Console()

_LOG_LEVELS = {
    LogLevel.ERROR.value: logging.ERROR,
    LogLevel.WARN.value: logging.WARNING,
    LogLevel.INFO.value: logging.INFO,
    LogLevel.DEBUG.value: logging.DEBUG,
}

VALID_FORMATS = ["table", "json"]


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"schemagate version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", callback=version_callback, help="Show version and exit")
    ] = False,
) -> None:
    """schemagate - Schematron validation engine for XML documents."""


def _load_engine_config(config: Path | None, schemas: list[Path] | None,
                        namespace: str | None = None, suppress_warnings: bool | None = None,
                        verbose: bool = False) -> EngineConfig:
    """Load configuration and apply command-line overrides."""
    engine_config = load_config(config)

    if schemas:
        # Command-line schemas are resolved against the working directory
        engine_config.rule_sets.files = [str(schema.resolve()) for schema in schemas]
    if namespace is not None:
        engine_config.validation.namespace = namespace or None
    if suppress_warnings:
        engine_config.validation.suppress_warnings = True

    level = logging.DEBUG if verbose else _LOG_LEVELS.get(engine_config.logging.level, logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    return engine_config


def _check_format(format: str) -> None:
    if format not in VALID_FORMATS:
        console.print(f"[red]Error:[/red] Invalid format '{format}'. Must be one of: {', '.join(VALID_FORMATS)}")
        raise typer.Exit(1)


def _output_report_table(document: Document, report: ValidationReport) -> None:
    if not report.violations:
        console.print(f"[green]No violations found in {document.id}[/green]")
        return

    table = Table(title=str(document.id))
    table.add_column("Severity", style="white")
    table.add_column("Message", style="white")
    table.add_column("Attributes", style="dim")

    for violation in report:
        severity_color = "red" if violation.severity.value == "error" else "yellow"
        table.add_row(
            f"[{severity_color}]{violation.severity.value.upper()}[/{severity_color}]",
            violation.message,
            ", ".join(sorted(violation.attributes))
        )

    console.print(table)


@app.command()
def validate(
    documents: Annotated[
        list[Path],
        typer.Argument(help="XML documents to validate")
    ],
    schema: Annotated[
        Optional[list[Path]],
        typer.Option("--schema", "-s", help="Schematron rule set (can be used multiple times; overrides config)")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .schemagate.json)")
    ] = None,
    namespace: Annotated[
        Optional[str],
        typer.Option("--namespace", "-n", help="Only validate documents whose root element is in this namespace")
    ] = None,
    suppress_warnings: Annotated[
        bool,
        typer.Option("--suppress-warnings", help="Let documents with only warnings pass")
    ] = False,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: table, json (default: table)")
    ] = "table",
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging")
    ] = False,
) -> None:
    """Validate documents and fail on errors (and on warnings unless suppressed)."""
    _check_format(format)

    try:
        engine_config = _load_engine_config(config, schema, namespace, suppress_warnings, verbose)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not engine_config.rule_sets.files:
        console.print("[red]Error:[/red] No rule sets configured")
        console.print("[dim]Pass --schema or add ruleSets.files to .schemagate.json[/dim]")
        raise typer.Exit(1)

    results = []
    failed = False

    with ValidationService(engine_config) as service:
        for path in documents:
            try:
                document = Document.from_file(path)
            except OSError as e:
                console.print(f"[red]Error:[/red] Cannot read {path}: {e}")
                failed = True
                continue

            try:
                service.validate(document)
                results.append({"document": str(path), "status": "pass", "errors": [], "warnings": []})
                if format == "table":
                    console.print(f"[green]PASS[/green] {path}")
            except ValidationFailedError as e:
                failed = True
                results.append({"document": str(path), "status": "fail",
                                "errors": e.errors, "warnings": e.warnings})
                if format == "table":
                    console.print(f"[red]FAIL[/red] {path}")
                    for message in e.errors:
                        console.print(f"  [red]error:[/red] {message}")
                    for message in e.warnings:
                        console.print(f"  [yellow]warning:[/yellow] {message}")
            except SchemaGateError as e:
                failed = True
                results.append({"document": str(path), "status": "error", "message": str(e)})
                if format == "table":
                    console.print(f"[red]Error:[/red] {path}: {e}")

    if format == "json":
        typer.echo(jsonlib.dumps(results, indent=2))

    raise typer.Exit(1 if failed else 0)


@app.command()
def report(
    document: Annotated[
        Path,
        typer.Argument(help="XML document to report on")
    ],
    schema: Annotated[
        Optional[list[Path]],
        typer.Option("--schema", "-s", help="Schematron rule set (can be used multiple times; overrides config)")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .schemagate.json)")
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: table, json (default: table)")
    ] = "table",
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging")
    ] = False,
) -> None:
    """Print the violation report for a document without enforcing it."""
    _check_format(format)

    try:
        engine_config = _load_engine_config(config, schema, verbose=verbose)
        doc = Document.from_file(document)
    except (ValueError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    with ValidationService(engine_config) as service:
        validation_report = service.validate_report_only(doc)

    if validation_report is None:
        console.print("[yellow]No report available[/yellow]")
        raise typer.Exit(1)

    if format == "json":
        typer.echo(jsonlib.dumps(validation_report.to_dict(), indent=2))
    else:
        _output_report_table(doc, validation_report)


@app.command("compile")
def compile_rule_sets(
    schema: Annotated[
        Optional[list[Path]],
        typer.Option("--schema", "-s", help="Schematron rule set (can be used multiple times; overrides config)")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .schemagate.json)")
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging")
    ] = False,
) -> None:
    """Compile rule sets and show the messages each stage produced."""
    try:
        engine_config = _load_engine_config(config, schema, verbose=verbose)
        pipeline = StagePipeline.from_config(engine_config)
    except (ValueError, SchemaGateError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table()
    table.add_column("Rule Set", style="cyan")
    table.add_column("Status", style="white")
    table.add_column("Messages", style="dim")

    failed = False
    for location in engine_config.rule_sets.files:
        source = RuleSetSource.resolve(location, engine_config.rule_sets.base_dir)
        try:
            validator = pipeline.compile(source)
        except SchemaGateError as e:
            failed = True
            table.add_row(str(source), "[red]FAILED[/red]", str(e))
            continue
        messages = "\n".join(str(m) for m in validator.compile_messages)
        table.add_row(str(source), "[green]OK[/green]", messages)

    console.print(table)
    raise typer.Exit(1 if failed else 0)


if __name__ == "__main__":
    app()
