"""CLI entry point for widgetqa."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from widgetqa.errors import LoadError
from widgetqa.loader.suite_loader import CONFIG_FILE, SuiteLoader
from widgetqa.models.config import SuiteConfig
from widgetqa.models.result import SuiteResult
from widgetqa.reporter.json_report import generate_json_report

console = Console()

EXAMPLE_WIDGET = '''elements = {
    "field": {"css": "#search input[type=text]"},
    "result": {"css": "#search .result"},
    "about_link": {"link_text": "About"},
}


async def search(widget, text):
    await widget.field.send_keys(text)
    await widget.field.submit()
'''

EXAMPLE_FEATURE = '''description = "Searching shows a result"

scenario = [
    SearchWidget.search, ["widgets"],
    {"SearchWidget.result": "1 result"},
]
'''


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def console_notifier(message: str) -> None:
    style = "green" if "succeeded" in message else "red"
    console.print(Panel(message, style=style))


def print_summary(result: SuiteResult) -> None:
    table = Table(title=f"Suite: {result.suite_name}")
    table.add_column("Feature", style="bold")
    table.add_column("Result")
    table.add_column("Details")
    for feature in result.feature_results:
        details = [f"[yellow]{f}[/yellow]" for f in feature.failures]
        details += [f"[red]{e}[/red]" for e in feature.errors]
        table.add_row(
            feature.description,
            "[green]pass[/green]" if feature.passed else "[red]fail[/red]",
            "\n".join(details),
        )
    console.print(table)
    if result.navigation_error:
        console.print(f"[red]Could not reach {result.base_url}:[/red] {result.navigation_error}")
    console.print(
        f"{result.passed_count} passed, {result.failed_count} failed "
        f"in {result.duration_seconds:.1f}s"
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Declarative, widget-based browser testing."""
    setup_logging(verbose)


@cli.command()
@click.argument("suite", type=click.Path(exists=True, file_okay=False))
@click.option("--headed", is_flag=True, help="Show the browser window")
@click.option("--notify", is_flag=True, help="Show a summary banner when the run ends")
@click.option("--report", "-r", type=click.Path(dir_okay=False), help="Write a JSON report to this path")
def run(suite: str, headed: bool, notify: bool, report: str | None) -> None:
    """Load a suite directory and run all of its features."""
    try:
        loader = SuiteLoader(suite)
    except LoadError as e:
        console.print(f"[red]{e}[/red]")
        if e.__cause__ is not None:
            console.print(f"  caused by: {e.__cause__}")
        sys.exit(1)

    if headed:
        loader.config.driver.headless = False
    if notify or loader.config.notify:
        loader.runner.notifier = console_notifier

    result = loader.run()
    print_summary(result)

    if report:
        generate_json_report(result, Path(report))
        console.print(f"  JSON report: [blue]{report}[/blue]")

    if not result.passed:
        sys.exit(1)


@cli.command()
@click.argument("suite", type=click.Path(exists=True, file_okay=False))
def inspect(suite: str) -> None:
    """Load a suite without running it and list its widgets and features."""
    try:
        loader = SuiteLoader(suite)
    except LoadError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    try:
        table = Table(title=f"Widgets in {loader.name}")
        table.add_column("Widget", style="bold")
        table.add_column("Elements")
        table.add_column("Methods")
        for name, widget in loader.widgets.items():
            table.add_row(name, ", ".join(widget.element_names), ", ".join(widget.method_names))
        console.print(table)

        for i, feature in enumerate(loader.features, 1):
            console.print(f"  {i}. {feature.description} [dim]({len(feature.steps)} steps)[/dim]")
    finally:
        loader.close()


@cli.command()
@click.argument("suite", type=click.Path(file_okay=False))
@click.option("--base-url", "-u", prompt="Base URL", help="URL the browser starts at")
def init(suite: str, base_url: str) -> None:
    """Create a new suite directory with an example widget and feature."""
    suite_dir = Path(suite)
    config_path = suite_dir / CONFIG_FILE
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    SuiteConfig(base_url=base_url).save(config_path)
    for filename, content in (("SearchWidget.py", EXAMPLE_WIDGET), ("SearchFeature.py", EXAMPLE_FEATURE)):
        path = suite_dir / filename
        if not path.exists():
            path.write_text(content)
    console.print(f"[green]Created {suite_dir}[/green]")
    console.print("\nEdit the widget and feature files, then run:")
    console.print(f"  [blue]widgetqa run {suite_dir}[/blue]")


if __name__ == "__main__":
    cli()
