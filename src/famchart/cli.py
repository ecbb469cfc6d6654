"""famchart CLI - Main entry point.

1) Parse a GEDCOM file into people, relationships and life-event claims.
2) Lay out a pedigree, fan chart or timeline for a chosen root person.
3) Render the layout to an image and optionally dump it as JSON.
"""

import json
import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
import typer

from famchart import __version__
from famchart.config import settings
from famchart.errors import InvalidRootError
from famchart.fan_chart import layout_fan_chart
from famchart.graph import compute_generations
from famchart.models import CLAIM_TYPES, Claim, Person, Relationship
from famchart.parsing import load_tree
from famchart.pedigree import layout_pedigree
from famchart.plotting import build_export_file_name, layout_to_dict, plot_fan_chart, plot_timeline, write_pedigree
from famchart.timeline import TimelineFilters, layout_timeline
from famchart.validation import validate_data

app = typer.Typer(
    name="famchart",
    help="famchart - Lay out pedigree, fan and timeline charts from GEDCOM files",
    add_completion=False,
)
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load(gedcom: Path) -> tuple[list[Person], list[Relationship], list[Claim]]:
    console.print(f"[dim]Parsing GEDCOM file: {gedcom}[/dim]")
    people, relationships, claims = load_tree(gedcom)
    console.print(
        f"[dim]  Found {len(people)} people, {len(relationships)} relationships and {len(claims)} life events[/dim]"
    )
    return people, relationships, claims


def _output_path(output: Path | None, gedcom: Path, chart: str, extension: str) -> Path:
    if output is None:
        output = settings.output_dir / build_export_file_name(gedcom.stem, chart, extension)
    output.parent.mkdir(parents=True, exist_ok=True)
    return output


def _write_json(layout, json_path: Path | None) -> None:
    if json_path is None:
        return
    json_path.parent.mkdir(parents=True, exist_ok=True)
    json_path.write_text(json.dumps(layout_to_dict(layout), indent=2), encoding="utf-8")
    console.print(f"Layout JSON saved to {json_path}")


def _invalid_root(error: InvalidRootError) -> typer.Exit:
    console.print(f"[red]{error}[/red]")
    return typer.Exit(1)


GEDCOM_ARG = typer.Argument(..., help="Path to a GEDCOM file", exists=True, dir_okay=False)
ROOT_OPT = typer.Option(..., "--root", "-r", help="Root person xref, e.g. I1")
JSON_OPT = typer.Option(None, "--json", help="Also write the layout as JSON")


@app.command()
def generations(gedcom: Path = GEDCOM_ARG, root: str = ROOT_OPT) -> None:
    """Print the generation of every person connected to the root."""
    people, relationships, _ = _load(gedcom)
    try:
        generation_by_id = compute_generations(people, relationships, root)
    except InvalidRootError as e:
        raise _invalid_root(e) from e

    people_by_id = {person.id: person for person in people}
    table = Table(show_header=True, header_style="bold cyan", title=f"Generations from {root}")
    table.add_column("Generation", justify="right")
    table.add_column("ID")
    table.add_column("Name")
    for person_id, generation in sorted(generation_by_id.items(), key=lambda item: (item[1], item[0])):
        person = people_by_id.get(person_id)
        table.add_row(str(generation), person_id, person.full_name if person else "[dim]unknown[/dim]")
    console.print(table)


@app.command()
def pedigree(
    gedcom: Path = GEDCOM_ARG,
    root: str = ROOT_OPT,
    output: Path | None = typer.Option(None, "--output", "-o", help="Image path (.svg, .png, .pdf or .dot)"),
    json_path: Path | None = JSON_OPT,
) -> None:
    """Lay out and render a pedigree chart."""
    people, relationships, _ = _load(gedcom)
    try:
        layout = layout_pedigree(people, relationships, root, settings.pedigree_config())
    except InvalidRootError as e:
        raise _invalid_root(e) from e

    console.print(f"Pedigree: {len(layout.nodes)} people, {len(layout.links)} links")
    path = write_pedigree(layout, _output_path(output, gedcom, "pedigree", "svg"))
    console.print(f"[green]Pedigree saved to {path}[/green]")
    _write_json(layout, json_path)


@app.command()
def fan(
    gedcom: Path = GEDCOM_ARG,
    root: str = ROOT_OPT,
    output: Path | None = typer.Option(None, "--output", "-o", help="Image path (.png, .svg or .pdf)"),
    json_path: Path | None = JSON_OPT,
) -> None:
    """Lay out and render a fan chart."""
    people, relationships, _ = _load(gedcom)
    try:
        layout = layout_fan_chart(people, relationships, root, settings.fan_chart_config())
    except InvalidRootError as e:
        raise _invalid_root(e) from e

    console.print(f"Fan chart: {len(layout.nodes)} people over {layout.max_depth} generations")
    path = _output_path(output, gedcom, "fan", "png")
    plot_fan_chart(layout, path)
    console.print(f"[green]Fan chart saved to {path}[/green]")
    _write_json(layout, json_path)


@app.command()
def timeline(
    gedcom: Path = GEDCOM_ARG,
    event_types: list[str] | None = typer.Option(
        None, "--type", "-t", help=f"Life event types to show (default all): {', '.join(CLAIM_TYPES)}"
    ),
    person_ids: list[str] | None = typer.Option(None, "--person", "-p", help="Only show these people"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Image path (.png, .svg or .pdf)"),
    json_path: Path | None = JSON_OPT,
) -> None:
    """Lay out and render a lifespan and life-event timeline."""
    people, relationships, claims = _load(gedcom)

    unknown = sorted(set(event_types or ()) - set(CLAIM_TYPES))
    if unknown:
        console.print(f"[red]Unknown event types: {', '.join(unknown)}[/red]")
        raise typer.Exit(1)

    filters = TimelineFilters(
        event_types=frozenset(event_types or CLAIM_TYPES),
        person_ids=frozenset(person_ids) if person_ids else None,
    )
    layout = layout_timeline(claims, people, relationships, filters, settings.timeline_config())

    console.print(
        f"Timeline {layout.min_year}-{layout.max_year}: "
        f"{len(layout.events)} events in {layout.event_row_count} rows, "
        f"{len(layout.people)} people in {layout.person_row_count} rows"
    )
    path = _output_path(output, gedcom, "timeline", "png")
    plot_timeline(layout, path)
    console.print(f"[green]Timeline saved to {path}[/green]")
    _write_json(layout, json_path)


@app.command()
def validate(
    gedcom: Path = GEDCOM_ARG,
    root: str | None = typer.Option(None, "--root", "-r", help="Also report people not connected to this person"),
) -> None:
    """Report data problems that affect the charts."""
    people, relationships, claims = _load(gedcom)
    warnings = validate_data(people, relationships, claims, root_id=root)
    if not warnings:
        console.print("[green]No validation issues found[/green]")
        return

    console.print(f"[yellow]Found {len(warnings)} validation warnings:[/yellow]")
    for w in warnings[:10]:
        console.print(f"  - {w}")
    if len(warnings) > 10:
        console.print(f"  ... and {len(warnings) - 10} more")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"\n[bold cyan]famchart[/bold cyan] version {__version__}\n")


if __name__ == "__main__":
    app()
