"""CLI entry point for noteimpact."""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path

import typer
from rich import print as rprint
from rich.table import Table

from noteimpact.classification.classifier import NoteClassifier
from noteimpact.config import Config
from noteimpact.errors import StorageError
from noteimpact.impact.formulas import ACTION_FORMULAS, IMPACT_FORMULAS
from noteimpact.pipeline import ImpactPipeline
from noteimpact.storage.db import get_connection
from noteimpact.storage.repository import ImpactRepository

app = typer.Typer(help="Estimate the environmental impact of climate action notes.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _db_path(db_path: str | None) -> Path:
    return Path(db_path) if db_path else Config.load().db_path


@app.command()
def classify(
    note: str = typer.Argument(help="The action note text"),
    note_id: str = typer.Option(None, help="Note id (random if omitted)"),
    user_id: str = typer.Option("cli", help="Author id"),
    format: str = typer.Option("text", "--format", "-f", help="Output format: text or json"),
    db_path: str = typer.Option(None, help="Database file path"),
) -> None:
    """Classify one note and store its impact record."""
    config = Config.load()
    issues = config.validate()
    if issues:
        for issue in issues:
            rprint(f"[red]Config error: {issue}[/red]")
        raise typer.Exit(1)

    conn = get_connection(_db_path(db_path))
    classifier = NoteClassifier(config.make_client(), config.model, timeout=config.classify_timeout)
    pipeline = ImpactPipeline(classifier, ImpactRepository(conn))

    try:
        result = pipeline.process(note_id or str(uuid.uuid4()), note, user_id)
    except StorageError as e:
        rprint(f"[red]{e}[/red]")
        raise typer.Exit(1)
    finally:
        conn.close()

    if format == "json":
        typer.echo(result.to_json())
    else:
        rprint(result.to_text())


@app.command()
def stats(
    user_id: str = typer.Option(None, help="Only this user's notes"),
    format: str = typer.Option("text", "--format", "-f", help="Output format: text or json"),
    db_path: str = typer.Option(None, help="Database file path"),
) -> None:
    """Show summed impact across all notes (or one user's)."""
    db = _db_path(db_path)
    if not db.exists():
        rprint(f"[red]Database not found at {db}. Classify a note first.[/red]")
        raise typer.Exit(1)

    conn = get_connection(db)
    try:
        totals = ImpactRepository(conn).get_totals(user_id=user_id)
    finally:
        conn.close()

    if format == "json":
        typer.echo(json.dumps(totals.to_dict(), indent=2))
        return

    scope = f"user {user_id}" if user_id else "all users"
    rprint(f"[bold]Impact for {scope}:[/bold]")
    rprint(f"  Notes classified: {totals.total_notes}")
    rprint(f"  CO2 saved:        {totals.total_co2_kg:.2f} kg")
    rprint(f"  Plastic saved:    {totals.total_plastic_g / 1000:.3f} kg")
    rprint(f"  Water saved:      {totals.total_water_liters:.0f} L")
    rprint(f"  Energy saved:     {totals.total_energy_kwh:.2f} kWh")
    if totals.category_breakdown:
        rprint("\n[bold]By category:[/bold]")
        for category, count in totals.category_breakdown.items():
            rprint(f"  {category}: {count}")


@app.command()
def review(
    status: str = typer.Option("pending", help="Queue status to list (empty for all)"),
    limit: int = typer.Option(20, help="Max entries to show"),
    db_path: str = typer.Option(None, help="Database file path"),
) -> None:
    """List notes waiting for human review."""
    db = _db_path(db_path)
    if not db.exists():
        rprint(f"[red]Database not found at {db}. Classify a note first.[/red]")
        raise typer.Exit(1)

    conn = get_connection(db)
    try:
        entries = ImpactRepository(conn).list_review_queue(status=status or None, limit=limit)
    finally:
        conn.close()

    if not entries:
        rprint("[green]Review queue is empty.[/green]")
        return

    table = Table(title="Review queue")
    table.add_column("Note")
    table.add_column("User")
    table.add_column("Category")
    table.add_column("Confidence", justify="right")
    table.add_column("Reasoning")
    for e in entries:
        table.add_row(
            e["note_id"],
            e["user_id"],
            e["ai_category"],
            f"{e['ai_confidence']:.2f}",
            e["ai_reasoning"] or "",
        )
    rprint(table)


@app.command()
def formulas() -> None:
    """List the impact conversion factors and the actions that use them."""
    actions_by_formula: dict[str, list[str]] = {}
    for action, rule in ACTION_FORMULAS.items():
        actions_by_formula.setdefault(rule.formula_id, []).append(action)
        if rule.instance_formula_id:
            actions_by_formula.setdefault(rule.instance_formula_id, []).append(action)

    table = Table(title="Impact formulas")
    for column in ("Formula", "CO2 kg", "Plastic g", "Water L", "Energy kWh", "Source", "Actions"):
        table.add_column(column)
    for formula_id, f in IMPACT_FORMULAS.items():
        table.add_row(
            formula_id,
            *(str(v) if v is not None else "" for v in (f.co2_kg, f.plastic_g, f.water_liters, f.energy_kwh)),
            f.source,
            ", ".join(actions_by_formula.get(formula_id, [])),
        )
    rprint(table)


@app.command()
def serve() -> None:
    """Start the MCP server over stdio."""
    import asyncio
    from noteimpact.mcp_server import main as mcp_main
    asyncio.run(mcp_main())


if __name__ == "__main__":
    app()
