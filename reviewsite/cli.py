"""Reviewsite CLI - content and override maintenance from the shell."""

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from .config import settings
from .content.store import SchoolContentStore
from .database import Database

app = typer.Typer(
    name="reviewsite",
    help="English conversation school review site",
    no_args_is_help=True,
)
console = Console()

schools_app = typer.Typer(help="School content and overrides")
reviews_app = typer.Typer(help="Review moderation and aggregates")
db_app = typer.Typer(help="Database management")

app.add_typer(schools_app, name="schools")
app.add_typer(reviews_app, name="reviews")
app.add_typer(db_app, name="db")


def _store() -> SchoolContentStore:
    return SchoolContentStore(settings.content_path)


def _require_db() -> Database:
    db = Database.from_settings()
    if db is None:
        console.print(f"[red]Error: {settings.db_env_error}[/red]")
        raise typer.Exit(1)
    return db


async def _run_with_session(db: Database | None, fn) -> Any:
    if db is None:
        return await fn(None)
    try:
        async with db.session() as session:
            return await fn(session)
    finally:
        await db.dispose()


@schools_app.command("list")
def schools_list():
    """List schools with their merged name and campaign."""
    from .services import school_svc

    store = _store()
    rows = asyncio.run(_run_with_session(
        Database.from_settings(), lambda s: school_svc.list_merged(store, s)
    ))

    table = Table(title=f"Schools ({len(rows)})")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Rating", style="yellow")
    table.add_column("Campaign", style="green")
    for school_id, record in rows:
        table.add_row(
            school_id,
            record.get("name") or "-",
            str(record.get("rating") if record.get("rating") is not None else "-"),
            record.get("campaignText") or "-",
        )
    console.print(table)


@schools_app.command("show")
def schools_show(
    school_id: str = typer.Argument(..., help="School ID (content file name)"),
):
    """Print the merged record for one school as JSON."""
    from .services import school_svc

    store = _store()
    record = asyncio.run(_run_with_session(
        Database.from_settings(), lambda s: school_svc.merged_record(store, s, school_id)
    ))
    if record is None:
        console.print(f"[red]Unknown school: {school_id}[/red]")
        raise typer.Exit(1)
    console.print_json(json.dumps(record, ensure_ascii=False))


@schools_app.command("export")
def schools_export(
    out: Path = typer.Option(Path("schools.csv"), "--out", "-o", help="Output CSV path"),
):
    """Export merged school records to the editable CSV."""
    from .sync.exporter import export_schools_csv

    store = _store()
    csv_text = asyncio.run(_run_with_session(
        Database.from_settings(), lambda s: export_schools_csv(store, s)
    ))
    out.write_text(csv_text, encoding="utf-8")
    console.print(f"[green]Wrote {out}[/green]")


@schools_app.command("import")
def schools_import(
    csv_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV to import"),
):
    """Upsert overrides from an edited CSV."""
    from .sync.importer import import_schools_csv

    store = _store()
    text = csv_file.read_text(encoding="utf-8")
    result = asyncio.run(_run_with_session(
        _require_db(), lambda s: import_schools_csv(s, store, text)
    ))
    console.print(f"Rows: {result.records}  Updated: [green]{result.updated}[/green]")
    for err in result.errors:
        console.print(f"  [yellow]{err}[/yellow]")
    if not result.records:
        raise typer.Exit(1)


@schools_app.command("clear")
def schools_clear(
    school_id: str = typer.Argument(..., help="School ID"),
):
    """Delete a school's override so static content is served again."""
    from .services import school_svc

    deleted = asyncio.run(_run_with_session(
        _require_db(), lambda s: school_svc.delete_override(s, school_id)
    ))
    if deleted:
        console.print(f"[green]Cleared override for {school_id}[/green]")
    else:
        console.print(f"[dim]No override for {school_id}[/dim]")


@reviews_app.command("list")
def reviews_list(
    school_id: str = typer.Option(None, "--school", "-s", help="Filter by school ID"),
    status: str = typer.Option(None, "--status", help="pending, approved or rejected"),
    limit: int = typer.Option(50, "--limit", "-n", help="Max reviews to show"),
):
    """List reviews, newest first."""
    from .services import review_svc

    reviews, total = asyncio.run(_run_with_session(
        _require_db(),
        lambda s: review_svc.list_reviews(s, school_id=school_id, status=status, limit=limit),
    ))

    table = Table(title=f"Reviews ({len(reviews)} of {total})")
    table.add_column("ID", style="dim")
    table.add_column("School", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Overall", style="yellow")
    table.add_column("Body")
    for review in reviews:
        body = review.body if len(review.body) <= 40 else review.body[:39] + "…"
        table.add_row(
            str(review.id),
            review.school_id,
            review.status,
            str(review.overall_rating if review.overall_rating is not None else "-"),
            body,
        )
    console.print(table)


@reviews_app.command("stats")
def reviews_stats(
    school_id: str = typer.Argument(..., help="School ID"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Aggregates over a school's approved reviews."""
    from dataclasses import asdict

    from .services import review_svc

    stats = asyncio.run(_run_with_session(
        _require_db(), lambda s: review_svc.school_stats(s, school_id)
    ))
    if json_output:
        console.print_json(json.dumps(asdict(stats)))
        return

    table = Table(title=f"Approved reviews for {school_id} ({stats.count})")
    table.add_column("Dimension", style="cyan")
    table.add_column("Average", style="yellow")
    table.add_column("Count", style="dim")
    table.add_row("Overall", str(stats.overall), str(stats.count))
    table.add_row("Teachers", str(stats.teacher_quality), str(stats.count))
    table.add_row("Materials", str(stats.material_quality), str(stats.count))
    table.add_row("Connection", str(stats.connection_quality), str(stats.count))
    table.add_row("Price", str(stats.price), str(stats.price_count))
    table.add_row("Satisfaction", str(stats.satisfaction), str(stats.satisfaction_count))
    console.print(table)


@db_app.command("init")
def db_init():
    """Create all tables (local SQLite; use Alembic for PostgreSQL)."""
    db = _require_db()

    async def _init():
        try:
            await db.create_tables()
        finally:
            await db.dispose()

    asyncio.run(_init())
    console.print("[green]Tables created[/green]")


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
):
    """Run the web app with uvicorn."""
    import uvicorn

    uvicorn.run("reviewsite.app:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
