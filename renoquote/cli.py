"""RenoQuote CLI.

Commands:
- validate: Check a catalog definition and list every violation
- tree: Show one area's category/task/material tree
- price: Price a single task
- reseed-tasks: Replace the global tasks collection with the seed file
- reseed-catalog: Replace the five catalog collections with a validated catalog

Every command exits 0 on success and 1 after printing the cause of any
failure.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from renoquote.catalog.loader import read_definition
from renoquote.catalog.tree import expand
from renoquote.catalog.validation import validate as validate_definition
from renoquote.config import MAX_BATCH_LIMIT, AppConfig, get_config
from renoquote.core.logging import configure_logging
from renoquote.exceptions import BatchError, RenoQuoteError
from renoquote.pipeline.reseed import reseed, reseed_catalog
from renoquote.pipeline.seed_data import load_seed_tasks
from renoquote.pipeline.types import SeedReport
from renoquote.pricing.engine import price as price_task
from renoquote.store.base import DocumentStore
from renoquote.store.memory import InMemoryStore

app = typer.Typer(
    name="renoquote",
    help="RenoQuote - renovation pricing catalog and Firestore seeding",
    no_args_is_help=True,
)

console = Console()


def _setup() -> AppConfig:
    try:
        config = get_config()
    except RenoQuoteError as e:
        console.print(f"[red]✗ Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    configure_logging(config.log_level, config.json_logs)
    return config


def _fail(message: str, error: Exception) -> NoReturn:
    console.print(f"[red]✗ {message}:[/red] {escape(str(error))}")
    raise typer.Exit(1)


def _open_store(config: AppConfig, dry_run: bool) -> DocumentStore:
    if dry_run:
        console.print("[yellow]Dry run: writing to an in-memory store[/yellow]")
        return InMemoryStore(max_batch_size=MAX_BATCH_LIMIT)

    # Imported lazily so offline commands do not need the Firestore client
    from renoquote.store.firestore import FirestoreStore

    return FirestoreStore.from_config(config.store)


def _report_table(reports: list[SeedReport]) -> Table:
    table = Table(title="Reseed Summary")
    table.add_column("Collection", style="cyan")
    table.add_column("Deleted", justify="right")
    table.add_column("Inserted", justify="right", style="green")
    table.add_column("Batches", justify="right", style="dim")
    for report in reports:
        table.add_row(
            report.collection,
            str(report.deleted),
            str(report.inserted),
            f"{report.delete_batches} + {report.insert_batches}",
        )
    return table


@app.command()
def validate(
    catalog: Path | None = typer.Option(None, "--catalog", help="Catalog definition (YAML/JSON)"),
):
    """Validate a catalog definition."""
    config = _setup()
    path = catalog or config.catalog_path
    console.print(f"[bold]Validating catalog:[/bold] {path}")

    try:
        result = validate_definition(read_definition(path))
    except RenoQuoteError as e:
        _fail("Could not read catalog", e)

    if result.ok:
        console.print(
            f"[bold green]✓[/bold green] Catalog is valid ({len(result.catalog)} entities)"
        )
        return

    table = Table(title=f"{len(result.errors)} Validation Error(s)")
    table.add_column("Code", style="red")
    table.add_column("Entity", style="cyan")
    table.add_column("Message")
    for error in result.errors:
        table.add_row(
            error.code.value, f"{error.entity_type.label} {error.entity_id}", escape(error.message)
        )
    console.print(table)
    raise typer.Exit(1)


@app.command()
def tree(
    area_id: str = typer.Argument(..., help="Area id, e.g. area-1"),
    catalog: Path | None = typer.Option(None, "--catalog", help="Catalog definition (YAML/JSON)"),
):
    """Show the category/task/material tree of one area."""
    config = _setup()

    try:
        snapshot = validate_definition(read_definition(catalog or config.catalog_path)).unwrap()
        node = expand(snapshot, area_id)
    except RenoQuoteError as e:
        _fail("Could not expand area", e)

    root = Tree(f"[bold]{node.area.name}[/bold] [dim]({node.area.id})[/dim]")
    for category_node in node.categories:
        category_branch = root.add(f"[cyan]{category_node.category.name}[/cyan]")
        for task_node in category_node.tasks:
            task = task_node.task
            task_branch = category_branch.add(
                f"{task.name} [dim]{task.id} · {task.pricing_method.value}[/dim]"
            )
            for material_node in task_node.materials:
                options = ", ".join(option.name for option in material_node.options)
                task_branch.add(f"[green]{material_node.material.name}[/green]: {options}")
    console.print(root)


@app.command()
def price(
    task_id: str = typer.Argument(..., help="Task id, e.g. task-7"),
    quantity: str = typer.Argument(
        "1", help="Linear metres for meter-rate tasks (put -- before a negative value)"
    ),
    catalog: Path | None = typer.Option(None, "--catalog", help="Catalog definition (YAML/JSON)"),
):
    """Price a single task."""
    config = _setup()

    try:
        snapshot = validate_definition(read_definition(catalog or config.catalog_path)).unwrap()
        task = snapshot.task(task_id)
        amount = price_task(task, quantity, currency=config.pricing.currency)
    except RenoQuoteError as e:
        _fail("Pricing failed", e)

    console.print(f"{task.name} [dim]({task.id}, {task.pricing_method.value})[/dim]: [bold]{amount}[/bold]")


@app.command(name="reseed-tasks")
def reseed_tasks_cmd(
    file: Path | None = typer.Option(None, "--file", help="Seed task YAML file"),
    collection: str | None = typer.Option(None, "--collection", help="Target collection"),
    batch_limit: int | None = typer.Option(
        None, "--batch-limit", min=1, max=MAX_BATCH_LIMIT, help="Writes per batch"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Write to an in-memory store"),
):
    """Delete every global task and insert the seed set."""
    config = _setup()
    collection = collection or config.store.seed_collection
    batch_limit = batch_limit or config.store.batch_limit

    try:
        records = load_seed_tasks(file or config.seed_tasks_path)
        store = _open_store(config, dry_run)
    except RenoQuoteError as e:
        _fail("Reseed aborted before any write", e)

    console.print(
        f"[bold]Reseeding '{collection}':[/bold] {len(records)} task(s), batch limit {batch_limit}"
    )

    try:
        report = asyncio.run(reseed(store, records, collection=collection, batch_limit=batch_limit))
    except BatchError as e:
        console.print(_report_table([e.report]))
        _fail("Reseed failed part way", e)
    except RenoQuoteError as e:
        _fail("Reseed failed", e)

    console.print(_report_table([report]))
    console.print("[bold green]✓[/bold green] Reseed complete")


@app.command(name="reseed-catalog")
def reseed_catalog_cmd(
    catalog: Path | None = typer.Option(None, "--catalog", help="Catalog definition (YAML/JSON)"),
    batch_limit: int | None = typer.Option(
        None, "--batch-limit", min=1, max=MAX_BATCH_LIMIT, help="Writes per batch"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Write to an in-memory store"),
):
    """Replace the areas, categories, tasks, materials and options collections."""
    config = _setup()
    batch_limit = batch_limit or config.store.batch_limit

    try:
        snapshot = validate_definition(read_definition(catalog or config.catalog_path)).unwrap()
        store = _open_store(config, dry_run)
    except RenoQuoteError as e:
        _fail("Reseed aborted before any write", e)

    console.print(f"[bold]Reseeding catalog:[/bold] {len(snapshot)} entities")

    try:
        reports = asyncio.run(reseed_catalog(store, snapshot, batch_limit=batch_limit))
    except BatchError as e:
        console.print(_report_table([e.report]))
        _fail("Catalog reseed failed part way", e)
    except RenoQuoteError as e:
        _fail("Catalog reseed failed", e)

    console.print(_report_table(list(reports.values())))
    console.print("[bold green]✓[/bold green] Catalog reseed complete")


if __name__ == "__main__":
    app()
