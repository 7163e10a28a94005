"""
Broker CLI.

Developer commands to inspect the configuration, the mapping of bean
types and the SQL their stores generate.

Usage:
    python cli.py show-config
    python cli.py describe app.beans:Product
    python cli.py preview-sql app.beans:Product --operation select --where PRO_LABEL=Choco --limit 10
    python cli.py check-db --datasource reporting
"""

import importlib
import sys

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.engine import make_url

from broker.criteria import FilterCriteria
from broker.metadata import get_definition
from broker.query import QueryParameter
from broker.registry import BrokerRegistry
from broker.stores.factory import store_type_for_dialect
from shared.config.constants import StoreDialects
from shared.config.settings import settings
from shared.infrastructure.db import check_connection
from shared.utils.exceptions import BrokerError

app = typer.Typer(
    name="broker",
    help="Persistence broker CLI",
    add_completion=False,
)
console = Console()

OPERATIONS = ["select", "insert", "update", "delete"]


def _mask_url(url: str) -> str:
    try:
        return make_url(url).render_as_string(hide_password=True)
    except Exception:
        return "<invalid url>"


def _load_type(path: str) -> type:
    """Import a bean type from "package.module:Class" or "package.module.Class"."""
    module_name, sep, class_name = path.partition(":")
    if not sep:
        module_name, _, class_name = path.rpartition(".")
    if not module_name or not class_name:
        console.print(f"[red]✗ Invalid type path: {path}[/red]")
        raise typer.Exit(1)
    try:
        return getattr(importlib.import_module(module_name), class_name)
    except (ImportError, AttributeError) as e:
        console.print(f"[red]✗ Cannot import {path}: {e}[/red]")
        raise typer.Exit(1)


def _parse_where(conditions: list[str]) -> FilterCriteria:
    criteria = FilterCriteria()
    for condition in conditions:
        column, sep, value = condition.partition("=")
        if not sep or not column:
            console.print(f"[red]✗ Invalid condition '{condition}', expected COLUMN=VALUE[/red]")
            raise typer.Exit(1)
        criteria.equals(column.strip(), value.strip())
    return criteria


# =============================================================================
# Configuration Commands
# =============================================================================

@app.command()
def show_config():
    """Show the effective broker settings."""
    table = Table(title="Broker Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Environment", settings.environment)
    table.add_row("Debug", str(settings.debug))
    table.add_row("Default datasource", settings.default_datasource)
    table.add_row("Database URL", _mask_url(settings.database_url))
    for name, url in sorted(settings.datasources.items()):
        table.add_row(f"Datasource '{name}'", _mask_url(url))
    table.add_row("Default store", settings.default_store)
    table.add_row("Throw on overflow", str(settings.throw_on_overflow))
    table.add_row("Default language", settings.default_language)
    table.add_row("Echo SQL", str(settings.echo_sql))

    console.print(table)

    errors = settings.validate_production()
    for error in errors:
        console.print(f"[red]✗ {error}[/red]")
    if errors:
        raise typer.Exit(1)


# =============================================================================
# Mapping Commands
# =============================================================================

@app.command()
def describe(
    type_path: str = typer.Argument(..., help="Bean type, e.g. app.beans:Product"),
):
    """Show the mapping of a bean type."""
    bean_type = _load_type(type_path)
    try:
        definition = get_definition(bean_type)
        definition.check_persistable()
    except BrokerError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        raise typer.Exit(1)

    if BrokerRegistry.is_logical_delete(bean_type):
        kind = "logical delete"
    elif definition.is_reference:
        kind = "reference"
    else:
        kind = "standard"

    table = Table(title=f"{definition.table} ({kind})")
    table.add_column("Field", style="cyan")
    table.add_column("Column", style="green")
    table.add_column("Kind", style="yellow")
    table.add_column("Flags")

    for descriptor in definition.fields:
        flags = [
            name for name, enabled in (
                ("pk", descriptor.primary_key),
                ("read-only", descriptor.read_only),
                ("translatable", descriptor.translatable),
            ) if enabled
        ]
        table.add_row(
            descriptor.name,
            descriptor.column or "[dim]not mapped[/dim]",
            descriptor.kind.value,
            ", ".join(flags),
        )

    console.print(table)


@app.command()
def preview_sql(
    type_path: str = typer.Argument(..., help="Bean type, e.g. app.beans:Product"),
    operation: str = typer.Option("select", "--operation", "-o", help="select, insert, update or delete"),
    dialect: str = typer.Option(settings.default_store, "--dialect", "-d", help="sqlserver or sqlite"),
    where: list[str] = typer.Option([], "--where", "-w", help="COLUMN=VALUE equality, repeatable"),
    limit: int = typer.Option(0, "--limit", "-l", help="Row limit of a select, 0 for none"),
    sort: str = typer.Option(None, "--sort", "-s", help="Sort column of a select"),
):
    """Print the SQL a store generates, without touching the database."""
    if operation not in OPERATIONS:
        console.print(f"[red]✗ Unknown operation '{operation}', expected one of {OPERATIONS}[/red]")
        raise typer.Exit(1)
    if dialect not in StoreDialects.ALL:
        console.print(f"[red]✗ Unknown dialect '{dialect}', expected one of {StoreDialects.ALL}[/red]")
        raise typer.Exit(1)

    bean_type = _load_type(type_path)
    try:
        store = store_type_for_dialect(dialect)(bean_type, settings.default_datasource)
        command = store.create_command(None)
        definition = store.definition

        if operation == "select":
            query = QueryParameter(sort, limit=limit) if sort else QueryParameter(limit=limit)
            max_rows = store.get_max_row_count(query.row_cap)
            command.command_text = store.build_select_query(_parse_where(where), max_rows, query, command.parameters)
        elif operation == "delete":
            command.command_text = store.build_delete_query(_parse_where(where), command.parameters)
        elif operation == "insert":
            sample = definition.new_instance()
            command.command_text = store.build_insert_query(sample)
            store.add_insert_parameters(sample, command.parameters)
        else:
            sample = definition.new_instance()
            definition.set_value(sample, definition.primary_key, 1)
            command.command_text = store.build_update_query(sample)
            store.add_update_parameters(sample, command.parameters)
    except BrokerError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        raise typer.Exit(1)

    console.print(command.command_text, highlight=False)

    if len(command.parameters):
        table = Table(title="Parameters")
        table.add_column("Name", style="cyan")
        table.add_column("Value", style="green")
        for name, value in command.parameters.as_dict().items():
            table.add_row(f"{store.variable_prefix}{name}", repr(value))
        console.print(table)


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def check_db(
    datasource: str = typer.Option(None, "--datasource", help="Datasource name, the default one if omitted"),
):
    """Check that a datasource accepts connections."""
    name = datasource or settings.default_datasource
    url = settings.datasource_url(name)
    if url is None:
        console.print(f"[red]✗ Datasource '{name}' is not configured[/red]")
        raise typer.Exit(1)

    console.print(f"[blue]Connecting to {name}: {_mask_url(url)}[/blue]")
    if check_connection(name):
        console.print("[green]✓ Connection OK[/green]")
    else:
        console.print("[red]✗ Connection failed[/red]")
        raise typer.Exit(1)


@app.command()
def version():
    """Show version information."""
    table = Table(title="Broker Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("Broker", "1.0.0")
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    app()
