#!/usr/bin/env python3
"""
Import Status Checker
Shows the destination database connection and how much legacy data has been imported
"""

import asyncio
import sys
from datetime import datetime
from typing import Any, Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from sqlalchemy import text

from .db_utils import DatabaseManager

console = Console()

STATUS_TABLES = ["schools", "class_groups", "activities", "students", "families", "student_families"]

# Tables whose rows carry a legacy_id
LEGACY_TABLES = {"schools", "class_groups", "activities", "students"}


async def check_database_connection(db_manager: DatabaseManager) -> Dict[str, Any]:
    """Check database connection and basic info"""
    result = {
        "connected": False,
        "error": None,
        "dialect": None,
    }

    try:
        engine = await db_manager.connect_async()
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        result["connected"] = True
        result["dialect"] = engine.dialect.name
    except Exception as e:
        result["error"] = str(e)

    return result


async def get_import_counts(db_manager: DatabaseManager) -> List[Dict[str, Any]]:
    """Row counts and legacy-id coverage per import table"""
    engine = await db_manager.connect_async()
    counts = []

    for table_name in STATUS_TABLES:
        entry = {"table": table_name, "rows": None, "with_legacy_id": None, "error": None}
        try:
            entry["rows"] = await db_manager.get_row_count(engine, table_name)
            if table_name in LEGACY_TABLES:
                rows = await db_manager.execute_query(
                    engine, f"SELECT COUNT(*) AS count FROM {table_name} WHERE legacy_id IS NOT NULL")
                entry["with_legacy_id"] = rows[0]["count"] if rows else 0
        except Exception as e:
            entry["error"] = str(e)
        counts.append(entry)

    return counts


def create_connection_table(status: Dict[str, Any]) -> Table:
    """Create database connection status table"""
    table = Table(title="Database Connection Status", show_header=True)
    table.add_column("Database", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Dialect", style="yellow")

    status_str = "✅ Connected" if status["connected"] else f"❌ Failed: {status['error']}"
    table.add_row("Destination", status_str, status["dialect"] or "N/A")
    return table


def create_import_table(counts: List[Dict[str, Any]]) -> Table:
    """Create import progress table"""
    table = Table(title="Import Progress", show_header=True)
    table.add_column("Table", style="cyan")
    table.add_column("Rows", style="green")
    table.add_column("With legacy id", style="yellow")
    table.add_column("Coverage", style="blue")

    for entry in counts:
        if entry["error"]:
            table.add_row(entry["table"], "-", "-", f"[red]{entry['error'][:50]}[/red]")
            continue

        rows = entry["rows"]
        legacy = entry["with_legacy_id"]
        if legacy is None:
            table.add_row(entry["table"], str(rows), "-", "-")
        else:
            coverage = f"{legacy / rows * 100:.1f}%" if rows else "0/0"
            table.add_row(entry["table"], str(rows), str(legacy), coverage)

    return table


async def main():
    """Main status check function"""
    console.print("\n[bold blue]🔍 Legacy Import Status Check[/bold blue]\n")
    db_manager = DatabaseManager()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console
    ) as progress:
        task1 = progress.add_task("Checking database connection...", total=None)
        status = await check_database_connection(db_manager)
        progress.update(task1, description="✅ Database connection checked")

        counts = []
        if status["connected"]:
            task2 = progress.add_task("Gathering import statistics...", total=None)
            counts = await get_import_counts(db_manager)
            progress.update(task2, description="✅ Import statistics gathered")

    console.print()
    console.print(create_connection_table(status))
    if counts:
        console.print()
        console.print(create_import_table(counts))

    if status["connected"]:
        status_text = "✅ Destination database is accessible"
        panel_style = "green"
    else:
        status_text = "❌ Database connection issues detected. Check configuration."
        panel_style = "red"

    console.print()
    console.print(Panel(
        f"[bold]{status_text}[/bold]\n\n"
        f"Generated at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        title="Legacy Import Status",
        border_style=panel_style
    ))

    await db_manager.close_connections()

    # Exit with error code if the connection failed
    if not status["connected"]:
        sys.exit(1)


def cli():
    asyncio.run(main())


if __name__ == "__main__":
    cli()
