#!/usr/bin/env python3
"""Database initialization script for the Databox backend.

This script creates the table that holds persisted tenant project graphs in the
Supabase database.
"""

import os
import asyncio
import asyncpg
from pathlib import Path
from dotenv import load_dotenv
from loguru import logger
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.panel import Panel
from rich.box import HEAVY
from app.db.schema import SUPABASE_SCHEMA, create_index_sql, create_table_sql

# Setup logging to file only (silent console)
log_dir = Path("logs")
log_dir.mkdir(exist_ok=True)
logger.remove()
logger.add(log_dir / "db_init_{time}.log", rotation="10 MB")

# Initialize Rich console
console = Console()

# Load environment variables
load_dotenv()

# Database connection parameters
DB_CONNECTION_STRING = os.getenv("SUPABASE_CONNECTION_STRING")
DB_HOST = os.getenv("SUPABASE_HOST")
DB_PASSWORD = os.getenv("SUPABASE_PASSWORD")
DB_PORT = os.getenv("SUPABASE_PORT", "5432")
DB_USER = os.getenv("SUPABASE_USER", "postgres")
DB_NAME = os.getenv("SUPABASE_DB_NAME", "postgres")


async def connect():
    """Open a connection using the connection string or the individual settings."""
    if DB_CONNECTION_STRING:
        return await asyncpg.connect(DB_CONNECTION_STRING)
    if not DB_HOST or not DB_PASSWORD:
        raise ValueError(
            "Database connection parameters missing. Set SUPABASE_CONNECTION_STRING or both SUPABASE_HOST and SUPABASE_PASSWORD"
        )
    return await asyncpg.connect(
        user=DB_USER,
        password=DB_PASSWORD,
        database=DB_NAME,
        host=DB_HOST,
        port=DB_PORT,
    )


async def create_tables():
    """Create the tables and indexes in SUPABASE_SCHEMA."""
    console.print(
        Panel.fit(
            "[bold green]Databox[/bold green]\nDatabase Initialization",
            title="🗄️ Databox",
            border_style="green",
        )
    )

    try:
        conn = await connect()
        logger.info("Database connection established")
    except Exception as e:
        console.print(
            Panel(
                f"[bold red]Failed to connect to database:[/bold red]\n{str(e)}",
                title="❌ Connection Error",
                border_style="red",
            )
        )
        logger.error(f"Database connection failed: {str(e)}")
        return

    results_table = Table(
        title="[bold cyan]Databox Schema[/bold cyan]",
        show_header=True,
        header_style="bold magenta",
        border_style="bright_blue",
        box=HEAVY,
    )
    results_table.add_column("Statement", style="bright_green")
    results_table.add_column("Status", justify="center")

    statements = [
        (f"table {table['name']}", create_table_sql(table)) for table in SUPABASE_SCHEMA["tables"]
    ] + [
        (f"index on {index['table']}({', '.join(index['columns'])})", create_index_sql(index))
        for index in SUPABASE_SCHEMA["indexes"]
    ]

    success_count = 0
    try:
        for label, sql in statements:
            try:
                await conn.execute(sql)
                results_table.add_row(Text(label, style="green"), Text("✅", style="bold bright_green"))
                success_count += 1
            except Exception as e:
                results_table.add_row(Text(label, style="dim"), Text("❌", style="bold red"))
                logger.error(f"Failed to create {label}: {str(e)}")

        console.print(results_table)
        if success_count == len(statements):
            console.print(f"[bold green]✅ All {success_count} statements applied successfully![/bold green]")
        else:
            console.print(
                f"[bold yellow]⚠️ Applied {success_count} out of {len(statements)} statements[/bold yellow]"
            )
    finally:
        # Close the connection
        await conn.close()
        logger.info("Database connection closed")


async def main():
    """Execute the database initialization process."""
    try:
        await create_tables()
    except Exception as e:
        logger.error(f"Error in main: {str(e)}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
