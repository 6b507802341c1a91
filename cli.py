import typer
import json
import asyncio
from datetime import timedelta
from typing import Optional, List
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.box import ROUNDED
from rich.text import Text
from serve import serve_app
from app.core import config
from app.core.auth import Auth
from app.core.errors import DataboxError
from app.db.client import Database
from app.models.schemas import Project
from app.services.project_registry import ProjectRegistry

# Initialize Rich console for pretty output
console = Console()

# Create CLI app
app = typer.Typer(help="Databox CLI")
project_app = typer.Typer(help="Manage projects")
app.add_typer(project_app, name="project")


# Helper functions
def get_status_emoji(status):
    """Return emoji based on project status"""
    if status == "active":
        return ":green_circle:"
    elif status == "paused":
        return ":yellow_circle:"
    elif status == "inactive":
        return ":red_circle:"
    return ":question_mark:"


def open_registry(tenant: str) -> ProjectRegistry:
    """Load a tenant's projects from the configured storage backend."""
    if config.STORAGE_BACKEND == "memory":
        console.print(
            "[yellow]Note: memory storage does not outlive this command. "
            "Set DATABOX_STORAGE_BACKEND=file or supabase to keep changes.[/]"
        )
    return asyncio.run(ProjectRegistry.open(tenant, Database()))


def show_error(title: str, error: Exception):
    console.print(Panel(
        f"[bold red]Error:[/] {str(error)}",
        title=title,
        border_style="red"
    ))


# Server command
@app.command()
def start(
    host: str = typer.Option("0.0.0.0", help="Host to bind the server to"),
    port: int = typer.Option(8000, help="Port to bind the server to"),
    reload: bool = typer.Option(False, help="Enable auto-reload")
):
    """Start the Databox API server."""
    console.print(Panel(
        f"Starting Databox server on [bold cyan]{host}:{port}[/] {'with auto-reload' if reload else ''}",
        title="🗄️ Databox Server",
        border_style="green",
        expand=False
    ))

    serve_app(
        app="app.main:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def token(
    tenant: str = typer.Argument(..., help="Tenant ID to issue a token for"),
    minutes: Optional[int] = typer.Option(None, help="Minutes until the token expires"),
):
    """Issue a bearer token for a tenant (development use)."""
    expires = timedelta(minutes=minutes) if minutes else None
    console.print(Auth.create_access_token(tenant, expires))


@project_app.command("list")
def list_projects_cmd(
    tenant: str = typer.Option(..., help="Tenant whose projects are listed"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON")
):
    """List a tenant's projects."""
    try:
        projects: List[Project] = open_registry(tenant).list_projects()
    except DataboxError as e:
        show_error("Storage Error", e)
        raise typer.Exit(code=1)

    if output_json:
        console.print_json(json.dumps([p.model_dump(mode="json") for p in projects]))
        return

    if not projects:
        console.print(Panel(
            "No projects found for this tenant",
            title="Empty Result",
            border_style="yellow"
        ))
        return

    table = Table(
        title="🗄️ [bold]Databox Projects[/]",
        box=ROUNDED,
        highlight=True,
        show_header=True,
        header_style="bold magenta",
        border_style="blue"
    )

    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Region", style="cyan")
    table.add_column("Tables", justify="right")
    table.add_column("Status", justify="center")

    for project in projects:
        table.add_row(
            project.id,
            project.name,
            project.region,
            str(len(project.tables)),
            f"{get_status_emoji(project.status)} {project.status.capitalize()}"
        )

    console.print(table)


@project_app.command("create")
def create_project_cmd(
    name: str = typer.Argument(..., help="Project name"),
    tenant: str = typer.Option(..., help="Tenant that owns the project"),
    region: str = typer.Option(config.SUPPORTED_REGIONS[0], help="Deployment region"),
    description: str = typer.Option("", help="Project description"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON")
):
    """Create a project with its default API keys."""

    async def run_async():
        registry = await ProjectRegistry.open(tenant, Database())
        return await registry.create_project(name, description, region)

    try:
        project = asyncio.run(run_async())
    except DataboxError as e:
        show_error("Project Creation Error", e)
        raise typer.Exit(code=1)

    if output_json:
        console.print_json(project.model_dump_json())
        return

    details = [
        f"[bold]ID:[/] {project.id}",
        f"[bold]Region:[/] {project.region}",
        f"[bold]REST:[/] {project.rest_url}",
        f"[bold]Realtime:[/] {project.realtime_url}",
        f"[bold]Storage:[/] {project.storage_url}",
        "",
        "[bold]API Keys:[/]",
    ]
    for api_key in project.api_keys:
        details.append(f"[cyan]{api_key.type}[/] {api_key.key}")

    console.print(Panel(
        "\n".join(details),
        title=f"🗄️ Project: [bold]{project.name}[/]",
        border_style="green",
        box=ROUNDED,
        padding=(1, 2)
    ))


@app.command()
def stats(
    tenant: str = typer.Option(..., help="Tenant whose projects are aggregated"),
):
    """Show table and row totals across a tenant's projects."""
    try:
        registry = open_registry(tenant)
    except DataboxError as e:
        show_error("Storage Error", e)
        raise typer.Exit(code=1)

    summary = registry.stats
    text = Text()
    text.append(f"{summary.total_tables}", style="bold cyan")
    text.append(" tables • ", style="dim")
    text.append(f"{summary.total_rows}", style="bold cyan")
    text.append(" rows • ", style="dim")
    text.append(summary.storage_used, style="bold green")
    text.append(" estimated storage", style="dim")

    console.print(Panel(text, box=ROUNDED, border_style="blue", expand=False))


if __name__ == "__main__":
    app()
