"""Serve the Databox application using uvicorn."""

from typing import Union
import uvicorn
from fastapi import FastAPI
from rich.panel import Panel
from rich import box
from rich.console import Console

from app.core import config

console = Console()


def startup_summary(host: str, port: int) -> str:
    """Banner text: where the API listens and where tenant graphs are kept."""
    api_url = f"http://{host}:{port}"
    docs_url = f"{api_url}/docs"
    storage = config.STORAGE_BACKEND
    if storage == "file":
        storage = f"file ({config.DATA_DIR})"

    lines = [
        f"[bold green]API URL:[/bold green] {api_url}",
        f"[bold green]API Docs:[/bold green] [link={docs_url}]{docs_url}[/link]",
        f"[bold green]Storage:[/bold green] {storage}",
        f"[bold green]Regions:[/bold green] {', '.join(config.SUPPORTED_REGIONS)}",
    ]
    if config.STORAGE_BACKEND == "memory":
        lines.append("[yellow]Projects are lost when the server stops[/yellow]")
    return "\n".join(lines)


def serve_app(
    app: Union[str, FastAPI],
    *,
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
    **kwargs,
):
    """
    Serve the Databox API.

    Args:
        app: The FastAPI application or import string
        host: Host to bind the server to
        port: Port to bind the server to
        reload: Whether to enable auto-reload
        **kwargs: Additional arguments to pass to uvicorn.run
    """
    console.print(
        Panel(
            startup_summary(host, port),
            title="🗄️ Databox API",
            expand=False,
            border_style="cyan",
            box=box.HEAVY,
            padding=(1, 2),
        )
    )

    uvicorn.run(app=app, host=host, port=port, reload=reload, **kwargs)
