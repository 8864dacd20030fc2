"""
Pretty-printing of finalized requests with Rich.
"""
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .auth import mask_credentials
from .finalize import FinalizedRequest, FormBody, StreamBody

_MASKED_HEADERS = ("authorization", "proxy-authorization", "x-api-key")


def _describe_body(request: FinalizedRequest) -> str:
    body = request.body
    if body is None:
        return "<none>"
    if isinstance(body, FormBody):
        return f"form ({body.length} bytes)"
    if isinstance(body, StreamBody):
        length = "chunked" if body.chunked else f"{body.length} bytes"
        return f"stream ({length}, progress every {body.update_interval} bytes)"
    return type(body).__name__


def print_request(
    request: FinalizedRequest,
    target: str,
    console: Optional[Console] = None,
) -> None:
    """Print the request line, masked headers and body summary."""
    console = console or Console(stderr=True)

    request_info = f"[bold cyan]{request.method.value}[/bold cyan] {request.url}"
    console.print(Panel(request_info, title=f"[bold blue]Request[/bold blue] ({target})"))

    table = Table(show_header=True, header_style="bold")
    table.add_column("Header", style="cyan")
    table.add_column("Value")
    for name, value in request.headers:
        if name.lower() in _MASKED_HEADERS:
            value = mask_credentials(value)
        table.add_row(name, value)
    console.print(table)

    console.print(f"[bold]Body:[/bold] {_describe_body(request)}")
    if request.params_overridden:
        console.print("[yellow]Params were overwritten by the body stream[/yellow]")
