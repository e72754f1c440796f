"""Command-line interface: one-shot pipeline runs and the HTTP server."""

import asyncio

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .app import Application
from .config import Settings, api_address
from .errors import ConfigurationError
from .logging_config import setup_logging
from .models import RunResult

DEMO_INPUT = "Explain quantum computing in simple terms"

app = typer.Typer(help="agentflow multi-agent pipeline")
console = Console()


def _print_result(result: RunResult, agent_count: int) -> None:
    final = result.state.get("final_response") or result.state.get("message")
    if final:
        console.print(Panel(str(final), title="📝 Final Response"))

    if result.ok:
        console.print("\n[bold green]✅ Multi-Agent Processing Complete![/bold green]")
    else:
        console.print(
            f"\n[bold red]❌ Run {result.status.value} at "
            f"{result.failed_agent or '-'} ({result.error_kind}): {result.error}[/bold red]"
        )

    table = Table(title="📊 Execution Stats")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Agents registered", str(agent_count))
    table.add_row("Hops", " → ".join(result.agents) or "-")
    table.add_row("Event ID", result.event_id)
    console.print(table)


@app.command()
def run(
    text: str = typer.Argument(DEMO_INPUT, help="Input passed to the first agent"),
    route: str | None = typer.Option(
        None, "--route", "-r", help="Starting agent (defaults to the chain head)"
    ),
    provider: str | None = typer.Option(
        None, "--provider", "-p", help="Model provider: anthropic or echo"
    ),
) -> None:
    """Emit one event and print the final response."""
    setup_logging(console=False)

    async def _run() -> RunResult:
        settings = Settings.from_env()
        if provider:
            settings = settings.with_provider(provider)
        application = Application(settings=settings)
        try:
            await application.start()
            console.print("🤖 Starting multi-agent collaboration...")
            result = await application.process(text, route=route)
            _print_result(result, len(application.processing_layer))
            return result
        finally:
            await application.stop()

    try:
        result = asyncio.run(_run())
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e.message}")
        raise typer.Exit(code=1)
    if not result.ok:
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: str = typer.Option(None, help="Bind host (API_HOST)"),
    port: int = typer.Option(None, help="Bind port (API_PORT)"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from sim import Sim

    from .api import create_fastapi_app
    from .api.routes import control

    try:
        default_host, default_port = api_address()
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e.message}")
        raise typer.Exit(code=1)
    api_host = host or default_host
    api_port = port or default_port

    setup_logging()

    control.set_sim_instance(Sim(api_url=f"http://{api_host}:{api_port}"))

    uvicorn.run(
        create_fastapi_app(),
        host=api_host,
        port=api_port,
        log_level="info",
    )
