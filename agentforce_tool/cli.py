"""Command-line entry point for agentforce-tool."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any

import click
import httpx
import typer
from rich.console import Console
from rich.markup import escape

from agentforce_tool.config import DEFAULT_SERVER_URL, ClientConfig, save_config
from agentforce_tool.dispatcher import BackendError, Dispatcher, probe_backend
from agentforce_tool.envelope import error_result, render_response
from agentforce_tool.errors import ProcessingError
from agentforce_tool.exit_codes import ExitCode
from agentforce_tool.logs import configure_logging, mirror_to_file, register_secret
from agentforce_tool.protocol import run

cli = typer.Typer(
    add_completion=False,
    help="Forward one tool-call envelope from stdin to the AgentForce server.",
)

DESKTOP_SNIPPET: dict[str, Any] = {
    "mcpServers": {
        "agentforce": {
            "command": "agentforce-tool",
            "args": [],
        }
    }
}


@dataclass
class CliState:
    config_path: Path | None = None
    verbose: bool = False


@cli.callback(invoke_without_command=True)
def _main_callback(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option("--config", help="Config file (default: ~/.agentforce-reliable-client/config.json)."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug diagnostics to stderr.")] = False,
) -> None:
    """Read a request envelope from stdin and write the response to stdout."""
    ctx.obj = CliState(config_path=config, verbose=verbose)
    if ctx.invoked_subcommand is not None:
        return
    raise typer.Exit(serve_stdin(ctx.obj))


def serve_stdin(state: CliState) -> int:
    """Run one request/response cycle; returns the process exit code."""
    logger = configure_logging(verbose=state.verbose)
    try:
        settings = ClientConfig(state.config_path)
        profile = settings.profile
        register_secret(logger, profile.api_key)
        if settings.log_file is not None:
            try:
                mirror_to_file(logger, settings.log_file)
            except OSError as exc:
                logger.warning("Cannot mirror logs to %s: %s", settings.log_file, exc)
        dispatcher = Dispatcher(
            profile,
            logger=logger.getChild("dispatcher"),
            forward_credentials=settings.forward_credentials,
        )
    except Exception as exc:
        logger.exception("Error preparing request handler")
        click.echo(render_response(error_result(ProcessingError(str(exc)))))
        return int(ExitCode.INTERNAL_ERROR)
    return run(dispatcher)


@cli.command()
def configure(ctx: typer.Context) -> None:
    """Interactively set the server URL and API key, then test the connection."""
    state: CliState = ctx.obj or CliState()
    configure_logging(verbose=state.verbose)
    console = Console()
    settings = ClientConfig(state.config_path)
    current = settings.persisted_profile

    console.print("[bold blue]AgentForce Reliable Tool Configuration[/bold blue]")
    console.print()
    console.print("[yellow]Enter your server connection details:[/yellow]")
    console.print("(Press Enter to keep existing values in brackets)")
    console.print()

    server_url = typer.prompt("Server URL", default=current.server_url, show_default=True)
    key_hint = f" [{current.api_key[:8]}...]" if current.api_key else ""
    api_key = typer.prompt(f"Server API Key{key_hint}", default="", show_default=False)

    profile = current.model_copy(
        update={
            "server_url": server_url.strip() or DEFAULT_SERVER_URL,
            "api_key": api_key.strip() or current.api_key,
        }
    )
    path = save_config(profile, settings.path, extra=settings.file_data)
    console.print()
    console.print(f"[green]Configuration saved to {escape(str(path))}[/green]")
    console.print()

    console.print("[blue]Verifying connection to server...[/blue]")
    try:
        info = probe_backend(profile)
    except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError, BackendError) as exc:
        console.print(f"[red]✗ Error connecting to server:[/red] {escape(str(exc))}")
        console.print(f"[yellow]Please ensure the server is running at {escape(profile.server_url)}[/yellow]")
        return

    name, version, status = (escape(str(info.get(key))) for key in ("name", "version", "status"))
    console.print(f"[green]✓ Connected to server: {name} v{version}[/green]")
    console.print(f"[green]✓ Server status: {status}[/green]")
    if info.get("mode") == "direct":
        console.print("[green]✓ Server running in direct mode[/green]")
    console.print()
    console.print("[blue]Desktop client integration:[/blue]")
    console.print("Add the following to your MCP client config file:")
    console.print_json(data=DESKTOP_SNIPPET)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
