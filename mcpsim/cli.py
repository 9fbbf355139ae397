"""CLI entry point for mcpsim."""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from mcpsim.config import Config
from mcpsim.models import PROVIDER_TYPES
from mcpsim.services import Services, build_services

app = typer.Typer(help="Simulated Model Context Protocol runtime: tools, context providers and a PR bot.")
console = Console()

DB_PATH_HELP = "Database file path (defaults to MCPSIM_DB_PATH or mcpsim.db)"


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override MCPSIM_LOG_LEVEL"),
) -> None:
    level = (log_level or Config.load().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _open(db_path: Optional[str]) -> Services:
    config = Config.load()
    if db_path:
        config.db_path = Path(db_path)
    issues = config.validate()
    if issues:
        for issue in issues:
            rprint(f"[red]Config error: {issue}[/red]")
        raise typer.Exit(1)
    return build_services(config)


def _echo_json(payload: object) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _parse_json_object(raw: str, option: str) -> dict:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        rprint(f"[red]Invalid {option} JSON: {e}[/red]")
        raise typer.Exit(1)
    if not isinstance(parsed, dict):
        rprint(f"[red]{option} must be a JSON object[/red]")
        raise typer.Exit(1)
    return parsed


@app.command()
def serve(
    db_path: Optional[str] = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Start the MCP server on stdio."""
    from mcpsim.mcp_server import main as mcp_main
    asyncio.run(mcp_main(Path(db_path) if db_path else None))


@app.command()
def tools(
    db_path: Optional[str] = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """List registered tools."""
    services = _open(db_path)
    try:
        all_tools = services.repo.get_tools()
        if not all_tools:
            rprint("[yellow]No tools registered.[/yellow]")
            return

        table = Table(title="Tools")
        table.add_column("ID", justify="right")
        table.add_column("Name")
        table.add_column("Category")
        table.add_column("Enabled")
        table.add_column("Required params")
        for tool in all_tools:
            table.add_row(
                str(tool.id),
                tool.name,
                tool.category,
                "yes" if tool.enabled else "[red]no[/red]",
                ", ".join(tool.schema.get("required", [])),
            )
        console.print(table)
    finally:
        services.close()


@app.command()
def run(
    tool_id: int = typer.Argument(help="Tool id"),
    params: str = typer.Option("{}", "--params", "-p", help="Tool parameters as a JSON object"),
    db_path: Optional[str] = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Execute a tool through the dispatcher and print the result."""
    try:
        parsed = json.loads(params)
    except json.JSONDecodeError as e:
        rprint(f"[red]Invalid --params JSON: {e}[/red]")
        raise typer.Exit(1)

    services = _open(db_path)
    try:
        result = asyncio.run(services.dispatcher.execute(tool_id, parsed))
    except ValueError as e:
        rprint(f"[red]{e}[/red]")
        raise typer.Exit(1)
    finally:
        services.close()

    _echo_json(result.to_dict())
    if not result.success:
        raise typer.Exit(1)


@app.command("add-tool")
def add_tool(
    name: str = typer.Argument(help="Tool name; it selects the handler at execution time"),
    schema: str = typer.Option(..., "--schema", help='Parameter schema, e.g. {"type": "object", "required": ["query"]}'),
    description: str = typer.Option("", "--description", "-d", help="What the tool does"),
    category: str = typer.Option("general", "--category", help="Tool category (search, file, analysis, ...)"),
    disabled: bool = typer.Option(False, "--disabled", help="Register the tool disabled"),
    db_path: Optional[str] = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Register a tool in the store."""
    parsed = _parse_json_object(schema, "--schema")
    required = parsed.get("required", [])
    if not isinstance(required, list) or not all(isinstance(r, str) for r in required):
        rprint("[red]--schema 'required' must be a list of parameter names[/red]")
        raise typer.Exit(1)

    services = _open(db_path)
    try:
        tool = services.repo.create_tool(
            name, description, parsed, category=category, enabled=not disabled
        )
        known_handler = name in services.dispatcher.handler_names()
    except sqlite3.IntegrityError:
        rprint(f"[red]A tool named '{name}' already exists[/red]")
        raise typer.Exit(1)
    finally:
        services.close()

    state = "" if tool.enabled else " (disabled)"
    rprint(f"[green]Registered tool {tool.id}: {tool.name}{state}[/green]")
    if not known_handler:
        rprint(f"[yellow]No handler named '{tool.name}'; executions will fail until one is registered.[/yellow]")


@app.command()
def providers(
    db_path: Optional[str] = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """List context providers."""
    services = _open(db_path)
    try:
        all_providers = services.repo.get_providers()
        if not all_providers:
            rprint("[yellow]No context providers configured.[/yellow]")
            return

        rprint("[bold]Context providers:[/bold]")
        for p in all_providers:
            state = "" if p.enabled else " [red](disabled)[/red]"
            rprint(f"  {p.id}. {p.name} [dim]({p.type})[/dim]{state}")
    finally:
        services.close()


@app.command("add-provider")
def add_provider(
    name: str = typer.Argument(help="Provider display name"),
    provider_type: str = typer.Argument(help=f"Provider type: {', '.join(PROVIDER_TYPES)}"),
    config: str = typer.Option("{}", "--config", "-c", help='Provider config, e.g. {"dialect": "postgresql"}'),
    disabled: bool = typer.Option(False, "--disabled", help="Create the provider disabled"),
    db_path: Optional[str] = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Create a context provider."""
    if provider_type not in PROVIDER_TYPES:
        rprint(f"[red]Unknown provider type '{provider_type}' (expected one of: {', '.join(PROVIDER_TYPES)})[/red]")
        raise typer.Exit(1)
    parsed = _parse_json_object(config, "--config")

    services = _open(db_path)
    try:
        provider = services.repo.create_provider(name, provider_type, parsed, enabled=not disabled)
    finally:
        services.close()

    state = "" if provider.enabled else " (disabled)"
    rprint(f"[green]Created provider {provider.id}: {provider.name} ({provider.type}){state}[/green]")


@app.command()
def extract(
    provider_id: Optional[int] = typer.Argument(None, help="Provider id"),
    all_providers: bool = typer.Option(False, "--all", help="Extract from every enabled provider"),
    db_path: Optional[str] = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Extract context from a provider into the cache."""
    if provider_id is None and not all_providers:
        rprint("[red]Pass a provider id or --all[/red]")
        raise typer.Exit(1)

    services = _open(db_path)
    try:
        if all_providers:
            results = asyncio.run(services.extractor.extract_all_contexts())
        else:
            results = asyncio.run(services.extractor.extract_context(provider_id))
    except (LookupError, ValueError) as e:
        rprint(f"[red]{e}[/red]")
        raise typer.Exit(1)
    finally:
        services.close()

    rprint(f"Extracted [bold]{len(results)}[/bold] context item(s)")
    for r in results:
        rprint(f"  {r.key} [dim]({r.metadata.get('size', 0)} bytes)[/dim]")


@app.command()
def search(
    query: str = typer.Argument(help="Text to search for in cached context"),
    db_path: Optional[str] = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Search cached context values."""
    services = _open(db_path)
    try:
        results = asyncio.run(services.extractor.search_context(query))
    except ValueError as e:
        rprint(f"[red]{e}[/red]")
        raise typer.Exit(1)
    finally:
        services.close()

    if not results:
        rprint(f"No cached context matches '{query}'.")
        return
    rprint(f"[bold]{len(results)}[/bold] match(es):")
    for r in results:
        rprint(f"  {r.key} [dim](provider {r.provider_id})[/dim]")


@app.command()
def cached(
    key: str = typer.Argument(help="Cache key, e.g. database:schema"),
    db_path: Optional[str] = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Show a fresh cache entry."""
    services = _open(db_path)
    try:
        item = asyncio.run(services.extractor.get_cached_context(key))
    finally:
        services.close()

    if item is None:
        rprint(f"[yellow]No fresh cache entry for '{key}'.[/yellow]")
        raise typer.Exit(1)
    _echo_json({
        "key": item.key,
        "value": item.value,
        "metadata": item.metadata,
        "expires_at": item.expires_at,
    })


@app.command()
def requests(
    limit: int = typer.Option(20, help="Max number of entries to show"),
    tool_id: Optional[int] = typer.Option(None, help="Only show calls to this tool"),
    db_path: Optional[str] = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Show the request ledger, newest first."""
    services = _open(db_path)
    try:
        entries = services.repo.get_requests(tool_id=tool_id, limit=limit)
    finally:
        services.close()

    if not entries:
        rprint("No tool requests recorded yet.")
        return
    for r in entries:
        color = "green" if r.status == "completed" else "red"
        line = f"  #{r.id} tool {r.tool_id} [{color}]{r.status}[/{color}] {r.execution_time}ms"
        if r.error:
            line += f" [dim]{r.error}[/dim]"
        rprint(line)


@app.command()
def webhook(
    event: str = typer.Argument(help="GitHub event name: pull_request, push or issue_comment"),
    payload_file: Path = typer.Argument(help="Path to a JSON webhook payload"),
    db_path: Optional[str] = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Feed a webhook payload to the PR bot."""
    if not payload_file.exists():
        rprint(f"[red]Payload file not found: {payload_file}[/red]")
        raise typer.Exit(1)
    try:
        payload = json.loads(payload_file.read_text())
    except json.JSONDecodeError as e:
        rprint(f"[red]Invalid payload JSON: {e}[/red]")
        raise typer.Exit(1)

    services = _open(db_path)
    try:
        asyncio.run(services.bot.handle_webhook(event, payload))
        for comment in services.github.comments:
            rprint(f"\n[bold]Comment on PR #{comment.pr_number}:[/bold]")
            typer.echo(comment.body)
    except Exception as e:
        rprint(f"[red]Webhook processing failed: {e}[/red]")
        raise typer.Exit(1)
    finally:
        services.close()


@app.command()
def integrations(
    db_path: Optional[str] = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """List PR integration records."""
    services = _open(db_path)
    try:
        records = services.repo.get_integrations()
    finally:
        services.close()

    if not records:
        rprint("No PR integrations recorded yet.")
        return
    for i in records:
        pr = f"PR #{i.pr_number}" if i.pr_number is not None else "push"
        rprint(f"  {i.id}. {pr} {i.repo_url} [dim]({i.branch})[/dim] {i.status}")


@app.command()
def stats(
    db_path: Optional[str] = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Show store statistics."""
    services = _open(db_path)
    try:
        s = services.repo.get_stats()
    finally:
        services.close()

    rprint("[bold]mcpsim statistics:[/bold]")
    rprint(f"  Tools:           {s['total_tools']} ({s['enabled_tools']} enabled)")
    rprint(f"  Providers:       {s['total_providers']}")
    rprint(f"  Requests:        {s['total_requests']} ({s['failed_requests']} failed)")
    rprint(f"  Cache items:     {s['cache_items']}")
    rprint(f"  PR integrations: {s['integrations']}")


if __name__ == "__main__":
    app()
