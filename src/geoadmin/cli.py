"""geoadmin CLI - Main entry point."""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .api import AdminClient
from .cache import CacheStore
from .config import settings
from .controller import NO_DATA_MESSAGE, ListController, ViewState
from .entities import ADAPTERS, EntityAdapter, get_adapter
from .errors import FetchError, classify_mutation_error
from .fields import FIELD_TYPES
from .refs import RefEmbedded, RefId
from .session import SessionContext, SessionMonitor, SessionService

app = typer.Typer(
    name="geoadmin",
    help="geoadmin - admin client for the geographic/catalog backend",
    no_args_is_help=True,
)
console = Console()

auth_app = typer.Typer(help="Session commands")
seo_fields_app = typer.Typer(help="SEO custom field registry")

app.add_typer(auth_app, name="auth")
app.add_typer(seo_fields_app, name="seo-fields")

LOGIN_HINT = "Run 'geoadmin auth login --email <email>' first."


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _make_client() -> AdminClient:
    return AdminClient()


def _make_cache() -> CacheStore:
    return CacheStore(settings.cache_path)


def _plain(record: dict[str, Any]) -> dict[str, Any]:
    """Record with references turned back into their wire form."""
    return {
        key: value.to_raw() if isinstance(value, (RefId, RefEmbedded)) else value
        for key, value in record.items()
    }


def _parse_assignments(assignments: Optional[list[str]], adapter: EntityAdapter) -> list[tuple[str, Any]]:
    defaults = adapter.blank_form()
    parsed = []
    for item in assignments or []:
        if "=" not in item:
            console.print(f"[red]Invalid --set value '{item}', expected field=value[/red]")
            raise typer.Exit(1)
        name, value = item.split("=", 1)
        name = name.strip()
        if isinstance(defaults.get(name), bool):
            value = value.strip().lower() in ("1", "true", "yes", "on")
        parsed.append((name, value))
    return parsed


def _require_login(session: SessionContext) -> None:
    if not session.is_authorized:
        console.print(f"[red]Not logged in.[/red] {LOGIN_HINT}")
        raise typer.Exit(1)


async def _check_session(api: AdminClient, session: SessionContext) -> None:
    """Revalidate the stored user with the backend before doing any work."""
    if not await SessionService(api, session).check():
        console.print(f"[red]Not logged in.[/red] {LOGIN_HINT}")
        raise typer.Exit(1)


def _require_session() -> None:
    session = SessionContext(_make_cache())
    _require_login(session)

    async def _check():
        async with _make_client() as api:
            await _check_session(api, session)

    asyncio.run(_check())


@asynccontextmanager
async def _open_page(entity: str):
    """Mount a list controller for ``entity`` and unmount it afterwards."""
    cache = _make_cache()
    session = SessionContext(cache)
    async with _make_client() as api:
        await _check_session(api, session)
        controller = ListController(get_adapter(entity), api, cache, session)
        await controller.mount()
        if controller.redirect_to_login:
            console.print(f"[red]Not logged in.[/red] {LOGIN_HINT}")
            raise typer.Exit(1)
        try:
            yield controller
        finally:
            controller.unmount()


def _fail_on_fetch_error(controller: ListController) -> None:
    if controller.fetch_error is None:
        return
    if controller.view is ViewState.ERROR:
        console.print(f"[red]{controller.fetch_error.message}[/red]")
        raise typer.Exit(1)
    console.print(f"[yellow]{controller.fetch_error.message} Showing cached data.[/yellow]")


def _find_record(controller: ListController, record_id: str) -> dict[str, Any]:
    for record in controller.records:
        if record.get("id") == record_id:
            return record
    console.print(f"[red]No {controller.adapter.label} with ID {record_id}[/red]")
    raise typer.Exit(1)


async def _confirm_and_commit(controller: ListController, prompt: str, yes: bool) -> None:
    if not yes and not typer.confirm(prompt):
        controller.cancel()
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(0)
    outcome = await controller.confirm()
    if outcome.ok:
        console.print(f"[green]{outcome.message}[/green]")
        return
    message = controller.form.error or (controller.last_notice.message if controller.last_notice else outcome.message)
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


async def _fill_and_submit(controller: ListController, assignments: list[tuple[str, Any]], yes: bool) -> None:
    for name, value in assignments:
        await controller.set_field(name, value)
    prompt = controller.submit()
    if prompt is None:
        console.print(f"[red]{controller.form.error}[/red]")
        raise typer.Exit(1)
    await _confirm_and_commit(controller, prompt, yes)


# ============================================================================
# Entity Commands
# ============================================================================


def _register_entity(adapter: EntityAdapter) -> None:
    entity_app = typer.Typer(help=f"Manage {adapter.plural}", no_args_is_help=True)
    app.add_typer(entity_app, name=adapter.key)

    @entity_app.command("list")
    def list_records(
        search: str = typer.Option("", "--search", "-s", help="Filter rows (case-insensitive)"),
        page: int = typer.Option(1, "--page", "-p", help="Page number"),
        page_size: int = typer.Option(settings.page_size, "--page-size", help="Rows per page"),
        json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    ):
        """List records, filtered and paged."""

        async def _list():
            async with _open_page(adapter.key) as controller:
                controller.page_size = page_size
                controller.search = search
                _fail_on_fetch_error(controller)
                current = min(max(page, 1), controller.page_count)
                records = controller.page(current)
                if json_output:
                    console.print_json(json.dumps([_plain(r) for r in records], default=str))
                    return
                if controller.view is ViewState.EMPTY:
                    console.print(f"[dim]{NO_DATA_MESSAGE}[/dim]")
                    return
                headers, rows = controller.table(records)
                table = Table(
                    title=f"{adapter.title} ({len(controller.rows)})",
                    caption=f"Page {current} of {controller.page_count}",
                )
                table.add_column("ID", style="dim", max_width=24)
                for header in headers:
                    table.add_column(header)
                for record, row in zip(records, rows):
                    table.add_row(str(record.get("id", ""))[:24], *row)
                console.print(table)

        asyncio.run(_list())

    if adapter.can_create:

        @entity_app.command("add")
        def add_record(
            assignments: Optional[list[str]] = typer.Option(None, "--set", help="field=value (repeatable)"),
            yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
        ):
            """Add a record."""
            values = _parse_assignments(assignments, adapter)

            async def _add():
                async with _open_page(adapter.key) as controller:
                    controller.add_requested()
                    await _fill_and_submit(controller, values, yes)

            asyncio.run(_add())

    if adapter.can_update:

        @entity_app.command("edit")
        def edit_record(
            record_id: str = typer.Argument(..., help="Record ID"),
            assignments: Optional[list[str]] = typer.Option(None, "--set", help="field=value (repeatable)"),
            yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
        ):
            """Edit a record."""
            values = _parse_assignments(assignments, adapter)

            async def _edit():
                async with _open_page(adapter.key) as controller:
                    _fail_on_fetch_error(controller)
                    await controller.edit_requested(_find_record(controller, record_id))
                    await _fill_and_submit(controller, values, yes)

            asyncio.run(_edit())

    if adapter.can_delete:

        @entity_app.command("delete")
        def delete_record(
            record_id: str = typer.Argument(..., help="Record ID"),
            yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
        ):
            """Delete a record."""

            async def _delete():
                async with _open_page(adapter.key) as controller:
                    prompt = controller.delete_requested(record_id)
                    await _confirm_and_commit(controller, prompt, yes)

            asyncio.run(_delete())

    @entity_app.command("export")
    def export_records(
        fmt: str = typer.Argument(..., help="csv or pdf"),
        search: str = typer.Option("", "--search", "-s", help="Export only matching rows"),
        output: Optional[Path] = typer.Option(None, "--output", "-o", help="File or directory"),
    ):
        """Export the filtered rows."""
        fmt = fmt.lower()
        if fmt not in ("csv", "pdf"):
            console.print(f"[red]Unknown export format: {fmt}[/red]")
            raise typer.Exit(1)

        async def _export():
            async with _open_page(adapter.key) as controller:
                _fail_on_fetch_error(controller)
                controller.search = search
                target = output or Path(controller.export_filename(fmt))
                if target.is_dir():
                    target = target / controller.export_filename(fmt)
                if fmt == "csv":
                    controller.export_csv(target)
                else:
                    controller.export_pdf(target)
                return len(controller.rows), target

        count, target = asyncio.run(_export())
        console.print(f"[green]Exported {count} rows to {target}[/green]")


for _adapter in ADAPTERS.values():
    _register_entity(_adapter)


# ============================================================================
# Auth Commands
# ============================================================================


@auth_app.command("login")
def auth_login(
    email: str = typer.Option(..., "--email", "-e", help="Admin account email"),
):
    """Store the admin user and verify the session with the backend."""
    cache = _make_cache()
    context = SessionContext(cache)
    context.login({"email": email, "isVerified": True})

    async def _check():
        async with _make_client() as api:
            return await SessionService(api, context).check()

    if not asyncio.run(_check()):
        console.print("[red]Session is not valid for this user.[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Logged in as {context.email}[/green]")


@auth_app.command("status")
def auth_status(
    check: bool = typer.Option(False, "--check", "-c", help="Revalidate with the backend"),
):
    """Show the stored session."""
    cache = _make_cache()
    context = SessionContext(cache)

    if check and context.user:

        async def _check():
            async with _make_client() as api:
                return await SessionService(api, context).check()

        asyncio.run(_check())

    console.print(Panel("[bold]geoadmin Session[/bold]", expand=False))
    if context.is_authorized:
        console.print(f"  Status: [green]Authorized[/green]")
        console.print(f"  Email: {context.email or 'N/A'}")
        console.print(f"  Name: {context.user.get('name', 'N/A')}")
    else:
        console.print(f"  Status: [red]Not logged in[/red]")
        console.print(f"  [dim]{LOGIN_HINT}[/dim]")


@auth_app.command("logout")
def auth_logout():
    """End the session on the backend and forget it locally."""
    cache = _make_cache()
    context = SessionContext(cache)

    async def _logout():
        async with _make_client() as api:
            await SessionService(api, context).logout()

    asyncio.run(_logout())
    console.print("[green]Logged out[/green]")


@auth_app.command("watch")
def auth_watch(
    interval: float = typer.Option(
        settings.session_check_interval_seconds,
        "--interval", "-i",
        help="Seconds between session checks",
    ),
):
    """Keep re-checking the session until it is invalidated."""
    cache = _make_cache()
    context = SessionContext(cache)
    _require_login(context)

    async def _watch():
        invalidated = asyncio.Event()
        async with _make_client() as api:
            monitor = SessionMonitor(SessionService(api, context), invalidated.set, interval)
            monitor.start()
            try:
                await invalidated.wait()
            finally:
                await monitor.stop()

    console.print(f"[dim]Checking session every {interval:g}s (Ctrl+C to stop)...[/dim]")
    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        raise typer.Exit(0)
    console.print(f"[red]Session invalidated.[/red] {LOGIN_HINT}")
    raise typer.Exit(1)


# ============================================================================
# SEO Custom Field Commands
# ============================================================================


@seo_fields_app.command("list")
def seo_fields_list(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List registered custom fields."""
    _require_session()

    async def _list():
        async with _make_client() as api:
            return await api.seo_custom_fields.list()

    try:
        fields = asyncio.run(_list()) or []
    except Exception as e:
        console.print(f"[red]Failed to fetch custom fields: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        console.print_json(json.dumps(fields, default=str))
        return
    table = Table(title=f"SEO Custom Fields ({len(fields)})")
    table.add_column("ID", style="dim", max_width=24)
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="white")
    table.add_column("Source", style="green")
    for f in fields:
        table.add_row(
            str(f.get("_id", f.get("id", "")))[:24],
            f.get("name", "-"),
            f.get("type", "text"),
            f.get("dropdownSource") or "-",
        )
    console.print(table)


@seo_fields_app.command("add")
def seo_fields_add(
    name: str = typer.Argument(..., help="Field name"),
    field_type: str = typer.Option("text", "--type", "-t", help="text, number or dropdown"),
    source: str = typer.Option(None, "--source", help="Entity supplying dropdown options (e.g. locations)"),
):
    """Register a custom field."""
    _require_session()
    field_type = field_type.lower()
    if field_type not in FIELD_TYPES:
        console.print(f"[red]Type must be one of: {', '.join(FIELD_TYPES)}[/red]")
        raise typer.Exit(1)
    if field_type == "dropdown" and not source:
        console.print("[red]Dropdown fields need --source[/red]")
        raise typer.Exit(1)

    async def _add():
        async with _make_client() as api:
            return await api.seo_custom_fields.create(name, field_type, source)

    try:
        asyncio.run(_add())
    except Exception as e:
        console.print(f"[red]{classify_mutation_error(e).message}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Custom field '{name}' added successfully![/green]")


@seo_fields_app.command("remove")
def seo_fields_remove(
    field_id: str = typer.Argument(..., help="Custom field ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Remove a custom field."""
    _require_session()
    if not yes and not typer.confirm("Are you sure you want to delete this custom field?"):
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(0)

    async def _remove():
        async with _make_client() as api:
            await api.seo_custom_fields.delete(field_id)

    try:
        asyncio.run(_remove())
    except Exception as e:
        console.print(f"[red]Failed to delete custom field: {e}[/red]")
        raise typer.Exit(1)
    console.print("[green]Custom field deleted successfully![/green]")


# ============================================================================
# Dashboard / Misc
# ============================================================================


@app.command()
def dashboard():
    """Show record counts for the main collections."""
    from .dashboard import fetch_stats

    _require_session()

    async def _stats():
        async with _make_client() as api:
            return await fetch_stats(api)

    try:
        stats = asyncio.run(_stats())
    except FetchError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    table = Table(title="Dashboard")
    table.add_column("Collection", style="cyan")
    table.add_column("Count", justify="right", style="green")
    for name, count in stats.items():
        table.add_row(get_adapter(name).title, str(count))
    console.print(table)


@app.command()
def version():
    """Show version information."""
    from . import __version__

    console.print(f"geoadmin v{__version__}")


if __name__ == "__main__":
    app()
