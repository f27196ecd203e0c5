"""CLI entry point for Gmail Sender Cleaner."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from functools import wraps

import click
from rich.logging import RichHandler

from .auth import CredentialCache, OAuthTokenProvider
from .cache import MailboxCache, SQLiteStore
from .cleaner import delete_all_from
from .constants import DEFAULT_SETTINGS
from .display import (
    confirm_delete,
    console,
    create_progress,
    display_delete_summary,
    display_history,
    display_sender_detail,
    display_senders,
    display_summary,
)
from .errors import AuthRequired, CleanerError
from .export import export_analysis
from .filters import SORT_KEYS, filter_senders, group_by_domain, sender_stats, sort_senders
from .gmail_client import GmailClient
from .scanner import sync as run_sync
from .transport import Transport

__version__ = "0.1.0"


def _build_client() -> GmailClient:
    credentials = CredentialCache(OAuthTokenProvider())
    return GmailClient(Transport(credentials))


@contextmanager
def _open_cache():
    with SQLiteStore() as store:
        yield MailboxCache(store)


@contextmanager
def _progress_reporter(description: str):
    with create_progress() as progress:
        task = progress.add_task(description, total=100)

        def report(stage: str, percent: int) -> None:
            progress.update(task, description=stage, completed=percent)

        yield report


def _handle_errors(func):
    """Turn core failures into clean CLI errors."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AuthRequired as e:
            raise click.ClickException(f"{e}\nRun 'gmail-sender-cleaner auth' to log in.") from e
        except CleanerError as e:
            raise click.ClickException(str(e)) from e

    return wrapper


def _load_analysis_or_fail(cache: MailboxCache):
    analysis = cache.load_analysis()
    if analysis is None:
        raise click.ClickException("No cached analysis found. Run 'sync' first.")
    return analysis


@click.group()
@click.version_option(version=__version__, prog_name="gmail-sender-cleaner")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """Gmail Sender Cleaner - find the senders filling your mailbox and delete their mail."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@cli.command()
@click.option("-m", "--max-messages", default=None, type=int, help="Maximum messages to analyze.")
@click.option("--concurrent", is_flag=True, help="Fetch each batch of messages in parallel.")
@_handle_errors
def sync(max_messages: int | None, concurrent: bool) -> None:
    """Analyze your mailbox and group messages by sender."""
    with _open_cache() as cache:
        if max_messages is None:
            max_messages = cache.get_settings()["max_emails_to_load"]

        client = _build_client()
        with _progress_reporter("Syncing") as report:
            analysis = run_sync(client, cache, max_messages, progress=report, concurrent=concurrent)

        display_senders(analysis.senders[:20], cache.get_whitelist(), title="Top Senders")
        display_summary(analysis)


@cli.command()
@click.option("-s", "--search", default=None, help="Match sender email or name.")
@click.option("--unread", "only_unread", is_flag=True, help="Only senders with unread mail.")
@click.option("--bulk", "only_bulk", is_flag=True, help="Only mailing-list / bulk senders.")
@click.option("--min-count", default=0, type=int, help="Minimum messages per sender.")
@click.option("--sort", "sort_by", type=click.Choice(SORT_KEYS), default=None, help="Sort field.")
@click.option("--order", type=click.Choice(["asc", "desc"]), default=None, help="Sort order.")
@click.option("--by-domain", is_flag=True, help="Group senders by domain.")
@click.option("-n", "--limit", default=50, type=int, help="Rows to show (0 for all).")
def senders(
    search: str | None,
    only_unread: bool,
    only_bulk: bool,
    min_count: int,
    sort_by: str | None,
    order: str | None,
    by_domain: bool,
    limit: int,
) -> None:
    """List senders from the cached analysis."""
    with _open_cache() as cache:
        analysis = _load_analysis_or_fail(cache)
        settings = cache.get_settings()
        whitelist = cache.get_whitelist()
        stale = not cache.is_cache_valid()

    if stale:
        console.print("[dim]Cached analysis is older than the configured expiration; consider running 'sync'.[/dim]")

    selected = filter_senders(analysis.senders, search, only_unread, only_bulk, min_count)
    selected = sort_senders(selected, sort_by or settings["sort_by"], order or settings["sort_order"])

    if by_domain:
        for group in group_by_domain(selected)[: limit or None]:
            console.print(
                f"[bold]{group['domain']}[/bold]  {group['total_messages']} messages "
                f"({group['unread_messages']} unread) from {len(group['senders'])} senders"
            )
        return

    display_senders(selected[: limit or None], whitelist)
    stats = sender_stats(selected)
    console.print(
        f"[dim]{stats['total_senders']} senders, {stats['total_messages']} messages, "
        f"{stats['with_unsubscribe']} with unsubscribe links, "
        f"{stats['average_per_sender']:.1f} messages per sender[/dim]"
    )


@cli.command()
@click.argument("email")
def show(email: str) -> None:
    """Show cached details for one sender."""
    with _open_cache() as cache:
        analysis = _load_analysis_or_fail(cache)

    sender = analysis.find(email.strip())
    if sender is None:
        raise click.ClickException(f"{email} is not in the cached analysis.")
    display_sender_detail(sender)


@cli.command()
@click.argument("email")
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation.")
@_handle_errors
def delete(email: str, yes: bool) -> None:
    """Permanently delete every message from EMAIL."""
    email = email.strip().lower()
    with _open_cache() as cache:
        if cache.is_whitelisted(email):
            raise click.ClickException(f"{email} is whitelisted and protected from deletion.")

        analysis = cache.load_analysis()
        sender = analysis.find(email) if analysis else None

        if not yes and cache.get_settings()["confirm_delete"]:
            if not confirm_delete(email, sender.total_count if sender else None):
                console.print("[dim]Cancelled.[/dim]")
                return

        client = _build_client()
        with _progress_reporter("Deleting") as report:
            deleted = delete_all_from(client, cache, email, progress=report)

    display_delete_summary(deleted, email)


@cli.group(name="whitelist")
def whitelist_group() -> None:
    """Manage senders protected from deletion."""


@whitelist_group.command(name="add")
@click.argument("email")
def whitelist_add(email: str) -> None:
    with _open_cache() as cache:
        cache.add_to_whitelist(email)
    console.print(f"[green]{email.strip().lower()} is now protected.[/green]")


@whitelist_group.command(name="remove")
@click.argument("email")
def whitelist_remove(email: str) -> None:
    with _open_cache() as cache:
        cache.remove_from_whitelist(email)
    console.print(f"{email.strip().lower()} is no longer protected.")


@whitelist_group.command(name="list")
def whitelist_list() -> None:
    with _open_cache() as cache:
        whitelist = cache.get_whitelist()
    if not whitelist:
        console.print("[dim]Whitelist is empty.[/dim]")
        return
    for email in sorted(whitelist):
        console.print(email)


@cli.command(name="export")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["csv", "json"]),
    default="csv",
    help="Output format.",
)
@click.option("-o", "--output", required=True, help="Output file path.")
def export_cmd(fmt: str, output: str) -> None:
    """Export the cached sender analysis to CSV or JSON."""
    with _open_cache() as cache:
        analysis = _load_analysis_or_fail(cache)

    export_analysis(analysis, format=fmt, output_path=output)
    console.print(f"Results saved to {output}")


@cli.command()
def auth() -> None:
    """Log in to Gmail through the browser, replacing any stored token."""
    credentials = CredentialCache(OAuthTokenProvider())
    try:
        credentials.invalidate()
        credentials.acquire(interactive=True)
        profile = GmailClient(Transport(credentials)).get_profile()
    except CleanerError as e:
        raise click.ClickException(f"Authentication failed: {e}") from e
    console.print(f"Authenticated as [bold]{profile.get('emailAddress', 'unknown')}[/bold]")


@cli.command()
@click.option("--clear", is_flag=True, help="Erase the history.")
@click.option("-n", "--limit", default=50, type=int, help="Entries to show.")
def history(clear: bool, limit: int) -> None:
    """Show past delete actions."""
    with _open_cache() as cache:
        if clear:
            cache.clear_history()
            console.print("[green]History cleared.[/green]")
            return
        entries = cache.get_history(limit)

    if not entries:
        console.print("[dim]No actions recorded.[/dim]")
        return
    display_history(entries)


@cli.group(name="settings")
def settings_group() -> None:
    """Show or change settings."""


@settings_group.command(name="show")
def settings_show() -> None:
    with _open_cache() as cache:
        settings = cache.get_settings()
    for key, value in settings.items():
        console.print(f"[bold]{key}:[/bold] {value}")


@settings_group.command(name="set")
@click.argument("key", type=click.Choice(sorted(DEFAULT_SETTINGS)))
@click.argument("value")
def settings_set(key: str, value: str) -> None:
    default = DEFAULT_SETTINGS[key]
    try:
        if isinstance(default, bool):
            parsed = click.BOOL.convert(value, None, None)
        elif isinstance(default, int):
            parsed = int(value)
        else:
            parsed = value
    except (ValueError, click.BadParameter) as e:
        raise click.ClickException(f"Invalid value for {key}: {value}") from e

    with _open_cache() as cache:
        cache.update_setting(key, parsed)
    console.print(f"[green]{key} = {parsed}[/green]")


@cli.group(name="cache")
def cache_group() -> None:
    """Manage the cached analysis."""


@cache_group.command(name="info")
def cache_info() -> None:
    """Show cache statistics."""
    with SQLiteStore() as store:
        info = MailboxCache(store).get_info()
        size = store.db_path.stat().st_size if store.db_path.exists() else 0

    if info["last_updated"] is None:
        console.print("[dim]Cache is empty.[/dim]")
        return

    console.print(f"[bold]Database size:[/bold] {size / 1024:.1f} KB")
    console.print(f"[bold]Last sync:[/bold] {info['last_updated']}")
    console.print(f"[bold]Senders:[/bold] {info['sender_count']}")
    console.print(f"[bold]Messages:[/bold] {info['message_count']}")
    console.print(f"[bold]Whitelisted:[/bold] {info['whitelist_count']}")


@cache_group.command(name="clear")
def cache_clear() -> None:
    """Clear the cached analysis."""
    with _open_cache() as cache:
        cache.clear()
    console.print("[green]Cache cleared.[/green]")
