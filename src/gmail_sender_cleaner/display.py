"""Rich-based display functions for Gmail Sender Cleaner."""

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.prompt import Prompt
from rich.table import Table

from .models import AnalysisResult, HistoryEntry, SenderRecord

console = Console()


def _format_time(value) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


def display_senders(
    senders: list[SenderRecord],
    whitelist: set[str] | None = None,
    title: str = "Senders",
) -> None:
    """Display sender records as a table, in the order given."""
    whitelist = whitelist or set()

    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Email", no_wrap=True)
    table.add_column("Name")
    table.add_column("Total", justify="right")
    table.add_column("Unread", justify="right")
    table.add_column("Last", justify="right")
    table.add_column("Flags")

    for idx, sender in enumerate(senders, start=1):
        flags = []
        if sender.is_bulk_mail:
            flags.append("[yellow]bulk[/yellow]")
        if sender.unsubscribe_link:
            flags.append("[cyan]unsub[/cyan]")
        if sender.email in whitelist:
            flags.append("[green]protected[/green]")
        table.add_row(
            str(idx),
            sender.email,
            sender.name or "",
            str(sender.total_count),
            str(sender.unread_count),
            _format_time(sender.last_message_time),
            " ".join(flags),
        )

    console.print(table)


def display_summary(analysis: AnalysisResult) -> None:
    stats = analysis.stats
    text = (
        f"Messages: {stats.total_messages}  |  Unread: {stats.unread_messages}  |  "
        f"Senders: {stats.total_senders}  |  Bulk senders: {stats.bulk_senders}"
    )
    if analysis.skipped_messages:
        text += f"\n[yellow]{analysis.skipped_messages} messages could not be fetched and were skipped[/yellow]"
    console.print(Panel(text, title="Summary"))


def display_sender_detail(sender: SenderRecord) -> None:
    """Display detailed information for a single sender."""
    lines = [
        f"[bold]Email:[/bold] {sender.email}",
        f"[bold]Name:[/bold] {sender.name or '-'}",
        f"[bold]Messages:[/bold] {sender.total_count} ({sender.unread_count} unread)",
        f"[bold]Last message:[/bold] {_format_time(sender.last_message_time)}",
        f"[bold]Bulk mail:[/bold] {'yes' if sender.is_bulk_mail else 'no'}",
    ]
    if sender.unsubscribe_link:
        lines.append(f"[bold]Unsubscribe:[/bold] {sender.unsubscribe_link}")

    console.print(Panel("\n".join(lines), title="Sender Detail"))


def display_history(entries: list[HistoryEntry]) -> None:
    table = Table(title="History")
    table.add_column("When")
    table.add_column("Action")
    table.add_column("Sender")
    table.add_column("Messages", justify="right")
    for entry in entries:
        table.add_row(entry.timestamp.strftime("%Y-%m-%d %H:%M"), entry.action, entry.email, str(entry.count))
    console.print(table)


def create_progress() -> Progress:
    """Create a configured Rich Progress bar driven by stage/percent updates."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    )


def confirm_delete(email: str, count: int | None) -> bool:
    """Prompt the user to confirm permanent deletion of a sender's messages."""
    known = f"{count} cached messages" if count is not None else "messages"
    console.print(
        Panel(
            f"[bold]All {known} from {email} will be permanently deleted.[/bold]\n"
            "Messages not in the cache will be found and deleted as well.",
            title="Confirm Delete",
        )
    )
    answer = Prompt.ask('[bold red]Type "DELETE" to confirm[/bold red]', console=console)
    return answer == "DELETE"


def display_delete_summary(deleted: int, email: str) -> None:
    """Display a success summary after deleting messages."""
    console.print(
        Panel(
            f"[bold green]Permanently deleted {deleted} messages from {email}.[/bold green]",
            title="Done",
        )
    )
