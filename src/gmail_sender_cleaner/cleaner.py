"""Delete workflow - remove every message from a sender and patch the cache."""

from __future__ import annotations

import logging

from .cache import MailboxCache
from .constants import DELETE_PAGE_SIZE
from .errors import NothingToDelete
from .gmail_client import GmailClient
from .models import HistoryEntry
from .scanner import ProgressCallback

logger = logging.getLogger(__name__)


def remove_sender_from_cache(cache: MailboxCache, email: str) -> bool:
    """Drop *email* from the cached analysis and adjust its totals.

    Returns False when there is no cached analysis or the sender is not in it.
    """
    analysis = cache.load_analysis()
    if analysis is None:
        return False

    sender = analysis.find(email)
    if sender is None:
        return False

    analysis.senders = [s for s in analysis.senders if s.email != sender.email]
    stats = analysis.stats
    stats.total_messages = max(0, stats.total_messages - sender.total_count)
    stats.unread_messages = max(0, stats.unread_messages - sender.unread_count)
    stats.total_senders = max(0, stats.total_senders - 1)
    if sender.is_bulk_mail:
        stats.bulk_senders = max(0, stats.bulk_senders - 1)

    cache.save_analysis(analysis)
    return True


def delete_all_from(
    client: GmailClient,
    cache: MailboxCache,
    email: str,
    progress: ProgressCallback | None = None,
) -> int:
    """Permanently delete every message from *email*.

    The sender's mail is searched again rather than taken from the cached
    analysis, which may be stale or capped.  Returns the number of deleted
    messages.
    """
    report = progress or (lambda stage, percent: None)
    email = email.strip().lower()

    report(f"Searching for all messages from {email}...", 10)

    def on_page(collected: int) -> None:
        report(f"Found {collected} messages...", 30)

    ids = client.list_ids(query=f"from:{email}", cap=None, page_size=DELETE_PAGE_SIZE, progress=on_page)
    logger.info("Found %d messages from %s", len(ids), email)

    if not ids:
        raise NothingToDelete(f"No messages from {email} were found")

    report(f"Deleting {len(ids)} messages...", 50)

    def on_chunk(deleted: int, total: int) -> None:
        report(f"Deleted {deleted} of {total}", 50 + (deleted * 45) // total)

    deleted = client.batch_delete(ids, callback=on_chunk)
    logger.info("Deleted %d messages from %s", deleted, email)

    remove_sender_from_cache(cache, email)
    cache.add_history(HistoryEntry(action="delete", email=email, count=deleted))
    report("Done", 100)

    return deleted
