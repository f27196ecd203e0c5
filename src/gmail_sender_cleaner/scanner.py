"""Sync orchestration - lists messages, fetches metadata, aggregates by sender."""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from .cache import MailboxCache
from .constants import PAGE_SIZE, UNREAD_LABEL
from .gmail_client import GmailClient
from .headers import extract_email, extract_name, extract_unsubscribe_link, is_bulk_mail
from .models import AnalysisResult, AnalysisStats, MessageSummary, SenderRecord

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]


def aggregate(summaries: Iterable[MessageSummary]) -> AnalysisResult:
    """Group messages by sender address and build the analysis snapshot.

    Senders are ordered by message count, most prolific first; senders with
    equal counts keep the order in which they were first seen.
    """
    senders: dict[str, SenderRecord] = {}

    for msg in summaries:
        from_value = msg.header("From")
        email = extract_email(from_value)
        if not email:
            continue

        record = senders.get(email)
        if record is None:
            record = senders[email] = SenderRecord(email=email, name=extract_name(from_value))

        record.total_count += 1
        if UNREAD_LABEL in msg.labels:
            record.unread_count += 1
        record.message_ids.append(msg.id)

        if record.unsubscribe_link is None:
            record.unsubscribe_link = extract_unsubscribe_link(msg.header("List-Unsubscribe"))

        if msg.internal_date and (
            record.last_message_time is None or msg.internal_date > record.last_message_time
        ):
            record.last_message_time = msg.internal_date

        if not record.is_bulk_mail and is_bulk_mail(msg):
            record.is_bulk_mail = True

    ordered = sorted(senders.values(), key=lambda s: s.total_count, reverse=True)
    stats = AnalysisStats(
        total_messages=sum(s.total_count for s in ordered),
        unread_messages=sum(s.unread_count for s in ordered),
        total_senders=len(ordered),
        bulk_senders=sum(1 for s in ordered if s.is_bulk_mail),
    )
    return AnalysisResult(senders=ordered, stats=stats)


def sync(
    client: GmailClient,
    cache: MailboxCache,
    max_results: int,
    progress: ProgressCallback | None = None,
    concurrent: bool = False,
) -> AnalysisResult:
    """Run a full sync: list IDs, fetch metadata, aggregate, cache."""
    report = progress or (lambda stage, percent: None)

    # Step 1: List message IDs
    report("Listing messages...", 10)
    ids = client.list_ids(cap=max_results, page_size=PAGE_SIZE)
    logger.info("Found %d messages", len(ids))
    report(f"Found {len(ids)} messages", 30)

    # Step 2: Fetch metadata
    def on_batch(batch_num: int, total: int) -> None:
        report(f"Fetching messages: batch {batch_num}/{total}", 30 + (batch_num * 50) // total)

    summaries = client.fetch_details(ids, concurrent=concurrent, progress=on_batch)
    skipped = len(ids) - len(summaries)
    if skipped:
        logger.warning("Could not fetch %d of %d messages; they are left out of the analysis", skipped, len(ids))

    # Step 3: Aggregate
    report("Analyzing senders...", 80)
    result = aggregate(summaries)
    result.skipped_messages = skipped
    logger.info("Found %d unique senders", result.stats.total_senders)

    # Step 4: Save to cache
    report("Saving results...", 95)
    cache.save_analysis(result)
    report("Done", 100)

    return result
