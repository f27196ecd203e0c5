"""Filtering, sorting and grouping of cached sender records."""

from __future__ import annotations

from datetime import datetime, timezone

from .models import SenderRecord

SORT_KEYS = ("total_count", "unread_count", "email", "name", "last_message_time")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def filter_senders(
    senders: list[SenderRecord],
    search: str | None = None,
    only_unread: bool = False,
    only_bulk: bool = False,
    min_count: int = 0,
) -> list[SenderRecord]:
    """Return the senders matching every given criterion, preserving order."""
    result = list(senders)

    if search:
        needle = search.lower()
        result = [
            s for s in result
            if needle in s.email or (s.name and needle in s.name.lower())
        ]
    if only_unread:
        result = [s for s in result if s.unread_count > 0]
    if only_bulk:
        result = [s for s in result if s.is_bulk_mail]
    if min_count:
        result = [s for s in result if s.total_count >= min_count]

    return result


def sort_senders(
    senders: list[SenderRecord],
    key: str = "total_count",
    order: str = "desc",
) -> list[SenderRecord]:
    if key not in SORT_KEYS:
        raise ValueError(f"Cannot sort senders by {key!r}")

    def sort_value(sender: SenderRecord):
        value = getattr(sender, key)
        if key == "name":
            return (value or "").lower()
        if key == "last_message_time":
            return value or _EPOCH
        return value

    return sorted(senders, key=sort_value, reverse=(order == "desc"))


def group_by_domain(senders: list[SenderRecord]) -> list[dict]:
    """Group senders by address domain, largest domains first."""
    domains: dict[str, dict] = {}

    for sender in senders:
        group = domains.setdefault(
            sender.domain,
            {"domain": sender.domain, "senders": [], "total_messages": 0, "unread_messages": 0},
        )
        group["senders"].append(sender)
        group["total_messages"] += sender.total_count
        group["unread_messages"] += sender.unread_count

    return sorted(domains.values(), key=lambda g: g["total_messages"], reverse=True)


def sender_stats(senders: list[SenderRecord]) -> dict:
    total = sum(s.total_count for s in senders)
    return {
        "total_senders": len(senders),
        "total_messages": total,
        "unread_messages": sum(s.unread_count for s in senders),
        "bulk_senders": sum(1 for s in senders if s.is_bulk_mail),
        "with_unsubscribe": sum(1 for s in senders if s.unsubscribe_link),
        "average_per_sender": total / len(senders) if senders else 0.0,
    }
