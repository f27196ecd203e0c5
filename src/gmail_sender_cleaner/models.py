"""Data models for Gmail Sender Cleaner."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from .errors import ProtocolError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass
class Credential:
    """A bearer token and the instant it stops being usable."""

    token: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class MessageSummary:
    """Metadata of a single Gmail message as returned by messages.get."""

    id: str
    labels: frozenset[str] = frozenset()
    headers: dict[str, str] = field(default_factory=dict)
    internal_date: datetime | None = None

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @classmethod
    def from_api(cls, payload: dict) -> MessageSummary:
        """Build a summary from a messages.get response in metadata format.

        Raises ProtocolError when the response does not have that shape.
        """
        try:
            headers: dict[str, str] = {}
            for h in payload.get("payload", {}).get("headers", []):
                # Keep the first occurrence of repeated headers.
                headers.setdefault(h["name"], h["value"])

            internal_date = None
            raw_date = payload.get("internalDate")
            if raw_date:
                internal_date = datetime.fromtimestamp(int(raw_date) / 1000, tz=timezone.utc)

            return cls(
                id=payload["id"],
                labels=frozenset(payload.get("labelIds", [])),
                headers=headers,
                internal_date=internal_date,
            )
        except (KeyError, TypeError, ValueError, AttributeError, OverflowError, OSError) as exc:
            raise ProtocolError(f"Malformed message resource: {exc!r}") from exc


@dataclass
class SenderRecord:
    """Aggregated view of every message from one sender address."""

    email: str
    name: str | None = None
    total_count: int = 0
    unread_count: int = 0
    message_ids: list[str] = field(default_factory=list)
    unsubscribe_link: str | None = None
    last_message_time: datetime | None = None
    is_bulk_mail: bool = False

    @property
    def domain(self) -> str:
        return self.email.rpartition("@")[2]

    def to_dict(self) -> dict:
        return {
            "email": self.email,
            "name": self.name,
            "total_count": self.total_count,
            "unread_count": self.unread_count,
            "message_ids": list(self.message_ids),
            "unsubscribe_link": self.unsubscribe_link,
            "last_message_time": _to_iso(self.last_message_time),
            "is_bulk_mail": self.is_bulk_mail,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SenderRecord:
        return cls(
            email=data["email"],
            name=data.get("name"),
            total_count=data.get("total_count", 0),
            unread_count=data.get("unread_count", 0),
            message_ids=list(data.get("message_ids", [])),
            unsubscribe_link=data.get("unsubscribe_link"),
            last_message_time=_from_iso(data.get("last_message_time")),
            is_bulk_mail=data.get("is_bulk_mail", False),
        )


@dataclass
class AnalysisStats:
    """Mailbox-wide totals derived from the sender list."""

    total_messages: int = 0
    unread_messages: int = 0
    total_senders: int = 0
    bulk_senders: int = 0


@dataclass
class AnalysisResult:
    """Result of a mailbox sync."""

    senders: list[SenderRecord] = field(default_factory=list)
    stats: AnalysisStats = field(default_factory=AnalysisStats)
    skipped_messages: int = 0  # ids whose details could not be fetched
    created_at: datetime = field(default_factory=_utcnow)

    def find(self, email: str) -> SenderRecord | None:
        email = email.lower()
        for sender in self.senders:
            if sender.email == email:
                return sender
        return None

    def to_dict(self) -> dict:
        return {
            "senders": [s.to_dict() for s in self.senders],
            "stats": {
                "total_messages": self.stats.total_messages,
                "unread_messages": self.stats.unread_messages,
                "total_senders": self.stats.total_senders,
                "bulk_senders": self.stats.bulk_senders,
            },
            "skipped_messages": self.skipped_messages,
            "created_at": _to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> AnalysisResult:
        return cls(
            senders=[SenderRecord.from_dict(s) for s in data.get("senders", [])],
            stats=AnalysisStats(**data.get("stats", {})),
            skipped_messages=data.get("skipped_messages", 0),
            created_at=_from_iso(data.get("created_at")) or _utcnow(),
        )


@dataclass
class HistoryEntry:
    """One destructive action recorded in the audit trail."""

    action: str
    email: str
    count: int
    timestamp: datetime = field(default_factory=_utcnow)
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            self.id = str(int(self.timestamp.timestamp() * 1000))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "email": self.email,
            "count": self.count,
            "timestamp": _to_iso(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict) -> HistoryEntry:
        return cls(
            action=data["action"],
            email=data["email"],
            count=data.get("count", 0),
            timestamp=_from_iso(data.get("timestamp")) or _utcnow(),
            id=data.get("id", ""),
        )
