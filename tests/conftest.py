"""Shared fixtures for tests."""

from __future__ import annotations

import pytest

from gmail_sender_cleaner.cache import MailboxCache, MemoryStore
from gmail_sender_cleaner.models import MessageSummary

from helpers import make_summary


@pytest.fixture
def memory_cache() -> MailboxCache:
    return MailboxCache(MemoryStore())


@pytest.fixture
def newsletter_summaries() -> list[MessageSummary]:
    unsub = {"List-Unsubscribe": "<mailto:leave@news.example.com>, <https://news.example.com/u>"}
    return [
        make_summary(f"nl_{i}", "Weekly News <news@example.com>", ("INBOX", "UNREAD") if i % 2 else ("INBOX",), unsub, day=i + 1)
        for i in range(5)
    ]


@pytest.fixture
def personal_summaries() -> list[MessageSummary]:
    return [
        make_summary("ps_1", '"Alice Smith" <Alice.Smith@Gmail.com>', ("INBOX", "UNREAD"), day=3),
        make_summary("ps_2", "alice.smith@gmail.com", ("INBOX",), day=9),
    ]
