"""Tests for sender filtering, sorting and grouping."""

from datetime import datetime, timezone

import pytest

from gmail_sender_cleaner.filters import filter_senders, group_by_domain, sender_stats, sort_senders
from gmail_sender_cleaner.models import SenderRecord


@pytest.fixture
def senders() -> list[SenderRecord]:
    return [
        SenderRecord(email="news@shop.example", name="Shop News", total_count=40, unread_count=30,
                     is_bulk_mail=True, unsubscribe_link="https://shop.example/u",
                     last_message_time=datetime(2024, 3, 1, tzinfo=timezone.utc)),
        SenderRecord(email="deals@shop.example", name=None, total_count=12, unread_count=0, is_bulk_mail=True),
        SenderRecord(email="alice@friends.example", name="Alice", total_count=5, unread_count=1,
                     last_message_time=datetime(2024, 5, 1, tzinfo=timezone.utc)),
    ]


def test_filter_by_search_matches_email_and_name(senders):
    assert [s.email for s in filter_senders(senders, search="SHOP")] == ["news@shop.example", "deals@shop.example"]
    assert [s.email for s in filter_senders(senders, search="alice")] == ["alice@friends.example"]


def test_filter_flags(senders):
    assert [s.email for s in filter_senders(senders, only_unread=True)] == [
        "news@shop.example",
        "alice@friends.example",
    ]
    assert len(filter_senders(senders, only_bulk=True)) == 2
    assert [s.email for s in filter_senders(senders, min_count=10, only_unread=True)] == ["news@shop.example"]


def test_sort_ascending_by_count(senders):
    assert [s.total_count for s in sort_senders(senders, "total_count", "asc")] == [5, 12, 40]


def test_sort_by_name_handles_missing(senders):
    assert [s.name for s in sort_senders(senders, "name", "asc")] == [None, "Alice", "Shop News"]


def test_sort_by_last_message_time(senders):
    ordered = sort_senders(senders, "last_message_time", "desc")
    assert ordered[0].email == "alice@friends.example"
    assert ordered[-1].email == "deals@shop.example"


def test_sort_rejects_unknown_key(senders):
    with pytest.raises(ValueError):
        sort_senders(senders, "score")


def test_group_by_domain(senders):
    groups = group_by_domain(senders)

    assert [g["domain"] for g in groups] == ["shop.example", "friends.example"]
    assert groups[0]["total_messages"] == 52
    assert groups[0]["unread_messages"] == 30
    assert len(groups[0]["senders"]) == 2


def test_sender_stats(senders):
    stats = sender_stats(senders)

    assert stats["total_senders"] == 3
    assert stats["total_messages"] == 57
    assert stats["bulk_senders"] == 2
    assert stats["with_unsubscribe"] == 1
    assert stats["average_per_sender"] == 19.0


def test_sender_stats_empty():
    assert sender_stats([])["average_per_sender"] == 0.0
