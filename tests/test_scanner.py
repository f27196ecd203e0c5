"""Tests for sender aggregation and the sync flow."""

import random

from gmail_sender_cleaner.errors import RequestFailed
from gmail_sender_cleaner.gmail_client import GmailClient
from gmail_sender_cleaner.scanner import aggregate, sync

from helpers import ScriptedTransport, api_message, make_summary


def test_group_by_sender(newsletter_summaries, personal_summaries):
    """Messages from the same sender should be grouped together."""
    result = aggregate(newsletter_summaries + personal_summaries)

    assert [s.email for s in result.senders] == ["news@example.com", "alice.smith@gmail.com"]
    assert result.senders[0].total_count == 5
    assert result.senders[1].total_count == 2


def test_sender_key_is_case_insensitive(personal_summaries):
    result = aggregate(personal_summaries)

    assert len(result.senders) == 1
    alice = result.senders[0]
    assert alice.email == "alice.smith@gmail.com"
    assert alice.name == "Alice Smith"
    assert alice.message_ids == ["ps_1", "ps_2"]


def test_unread_counts_and_stats(newsletter_summaries, personal_summaries):
    result = aggregate(newsletter_summaries + personal_summaries)

    news = result.find("news@example.com")
    assert news.unread_count == 2
    assert result.stats.total_messages == 7
    assert result.stats.unread_messages == 3
    assert result.stats.total_senders == 2
    assert result.stats.bulk_senders == 1
    for sender in result.senders:
        assert 0 <= sender.unread_count <= sender.total_count


def test_unsubscribe_link_first_write_wins():
    summaries = [
        make_summary("m1", headers={"List-Unsubscribe": "<mailto:a@example.com>"}),
        make_summary("m2", headers={"List-Unsubscribe": "<https://example.com/later>"}),
    ]

    result = aggregate(summaries)

    assert result.senders[0].unsubscribe_link == "mailto:a@example.com"


def test_unsubscribe_link_set_when_first_seen_later():
    summaries = [
        make_summary("m1"),
        make_summary("m2", headers={"List-Unsubscribe": "<https://example.com/u>"}),
        make_summary("m3", headers={"List-Unsubscribe": "<https://example.com/other>"}),
    ]

    assert aggregate(summaries).senders[0].unsubscribe_link == "https://example.com/u"


def test_last_message_time_is_latest(newsletter_summaries):
    shuffled = list(reversed(newsletter_summaries))

    result = aggregate(shuffled)

    assert result.senders[0].last_message_time.day == 5


def test_summaries_without_sender_are_skipped():
    summaries = [
        make_summary("m1", sender=None),
        make_summary("m2", sender="Mailer Daemon"),
        make_summary("m3"),
    ]

    result = aggregate(summaries)

    assert result.stats.total_messages == 1
    assert result.senders[0].message_ids == ["m3"]


def test_sort_is_stable_on_ties():
    summaries = [
        make_summary("m1", "b@example.com"),
        make_summary("m2", "a@example.com"),
        make_summary("m3", "c@example.com"),
        make_summary("m4", "c@example.com"),
    ]

    result = aggregate(summaries)

    assert [s.email for s in result.senders] == ["c@example.com", "b@example.com", "a@example.com"]


def test_totals_are_order_independent(newsletter_summaries, personal_summaries):
    summaries = newsletter_summaries + personal_summaries + [make_summary(f"x{i}", "x@example.com") for i in range(3)]
    baseline = aggregate(summaries)

    shuffled = list(summaries)
    random.Random(7).shuffle(shuffled)
    permuted = aggregate(shuffled)

    def counts(result):
        return {s.email: (s.total_count, s.unread_count, s.is_bulk_mail) for s in result.senders}

    assert counts(permuted) == counts(baseline)
    assert permuted.stats == baseline.stats
    # per-sender ids follow input order
    order = [m.id for m in shuffled]
    for sender in permuted.senders:
        assert sender.message_ids == sorted(sender.message_ids, key=order.index)


def test_aggregate_empty():
    result = aggregate([])

    assert result.senders == []
    assert result.stats.total_messages == 0


def sync_handler(total):
    def handler(endpoint, method, params, body):
        if endpoint == "messages":
            return {"messages": [{"id": f"m{i}"} for i in range(min(total, params["maxResults"]))]}
        msg_id = endpoint.rsplit("/", 1)[1]
        sender = "Shop <deals@shop.example>" if int(msg_id[1:]) % 3 else "Friend <friend@example.com>"
        labels = ("INBOX", "UNREAD") if int(msg_id[1:]) % 2 else ("INBOX",)
        return api_message(msg_id, sender, labels=labels)

    return handler


def test_sync_caches_result_and_reports_progress(memory_cache):
    client = GmailClient(ScriptedTransport(sync_handler(12)))
    progress = []

    result = sync(client, memory_cache, max_results=12, progress=lambda stage, pct: progress.append(pct))

    assert result.stats.total_messages == 12
    assert result.skipped_messages == 0
    assert result.senders[0].email == "deals@shop.example"
    cached = memory_cache.load_analysis()
    assert cached.stats == result.stats
    assert [s.email for s in cached.senders] == [s.email for s in result.senders]
    assert progress[0] == 10 and progress[-1] == 100
    assert progress == sorted(progress)


def test_sync_counts_skipped_messages(memory_cache):
    base = sync_handler(5)

    def handler(endpoint, method, params, body):
        if endpoint == "messages/m2":
            raise RequestFailed("gone", status=404)
        return base(endpoint, method, params, body)

    client = GmailClient(ScriptedTransport(handler))

    result = sync(client, memory_cache, max_results=5)

    assert result.stats.total_messages == 4
    assert result.skipped_messages == 1
    assert memory_cache.load_analysis().skipped_messages == 1
