"""Builders and fakes shared by the tests."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from gmail_sender_cleaner.models import MessageSummary


def make_summary(
    msg_id: str,
    sender: str | None = "Sender <sender@example.com>",
    labels: tuple[str, ...] = ("INBOX",),
    headers: dict[str, str] | None = None,
    day: int | None = None,
) -> MessageSummary:
    all_headers = {"Subject": f"Subject of {msg_id}"}
    if sender is not None:
        all_headers["From"] = sender
    all_headers.update(headers or {})
    return MessageSummary(
        id=msg_id,
        labels=frozenset(labels),
        headers=all_headers,
        internal_date=datetime(2024, 1, day, tzinfo=timezone.utc) if day else None,
    )


class ScriptedTransport:
    """Stands in for Transport: answers calls through *handler* and records sleeps."""

    def __init__(self, handler) -> None:
        self.handler = handler
        self.calls: list[tuple] = []
        self.sleeps: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    def pace(self, seconds: float) -> None:
        if seconds > 0:
            self.sleep(seconds)

    def call(self, endpoint, method="GET", params=None, body=None):
        self.calls.append((method, endpoint, params, body))
        return self.handler(endpoint, method, params, body)


def api_message(msg_id: str, sender: str, labels=("INBOX",), extra_headers=None, internal_ms="1704067200000") -> dict:
    """A messages.get response in metadata format."""
    headers = [{"name": "From", "value": sender}, {"name": "Subject", "value": f"About {msg_id}"}]
    for name, value in (extra_headers or {}).items():
        headers.append({"name": name, "value": value})
    return {
        "id": msg_id,
        "labelIds": list(labels),
        "internalDate": internal_ms,
        "payload": {"headers": headers},
    }


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None, content_type="application/json; charset=UTF-8"):
        self.status_code = status_code
        if text is None:
            text = json.dumps(body) if body is not None else ""
        self.text = text
        self.headers = {"Content-Type": content_type} if content_type else {}

    def json(self):
        return json.loads(self.text)


class FakeSession:
    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.requests: list[dict] = []

    def request(self, method, url, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

