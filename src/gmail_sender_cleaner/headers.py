"""Parsing rules for the From and List-Unsubscribe headers."""

from __future__ import annotations

import re

from .constants import BULK_MAIL_HEADERS
from .models import MessageSummary

_HTTP_LINK_RE = re.compile(r"<(https?://[^>]+)>")
_MAILTO_LINK_RE = re.compile(r"<mailto:([^>]+)>")
_QUOTES = "\"'"


def extract_email(from_value: str | None) -> str | None:
    """Return the lowercased sender address of a From header, or None.

    Handles formats like:
      '"John Doe" <John@Example.com>' -> "john@example.com"
      "john@example.com"              -> "john@example.com"
      "Mailer Daemon"                 -> None
    """
    if not from_value:
        return None

    start = from_value.find("<")
    if start != -1:
        end = from_value.find(">", start + 1)
        if end != -1:
            email = from_value[start + 1 : end].strip().lower()
            if email:
                return email

    if "@" in from_value:
        return from_value.strip().lower()

    return None


def extract_name(from_value: str | None) -> str | None:
    """Return the display name of a From header, without surrounding quotes."""
    if not from_value or "<" not in from_value:
        return None

    name = from_value.split("<", 1)[0].strip()
    if name and name[0] in _QUOTES:
        name = name[1:]
    if name and name[-1] in _QUOTES:
        name = name[:-1]
    return name or None


def extract_unsubscribe_link(header_value: str | None) -> str | None:
    """Pick the unsubscribe URI out of a List-Unsubscribe header.

    HTTP(S) links win over mailto links regardless of their order.
    """
    if not header_value:
        return None

    m = _HTTP_LINK_RE.search(header_value)
    if m:
        return m.group(1)

    m = _MAILTO_LINK_RE.search(header_value)
    if m:
        return f"mailto:{m.group(1)}"

    return None


def is_bulk_mail(summary: MessageSummary) -> bool:
    """True when the message carries a mailing-list or bulk indicator."""
    if any(summary.header(name) is not None for name in BULK_MAIL_HEADERS):
        return True
    precedence = summary.header("Precedence") or ""
    return precedence.strip().lower() == "bulk"
