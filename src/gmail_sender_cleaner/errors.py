"""Failure taxonomy for Gmail Sender Cleaner."""

from __future__ import annotations


class CleanerError(Exception):
    """Base class for every failure raised by the cleaner core."""


class AuthUnavailable(CleanerError):
    """The consent mechanism declined to produce a credential."""


class AuthRequired(CleanerError):
    """The credential is missing, expired or revoked; log in again."""


class PermissionDenied(CleanerError):
    """The provider refused the call, most likely a missing OAuth scope."""


class TransientError(CleanerError):
    """A failure that may succeed when retried after a wait."""


class RateLimited(TransientError):
    """The provider answered 429."""


class ServiceUnavailable(TransientError):
    """The provider answered 5xx or could not be reached."""


class ProtocolError(CleanerError):
    """The provider answered with a body we cannot interpret."""


class NothingToDelete(CleanerError):
    """No messages matched the sender selected for deletion."""


class RequestFailed(CleanerError):
    """Any other non-2xx answer, carrying the provider's message."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
