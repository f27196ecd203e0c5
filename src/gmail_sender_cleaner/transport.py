"""Authenticated HTTP transport for the Gmail REST API."""

from __future__ import annotations

import json
import logging
import time
from typing import Callable

import requests

from gmail_sender_cleaner.auth import CredentialCache
from gmail_sender_cleaner.constants import GMAIL_API_BASE, REQUEST_TIMEOUT
from gmail_sender_cleaner.errors import (
    AuthRequired,
    AuthUnavailable,
    PermissionDenied,
    ProtocolError,
    RateLimited,
    RequestFailed,
    ServiceUnavailable,
)

logger = logging.getLogger(__name__)

_UNAVAILABLE_STATUSES = (500, 502, 503)


def _error_message(response: requests.Response) -> str:
    """Return the provider's embedded error message, else the status code."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
    return f"HTTP {response.status_code}"


class Transport:
    """Issue Gmail API calls with a bearer token and classify failures.

    Every fixed pacing delay in the client goes through :meth:`pace` so the
    sleep function can be swapped out in one place.
    """

    def __init__(
        self,
        credentials: CredentialCache,
        session: requests.Session | None = None,
        base_url: str = GMAIL_API_BASE,
        timeout: float = REQUEST_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.credentials = credentials
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.sleep = sleep

    def pace(self, seconds: float) -> None:
        if seconds > 0:
            self.sleep(seconds)

    def call(
        self,
        endpoint: str,
        method: str = "GET",
        params: dict | list | None = None,
        body: dict | None = None,
    ) -> dict:
        """Perform one API call and return the decoded JSON body ({} if empty)."""
        try:
            credential = self.credentials.acquire(interactive=False)
        except AuthUnavailable as exc:
            raise AuthRequired(str(exc)) from exc

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=body,
                headers={"Authorization": f"Bearer {credential.token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ServiceUnavailable(f"Gmail is unreachable: {exc}") from exc

        logger.debug("%s %s -> %s", method, endpoint, response.status_code)

        if 200 <= response.status_code < 300:
            return self._decode(response)

        status = response.status_code
        if status == 401:
            self.credentials.invalidate()
            raise AuthRequired("Authorization expired or was revoked. Log in again.")
        if status == 403:
            raise PermissionDenied(
                f"Insufficient permissions: {_error_message(response)}. "
                "Check the OAuth scopes granted to this client."
            )
        if status == 429:
            raise RateLimited("Gmail rate limit exceeded. Try again later.")
        if status in _UNAVAILABLE_STATUSES:
            raise ServiceUnavailable(f"Gmail is temporarily unavailable (HTTP {status}).")
        raise RequestFailed(_error_message(response), status=status)

    @staticmethod
    def _decode(response: requests.Response) -> dict:
        text = response.text
        if not text or not text.strip():
            return {}

        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            logger.error("Unexpected %r response: %.200s", content_type, text)
            raise ProtocolError(f"Gmail returned a non-JSON response ({content_type or 'no content type'})")

        try:
            return json.loads(text)
        except ValueError as exc:
            raise ProtocolError(f"Gmail returned malformed JSON: {exc}") from exc
