"""Credential lifecycle for the Gmail API."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from gmail_sender_cleaner import constants
from gmail_sender_cleaner.errors import AuthUnavailable
from gmail_sender_cleaner.models import Credential

logger = logging.getLogger(__name__)

TokenProvider = Callable[[bool], str]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialCache:
    """Holds one bearer token and hands it out until it expires.

    The cached expiry is deliberately shorter than the provider's real token
    lifetime so the transport never presents a token that is about to lapse.
    Access is serialized, so concurrent workers share one provider call.
    """

    def __init__(
        self,
        provider: TokenProvider,
        lifetime: timedelta = constants.TOKEN_LIFETIME,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._provider = provider
        self._lifetime = lifetime
        self._clock = clock
        self._credential: Credential | None = None
        self._lock = threading.Lock()

    def acquire(self, interactive: bool = False) -> Credential:
        """Return a usable credential, asking the provider only when needed.

        Raises AuthUnavailable when the provider declines.
        """
        with self._lock:
            if self._credential is not None and self._credential.is_valid(self._clock()):
                return self._credential

            token = self._provider(interactive)
            if not token:
                raise AuthUnavailable("No access token was returned")

            self._credential = Credential(token=token, expires_at=self._clock() + self._lifetime)
            logger.debug("Cached new credential until %s", self._credential.expires_at.isoformat())
            return self._credential

    def invalidate(self) -> None:
        """Forget the cached credential (called after a 401).

        A provider with its own token store is told as well, so it does not
        hand the rejected token back.
        """
        with self._lock:
            self._credential = None
            reject = getattr(self._provider, "invalidate", None)
            if reject is not None:
                reject()


class OAuthTokenProvider:
    """Obtain Gmail access tokens through google-auth.

    Loads the cached token from TOKEN_PATH if available.  When the token is
    expired, or the API has rejected it, it is silently refreshed.  The OAuth
    browser flow (requires credentials.json at CREDENTIALS_PATH) only runs for
    interactive requests.
    """

    def __init__(self, credentials_path=None, token_path=None) -> None:
        self.credentials_path = credentials_path or constants.CREDENTIALS_PATH
        self.token_path = token_path or constants.TOKEN_PATH
        self._rejected = False

    def invalidate(self) -> None:
        """Mark the stored token as rejected so it is not handed out again."""
        self._rejected = True

    def __call__(self, interactive: bool) -> str:
        self.token_path.parent.mkdir(parents=True, exist_ok=True)

        creds: Credentials | None = None
        if self.token_path.exists() and not interactive:
            creds = Credentials.from_authorized_user_file(str(self.token_path), constants.SCOPES)

        try:
            if creds and creds.refresh_token and (creds.expired or self._rejected):
                creds.refresh(Request())
            elif not creds or not creds.valid or self._rejected:
                if not interactive:
                    if creds:
                        raise AuthUnavailable("The stored token is no longer valid. Run the 'auth' command to log in again.")
                    raise AuthUnavailable("Not logged in. Run the 'auth' command first.")
                creds = self._run_flow()
        except GoogleAuthError as exc:
            raise AuthUnavailable(f"Authorization failed: {exc}") from exc

        self._rejected = False
        self.token_path.write_text(creds.to_json())
        return creds.token

    def _run_flow(self) -> Credentials:
        if not self.credentials_path.exists():
            raise AuthUnavailable(
                f"Credentials file not found at {self.credentials_path}.\n"
                "Download your OAuth client credentials from the Google Cloud Console "
                "and save them as:\n"
                f"  {self.credentials_path}"
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(self.credentials_path), constants.SCOPES)
        try:
            return flow.run_local_server(port=0)
        except Exception as exc:  # noqa: BLE001
            raise AuthUnavailable(f"Authorization was not completed: {exc}") from exc
