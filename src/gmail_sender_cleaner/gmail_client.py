"""Gmail API client functions for listing, fetching and deleting messages."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from gmail_sender_cleaner.constants import (
    DELETE_BATCH_SIZE,
    DETAIL_BATCH_SIZE,
    ITEM_DELAY,
    MAX_ATTEMPTS,
    METADATA_HEADERS,
    PAGE_SIZE,
    RATE_LIMIT_BACKOFF,
    RATE_LIMIT_DELAY,
)
from gmail_sender_cleaner.errors import CleanerError, RateLimited
from gmail_sender_cleaner.models import MessageSummary
from gmail_sender_cleaner.retry import with_retry
from gmail_sender_cleaner.transport import Transport

logger = logging.getLogger(__name__)


def _chunks(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class GmailClient:
    """Paced, retrying operations on top of a :class:`Transport`."""

    def __init__(self, transport: Transport, max_attempts: int = MAX_ATTEMPTS) -> None:
        self.transport = transport
        self.max_attempts = max_attempts

    def _call(self, endpoint: str, method: str = "GET", params=None, body=None) -> dict:
        return with_retry(
            lambda: self.transport.call(endpoint, method=method, params=params, body=body),
            max_attempts=self.max_attempts,
            sleep=self.transport.sleep,
        )

    # --- single calls ---

    def get_profile(self) -> dict:
        return self._call("profile")

    def list_page(
        self,
        query: str | None = None,
        max_results: int = PAGE_SIZE,
        page_token: str | None = None,
        label_ids: list[str] | None = None,
    ) -> dict:
        params: dict = {"maxResults": max_results}
        if page_token:
            params["pageToken"] = page_token
        if query:
            params["q"] = query
        if label_ids:
            params["labelIds"] = label_ids
        return self._call("messages", params=params)

    def get_message(self, message_id: str) -> MessageSummary:
        payload = self._call(
            f"messages/{message_id}",
            params={"format": "metadata", "metadataHeaders": METADATA_HEADERS},
        )
        return MessageSummary.from_api(payload)

    # --- pipelines ---

    def list_ids(
        self,
        query: str | None = None,
        cap: int | None = None,
        page_size: int = PAGE_SIZE,
        label_ids: list[str] | None = None,
        progress: Callable[[int], None] | None = None,
    ) -> list[str]:
        """List message IDs matching the query, following pagination up to *cap*.

        A page that still fails after retries aborts the listing; nothing
        collected so far is returned.
        """
        ids: list[str] = []
        page_token: str | None = None

        while cap is None or len(ids) < cap:
            want = page_size if cap is None else min(page_size, cap - len(ids))
            resp = self.list_page(query=query, max_results=want, page_token=page_token, label_ids=label_ids)
            ids.extend(m["id"] for m in resp.get("messages", []))
            logger.debug("Listed page with %d ids (%d total)", len(resp.get("messages", [])), len(ids))

            if progress:
                progress(len(ids))

            page_token = resp.get("nextPageToken")
            if not page_token or (cap is not None and len(ids) >= cap):
                break

            self.transport.pace(RATE_LIMIT_DELAY)

        return ids if cap is None else ids[:cap]

    def _fetch_one(self, message_id: str) -> MessageSummary | None:
        try:
            return self.get_message(message_id)
        except CleanerError as exc:
            logger.warning("Skipping message %s: %s", message_id, exc)
            if isinstance(exc, RateLimited):
                self.transport.pace(RATE_LIMIT_BACKOFF)
            return None

    def fetch_details(
        self,
        message_ids: list[str],
        batch_size: int = DETAIL_BATCH_SIZE,
        concurrent: bool = False,
        progress: Callable[[int, int], None] | None = None,
    ) -> list[MessageSummary]:
        """Fetch metadata for messages in small batches, best effort.

        A message that cannot be fetched is logged and left out of the
        result instead of failing its batch.
        """
        results: list[MessageSummary] = []
        batches = _chunks(message_ids, batch_size)

        for batch_num, chunk in enumerate(batches, start=1):
            if concurrent:
                with ThreadPoolExecutor(max_workers=len(chunk)) as pool:
                    fetched = list(pool.map(self._fetch_one, chunk))
            else:
                fetched = []
                for msg_id in chunk:
                    fetched.append(self._fetch_one(msg_id))
                    self.transport.pace(ITEM_DELAY)

            results.extend(m for m in fetched if m is not None)
            logger.debug("Fetched batch %d/%d", batch_num, len(batches))

            if progress:
                progress(batch_num, len(batches))

            if batch_num < len(batches):
                self.transport.pace(RATE_LIMIT_DELAY)

        return results

    def batch_delete(
        self,
        message_ids: list[str],
        callback: Callable[[int, int], None] | None = None,
    ) -> int:
        """Permanently delete messages in chunks of the provider maximum."""
        batches = _chunks(message_ids, DELETE_BATCH_SIZE)
        deleted = 0

        for batch_num, chunk in enumerate(batches, start=1):
            self._call("messages/batchDelete", method="POST", body={"ids": chunk})
            deleted += len(chunk)
            logger.debug("Deleted %d of %d messages", deleted, len(message_ids))

            if callback:
                callback(deleted, len(message_ids))

            if batch_num < len(batches):
                self.transport.pace(RATE_LIMIT_DELAY)

        return deleted
