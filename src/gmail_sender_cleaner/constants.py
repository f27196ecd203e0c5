"""Constants for Gmail Sender Cleaner."""

from datetime import timedelta
from pathlib import Path

# --- Config paths ---
CONFIG_DIR = Path.home() / ".gmail-sender-cleaner"
CREDENTIALS_PATH = CONFIG_DIR / "credentials.json"
TOKEN_PATH = CONFIG_DIR / "token.json"
STORE_DB_PATH = CONFIG_DIR / "store.db"

# --- Gmail API ---
# batchDelete permanently removes messages and needs the full mail scope.
SCOPES = ["https://mail.google.com/"]
GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1/users/me"
REQUEST_TIMEOUT = 30  # seconds
TOKEN_LIFETIME = timedelta(minutes=55)  # provider tokens live ~60 minutes

PAGE_SIZE = 100  # ids per list page during sync
DELETE_PAGE_SIZE = 500  # ids per list page when collecting a sender's mail
DETAIL_BATCH_SIZE = 10  # messages.get calls per batch
DELETE_BATCH_SIZE = 1000  # provider maximum for batchDelete
MAX_ATTEMPTS = 3
METADATA_HEADERS = ["From", "Subject", "List-Unsubscribe", "List-Id", "List-Post", "Precedence"]

# --- Pacing (seconds) ---
# Quota: 250 units/user/second; list=5, get=5, batchDelete=50.
RATE_LIMIT_DELAY = 0.5  # between pages, batches and delete chunks
ITEM_DELAY = 0.2  # between sequential messages.get calls
RATE_LIMIT_BACKOFF = 2.0  # extra wait after a rate-limited item

# --- Aggregation ---
UNREAD_LABEL = "UNREAD"
BULK_MAIL_HEADERS = ["List-Unsubscribe", "List-Id", "List-Post"]

# --- Storage keys ---
KEY_ANALYSIS = "email_analysis"
KEY_LAST_UPDATED = "last_updated"
KEY_WHITELIST = "whitelist"
KEY_SETTINGS = "settings"
KEY_HISTORY = "action_history"
HISTORY_LIMIT = 100

DEFAULT_SETTINGS = {
    "max_emails_to_load": 500,
    "cache_expiration_minutes": 30,
    "confirm_delete": True,
    "sort_by": "total_count",
    "sort_order": "desc",
}
