import os

# --------------------------------------------------------------------
# Utility
# --------------------------------------------------------------------
def _bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _float(name: str, default: str) -> float:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else float(default)


def _str(name: str) -> str | None:
    return os.getenv(name, "").strip() or None

# --------------------------------------------------------------------
# Stream defaults
# --------------------------------------------------------------------
RATE_MS = _float("SNOOSTREAM_RATE_MS", "1000")
DRIFT_SECONDS = _float("SNOOSTREAM_DRIFT", "0")
DEFAULT_SUBREDDIT = os.getenv("SNOOSTREAM_DEFAULT_SUBREDDIT", "all").strip() or "all"
MIN_SUBREDDIT_LEN = 2

# --------------------------------------------------------------------
# Reddit credentials (script app; all optional for public listings)
# --------------------------------------------------------------------
REDDIT_USER_AGENT = os.getenv("REDDIT_USER_AGENT", "snoostream (by /u/snoostream)")
REDDIT_CLIENT_ID = _str("REDDIT_CLIENT_ID")
REDDIT_CLIENT_SECRET = _str("REDDIT_CLIENT_SECRET")
REDDIT_USERNAME = _str("REDDIT_USERNAME")
REDDIT_PASSWORD = _str("REDDIT_PASSWORD")

# --------------------------------------------------------------------
# HTTP
# --------------------------------------------------------------------
HTTP_MAX_RETRIES = int(os.getenv("HTTP_MAX_RETRIES", "4"))
HTTP_TIMEOUT = _float("HTTP_TIMEOUT", "30")
HTTP_BACKOFF_FACTOR = _float("HTTP_BACKOFF_FACTOR", "0.8")
HTTP_VERIFY_TLS = _bool("HTTP_VERIFY_TLS", "true")
