# snoostream/sources/reddit.py
# Reddit listing client implementing the Fetcher interface.
# Reads /r/{subreddit}/comments and /r/{subreddit}/new, either through the
# OAuth API (script-app credentials) or the public .json listings.

from __future__ import annotations
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

import requests

from .base import Fetcher, Item
from ..config import (
    HTTP_MAX_RETRIES,
    HTTP_TIMEOUT,
    REDDIT_CLIENT_ID,
    REDDIT_CLIENT_SECRET,
    REDDIT_PASSWORD,
    REDDIT_USER_AGENT,
    REDDIT_USERNAME,
)
from ..errors import ConfigurationError, FetchError
from ..utils.http import make_session
from ..utils.log import get_logger

logger = get_logger("reddit")

PUBLIC_BASE = "https://www.reddit.com"
OAUTH_BASE = "https://oauth.reddit.com"
TOKEN_URL = "https://www.reddit.com/api/v1/access_token"

# Refresh the bearer token this many seconds before Reddit expires it
TOKEN_LEEWAY = 60
MAX_BACKOFF = 8.0


def _retry_after(value: Optional[str], default: float) -> float:
    """Seconds to wait for a Retry-After header (delta-seconds or HTTP-date), capped at MAX_BACKOFF."""
    if not value:
        return min(default, MAX_BACKOFF)
    try:
        sleep = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            when = None
        if when is None:
            sleep = default
        else:
            if when.tzinfo is None:
                when = when.replace(tzinfo=timezone.utc)
            sleep = (when - datetime.now(timezone.utc)).total_seconds()
    return min(max(sleep, 0.0), MAX_BACKOFF)


class RedditClient(Fetcher):
    """
    Fetches the newest comments/submissions of a subreddit.

    With client_id/client_secret/username/password a password-grant token is
    requested and refreshed on expiry or on a 401. Without them the public
    listings on www.reddit.com are used (lower rate limits).

    Environment variables (see RedditClient.from_env):
      - REDDIT_USER_AGENT, REDDIT_CLIENT_ID, REDDIT_CLIENT_SECRET,
        REDDIT_USERNAME, REDDIT_PASSWORD
      - HTTP_MAX_RETRIES, HTTP_TIMEOUT
    """

    def __init__(
        self,
        user_agent: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        max_retries: int = HTTP_MAX_RETRIES,
        timeout: float = HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        creds = (client_id, client_secret, username, password)
        if any(creds) and not all(creds):
            raise ConfigurationError(
                "client_id, client_secret, username and password must be given together"
            )
        self.user_agent = user_agent or REDDIT_USER_AGENT
        self.client_id = client_id
        self.client_secret = client_secret
        self.username = username
        self.password = password
        self.max_retries = max(1, int(max_retries))
        self.timeout = timeout
        self.s = session or make_session(self.user_agent)
        self._token: Optional[str] = None
        self._token_expires = 0.0

    @classmethod
    def from_env(cls) -> "RedditClient":
        return cls(
            user_agent=REDDIT_USER_AGENT,
            client_id=REDDIT_CLIENT_ID,
            client_secret=REDDIT_CLIENT_SECRET,
            username=REDDIT_USERNAME,
            password=REDDIT_PASSWORD,
        )

    @property
    def authenticated(self) -> bool:
        return bool(self.client_id)

    # ---------------------------- Fetcher API ----------------------------

    def get_new_comments(self, scope: str, **options: Any) -> List[Item]:
        return self._listing(f"/r/{scope}/comments", options)

    def get_new(self, scope: str, **options: Any) -> List[Item]:
        return self._listing(f"/r/{scope}/new", options)

    # ---------------------------- internals ----------------------------

    def _listing(self, path: str, options: Dict[str, Any]) -> List[Item]:
        params = {"raw_json": 1}
        params.update({k: v for k, v in options.items() if v is not None})
        payload = self._get_json(path, params)
        try:
            children = payload["data"]["children"]
        except (KeyError, TypeError):
            raise FetchError(f"Unexpected listing payload for {path}") from None

        items: List[Item] = []
        for idx, child in enumerate(children):
            try:
                items.append(Item.from_listing_child(child))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Listing %s child[%d] malformed (%s); skipping.", path, idx, e)
        logger.debug("Fetched %d items from %s", len(items), path)
        return items

    def _url(self, path: str) -> str:
        if self.authenticated:
            return OAUTH_BASE + path
        return PUBLIC_BASE + path + ".json"

    def _auth_headers(self) -> Dict[str, str]:
        if not self.authenticated:
            return {}
        if self._token is None or time.time() >= self._token_expires:
            self._refresh_token()
        return {"Authorization": f"bearer {self._token}"}

    def _refresh_token(self) -> None:
        try:
            r = self.s.post(
                TOKEN_URL,
                auth=(self.client_id, self.client_secret),
                data={"grant_type": "password", "username": self.username, "password": self.password},
                timeout=self.timeout,
            )
            r.raise_for_status()
            data = r.json()
        except requests.RequestException as e:
            raise FetchError(f"Reddit token request failed: {e}", url=TOKEN_URL) from e
        except ValueError as e:
            raise FetchError("Reddit token response was not JSON", url=TOKEN_URL) from e

        if "access_token" not in data:
            raise FetchError(f"Reddit token request rejected: {data.get('error', data)}", url=TOKEN_URL)
        self._token = data["access_token"]
        self._token_expires = time.time() + float(data.get("expires_in", 3600)) - TOKEN_LEEWAY
        logger.info("Obtained Reddit OAuth token for %s", self.username)

    def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        url = self._url(path)
        backoff = 0.5
        last = None
        refreshed = False
        for _ in range(self.max_retries):
            try:
                r = self.s.get(url, params=params, headers=self._auth_headers(), timeout=self.timeout)
            except requests.RequestException as e:
                raise FetchError(f"GET {url} failed: {e}", url=url) from e

            if r.status_code == 401 and self.authenticated and not refreshed:
                logger.info("Reddit returned 401; refreshing token")
                self._token = None
                refreshed = True
                continue
            if r.status_code == 429:
                sleep = _retry_after(r.headers.get("Retry-After"), backoff)
                logger.debug("Reddit backoff %ss for %s", sleep, url)
                time.sleep(sleep)
                backoff = min(backoff * 2, MAX_BACKOFF)
                last = r
                continue
            if r.status_code >= 400:
                raise FetchError(f"GET {url} returned HTTP {r.status_code}", status=r.status_code, url=url)
            try:
                return r.json()
            except ValueError as e:
                raise FetchError(f"GET {url} returned a non-JSON body", status=r.status_code, url=url) from e

        status = last.status_code if last is not None else None
        raise FetchError(f"GET {url} gave up after {self.max_retries} attempts", status=status, url=url)
