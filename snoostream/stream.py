# snoostream/stream.py
# Public facade: turns a Fetcher into live comment/submission streams.
#
#   stream = SnooStream(RedditClient.from_env(), drift=2).comment_stream("python", pattern=r"asyncio")
#   stream.on("comment", lambda item, m: print(item.id, m.group(0)))
#
# Each stream emits:
#   - "batch": raw fetch result for every successful tick
#   - "data": the de-duplicated, recent items of that tick (before pattern matching)
#   - "comment" / "submission": (item, match) for each new item whose text matches
#   - "error": whatever the fetch raised
#
# Streams start polling as soon as they are opened; call .stop() on the
# returned EventStream to end one.

from __future__ import annotations
import numbers
from datetime import timedelta
from typing import Any, Mapping, Optional, Union

from .config import DEFAULT_SUBREDDIT, DRIFT_SECONDS, MIN_SUBREDDIT_LEN, RATE_MS
from .errors import ConfigurationError
from .pipeline import PatternLike, StreamSession
from .poller import BATCH, EventStream, start_polling
from .sources.base import Fetcher, ItemKind
from .sources.reddit import RedditClient
from .utils.log import get_logger

logger = get_logger("stream")

DATA = "data"

Rate = Union[int, float, timedelta]


# --------------------------------------------------------------------
# Validation helpers
# --------------------------------------------------------------------
def _check_subreddit(subreddit: Any) -> str:
    if not isinstance(subreddit, str) or len(subreddit) < MIN_SUBREDDIT_LEN:
        raise ConfigurationError(
            f"subreddit must be a string of at least {MIN_SUBREDDIT_LEN} characters, got {subreddit!r}"
        )
    return subreddit


def _rate_seconds(rate: Optional[Rate]) -> float:
    """Convert a rate in milliseconds (or a timedelta) to seconds."""
    if rate is None:
        rate = RATE_MS
    if isinstance(rate, timedelta):
        seconds = rate.total_seconds()
    elif isinstance(rate, numbers.Real) and not isinstance(rate, bool):
        seconds = float(rate) / 1000.0
    else:
        raise ConfigurationError(f"rate must be milliseconds or a timedelta, got {rate!r}")
    if not seconds > 0:
        raise ConfigurationError(f"rate must be positive, got {rate!r}")
    return seconds


def _check_drift(drift: Any) -> float:
    if isinstance(drift, bool) or not isinstance(drift, numbers.Real) or drift < 0:
        raise ConfigurationError(f"drift must be a non-negative number of seconds, got {drift!r}")
    return float(drift)


# --------------------------------------------------------------------
# Facade
# --------------------------------------------------------------------
class SnooStream:
    """
    Produces comment and submission streams for one source.

    ``source`` is a Fetcher (e.g. a RedditClient or a test double) or a
    mapping of RedditClient keyword arguments to build one from.
    ``drift`` is how many seconds the remote clock lags the local one; it
    only matters for items created right around stream start.
    """

    def __init__(self, source: Union[Fetcher, Mapping[str, Any]], drift: float = DRIFT_SECONDS):
        if isinstance(source, Fetcher):
            self.source = source
        elif isinstance(source, Mapping):
            self.source = RedditClient(**source)
        else:
            raise ConfigurationError(
                f"source must be a Fetcher or RedditClient options, got {type(source).__name__}"
            )
        self.drift = _check_drift(drift)

    @classmethod
    def from_env(cls, drift: float = DRIFT_SECONDS) -> "SnooStream":
        return cls(RedditClient.from_env(), drift=drift)

    def comment_stream(
        self,
        subreddit: str = DEFAULT_SUBREDDIT,
        *,
        rate: Optional[Rate] = None,
        pattern: Optional[PatternLike] = None,
        **fetch_options: Any,
    ) -> EventStream:
        """Stream new comments; matching ones are emitted as ``"comment"``."""
        return self._open(ItemKind.COMMENT, subreddit, rate, pattern, fetch_options)

    def submission_stream(
        self,
        subreddit: str = DEFAULT_SUBREDDIT,
        *,
        rate: Optional[Rate] = None,
        pattern: Optional[PatternLike] = None,
        **fetch_options: Any,
    ) -> EventStream:
        """Stream new submissions; matching ones are emitted as ``"submission"``."""
        return self._open(ItemKind.SUBMISSION, subreddit, rate, pattern, fetch_options)

    def _fetch_fn(self, kind: ItemKind):
        if kind is ItemKind.COMMENT:
            return self.source.get_new_comments
        return self.source.get_new

    def _open(
        self,
        kind: ItemKind,
        subreddit: str,
        rate: Optional[Rate],
        pattern: Optional[PatternLike],
        fetch_options: Mapping[str, Any],
    ) -> EventStream:
        subreddit = _check_subreddit(subreddit)
        interval = _rate_seconds(rate)
        session = StreamSession(kind, pattern=pattern, drift=self.drift)

        stream = start_polling(
            interval,
            self._fetch_fn(kind),
            subreddit,
            fetch_options,
            events=(DATA, kind.event),
        )

        def _on_batch(batch):
            fresh = session.process(batch)
            stream.emit(DATA, fresh)
            for item in fresh:
                m = session.match(item)
                if m is not None:
                    stream.emit(kind.event, item, m)

        stream.on(BATCH, _on_batch)
        logger.info(
            "Opened %s stream for r/%s (every %.3fs, drift %ss, start %d)",
            kind.value, subreddit, interval, self.drift, session.start_time,
        )
        return stream
