# snoostream/pipeline.py
# Per-stream state and the dedupe -> recency -> pattern stages run on every batch.

from __future__ import annotations
import re
import time
from typing import List, Optional, Pattern, Sequence, Union

from .errors import ConfigurationError
from .sources.base import Item, ItemKind

PatternLike = Union[str, Pattern[str]]

MATCH_ALL = re.compile("")


def _now() -> int:
    return int(time.time())


def compile_pattern(pattern: Optional[PatternLike]) -> Pattern[str]:
    if pattern is None:
        return MATCH_ALL
    if isinstance(pattern, re.Pattern):
        if not isinstance(pattern.pattern, str):
            raise ConfigurationError(f"pattern must match text, got a bytes pattern {pattern.pattern!r}")
        return pattern
    if not isinstance(pattern, str):
        raise ConfigurationError(f"pattern must be a str or compiled regex, got {type(pattern).__name__}")
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"Invalid pattern {pattern!r}: {e}") from e


def match(item: Item, pattern: Pattern[str], field: str) -> Optional[re.Match]:
    """Search ``field`` of ``item`` with ``pattern``. Missing/None text never matches."""
    text = item.get(field)
    if text is None:
        return None
    if not isinstance(text, str):
        text = str(text)
    return pattern.search(text)


class StreamSession:
    """
    State owned by a single stream: when it started, how much clock drift to
    allow, and the previous raw batch for de-duplication.

    start_time is taken once, here, and never recomputed. Items created before
    ``start_time - drift`` are treated as history and dropped. A drift larger
    than the poll interval widens that window accordingly; that trade-off is
    left to the caller.
    """

    def __init__(self, kind: ItemKind, pattern: Optional[PatternLike] = None, drift: float = 0):
        self.kind = kind
        self.pattern = compile_pattern(pattern)
        self.drift = drift
        self.start_time = _now()
        self._previous: List[Item] = []

    @property
    def cutoff(self) -> float:
        return self.start_time - self.drift

    def dedupe(self, batch: Sequence[Item]) -> List[Item]:
        """Drop items whose id was in the previous batch, then remember this whole batch."""
        seen = {item.id for item in self._previous}
        diff = [item for item in batch if item.id not in seen]
        self._previous = list(batch)
        return diff

    def is_recent(self, item: Item) -> bool:
        return item.created_utc >= self.cutoff

    def process(self, batch: Sequence[Item]) -> List[Item]:
        return [item for item in self.dedupe(batch) if self.is_recent(item)]

    def match(self, item: Item) -> Optional[re.Match]:
        return match(item, self.pattern, self.kind.text_field)
