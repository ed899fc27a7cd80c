"""Shared fixtures: a fixed clock, in-memory sources and a tick counter."""

from __future__ import annotations

import asyncio
import threading
from typing import Any

import pytest

from snoostream import pipeline
from snoostream.sources.base import Fetcher, Item, ItemKind

T0 = 1_700_000_000


def make_item(
    item_id: str,
    created_utc: int = T0,
    text: str | None = "",
    kind: ItemKind = ItemKind.COMMENT,
) -> Item:
    data: dict[str, Any] = {"id": item_id, "created_utc": created_utc}
    if text is not None:
        data[kind.text_field] = text
    return Item(id=item_id, created_utc=created_utc, kind=kind, data=data)


class ScriptedSource(Fetcher):
    """Returns one scripted batch per call, then empty batches.

    A script entry that is an Exception instance is raised instead of returned.
    """

    def __init__(self, *batches: Any):
        self.script = list(batches)
        self.calls: list[tuple[str, str, dict]] = []
        self._lock = threading.Lock()

    def _next(self, op: str, scope: str, options: dict) -> list[Item]:
        with self._lock:
            self.calls.append((op, scope, options))
            entry = self.script.pop(0) if self.script else []
        if isinstance(entry, Exception):
            raise entry
        return list(entry)

    def get_new_comments(self, scope: str, **options: Any) -> list[Item]:
        return self._next("get_new_comments", scope, options)

    def get_new(self, scope: str, **options: Any) -> list[Item]:
        return self._next("get_new", scope, options)


@pytest.fixture
def fixed_clock(monkeypatch):
    """Pin stream start time to T0."""
    monkeypatch.setattr(pipeline, "_now", lambda: T0)
    return T0


@pytest.fixture
def run_ticks():
    """Wait until ``stream`` has processed ``n`` batches, then stop it.

    The counting handler is registered after the stream's own pipeline, so by
    the time it fires the tick's events have all been emitted.
    """

    async def _run(stream, n: int, timeout: float = 2.0) -> list:
        batches: list = []
        done = asyncio.Event()

        def _count(batch):
            batches.append(batch)
            if len(batches) >= n:
                stream.stop()
                done.set()

        stream.on("batch", _count)
        try:
            await asyncio.wait_for(done.wait(), timeout)
        finally:
            stream.stop()
            await stream.wait_closed()
        return batches

    return _run
