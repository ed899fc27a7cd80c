# snoostream/poller.py
# Interval poller: calls a fetch function on a fixed cadence on the running
# asyncio loop and publishes each result on an EventStream.
#
# Public API:
#   start_polling(interval, fetch_fn, scope, fetch_options=None, events=()) -> EventStream
#
# Events emitted by the poller itself:
#   - "batch": the raw list returned by fetch_fn
#   - "error": the exception raised by fetch_fn (passed through unmodified)
#
# Ticks never overlap: the next fetch is scheduled only after the previous
# fetch resolved and every "batch" handler returned. A tick that overruns the
# interval delays the next one instead of skipping it.
#
# stop() abandons an in-flight fetch: its result is dropped and no handler
# sees it. No fetch is started after stop().

from __future__ import annotations
import asyncio
import inspect
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .utils.log import get_logger

logger = get_logger("poller")

BATCH = "batch"
ERROR = "error"

Handler = Callable[..., Any]


class EventStream:
    """Observer registry for one poller; also the sink a stream emits its own events on.

    Only the event names declared at construction (plus "batch" and "error")
    can be subscribed to or emitted. Handlers run synchronously in
    registration order; an exception in one handler is logged and does not
    reach the others or the poll loop.
    """

    def __init__(self, events: Iterable[str] = ()):
        names = {BATCH, ERROR, *events}
        self._handlers: Dict[str, List[Handler]] = {name: [] for name in names}
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def events(self) -> frozenset[str]:
        return frozenset(self._handlers)

    @property
    def running(self) -> bool:
        return not self._stopped and self._task is not None and not self._task.done()

    def _check(self, event: str) -> List[Handler]:
        try:
            return self._handlers[event]
        except KeyError:
            raise ValueError(
                f"Unknown event {event!r}; expected one of {sorted(self._handlers)}"
            ) from None

    def on(self, event: str, handler: Handler) -> "EventStream":
        self._check(event).append(handler)
        return self

    def once(self, event: str, handler: Handler) -> "EventStream":
        def _wrapper(*args: Any) -> Any:
            self.off(event, _wrapper)
            return handler(*args)

        return self.on(event, _wrapper)

    def off(self, event: str, handler: Handler) -> "EventStream":
        handlers = self._check(event)
        if handler in handlers:
            handlers.remove(handler)
        return self

    def listener_count(self, event: str) -> int:
        return len(self._check(event))

    def emit(self, event: str, *args: Any) -> bool:
        """Call every handler for ``event``. Returns False when nobody was listening."""
        handlers = list(self._check(event))
        if not handlers:
            if event == ERROR:
                err = args[0] if args else None
                logger.warning("Unhandled poll error (no 'error' listener): %r", err)
            return False
        for handler in handlers:
            try:
                handler(*args)
            except Exception:
                logger.exception("Handler %r for %r raised", handler, event)
        return True

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info("Poller stopped")

    async def wait_closed(self) -> None:
        if self._task is not None:
            await asyncio.wait({self._task})

    # ---------------------------- loop ----------------------------

    async def _run(
        self,
        interval: float,
        fetch_fn: Callable[..., Any],
        scope: str,
        fetch_options: Mapping[str, Any],
    ) -> None:
        loop = asyncio.get_running_loop()
        is_async = inspect.iscoroutinefunction(fetch_fn)
        tick = 0
        while not self._stopped:
            tick += 1
            started = loop.time()
            try:
                if is_async:
                    batch = await fetch_fn(scope, **fetch_options)
                else:
                    batch = await asyncio.to_thread(fetch_fn, scope, **fetch_options)
            except Exception as e:
                logger.debug("Tick %d fetch for %s failed: %r", tick, scope, e)
                self.emit(ERROR, e)
            else:
                if self._stopped:
                    break
                batch = list(batch or [])
                logger.debug("Tick %d fetched %d items for %s", tick, len(batch), scope)
                self.emit(BATCH, batch)
            delay = max(0.0, interval - (loop.time() - started))
            await asyncio.sleep(delay)


def start_polling(
    interval: float,
    fetch_fn: Callable[..., Any],
    scope: str,
    fetch_options: Optional[Mapping[str, Any]] = None,
    events: Iterable[str] = (),
) -> EventStream:
    """Start polling ``fetch_fn(scope, **fetch_options)`` every ``interval`` seconds.

    The first fetch is scheduled right away on the running loop, so handlers
    attached synchronously after this call returns see the first batch.
    Sync fetch functions run in a worker thread; coroutine functions are
    awaited directly.
    """
    if interval <= 0:
        raise ValueError("interval must be positive")
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        raise RuntimeError("start_polling() must be called while an asyncio event loop is running") from None

    stream = EventStream(events)
    stream._task = loop.create_task(stream._run(interval, fetch_fn, scope, dict(fetch_options or {})))
    return stream
