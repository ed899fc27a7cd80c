"""De-duplicated, filtered push streams over Reddit's "new" listings."""

from .errors import ConfigurationError, FetchError, SnooStreamError
from .poller import EventStream, start_polling
from .pipeline import StreamSession
from .sources.base import Fetcher, Item, ItemKind
from .sources.reddit import RedditClient
from .stream import SnooStream

__all__ = [
    "SnooStream",
    "EventStream",
    "StreamSession",
    "start_polling",
    "Fetcher",
    "Item",
    "ItemKind",
    "RedditClient",
    "SnooStreamError",
    "ConfigurationError",
    "FetchError",
]

__version__ = "0.1.0"
