from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional


class ItemKind(str, Enum):
    """The two listing types a stream can follow."""

    COMMENT = "comment"
    SUBMISSION = "submission"

    @property
    def text_field(self) -> str:
        return "body" if self is ItemKind.COMMENT else "selftext"

    @property
    def event(self) -> str:
        return self.value


# Reddit "thing" prefixes used in listing children
_KIND_BY_PREFIX = {"t1": ItemKind.COMMENT, "t3": ItemKind.SUBMISSION}


@dataclass(frozen=True)
class Item:
    id: str
    created_utc: int
    kind: ItemKind
    data: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def get(self, name: str, default: Any = None) -> Any:
        return self.data.get(name, default)

    @property
    def text(self) -> Optional[str]:
        return self.get(self.kind.text_field)

    @classmethod
    def from_listing_child(cls, child: Mapping[str, Any]) -> "Item":
        """Build an Item from one entry of a listing's ``data.children``.

        Raises KeyError/ValueError/TypeError if the child lacks an id or a
        usable created_utc; callers decide whether to skip it.
        """
        kind = _KIND_BY_PREFIX[child["kind"]]
        data = child["data"]
        return cls(
            id=str(data["id"]),
            created_utc=int(float(data["created_utc"])),
            kind=kind,
            data=dict(data),
        )


class Fetcher:
    """Anything a stream can poll: a Reddit client adapter or a test double.

    Both operations return one batch (a list of Items) for ``scope``; extra
    keyword arguments are listing parameters passed through from the stream.
    """

    def get_new_comments(self, scope: str, **options: Any) -> List[Item]:
        raise NotImplementedError

    def get_new(self, scope: str, **options: Any) -> List[Item]:
        raise NotImplementedError
