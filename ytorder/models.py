"""Data models for ytorder: playlist items, orders and move operations."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from typing import Any


class ReferenceNotFoundError(KeyError):
    """Raised when an operation references an item id absent from the order."""

    def __init__(self, item_id: str) -> None:
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self) -> str:
        return f"Item not found in order: {self.item_id}"


class MissingHandleError(LookupError):
    """Raised when an item has no remote handle (playlistItem ID) to move it with."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"No playlist item handle for video {item_id}")
        self.item_id = item_id


class DuplicateItemError(ValueError):
    """Raised when an order would contain the same item id more than once."""

    def __init__(self, duplicates: list[str]) -> None:
        super().__init__(f"Duplicate item ids: {', '.join(duplicates)}")
        self.duplicates = duplicates


class InvalidPlaylistError(ValueError):
    """Raised when playlist URL/ID is invalid."""

    pass


@dataclass
class Item:
    """A playlist entry.

    ``id`` is the video ID (stable across reorderings); ``handle`` is the
    playlistItem ID the YouTube API needs to move it.
    """

    id: str
    handle: str | None = None
    title: str = ""
    published_at: str | None = None
    recorded_at: str | None = None
    position: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize for snapshots."""
        d: dict[str, Any] = {
            "position": self.position,
            "id": self.id,
            "handle": self.handle,
            "title": self.title,
        }
        if self.published_at:
            d["published_at"] = self.published_at
        if self.recorded_at:
            d["recorded_at"] = self.recorded_at
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any], position: int = 0) -> "Item":
        """Deserialize from a snapshot record."""
        return cls(
            id=data["id"],
            handle=data.get("handle"),
            title=data.get("title", ""),
            published_at=data.get("published_at"),
            recorded_at=data.get("recorded_at"),
            position=data.get("position", position),
        )


@dataclass(frozen=True)
class MoveOperation:
    """Relocate item ``id`` to just after ``after_id``, or to the front if None."""

    id: str
    after_id: str | None = None

    def __post_init__(self) -> None:
        if self.id == self.after_id:
            raise ValueError(f"Cannot move {self.id} after itself")

    def describe(self) -> str:
        """Human-readable destination, e.g. "to front" or "after abc"."""
        if self.after_id is None:
            return "to front"
        return f"after {self.after_id}"

    def to_dict(self) -> dict[str, str | None]:
        return {"id": self.id, "after_id": self.after_id}


class Order:
    """Ordered playlist items with lookup by id.

    Item ids are unique. Every item's ``position`` always equals its index.
    """

    def __init__(self, items: Iterable[Item] = ()) -> None:
        self._items: list[Item] = list(items)
        self._by_id: dict[str, Item] = {}
        duplicates: list[str] = []
        for item in self._items:
            if item.id in self._by_id:
                duplicates.append(item.id)
            self._by_id[item.id] = item
        if duplicates:
            raise DuplicateItemError(duplicates)
        self._renumber()

    @classmethod
    def from_ids(cls, ids: Iterable[str], handles: dict[str, str] | None = None) -> "Order":
        """Build an order from bare ids, optionally with an id -> handle mapping."""
        handles = handles or {}
        return cls(Item(id=i, handle=handles.get(i)) for i in ids)

    def _renumber(self) -> None:
        for position, item in enumerate(self._items):
            item.position = position

    @property
    def ids(self) -> list[str]:
        return [item.id for item in self._items]

    @property
    def items(self) -> list[Item]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._by_id

    def __repr__(self) -> str:
        return f"Order({self.ids!r})"

    def get(self, item_id: str) -> Item:
        """Return the item with this id."""
        try:
            return self._by_id[item_id]
        except KeyError:
            raise ReferenceNotFoundError(item_id) from None

    def index(self, item_id: str) -> int:
        """Current zero-based index of the item."""
        return self.get(item_id).position

    def handle_for(self, item_id: str) -> str:
        """Remote handle of the item; raises MissingHandleError if unknown."""
        handle = self.get(item_id).handle
        if not handle:
            raise MissingHandleError(item_id)
        return handle

    def predecessor(self, item_id: str) -> str | None:
        """Id of the item immediately before ``item_id`` (None at the front)."""
        idx = self.index(item_id)
        return self._items[idx - 1].id if idx > 0 else None

    def copy(self) -> "Order":
        """Independent copy; mutating it never touches this order."""
        return Order(replace(item) for item in self._items)

    def target_position(self, item_id: str, after_id: str | None) -> int:
        """Index ``item_id`` will occupy after ``relocate(item_id, after_id)``.

        Positions are counted after the item is taken out, so moving an item
        toward the end lands on the index ``after_id`` currently holds.
        """
        if item_id == after_id:
            raise ValueError(f"Cannot move {item_id} after itself")
        current = self.index(item_id)
        if after_id is None:
            return 0
        after = self.index(after_id)
        return after if current < after else after + 1

    def relocate(self, item_id: str, after_id: str | None) -> int:
        """Move ``item_id`` to just after ``after_id`` (front if None).

        Returns the item's new index.

        Raises:
            ReferenceNotFoundError: If either id is not in the order. Nothing is
                moved in that case.
            ValueError: If ``item_id`` and ``after_id`` are the same.
        """
        target = self.target_position(item_id, after_id)
        item = self._items.pop(self.index(item_id))
        self._items.insert(target, item)
        self._renumber()
        return target

    def to_dict(self) -> dict[str, Any]:
        return {"items": [item.to_dict() for item in self._items]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        return cls(Item.from_dict(d, i) for i, d in enumerate(data.get("items", [])))


def extract_playlist_id(url_or_id: str) -> str:
    """Extract and validate playlist ID from URL or ID.

    Args:
        url_or_id: YouTube playlist URL or playlist ID

    Returns:
        Valid playlist ID

    Raises:
        InvalidPlaylistError: If input is not a valid playlist URL/ID
    """
    url_or_id = url_or_id.strip()
    if not url_or_id:
        raise InvalidPlaylistError("Empty playlist URL/ID")

    playlist_id = url_or_id
    if "list=" in url_or_id:
        for part in url_or_id.split("?")[-1].split("&"):
            if part.startswith("list="):
                playlist_id = part[5:]
                break

    if not playlist_id:
        raise InvalidPlaylistError(f"No playlist ID found in: {url_or_id}")

    valid_chars = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_")
    if not all(c in valid_chars for c in playlist_id):
        raise InvalidPlaylistError(f"Invalid characters in playlist ID: {playlist_id}")

    if len(playlist_id) < 2:
        raise InvalidPlaylistError(f"Playlist ID too short: {playlist_id}")

    return playlist_id
