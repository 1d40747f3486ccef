"""Playlist snapshots: the durable record of a playlist's order between runs."""

import csv
import json
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from ytorder.config import get_snapshots_dir
from ytorder.logging import logger
from ytorder.models import Item, Order

CSV_FIELDS = ["position", "id", "title", "published_at", "recorded_at"]


@dataclass
class Snapshot:
    """A playlist's items in their last known order, with remote handles.

    ``items`` may contain duplicate ids (as the remote playlist can);
    ``order()`` refuses to build an Order from such a snapshot.
    """

    playlist_id: str
    title: str = ""
    items: list[Item] = field(default_factory=list)
    updated_at: str = ""

    def order(self) -> Order:
        """Build the Order Model for this snapshot (copies the items)."""
        return Order(Item.from_dict(item.to_dict()) for item in self.items)

    @classmethod
    def from_order(cls, playlist_id: str, order: Order, title: str = "") -> "Snapshot":
        return cls(
            playlist_id=playlist_id,
            title=title,
            items=[Item.from_dict(item.to_dict()) for item in order],
            updated_at=datetime.now().isoformat(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "playlist_id": self.playlist_id,
            "title": self.title,
            "updated_at": self.updated_at,
            "items": [
                {**item.to_dict(), "position": position} for position, item in enumerate(self.items)
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        records = sorted(
            enumerate(data.get("items", [])), key=lambda pair: pair[1].get("position", pair[0])
        )
        return cls(
            playlist_id=data["playlist_id"],
            title=data.get("title", ""),
            items=[Item.from_dict(record, position) for position, (_, record) in enumerate(records)],
            updated_at=data.get("updated_at", ""),
        )


def get_snapshot_path(playlist_id: str) -> Path:
    """Get path to a playlist's snapshot file."""
    return get_snapshots_dir() / f"{playlist_id}.json"


def load_snapshot(playlist_id: str) -> Snapshot | None:
    """Load a snapshot from disk, returns None if missing or unreadable."""
    path = get_snapshot_path(playlist_id)
    if not path.exists():
        return None
    try:
        with open(path) as f:
            data = json.load(f)
        snapshot = Snapshot.from_dict(data)
        logger.debug("Loaded snapshot of {} with {} items", playlist_id, len(snapshot.items))
        return snapshot
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        logger.warning("Failed to load snapshot {}: {}", path, e)
        return None


def save_snapshot(snapshot: Snapshot) -> Path:
    """Rewrite a snapshot file in full.

    Written to a temp file in the same directory and moved into place, so an
    interrupted run never leaves a half-written snapshot behind.
    """
    path = get_snapshot_path(snapshot.playlist_id)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not snapshot.updated_at:
        snapshot.updated_at = datetime.now().isoformat()
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(snapshot.to_dict(), f, indent=2)
        os.chmod(tmp_name, 0o600)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.debug("Saved snapshot to {}", path)
    return path


def export_csv(items: list[Item], path: Path | str) -> None:
    """Write items to CSV (position, id, title, published_at, recorded_at)."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for position, item in enumerate(items):
            writer.writerow(
                {
                    "position": position,
                    "id": item.id,
                    "title": item.title,
                    "published_at": item.published_at or "",
                    "recorded_at": item.recorded_at or "",
                }
            )
