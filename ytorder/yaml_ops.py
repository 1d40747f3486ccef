"""YAML files describing a desired playlist order."""

from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from ytorder.models import extract_playlist_id
from ytorder.snapshot import Snapshot


def order_to_yaml(snapshot: Snapshot) -> str:
    """Serialize a snapshot's order to YAML (ids plus titles for editing)."""
    data = {
        "playlist": snapshot.playlist_id,
        "title": snapshot.title,
        "videos": [{"id": item.id, "title": item.title} for item in snapshot.items],
    }
    result: str = yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
    return result


def yaml_to_order(yaml_content: str) -> list[str]:
    """Parse video ids from YAML.

    Accepts ``{videos: [{id: ...}, ...]}``, ``{videos: [id, ...]}`` or a
    plain top-level list.
    """
    data: Any = yaml.safe_load(yaml_content)
    if isinstance(data, dict):
        if "videos" not in data:
            raise ValueError("Invalid YAML: missing 'videos' key")
        data = data["videos"]
    if not isinstance(data, list):
        raise ValueError("Invalid YAML: expected a list of videos")

    ids: list[str] = []
    for entry in data:
        if isinstance(entry, dict):
            if "id" not in entry:
                raise ValueError(f"Invalid YAML: video entry without id: {entry}")
            ids.append(str(entry["id"]))
        else:
            ids.append(str(entry))
    return ids


def save_order_yaml(path: Path | str, snapshot: Snapshot) -> None:
    """Save a snapshot's current order to a YAML file."""
    Path(path).write_text(order_to_yaml(snapshot), encoding="utf-8")


def load_desired_order(path: Path | str) -> list[str]:
    """Load a desired order of video ids from a YAML file."""
    content = Path(path).read_text(encoding="utf-8")
    return yaml_to_order(content)


def playlist_from_yaml(path: Path | str) -> str | None:
    """Playlist ID recorded in an order file, if any."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict) and data.get("playlist"):
        return extract_playlist_id(str(data["playlist"]))
    return None
