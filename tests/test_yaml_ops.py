"""Tests for ytorder.yaml_ops."""

from pathlib import Path

import pytest
import yaml

from ytorder.models import Item
from ytorder.snapshot import Snapshot
from ytorder.yaml_ops import (
    load_desired_order,
    order_to_yaml,
    playlist_from_yaml,
    save_order_yaml,
    yaml_to_order,
)


def sample_snapshot() -> Snapshot:
    return Snapshot(
        playlist_id="PL123",
        title="Test",
        items=[Item(id="v1", title="First: part 1"), Item(id="v2", title="Zweite Folge ü")],
    )


class TestOrderToYaml:
    """Tests for YAML serialization."""

    def test_structure(self) -> None:
        data = yaml.safe_load(order_to_yaml(sample_snapshot()))
        assert data == {
            "playlist": "PL123",
            "title": "Test",
            "videos": [
                {"id": "v1", "title": "First: part 1"},
                {"id": "v2", "title": "Zweite Folge ü"},
            ],
        }

    def test_keeps_unicode_readable(self) -> None:
        assert "ü" in order_to_yaml(sample_snapshot())


class TestYamlToOrder:
    """Tests for YAML deserialization."""

    def test_videos_with_titles(self) -> None:
        yaml_str = """
playlist: PL123
videos:
  - id: v2
    title: Second
  - id: v1
"""
        assert yaml_to_order(yaml_str) == ["v2", "v1"]

    def test_videos_as_ids(self) -> None:
        assert yaml_to_order("videos: [b, a]") == ["b", "a"]

    def test_plain_list(self) -> None:
        assert yaml_to_order("- a\n- b\n") == ["a", "b"]

    def test_numeric_looking_ids_become_strings(self) -> None:
        assert yaml_to_order("- 123\n") == ["123"]

    def test_missing_videos_key(self) -> None:
        with pytest.raises(ValueError, match="missing 'videos'"):
            yaml_to_order("playlist: PL123")

    def test_not_a_list(self) -> None:
        with pytest.raises(ValueError, match="expected a list"):
            yaml_to_order("just a string")

    def test_entry_without_id(self) -> None:
        with pytest.raises(ValueError, match="without id"):
            yaml_to_order("videos:\n  - title: nothing\n")


class TestFiles:
    """Tests for reading and writing order files."""

    def test_save_and_load(self, tmp_path: Path) -> None:
        path = tmp_path / "order.yaml"
        save_order_yaml(path, sample_snapshot())
        assert load_desired_order(path) == ["v1", "v2"]

    def test_edited_file_reorders(self, tmp_path: Path) -> None:
        path = tmp_path / "order.yaml"
        save_order_yaml(path, sample_snapshot())
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        data["videos"].reverse()
        path.write_text(yaml.safe_dump(data), encoding="utf-8")

        assert load_desired_order(path) == ["v2", "v1"]

    def test_playlist_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "order.yaml"
        path.write_text("playlist: https://www.youtube.com/playlist?list=PL123\nvideos: []\n")
        assert playlist_from_yaml(path) == "PL123"

    def test_playlist_from_plain_list(self, tmp_path: Path) -> None:
        path = tmp_path / "order.yaml"
        path.write_text("- a\n")
        assert playlist_from_yaml(path) is None
