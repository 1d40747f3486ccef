"""Desired playlist order: sort keys and duplicate reconciliation."""

from collections.abc import Sequence
from datetime import datetime, timezone

from ytorder.logging import logger
from ytorder.models import Item

_MAX_DATE = datetime.max.replace(tzinfo=timezone.utc)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp ("2025-07-03T14:14:13.130Z") into an aware datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable timestamp: {}", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def best_date(item: Item) -> datetime | None:
    """Recording date if known, otherwise publish date."""
    return parse_timestamp(item.recorded_at) or parse_timestamp(item.published_at)


def desired_order(items: Sequence[Item], sort_by: str = "date", reverse: bool = False) -> list[str]:
    """Ids of ``items`` in the order they should appear.

    Sorting is stable: items with equal keys keep their current relative
    order. Items without any date go last.

    Args:
        items: Playlist items in current order
        sort_by: "date" (oldest first) or "title" (case-insensitive)
        reverse: Newest first / Z to A
    """
    if sort_by == "date":
        dates = {id(item): best_date(item) for item in items}
        dated = [item for item in items if dates[id(item)] is not None]
        undated = [item for item in items if dates[id(item)] is None]
        dated.sort(key=lambda item: dates[id(item)] or _MAX_DATE, reverse=reverse)
        ordered = dated + undated
    elif sort_by == "title":
        ordered = sorted(items, key=lambda item: item.title.casefold(), reverse=reverse)
    else:
        raise ValueError(f"Unknown sort field: {sort_by}")
    return [item.id for item in ordered]


def find_duplicates(items: Sequence[Item]) -> tuple[list[Item], list[Item]]:
    """Split items into (kept, removed), keeping the first occurrence of each id."""
    seen: set[str] = set()
    kept: list[Item] = []
    removed: list[Item] = []
    for item in items:
        if item.id in seen:
            removed.append(item)
        else:
            seen.add(item.id)
            kept.append(item)
    return kept, removed
