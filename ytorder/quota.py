"""YouTube API quota tracking and estimation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from ytorder.logging import logger

# YouTube Data API v3 quota costs
# https://developers.google.com/youtube/v3/determine_quota_cost
QUOTA_COSTS = {
    "playlists.list": 1,
    "playlistItems.list": 1,
    "videos.list": 1,
    "playlistItems.update": 50,
    "playlistItems.delete": 50,
}

DAILY_QUOTA_LIMIT = 10_000

# Quota resets at midnight Pacific Time
PACIFIC_TZ = ZoneInfo("America/Los_Angeles")

# playlistItems.list returns at most 50 items per page
PAGE_SIZE = 50


@dataclass
class QuotaTracker:
    """Tracks API quota usage during a session.

    Shared by every remote call in one process. Consulted before each write
    and updated only after the write succeeds.
    """

    used: int = 0
    limit: int = DAILY_QUOTA_LIMIT
    warn_threshold: float = 0.8
    operations: dict[str, int] = field(default_factory=dict)

    def record(self, operation: str, units: int | None = None) -> None:
        """Record an API operation and its quota cost.

        Args:
            operation: API operation name (e.g., "playlistItems.update")
            units: Quota units consumed (defaults to QUOTA_COSTS lookup)
        """
        if units is None:
            units = QUOTA_COSTS.get(operation, 50)
        self.used += units
        self.operations[operation] = self.operations.get(operation, 0) + 1
        logger.debug("Quota: +{} units for {} (total: {})", units, operation, self.used)

    @property
    def remaining(self) -> int:
        """Remaining quota units for the day."""
        return max(0, self.limit - self.used)

    @property
    def usage_percent(self) -> float:
        return (self.used / self.limit) * 100 if self.limit > 0 else 100.0

    def can_afford(self, operation: str, units: int | None = None) -> bool:
        """Whether the remaining budget covers one more ``operation``."""
        if units is None:
            units = QUOTA_COSTS.get(operation, 50)
        return units <= self.remaining

    def is_warning(self) -> bool:
        return self.used >= (self.limit * self.warn_threshold)

    def is_exceeded(self) -> bool:
        return self.used >= self.limit

    def check_and_warn(self) -> str | None:
        """Check quota and return warning message if needed."""
        if self.is_exceeded():
            return f"Daily quota limit reached ({self.used:,}/{self.limit:,} units)"
        if self.is_warning():
            pct = self.usage_percent
            return f"Quota usage at {pct:.0f}% ({self.used:,}/{self.limit:,} units)"
        return None

    def summary(self) -> dict[str, int | float | dict[str, int]]:
        return {
            "used": self.used,
            "remaining": self.remaining,
            "limit": self.limit,
            "usage_percent": round(self.usage_percent, 1),
            "operations": dict(self.operations),
        }


_tracker = QuotaTracker()


def get_tracker() -> QuotaTracker:
    """Get the global quota tracker."""
    return _tracker


def set_quota_limit(limit: int) -> None:
    """Set the daily limit of the global tracker (e.g. for raised project quotas)."""
    _tracker.limit = limit


def record_quota(operation: str, units: int | None = None) -> None:
    """Record quota usage for an API operation."""
    _tracker.record(operation, units)


def get_quota_summary() -> dict[str, int | float | dict[str, int]]:
    return _tracker.summary()


def get_time_until_reset() -> str:
    """Get human-readable time until quota reset (midnight PT).

    Returns:
        String like "5h 23m" or "23m" until midnight Pacific Time.
    """
    now = datetime.now(PACIFIC_TZ)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=1)
    total_seconds = int((midnight - now).total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes = remainder // 60

    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


@dataclass
class QuotaEstimate:
    """Estimated quota usage for a reorder run."""

    video_reorders: int = 0
    video_removes: int = 0
    list_operations: int = 0

    @property
    def total(self) -> int:
        return (
            self.video_reorders * QUOTA_COSTS["playlistItems.update"]
            + self.video_removes * QUOTA_COSTS["playlistItems.delete"]
            + self.list_operations * QUOTA_COSTS["playlistItems.list"]
        )

    @property
    def days_required(self) -> int:
        """Minimum days required to complete at default quota."""
        if self.total == 0:
            return 0
        return (self.total + DAILY_QUOTA_LIMIT - 1) // DAILY_QUOTA_LIMIT

    def breakdown(self) -> dict[str, int]:
        return {
            "video_reorders": self.video_reorders * QUOTA_COSTS["playlistItems.update"],
            "video_removes": self.video_removes * QUOTA_COSTS["playlistItems.delete"],
            "list_operations": self.list_operations * QUOTA_COSTS["playlistItems.list"],
            "total": self.total,
        }


def estimate_reorder_cost(num_moves: int, num_items: int = 0, fetch: bool = False) -> QuotaEstimate:
    """Estimate quota for applying a move plan.

    Args:
        num_moves: Number of planned moves (one playlistItems.update each)
        num_items: Playlist size, used to count list pages when ``fetch`` is set
        fetch: Whether the playlist is fetched fresh instead of read from a snapshot

    Example:
        >>> estimate_reorder_cost(3).total
        150
    """
    pages = (num_items + PAGE_SIZE - 1) // PAGE_SIZE if fetch else 0
    return QuotaEstimate(video_reorders=num_moves, list_operations=pages)


def can_afford_operation(estimate: QuotaEstimate) -> tuple[bool, str]:
    """Check if current quota allows the estimated operation.

    Returns:
        Tuple of (can_afford, message)
    """
    remaining = _tracker.remaining
    if estimate.total <= remaining:
        return True, f"Operation needs {estimate.total:,} units, {remaining:,} available."

    shortage = estimate.total - remaining
    return False, (
        f"Operation needs {estimate.total:,} units but only {remaining:,} available. "
        f"Shortage: {shortage:,} units. Progress is saved; re-run after the reset at midnight PT."
    )


def format_quota_warning(estimate: QuotaEstimate) -> str:
    """Format a user-friendly quota estimate."""
    lines = [
        f"Estimated API quota: {estimate.total:,} units",
        f"  - Moves: {estimate.video_reorders} x 50 = {estimate.video_reorders * 50:,}",
    ]
    if estimate.video_removes > 0:
        lines.append(f"  - Removals: {estimate.video_removes} x 50 = {estimate.video_removes * 50:,}")
    if estimate.list_operations > 0:
        lines.append(f"  - List pages: {estimate.list_operations} x 1 = {estimate.list_operations:,}")

    lines.append(f"Daily quota limit: {DAILY_QUOTA_LIMIT:,} units")

    if estimate.total > DAILY_QUOTA_LIMIT:
        lines.append(f"This reorder needs ~{estimate.days_required} days to complete.")
        lines.append("   Re-run the same command after the quota resets; only remaining moves are planned.")

    return "\n".join(lines)
