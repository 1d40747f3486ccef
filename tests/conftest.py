"""Shared pytest fixtures for ytorder tests."""

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from googleapiclient.errors import HttpError
from tenacity import wait_none

from ytorder.guard import RemoteGuard, Throttler
from ytorder.models import Item, Order
from ytorder.quota import QuotaTracker

# --- HTTP Error Fixtures ---


def make_http_error(status: int, reason: str = "unknown") -> HttpError:
    """Create a mock HttpError with the given status and reason.

    Args:
        status: HTTP status code (e.g., 400, 403, 404, 429, 500)
        reason: Error reason string (e.g., "quotaExceeded", "rateLimitExceeded")
    """
    resp = MagicMock()
    resp.status = status
    resp.reason = f"Error: {reason}"
    content = json.dumps({"error": {"errors": [{"reason": reason}]}}).encode()
    return HttpError(resp, content, uri="https://www.googleapis.com/youtube/v3/test")


@pytest.fixture
def quota_exceeded_error() -> HttpError:
    """Create a 403 quotaExceeded error."""
    return make_http_error(403, "quotaExceeded")


@pytest.fixture
def rate_limit_error() -> HttpError:
    """Create a 429 rateLimitExceeded error."""
    return make_http_error(429, "rateLimitExceeded")


@pytest.fixture
def not_found_error() -> HttpError:
    """Create a 404 playlistItemNotFound error."""
    return make_http_error(404, "playlistItemNotFound")


@pytest.fixture
def bad_request_error() -> HttpError:
    """Create a 400 badRequest error."""
    return make_http_error(400, "badRequest")


@pytest.fixture
def server_error() -> HttpError:
    """Create a 500 internalError error."""
    return make_http_error(500, "internalError")


# --- Guard / order fixtures ---


def make_guard(limit: int = 10_000, max_attempts: int = 3) -> RemoteGuard:
    """RemoteGuard with its own tracker, no throttling and no backoff sleeps."""
    return RemoteGuard(
        tracker=QuotaTracker(limit=limit),
        throttler=Throttler(delay_ms=0),
        max_attempts=max_attempts,
        wait=wait_none(),
    )


@pytest.fixture
def guard() -> RemoteGuard:
    return make_guard()


def make_order(ids: list[str], with_handles: bool = True) -> Order:
    """Order whose handles are "PLI_<id>"."""
    return Order(Item(id=i, handle=f"PLI_{i}" if with_handles else None, title=i.upper()) for i in ids)


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Iterator[Path]:
    """Point ~/.ytorder at a temporary directory."""
    with patch("ytorder.config.Path.home", return_value=tmp_path):
        yield tmp_path / ".ytorder"


# --- Mock Client Fixtures ---


@pytest.fixture
def mock_youtube_client() -> MagicMock:
    """Create a mock YouTube API client."""
    client = MagicMock()
    client.playlists().list().execute.return_value = {"items": []}
    client.playlistItems().list().execute.return_value = {"items": []}
    client.videos().list().execute.return_value = {"items": []}
    return client


def playlist_item_response(video_id: str, published: str = "2024-01-01T00:00:00Z") -> dict:
    """One entry of a playlistItems.list response."""
    return {
        "id": f"PLI_{video_id}",
        "snippet": {
            "title": f"Video {video_id}",
            "resourceId": {"kind": "youtube#video", "videoId": video_id},
            "publishedAt": "2024-06-01T00:00:00Z",
        },
        "contentDetails": {"videoId": video_id, "videoPublishedAt": published},
    }
