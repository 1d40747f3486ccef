"""YouTube API client with OAuth2 authentication."""

import json
from dataclasses import dataclass

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import Resource, build

from ytorder.config import Config, get_token_path
from ytorder.logging import logger
from ytorder.models import Item
from ytorder.quota import record_quota

SCOPES = ["https://www.googleapis.com/auth/youtube"]


def get_credentials(config: Config) -> Credentials:
    """Get or refresh OAuth2 credentials."""
    token_path = get_token_path()
    creds: Credentials | None = None

    if token_path.exists():
        with open(token_path) as f:
            token_data = json.load(f)
        creds = Credentials.from_authorized_user_info(token_data, SCOPES)

    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            from google.auth.transport.requests import Request

            creds.refresh(Request())
        else:
            if config.oauth is None:
                msg = "No OAuth credentials configured. Add [oauth] section to config.toml"
                raise ValueError(msg)
            client_config = {
                "installed": {
                    "client_id": config.oauth.client_id,
                    "client_secret": config.oauth.client_secret,
                    "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                    "token_uri": "https://oauth2.googleapis.com/token",
                    "redirect_uris": ["http://localhost"],
                }
            }
            flow = InstalledAppFlow.from_client_config(client_config, SCOPES)
            creds = flow.run_local_server(port=0)

        with open(token_path, "w") as f:
            json.dump(json.loads(creds.to_json()), f)
        token_path.chmod(0o600)

    return creds


def get_youtube_client(config: Config) -> Resource:
    """Get authenticated YouTube API client."""
    creds = get_credentials(config)
    return build("youtube", "v3", credentials=creds)


def get_playlist_title(client: Resource, playlist_id: str) -> str:
    """Get a playlist's title. (1 quota unit)"""
    response = client.playlists().list(part="snippet", id=playlist_id).execute()
    record_quota("playlists.list")
    if not response["items"]:
        raise ValueError(f"Playlist not found: {playlist_id}")
    title: str = response["items"][0]["snippet"]["title"]
    return title


def _chunk_video_ids(video_ids: list[str], chunk_size: int = 50) -> list[list[str]]:
    return [video_ids[i : i + chunk_size] for i in range(0, len(video_ids), chunk_size)]


def get_recording_dates(client: Resource, video_ids: list[str]) -> dict[str, str]:
    """Map video ID to its recording date, for videos that have one. (1 unit per 50 videos)"""
    dates: dict[str, str] = {}
    for chunk in _chunk_video_ids(list(dict.fromkeys(video_ids))):
        response = (
            client.videos()
            .list(part="recordingDetails", id=",".join(chunk), maxResults=len(chunk))
            .execute()
        )
        record_quota("videos.list")
        for video in response.get("items", []):
            recorded = video.get("recordingDetails", {}).get("recordingDate")
            if recorded:
                dates[video["id"]] = recorded
    return dates


def get_playlist_items(
    client: Resource, playlist_id: str, with_recording_dates: bool = True
) -> list[Item]:
    """Get all playlist items in playlist order, with their playlistItem IDs as handles.

    The result may contain the same video more than once.
    """
    items: list[Item] = []
    page_token = None

    while True:
        response = (
            client.playlistItems()
            .list(
                part="snippet,contentDetails",
                playlistId=playlist_id,
                maxResults=50,
                pageToken=page_token,
            )
            .execute()
        )
        record_quota("playlistItems.list")

        for entry in response["items"]:
            snippet = entry["snippet"]
            details = entry.get("contentDetails", {})
            items.append(
                Item(
                    id=snippet["resourceId"]["videoId"],
                    handle=entry["id"],
                    title=snippet.get("title", ""),
                    published_at=details.get("videoPublishedAt") or snippet.get("publishedAt"),
                    position=len(items),
                )
            )

        page_token = response.get("nextPageToken")
        if not page_token:
            break

    if with_recording_dates and items:
        recorded = get_recording_dates(client, [item.id for item in items])
        for item in items:
            item.recorded_at = recorded.get(item.id)

    logger.debug("Fetched {} items from playlist {}", len(items), playlist_id)
    return items


def update_item_position(
    client: Resource,
    playlist_id: str,
    handle: str,
    video_id: str,
    position: int,
) -> None:
    """Move a playlist item to a new zero-based position. (50 quota units)"""
    body = {
        "id": handle,
        "snippet": {
            "playlistId": playlist_id,
            "resourceId": {"kind": "youtube#video", "videoId": video_id},
            "position": position,
        },
    }
    client.playlistItems().update(part="snippet", body=body).execute()


def remove_playlist_item(client: Resource, handle: str) -> None:
    """Remove an entry from a playlist by playlistItem ID. (50 quota units)"""
    client.playlistItems().delete(id=handle).execute()


@dataclass
class YouTubeMover:
    """Remote relocation primitive for one playlist."""

    client: Resource
    playlist_id: str

    def __call__(self, item: Item, position: int) -> None:
        if not item.handle:
            raise ValueError(f"Video {item.id} has no playlist item handle")
        update_item_position(self.client, self.playlist_id, item.handle, item.id, position)
