"""Configuration loading for ytorder.

config.toml:
    channel_id = "UCxxx"   # optional

    [oauth]
    client_id = "..."
    client_secret = "..."

    [reorder]
    planner = "minimal"    # or "naive"
    sort_by = "date"       # or "title"
    throttle_ms = 200
    quota_limit = 10000
    max_attempts = 5
"""

import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

SORT_FIELDS = ("date", "title")


class OAuthConfig(BaseModel):  # type: ignore[misc]
    """OAuth client credentials from GCP."""

    client_id: str
    client_secret: str


class ReorderConfig(BaseModel):  # type: ignore[misc]
    """Defaults for planning and applying reorders.

    Attributes:
        planner: "minimal" (keeps the longest already-ordered run) or "naive".
        sort_by: Desired order key, "date" (recording date, else publish date) or "title".
        throttle_ms: Minimum milliseconds between API writes.
        quota_limit: Daily quota units available to the project.
        max_attempts: Attempts per remote call for retryable errors.
    """

    planner: str = "minimal"
    sort_by: str = "date"
    throttle_ms: int = Field(default=200, ge=0)
    quota_limit: int = Field(default=10_000, gt=0)
    max_attempts: int = Field(default=5, ge=1)

    @field_validator("planner")  # type: ignore[untyped-decorator]
    @classmethod
    def validate_planner(cls, v: str) -> str:
        valid = {"minimal", "naive"}
        if v not in valid:
            msg = f"Planner must be one of: {', '.join(sorted(valid))}"
            raise ValueError(msg)
        return v

    @field_validator("sort_by")  # type: ignore[untyped-decorator]
    @classmethod
    def validate_sort_by(cls, v: str) -> str:
        if v not in SORT_FIELDS:
            msg = f"sort_by must be one of: {', '.join(SORT_FIELDS)}"
            raise ValueError(msg)
        return v


class Config(BaseModel):  # type: ignore[misc]
    """ytorder configuration."""

    channel_id: str | None = None
    oauth: OAuthConfig | None = None
    reorder: ReorderConfig = Field(default_factory=ReorderConfig)


def get_config_dir() -> Path:
    """Get or create config directory."""
    config_dir = Path.home() / ".ytorder"
    config_dir.mkdir(exist_ok=True)
    return config_dir


def get_snapshots_dir() -> Path:
    """Get or create the directory holding playlist snapshots."""
    snapshots_dir = get_config_dir() / "snapshots"
    snapshots_dir.mkdir(exist_ok=True)
    return snapshots_dir


def get_token_path() -> Path:
    """Get path for OAuth token cache."""
    return get_config_dir() / "token.json"


def load_config() -> Config:
    """Load configuration from ~/.ytorder/config.toml.

    A missing file yields the defaults; OAuth is only needed for live calls.
    """
    config_path = get_config_dir() / "config.toml"
    if not config_path.exists():
        return Config()
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    config: Config = Config.model_validate(data)
    return config
