"""Configuration schema for the synchronization service."""

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def normalize_root(path: str) -> str:
    """Normalize a root path for comparison: collapse separators, drop trailing ones, casefold."""
    normalized = os.path.normpath(path.strip()).replace("\\", "/")
    if len(normalized) > 1:
        normalized = normalized.rstrip("/")
    return normalized.casefold()


class SyncConfig(BaseModel):
    """Source/target pair and polling settings.

    The JSON keys (``source``, ``target``, ``pollingInS``, ``autoStart``) are
    the aliases; the Python attribute names can be used as well.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source_root: str = Field(..., alias="source", description="Directory mirrored to the target")
    target_root: str = Field(..., alias="target", description="Directory receiving the copies")
    interval_seconds: int = Field(..., alias="pollingInS", description="Seconds between two scans")
    auto_start: bool = Field(default=False, alias="autoStart", description="Start with the user session")

    @field_validator("source_root", "target_root")
    @classmethod
    def validate_root(cls, v, info):
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} must not be empty")
        return v.strip()

    @field_validator("interval_seconds")
    @classmethod
    def validate_interval(cls, v):
        if v < 1:
            raise ValueError("Polling interval must be at least 1 second")
        return v

    @model_validator(mode="after")
    def validate_distinct_roots(self):
        if normalize_root(self.source_root) == normalize_root(self.target_root):
            raise ValueError("Source and target directories must not be identical")
        return self

    def to_file_dict(self) -> dict:
        """Serialize with the JSON key names used on disk."""
        return self.model_dump(by_alias=True)


# Written when no configuration file exists yet, for the user to fill in
CONFIG_TEMPLATE = {
    "source": "",
    "target": "",
    "pollingInS": 60,
    "autoStart": False,
}
