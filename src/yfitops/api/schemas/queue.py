"""Queue endpoint models.

Only types and shapes are checked here. Blank URIs, empty lists and range
bounds are left to the service so the HTTP surface reports them with the
same errors as every other caller.
"""

from pydantic import BaseModel, Field


class AppendRequest(BaseModel):
    """Track URIs to append to the queue playlist."""

    uris: list[str] = Field(default_factory=list, description="spotify:track:... URIs")


class PlayNextRequest(BaseModel):
    """Block of the queue playlist to move after the current track."""

    range_start: int = Field(description="Index of the first item of the block")
    range_length: int = Field(description="Number of items in the block")
    snapshot_id: str | None = Field(
        default=None, description="Snapshot the range was computed against"
    )


class QueueTracksRequest(BaseModel):
    """Queue tracks with a placement mode."""

    uris: list[str] = Field(default_factory=list)
    mode: str = Field(default="append", description="append, next or now")
    source: str = Field(default="tracks", description="Free-form origin label")


class QueueAlbumRequest(BaseModel):
    """Placement options for queueing a whole album."""

    mode: str = Field(default="append", description="append, next or now")
    source: str = Field(default="album", description="Free-form origin label")
