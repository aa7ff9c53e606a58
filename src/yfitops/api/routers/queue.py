"""Queue playlist endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from yfitops.api.dependencies import get_spotify_service
from yfitops.api.schemas import (
    AppendRequest,
    PlayNextRequest,
    QueueAlbumRequest,
    QueueTracksRequest,
)
from yfitops.application.services.spotify_service import SpotifyService
from yfitops.domain.dtos import (
    AppendResult,
    PlaybackContext,
    QueueOutcome,
    QueuePlaylistHandle,
    ReorderResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/queue", tags=["Queue"])

ServiceDep = Annotated[SpotifyService, Depends(get_spotify_service)]


@router.post("/ensure")
async def ensure_queue(service: ServiceDep) -> QueuePlaylistHandle:
    """Find or create the queue playlist."""
    return await service.ensure_queue()


@router.post("/append")
async def append(body: AppendRequest, service: ServiceDep) -> AppendResult:
    """Append tracks to the end of the queue playlist."""
    return await service.queue_append(body.uris)


@router.post("/play-next")
async def play_next(body: PlayNextRequest, service: ServiceDep) -> ReorderResult:
    """Move a block of the queue right after the current track."""
    return await service.queue_play_next(
        body.range_start, body.range_length, body.snapshot_id
    )


@router.post("/tracks")
async def queue_tracks(body: QueueTracksRequest, service: ServiceDep) -> QueueOutcome:
    return await service.queue_uris(body.uris, mode=body.mode, source=body.source)


@router.post("/albums/{album_id}")
async def queue_album(
    album_id: str,
    service: ServiceDep,
    body: QueueAlbumRequest | None = None,
) -> QueueOutcome:
    options = body or QueueAlbumRequest()
    return await service.queue_album(album_id, mode=options.mode, source=options.source)


@router.get("/playback")
async def get_playback(service: ServiceDep) -> PlaybackContext | None:
    """Current playback context (null when nothing is playing)."""
    return await service.get_playback_context()
