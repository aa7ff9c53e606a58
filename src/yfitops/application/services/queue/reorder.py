"""Move a freshly appended block so it plays right after the current track."""

import logging

from yfitops.application.services.queue.playback_context import PlaybackContextResolver
from yfitops.application.services.queue.playlist_resolver import QueuePlaylistResolver
from yfitops.application.services.session_manager import SessionManager
from yfitops.domain.dtos import ReorderResult
from yfitops.domain.exceptions import (
    ExternalServiceError,
    InvalidOperationError,
    OutOfBoundsError,
    ValidationError,
)
from yfitops.domain.ports import ICatalogClient

logger = logging.getLogger(__name__)


def _require_int(value: object, name: str, minimum: int) -> int:
    # bool is an int subclass; True must not pass as 1
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ValidationError(f"{name} must be an integer >= {minimum} (got {value!r}).")
    return value


def compute_insert_before(
    range_start: int, range_length: int, current_index: int, total: int
) -> int:
    """Insertion point for moving [range_start, range_start + range_length).

    - current_index < 0 (unresolved): front of the playlist
    - otherwise right after the current track; when the block sits before the
      current track, its removal shifts the current track down by range_length
    - result clamped to [0, total]
    """
    if current_index < 0:
        insert_before = 0
    else:
        insert_before = current_index + 1
        if range_start < current_index:
            insert_before -= range_length
    return max(0, min(insert_before, total))


class ReorderEngine:
    """Executes the "play next" move on the queue playlist."""

    def __init__(
        self,
        client: ICatalogClient,
        session: SessionManager,
        playlist_resolver: QueuePlaylistResolver,
        playback_resolver: PlaybackContextResolver,
    ) -> None:
        self._client = client
        self._session = session
        self._playlist_resolver = playlist_resolver
        self._playback_resolver = playback_resolver

    async def move_block_after_current(
        self,
        range_start: int,
        range_length: int,
        snapshot_id: str | None = None,
    ) -> ReorderResult:
        """Move the block so it lands right after the currently playing track.

        Args:
            range_start: Index of the first item of the block
            range_length: Number of items in the block
            snapshot_id: Snapshot the range was computed against (optional guard)

        Raises:
            ValidationError: Bad range_start/range_length (no network call made)
            OutOfBoundsError: Range does not fit the live playlist
            InvalidOperationError: Range contains the currently playing track
            ExternalServiceError: Snapshot mismatch or other API failure
        """
        range_start = _require_int(range_start, "range_start", 0)
        range_length = _require_int(range_length, "range_length", 1)

        handle = await self._playlist_resolver.ensure_queue_playlist()
        access_token = await self._session.require_access_token()

        # Re-read the live total, the playlist may have been edited on another device
        playlist = await self._client.get_playlist(
            handle.playlist_id, access_token, fields="id,uri,snapshot_id,tracks(total)"
        )
        total = playlist.total_tracks
        if range_start >= total or range_start + range_length > total:
            raise OutOfBoundsError(
                f"Range [{range_start}, {range_start + range_length}) is outside the "
                f"queue playlist ({total} tracks).",
                range_start=range_start,
                range_length=range_length,
                total=total,
            )

        current_index = await self._resolve_current_index(
            handle.playlist_id, handle.playlist_uri
        )

        if range_start <= current_index < range_start + range_length:
            raise InvalidOperationError(
                "Cannot move the block that contains the currently playing track."
            )

        insert_before = compute_insert_before(
            range_start, range_length, current_index, total
        )

        logger.info(
            "Reordering playlist %s: range_start=%d range_length=%d insert_before=%d current_index=%d",
            handle.playlist_id,
            range_start,
            range_length,
            insert_before,
            current_index,
        )
        try:
            new_snapshot = await self._client.reorder_tracks_in_playlist(
                handle.playlist_id,
                range_start,
                insert_before,
                access_token,
                range_length=range_length,
                snapshot_id=snapshot_id,
            )
        except ExternalServiceError as e:
            logger.error(
                "Reorder of playlist %s failed (status=%s, snapshot=%s)",
                handle.playlist_id,
                e.http_status,
                snapshot_id,
            )
            raise

        return ReorderResult(
            playlist_id=handle.playlist_id,
            range_start=range_start,
            range_length=range_length,
            insert_before=insert_before,
            current_index=current_index,
            snapshot_id=new_snapshot,
        )

    async def _resolve_current_index(self, playlist_id: str, playlist_uri: str) -> int:
        """Index of the playing track in the queue playlist, -1 when unknown."""
        context = await self._playback_resolver.get_playback_context()
        if context is None or context.context_uri != playlist_uri:
            logger.info(
                "Playback context %s is not the queue playlist; moving block to the front",
                context.context_uri if context else "missing",
            )
            return -1
        if not context.current_track_uri:
            logger.info("Queue playlist is the context but no track is playing")
            return -1

        index = await self._playback_resolver.locate_track_in_playlist(
            playlist_id, context.current_track_uri
        )
        if index is None:
            logger.info(
                "Current track %s not found in queue playlist %s",
                context.current_track_uri,
                playlist_id,
            )
            return -1
        return index
