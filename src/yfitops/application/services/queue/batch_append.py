"""Append track URIs to a playlist in API-sized batches."""

import logging
from collections.abc import Iterable, Iterator, Sequence

from yfitops.application.services.session_manager import SessionManager
from yfitops.domain.dtos import AppendResult
from yfitops.domain.exceptions import ExternalServiceError, ValidationError
from yfitops.domain.ports import ICatalogClient

logger = logging.getLogger(__name__)

BATCH_SIZE = 100


def normalize_uris(uris: Iterable[object] | None) -> list[str]:
    """Trim URIs and drop blanks/non-strings. Order and repeats are kept."""
    if uris is None:
        return []
    trimmed = (uri.strip() if isinstance(uri, str) else "" for uri in uris)
    return [uri for uri in trimmed if uri]


def chunked(items: Sequence[str], size: int) -> Iterator[list[str]]:
    """Yield consecutive slices of at most ``size`` items."""
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


class BatchAppendEngine:
    """Appends tracks to the tail of a playlist.

    Hey future me - this is at-least-once! If batch 3 of 5 fails, batches 1-2 stay
    in the playlist and we raise. A caller retry may append them twice; the queue
    playlist tolerates duplicates so we don't try to undo anything.
    """

    def __init__(self, client: ICatalogClient, session: SessionManager) -> None:
        self._client = client
        self._session = session

    async def append_tracks(
        self, playlist_id: str, uris: Iterable[object] | None
    ) -> AppendResult:
        """Append uris (in order, repeats allowed) to the playlist.

        Returns:
            AppendResult with range_start = playlist total before the append

        Raises:
            ValidationError: If playlist_id is blank
            AuthenticationError: If there is no valid session
            ExternalServiceError: If reading the total or any batch fails
        """
        if not playlist_id or not playlist_id.strip():
            raise ValidationError("A playlist ID is required.")

        filtered = normalize_uris(uris)
        if not filtered:
            return AppendResult(
                playlist_id=playlist_id,
                appended_count=0,
                range_start=None,
                range_length=0,
                snapshot_id=None,
            )

        access_token = await self._session.require_access_token()
        playlist = await self._client.get_playlist(
            playlist_id, access_token, fields="id,uri,snapshot_id,tracks(total)"
        )
        range_start = playlist.total_tracks

        batches = list(chunked(filtered, BATCH_SIZE))
        snapshot_id: str | None = None
        appended = 0
        for number, batch in enumerate(batches, start=1):
            try:
                snapshot_id = await self._client.add_tracks_to_playlist(
                    playlist_id, batch, access_token
                )
            except ExternalServiceError as e:
                logger.error(
                    "Append to playlist %s failed at batch %d/%d (%d tracks already appended, status=%s)",
                    playlist_id,
                    number,
                    len(batches),
                    appended,
                    e.http_status,
                )
                raise
            appended += len(batch)

        logger.info(
            "Appended %d tracks to playlist %s in %d batch(es) starting at index %d",
            appended,
            playlist_id,
            len(batches),
            range_start,
        )
        return AppendResult(
            playlist_id=playlist_id,
            appended_count=appended,
            range_start=range_start,
            range_length=appended,
            snapshot_id=snapshot_id,
        )
