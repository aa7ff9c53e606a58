"""Queue engine: hidden playlist resolution, batch append and reorder."""

from yfitops.application.services.queue.batch_append import (
    BATCH_SIZE,
    BatchAppendEngine,
    chunked,
    normalize_uris,
)
from yfitops.application.services.queue.playback_context import PlaybackContextResolver
from yfitops.application.services.queue.playlist_resolver import QueuePlaylistResolver
from yfitops.application.services.queue.reorder import ReorderEngine, compute_insert_before

__all__ = [
    "BATCH_SIZE",
    "BatchAppendEngine",
    "PlaybackContextResolver",
    "QueuePlaylistResolver",
    "ReorderEngine",
    "chunked",
    "compute_insert_before",
    "normalize_uris",
]
