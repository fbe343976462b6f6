"""
Bunny Stream status codes and their mapping onto local video statuses.

See https://docs.bunny.net/docs/stream-webhook for the provider enumeration.
"""
import enum

from koko_api.models import VideoStatus


class BunnyStatus(enum.IntEnum):
    QUEUED = 0
    PROCESSING_PREVIEW = 1
    ENCODING = 2
    FINISHED = 3
    RESOLUTION_FINISHED = 4
    FAILED = 5
    PRESIGNED_UPLOAD_STARTED = 6
    PRESIGNED_UPLOAD_FINISHED = 7
    PRESIGNED_UPLOAD_FAILED = 8
    CAPTIONS_GENERATED = 9
    TITLE_DESCRIPTION_GENERATED = 10


class EventKind(enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    IGNORED = "ignored"


IN_PROGRESS_CODES = frozenset({BunnyStatus.QUEUED, BunnyStatus.PROCESSING_PREVIEW, BunnyStatus.ENCODING})
COMPLETED_CODES = frozenset({BunnyStatus.FINISHED, BunnyStatus.RESOLUTION_FINISHED})
FAILED_CODES = frozenset({BunnyStatus.FAILED, BunnyStatus.PRESIGNED_UPLOAD_FAILED})

_STATUS_MAP = {
    BunnyStatus.QUEUED: VideoStatus.PROCESSING,
    BunnyStatus.PROCESSING_PREVIEW: VideoStatus.PROCESSING,
    BunnyStatus.ENCODING: VideoStatus.PROCESSING,
    BunnyStatus.FINISHED: VideoStatus.READY,
    BunnyStatus.RESOLUTION_FINISHED: VideoStatus.READY,
    BunnyStatus.FAILED: VideoStatus.FAILED,
    BunnyStatus.PRESIGNED_UPLOAD_STARTED: VideoStatus.UPLOADING,
    BunnyStatus.PRESIGNED_UPLOAD_FINISHED: VideoStatus.PROCESSING,
    BunnyStatus.PRESIGNED_UPLOAD_FAILED: VideoStatus.FAILED,
    BunnyStatus.CAPTIONS_GENERATED: VideoStatus.PROCESSING,
    BunnyStatus.TITLE_DESCRIPTION_GENERATED: VideoStatus.PROCESSING,
}


def _as_bunny_status(code: int):
    try:
        return BunnyStatus(code)
    except ValueError:
        return None


def map_bunny_status(code: int) -> VideoStatus:
    """Unknown codes map to processing so a new provider status never stalls a video."""
    bunny_status = _as_bunny_status(code)
    if bunny_status is None:
        return VideoStatus.PROCESSING
    return _STATUS_MAP[bunny_status]


def classify_event(code: int) -> EventKind:
    bunny_status = _as_bunny_status(code)
    if bunny_status in IN_PROGRESS_CODES:
        return EventKind.IN_PROGRESS
    if bunny_status in COMPLETED_CODES:
        return EventKind.COMPLETED
    if bunny_status in FAILED_CODES:
        return EventKind.FAILED
    return EventKind.IGNORED
