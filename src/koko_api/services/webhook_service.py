"""
Bunny Stream webhook reconciliation.

Bunny delivers status events at least once and in no guaranteed order. Each
event is checked against the current row on arrival: once a video is ready
or failed it is never touched again, so duplicates and late events are safe
to replay.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from koko_api.config.base_config import BaseConfig
from koko_api.models import TERMINAL_STATUSES, VideoStatus
from koko_api.schema import BunnyWebhookPayload
from koko_api.services.status import EventKind, classify_event
from koko_api.services.video_repository import video_repository
from koko_api.storage.bunny_client import BunnyClient, BunnyVideoMetadata
from koko_api.storage.url_builder import embed_url, thumbnail_url

logger = logging.getLogger(__name__)

ENCODING_FAILED_MESSAGE = "Video encoding failed"
METADATA_UNAVAILABLE_MESSAGE = "Failed to retrieve video metadata"


@dataclass(frozen=True)
class ReconcileResult:
    success: bool
    message: str


TERMINAL_RESULT = ReconcileResult(True, "Video already in terminal state")


class Action(enum.Enum):
    SKIP_TERMINAL = "skip_terminal"
    MARK_PROCESSING = "mark_processing"
    COMPLETE = "complete"
    FAIL = "fail"
    IGNORE = "ignore"


@dataclass(frozen=True)
class Transition:
    action: Action
    target: Optional[VideoStatus] = None


def decide(current: VideoStatus, code: int) -> Transition:
    """What an event with Bunny status `code` does to a video currently in `current`."""
    if current in TERMINAL_STATUSES:
        return Transition(Action.SKIP_TERMINAL)

    kind = classify_event(code)
    if kind is EventKind.IN_PROGRESS:
        return Transition(Action.MARK_PROCESSING, VideoStatus.PROCESSING)
    if kind is EventKind.COMPLETED:
        # ready only if metadata can be fetched, failed otherwise
        return Transition(Action.COMPLETE, VideoStatus.READY)
    if kind is EventKind.FAILED:
        return Transition(Action.FAIL, VideoStatus.FAILED)
    return Transition(Action.IGNORE)


def ready_values(settings: BaseConfig, video_guid: str, metadata: BunnyVideoMetadata) -> dict[str, Any]:
    return {
        "status": VideoStatus.READY,
        "duration": round(metadata.length),
        "width": metadata.width,
        "height": metadata.height,
        "fps": round(metadata.framerate),
        "thumbnail_url": thumbnail_url(settings.BUNNY_CDN_HOSTNAME, video_guid, metadata.thumbnail_file_name),
        "streaming_url": embed_url(settings.BUNNY_EMBED_BASE_URL, settings.BUNNY_LIBRARY_ID, video_guid),
        "processing_progress": 100,
        "error_message": None,
    }


def failed_values(message: str) -> dict[str, Any]:
    return {"status": VideoStatus.FAILED, "error_message": message}


class WebhookReconciler:

    def __init__(self, settings: BaseConfig, client: BunnyClient, db: Session):
        self._settings = settings
        self._client = client
        self._db = db

    async def handle(self, payload: BunnyWebhookPayload) -> ReconcileResult:
        guid = payload.VideoGuid
        logger.info(
            f"Received Bunny webhook: video_guid={guid} status={payload.Status} library_id={payload.VideoLibraryId}"
        )

        if not self._settings.bunny_configured:
            logger.error("Bunny webhook rejected: Bunny API not configured")
            return ReconcileResult(False, "Bunny API not configured")

        if str(payload.VideoLibraryId) != self._settings.BUNNY_LIBRARY_ID:
            logger.warning(
                f"Bunny webhook library mismatch: expected={self._settings.BUNNY_LIBRARY_ID} "
                f"received={payload.VideoLibraryId}"
            )
            return ReconcileResult(False, "Library ID mismatch")

        row = video_repository.get_status_by_bunny_id(self._db, guid)
        if row is None:
            logger.warning(f"Bunny webhook for unknown video: video_guid={guid}")
            return ReconcileResult(False, "Video not found")
        video_id, current_status = row

        transition = decide(current_status, payload.Status)

        if transition.action is Action.SKIP_TERMINAL:
            logger.info(f"Video {video_id} already {current_status.value}; ignoring status {payload.Status}")
            return TERMINAL_RESULT

        if transition.action is Action.MARK_PROCESSING:
            if not self._write(guid, {"status": VideoStatus.PROCESSING}):
                return TERMINAL_RESULT
            logger.info(f"Video {video_id} is processing")
            return ReconcileResult(True, "Video status updated to processing")

        if transition.action is Action.COMPLETE:
            return await self._complete(video_id, guid)

        if transition.action is Action.FAIL:
            return await self._fail(video_id, guid)

        logger.debug(f"Ignoring Bunny webhook status {payload.Status} for video {video_id}")
        return ReconcileResult(True, "Webhook status ignored")

    async def _complete(self, video_id: str, guid: str) -> ReconcileResult:
        metadata = await self._client.fetch_video(guid)
        if metadata is None:
            if not self._write(guid, failed_values(METADATA_UNAVAILABLE_MESSAGE)):
                return TERMINAL_RESULT
            logger.error(f"Video {video_id} finished encoding but metadata could not be fetched; marked failed")
            return ReconcileResult(True, "Video marked as failed: metadata unavailable")

        values = ready_values(self._settings, guid, metadata)
        if not self._write(guid, values):
            return TERMINAL_RESULT
        logger.info(
            f"Video {video_id} is ready: duration={values['duration']} "
            f"resolution={metadata.width}x{metadata.height} fps={values['fps']}"
        )
        return ReconcileResult(True, "Video is ready")

    async def _fail(self, video_id: str, guid: str) -> ReconcileResult:
        # The diagnostic fetch is best effort; the video is failed either way.
        metadata = await self._client.fetch_video(guid)
        message = None
        if metadata is not None:
            message = metadata.first_transcoding_message()
        else:
            logger.warning(f"Could not fetch diagnostics for failed video {video_id}")

        if not self._write(guid, failed_values(message or ENCODING_FAILED_MESSAGE)):
            return TERMINAL_RESULT
        logger.error(f"Video {video_id} encoding failed: {message or ENCODING_FAILED_MESSAGE}")
        return ReconcileResult(True, "Video marked as failed")

    def _write(self, guid: str, values: dict[str, Any]) -> bool:
        """False when the row turned terminal after it was read."""
        updated = video_repository.apply_webhook_update(self._db, guid, values)
        if updated == 0:
            logger.info(f"Video {guid} reached a terminal state concurrently; update skipped")
            return False
        return True
