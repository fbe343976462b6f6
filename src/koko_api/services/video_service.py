import logging
from typing import Optional
from sqlalchemy.orm import Session

from koko_api.config.base_config import BaseConfig
from koko_api.exceptions.exceptions import (
    BadRequestError,
    ConfigurationError,
    ForbiddenError,
    ProviderError,
    ResourceNotFoundError,
)
from koko_api.models import Project, Video, VideoStatus
from koko_api.schema import (
    PlaybackUrlResponse,
    ProcessingStatusResponse,
    UpdateVideoMetadataRequest,
    VideoDetail,
    VideoList,
    VideoSummary,
)
from koko_api.services.access import can_view
from koko_api.services.project_repository import project_repository
from koko_api.services.status import map_bunny_status
from koko_api.services.video_repository import video_repository
from koko_api.storage.bunny_client import BunnyClient
from koko_api.storage.url_builder import embed_url

logger = logging.getLogger(__name__)


class VideoService:
    """Read and metadata-edit operations. Lifecycle fields are left to the webhook reconciler."""

    def __init__(self, settings: BaseConfig, client: BunnyClient, db: Session):
        self._settings = settings
        self._client = client
        self._db = db

    def _get_video_with_project(self, video_id: str) -> tuple[Video, Project]:
        row = (
            self._db.query(Video, Project)
            .join(Project, Video.project_id == Project.id)
            .filter(Video.id == video_id)
            .first()
        )
        if row is None:
            raise ResourceNotFoundError("Video not found")
        return row

    def _get_viewable(self, user_id: str, video_id: str) -> tuple[Video, Project]:
        video, project = self._get_video_with_project(video_id)
        if video.uploaded_by != user_id and not can_view(self._db, project, user_id):
            raise ForbiddenError("You do not have access to this video")
        return video, project

    def get_by_id(self, user_id: str, video_id: str) -> VideoDetail:
        video, _ = self._get_viewable(user_id, video_id)
        return VideoDetail.model_validate(video)

    def get_all(
        self,
        user_id: str,
        project_id: str,
        status: Optional[VideoStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> VideoList:
        project = project_repository.get_active(self._db, project_id)
        if project is None:
            raise ResourceNotFoundError("Project not found")
        if not can_view(self._db, project, user_id):
            raise ForbiddenError("You do not have access to this project")

        videos, total = video_repository.list_for_project(self._db, project_id, status, limit, offset)
        return VideoList(videos=[VideoSummary.model_validate(v) for v in videos], total=total)

    def update_metadata(self, user_id: str, video_id: str, request: UpdateVideoMetadataRequest) -> VideoDetail:
        video, project = self._get_video_with_project(video_id)
        if video.uploaded_by != user_id and project.owner_id != user_id:
            raise ForbiddenError("Only the uploader or project owner can edit this video")

        changes = request.model_dump(exclude_unset=True)
        video = video_repository.update(self._db, db_obj=video, obj_in=changes)
        logger.info(f"Video {video_id} metadata updated: fields={sorted(changes)}")
        return VideoDetail.model_validate(video)

    async def get_processing_status(self, user_id: str, video_id: str) -> ProcessingStatusResponse:
        if not self._settings.bunny_configured:
            raise ConfigurationError("Video service is not configured.")

        video, _ = self._get_viewable(user_id, video_id)

        metadata = await self._client.fetch_video(video.bunny_video_id)
        if metadata is None:
            raise ProviderError("Failed to fetch video status.")

        status = map_bunny_status(metadata.status)
        error_message = None
        if status is VideoStatus.FAILED:
            error_message = metadata.first_transcoding_message() or "Video processing failed"

        resolution = None
        if metadata.width > 0 and metadata.height > 0:
            resolution = f"{metadata.width}x{metadata.height}"

        duration = round(metadata.length) if metadata.length > 0 else None
        progress = round(metadata.encode_progress) if status is VideoStatus.PROCESSING else None

        logger.info(f"Processing status for video {video_id}: status={status.value} progress={progress}")
        return ProcessingStatusResponse(
            status=status,
            progress=progress,
            error_message=error_message,
            resolution=resolution,
            duration=duration,
        )

    def get_playback_url(self, user_id: str, video_id: str) -> PlaybackUrlResponse:
        video, _ = self._get_viewable(user_id, video_id)
        if video.status is not VideoStatus.READY:
            raise BadRequestError(f"Video is not ready for playback (status: {video.status.value})")

        playback_url = video.streaming_url or embed_url(
            self._settings.BUNNY_EMBED_BASE_URL, video.bunny_library_id, video.bunny_video_id
        )
        return PlaybackUrlResponse(playback_url=playback_url, thumbnail_url=video.thumbnail_url)
