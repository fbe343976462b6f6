import logging
from uuid import uuid4
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from koko_api.config.base_config import BaseConfig
from koko_api.exceptions.exceptions import ConfigurationError, ForbiddenError, ResourceNotFoundError
from koko_api.models import VideoStatus
from koko_api.schema import (
    CreateUploadRequest,
    CreateUploadResponse,
    UploadedVideo,
    UploadHeaders,
    UploadInstructions,
    UploadMetadata,
)
from koko_api.services.access import get_membership
from koko_api.services.project_repository import project_repository
from koko_api.services.video_repository import video_repository
from koko_api.storage.bunny_client import BunnyClient
from koko_api.storage.url_builder import sign_upload, upload_expiry

logger = logging.getLogger(__name__)


class UploadService:

    def __init__(self, settings: BaseConfig, client: BunnyClient, db: Session):
        self._settings = settings
        self._client = client
        self._db = db

    async def create_upload(self, user_id: str, request: CreateUploadRequest) -> CreateUploadResponse:
        logger.debug(f"Creating upload: user={user_id} project={request.project_id} file={request.file_name}")

        if not self._settings.bunny_configured:
            logger.error("Upload rejected: Bunny Stream API is not configured")
            raise ConfigurationError("Video storage is not configured.")

        project = project_repository.get_active(self._db, request.project_id)
        if project is None:
            raise ResourceNotFoundError("Project not found")

        if project.owner_id != user_id:
            membership = get_membership(self._db, project.id, user_id)
            if membership is None:
                raise ForbiddenError("You do not have access to this project")
            if not membership.can_upload:
                raise ForbiddenError("You do not have permission to upload videos")

        bunny_video_id = await self._client.create_video(request.title)
        library_id = self._settings.BUNNY_LIBRARY_ID

        try:
            video = video_repository.create(
                self._db,
                obj_in={
                    "id": str(uuid4()),
                    "project_id": project.id,
                    "uploaded_by": user_id,
                    "bunny_video_id": bunny_video_id,
                    "bunny_library_id": library_id,
                    "title": request.title,
                    "description": request.description,
                    "tags": request.tags or [],
                    "original_file_name": request.file_name,
                    "file_size": request.file_size,
                    "mime_type": request.mime_type,
                    "status": VideoStatus.UPLOADING,
                },
                commit=False,
            )
            project_repository.increment_video_count(self._db, project.id)
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.error(f"Failed to persist video for bunny_video_id={bunny_video_id}; removing it from Bunny")
            await self._client.delete_video(bunny_video_id)
            raise
        video_id = video.id

        if project.bunny_collection_id:
            assigned = await self._client.add_video_to_collection(bunny_video_id, project.bunny_collection_id)
            if not assigned:
                logger.warning(
                    f"Video {video_id} could not be added to collection {project.bunny_collection_id}; "
                    "continuing without collection"
                )

        expires_at = upload_expiry(self._settings.UPLOAD_SIGNATURE_TTL_SECONDS)
        signature = sign_upload(library_id, self._settings.BUNNY_API_KEY, expires_at, bunny_video_id)

        logger.info(f"Upload initialized: video={video_id} bunny_video_id={bunny_video_id}")

        return CreateUploadResponse(
            video=UploadedVideo(id=video_id, bunny_video_id=bunny_video_id, status=VideoStatus.UPLOADING),
            upload=UploadInstructions(
                endpoint=self._settings.BUNNY_TUS_ENDPOINT,
                headers=UploadHeaders(
                    AuthorizationSignature=signature,
                    AuthorizationExpire=expires_at,
                    VideoId=bunny_video_id,
                    LibraryId=library_id,
                ),
                metadata=UploadMetadata(filetype=request.mime_type, title=request.title),
            ),
        )
