import logging
from collections import Counter
from sqlalchemy.orm import Session

from koko_api.config.base_config import BaseConfig
from koko_api.exceptions.exceptions import ForbiddenError, ProviderError, ResourceNotFoundError
from koko_api.models import Project, Video
from koko_api.schema import BulkDeleteFailure, BulkDeleteResponse, DeleteResponse
from koko_api.services.access import can_delete_video
from koko_api.services.project_repository import project_repository
from koko_api.services.video_repository import video_repository
from koko_api.storage.bunny_client import BunnyClient

logger = logging.getLogger(__name__)

NOT_FOUND_REASON = "Video not found"
FORBIDDEN_REASON = "You do not have permission to delete this video"


class DeletionService:
    """
    Hard deletes videos from Bunny and the database.

    Single deletes fail fast: if Bunny refuses, the row is kept. Bulk deletes
    log the Bunny failure and remove the row anyway so one bad item cannot
    block the batch. The remote object is orphaned in that case.
    """

    def __init__(self, settings: BaseConfig, client: BunnyClient, db: Session):
        self._settings = settings
        self._client = client
        self._db = db

    async def delete_video(self, user_id: str, video_id: str) -> DeleteResponse:
        logger.debug(f"Deleting video {video_id} for user {user_id}")

        row = (
            self._db.query(Video, Project)
            .join(Project, Video.project_id == Project.id)
            .filter(Video.id == video_id)
            .first()
        )
        if row is None:
            raise ResourceNotFoundError("Video not found")
        video, project = row

        if not can_delete_video(self._db, project, video.uploaded_by, user_id):
            raise ForbiddenError(FORBIDDEN_REASON)

        bunny_video_id = video.bunny_video_id
        if not await self._client.delete_video(bunny_video_id):
            logger.error(f"Bunny refused to delete video {video_id} (bunny_video_id={bunny_video_id}); row kept")
            raise ProviderError("Failed to delete video from storage.")

        try:
            video_repository.delete(self._db, id=video_id, commit=False)
            project_repository.decrement_video_count(self._db, project.id)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info(f"Video {video_id} deleted by {user_id}")
        return DeleteResponse(success=True)

    async def bulk_delete(self, user_id: str, ids: list[str]) -> BulkDeleteResponse:
        logger.debug(f"Bulk deleting {len(ids)} videos for user {user_id}")

        rows = (
            self._db.query(Video, Project)
            .join(Project, Video.project_id == Project.id)
            .filter(Video.id.in_(ids))
            .all()
        )
        found = {video.id: (video, project) for video, project in rows}

        failed: list[BulkDeleteFailure] = []
        deletable: list[Video] = []
        seen: set[str] = set()
        for video_id in ids:
            if video_id in seen:
                continue
            seen.add(video_id)

            entry = found.get(video_id)
            if entry is None:
                failed.append(BulkDeleteFailure(id=video_id, reason=NOT_FOUND_REASON))
                continue
            video, project = entry
            if not can_delete_video(self._db, project, video.uploaded_by, user_id):
                failed.append(BulkDeleteFailure(id=video_id, reason=FORBIDDEN_REASON))
                continue
            deletable.append(video)

        for video in deletable:
            if not await self._client.delete_video(video.bunny_video_id):
                logger.error(
                    f"Bunny delete failed during bulk delete: video={video.id} "
                    f"bunny_video_id={video.bunny_video_id}; removing row anyway"
                )

        deleted = [video.id for video in deletable]
        if deletable:
            per_project = Counter(video.project_id for video in deletable)
            try:
                for video_id in deleted:
                    video_repository.delete(self._db, id=video_id, commit=False)
                for project_id, count in per_project.items():
                    project_repository.decrement_video_count(self._db, project_id, count)
                self._db.commit()
            except Exception:
                self._db.rollback()
                raise

        logger.info(f"Bulk delete by {user_id}: deleted={len(deleted)} failed={len(failed)}")
        return BulkDeleteResponse(deleted=deleted, failed=failed)
