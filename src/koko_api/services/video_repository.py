from typing import Any, Optional
from sqlalchemy.orm import Session

from koko_api.models import TERMINAL_STATUSES, Video, VideoStatus
from koko_api.services.base_service import BaseService


class VideoRepository(BaseService[Video]):

    def get_status_by_bunny_id(self, db: Session, bunny_video_id: str) -> Optional[tuple[str, VideoStatus]]:
        """Reads (id, status) straight from the table, never from the identity map."""
        row = (
            db.query(Video.id, Video.status)
            .filter(Video.bunny_video_id == bunny_video_id)
            .first()
        )
        return (row.id, row.status) if row else None

    def apply_webhook_update(self, db: Session, bunny_video_id: str, values: dict[str, Any]) -> int:
        """
        Single-row update keyed by the Bunny guid. Rows already in a terminal
        status are excluded so a late event can never regress them.
        """
        updated = (
            db.query(Video)
            .filter(Video.bunny_video_id == bunny_video_id, Video.status.notin_(TERMINAL_STATUSES))
            .update(values, synchronize_session=False)
        )
        db.commit()
        return updated

    def list_for_project(
        self,
        db: Session,
        project_id: str,
        status: Optional[VideoStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Video], int]:
        query = db.query(Video).filter(Video.project_id == project_id)
        if status is not None:
            query = query.filter(Video.status == status)
        total = query.count()
        videos = query.order_by(Video.created_at.desc(), Video.id).offset(offset).limit(limit).all()
        return videos, total


video_repository = VideoRepository(Video)
