from typing import Optional
from sqlalchemy import case, or_, select
from sqlalchemy.orm import Session

from koko_api.models import Project, ProjectMember, ProjectStatus
from koko_api.services.base_service import BaseService


class ProjectRepository(BaseService[Project]):

    def get_active(self, db: Session, project_id: str) -> Optional[Project]:
        return (
            db.query(Project)
            .filter(Project.id == project_id, Project.status != ProjectStatus.DELETED)
            .first()
        )

    def list_for_user(
        self,
        db: Session,
        user_id: str,
        status: ProjectStatus = ProjectStatus.ACTIVE,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Project]:
        """Owned and member projects in one status, newest first."""
        member_projects = select(ProjectMember.project_id).where(ProjectMember.user_id == user_id)
        return (
            db.query(Project)
            .filter(
                Project.status == status,
                or_(Project.owner_id == user_id, Project.id.in_(member_projects)),
            )
            .order_by(Project.created_at.desc(), Project.id)
            .offset(offset)
            .limit(limit)
            .all()
        )

    def increment_video_count(self, db: Session, project_id: str, count: int = 1) -> None:
        db.query(Project).filter(Project.id == project_id).update(
            {Project.video_count: Project.video_count + count},
            synchronize_session=False,
        )

    def decrement_video_count(self, db: Session, project_id: str, count: int = 1) -> None:
        """Evaluated by the store and clamped at zero; caller commits."""
        db.query(Project).filter(Project.id == project_id).update(
            {
                Project.video_count: case(
                    (Project.video_count >= count, Project.video_count - count),
                    else_=0,
                )
            },
            synchronize_session=False,
        )


project_repository = ProjectRepository(Project)
