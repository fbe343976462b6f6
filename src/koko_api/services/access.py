"""Project-level permission checks shared by the video and project services."""
from typing import Optional
from sqlalchemy.orm import Session

from koko_api.models import Project, ProjectMember


def get_membership(db: Session, project_id: str, user_id: str) -> Optional[ProjectMember]:
    return (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        .first()
    )


def can_view(db: Session, project: Project, user_id: str) -> bool:
    if project.owner_id == user_id:
        return True
    return get_membership(db, project.id, user_id) is not None


def can_delete_video(db: Session, project: Project, uploaded_by: str, user_id: str) -> bool:
    if uploaded_by == user_id or project.owner_id == user_id:
        return True
    membership = get_membership(db, project.id, user_id)
    return bool(membership and membership.can_delete)
