import logging
from datetime import datetime, timezone
from uuid import uuid4
from sqlalchemy.orm import Session

from koko_api.config.base_config import BaseConfig
from koko_api.exceptions.exceptions import (
    BadRequestError,
    ForbiddenError,
    ProviderError,
    ResourceNotFoundError,
)
from koko_api.models import MemberRole, Project, ProjectMember, ProjectStatus
from koko_api.schema import (
    CreateProjectRequest,
    DuplicateProjectRequest,
    DuplicateProjectResponse,
    ProjectDetail,
    ProjectSchema,
    UpdateProjectRequest,
)
from koko_api.services.access import can_view, get_membership
from koko_api.services.project_repository import project_repository
from koko_api.storage.bunny_client import BunnyClient

logger = logging.getLogger(__name__)


def _owner_member(project_id: str, user_id: str) -> ProjectMember:
    return ProjectMember(
        id=str(uuid4()),
        project_id=project_id,
        user_id=user_id,
        role=MemberRole.OWNER,
        can_upload=True,
        can_comment=True,
        can_invite=True,
        can_delete=True,
    )


class ProjectService:

    def __init__(self, settings: BaseConfig, client: BunnyClient, db: Session):
        self._settings = settings
        self._client = client
        self._db = db

    def _get_owned(self, user_id: str, project_id: str, action: str = "modify") -> Project:
        project = project_repository.get(self._db, project_id)
        if project is None:
            raise ResourceNotFoundError("Project not found")
        if project.owner_id != user_id:
            raise ForbiddenError(f"Only the project owner can {action} this project")
        return project

    async def create(self, user_id: str, request: CreateProjectRequest) -> ProjectSchema:
        logger.debug(f"Creating project {request.name!r} for user {user_id}")

        # Fail fast: a project without a Bunny collection cannot group its videos
        collection = await self._client.create_collection(request.name)
        if collection is None:
            raise ProviderError("Failed to create video collection. Please try again.")

        project_id = str(uuid4())
        try:
            project = project_repository.create(
                self._db,
                obj_in={
                    "id": project_id,
                    "name": request.name,
                    "description": request.description,
                    "color": request.color,
                    "owner_id": user_id,
                    "bunny_collection_id": collection.guid,
                },
                commit=False,
            )
            self._db.add(_owner_member(project_id, user_id))
            self._db.commit()
        except Exception:
            self._db.rollback()
            logger.error(f"Failed to persist project {request.name!r}; Bunny collection {collection.guid} is orphaned")
            raise
        self._db.refresh(project)

        logger.info(f"Project {project_id} created with collection {collection.guid}")
        return ProjectSchema.model_validate(project)

    def get_by_id(self, user_id: str, project_id: str) -> ProjectDetail:
        project = project_repository.get_active(self._db, project_id)
        if project is None:
            raise ResourceNotFoundError("Project not found")
        if not can_view(self._db, project, user_id):
            raise ForbiddenError("You do not have access to this project")
        return ProjectDetail.model_validate(project)

    def get_all(
        self,
        user_id: str,
        status: ProjectStatus = ProjectStatus.ACTIVE,
        limit: int = 20,
        offset: int = 0,
    ) -> list[ProjectSchema]:
        if status is ProjectStatus.DELETED:
            raise BadRequestError("Deleted projects cannot be listed")
        projects = project_repository.list_for_user(self._db, user_id, status, limit, offset)
        return [ProjectSchema.model_validate(p) for p in projects]

    async def update(self, user_id: str, project_id: str, request: UpdateProjectRequest) -> ProjectSchema:
        project = self._get_owned(user_id, project_id)
        if project.status is ProjectStatus.DELETED:
            raise ResourceNotFoundError("Project not found")

        changes = request.model_dump(exclude_unset=True)
        name_changed = "name" in changes and changes["name"] != project.name
        project = project_repository.update(self._db, db_obj=project, obj_in=changes)

        if name_changed and project.bunny_collection_id:
            renamed = await self._client.update_collection_name(project.bunny_collection_id, project.name)
            if not renamed:
                logger.warning(f"Project {project_id} renamed but collection {project.bunny_collection_id} was not")

        logger.info(f"Project {project_id} updated: fields={sorted(changes)}")
        return ProjectSchema.model_validate(project)

    def archive(self, user_id: str, project_id: str) -> ProjectSchema:
        project = self._get_owned(user_id, project_id, "archive")
        if project.status is ProjectStatus.DELETED:
            raise ResourceNotFoundError("Project not found")
        if project.status is ProjectStatus.ARCHIVED:
            raise BadRequestError("Project is already archived")

        project = project_repository.update(
            self._db,
            db_obj=project,
            obj_in={"status": ProjectStatus.ARCHIVED, "archived_at": datetime.now(timezone.utc)},
        )
        logger.info(f"Project {project_id} archived by {user_id}")
        return ProjectSchema.model_validate(project)

    def restore(self, user_id: str, project_id: str) -> ProjectSchema:
        project = self._get_owned(user_id, project_id, "restore")
        if project.status is not ProjectStatus.ARCHIVED:
            raise BadRequestError("Project is not archived")

        project = project_repository.update(self._db, db_obj=project, obj_in={"status": ProjectStatus.ACTIVE})
        logger.info(f"Project {project_id} restored by {user_id}")
        return ProjectSchema.model_validate(project)

    def duplicate(self, user_id: str, project_id: str, request: DuplicateProjectRequest) -> DuplicateProjectResponse:
        """
        Copies the project settings and member list into a new active project
        owned by the caller. Videos stay with the source: a Bunny video belongs
        to exactly one local row.
        """
        source = project_repository.get_active(self._db, project_id)
        if source is None:
            raise ResourceNotFoundError("Project not found")
        if source.owner_id != user_id and get_membership(self._db, source.id, user_id) is None:
            raise ForbiddenError("Only project owner or members can duplicate this project")

        new_id = str(uuid4())
        members = []
        for member in source.members:
            if member.user_id == user_id:
                continue
            members.append(
                ProjectMember(
                    id=str(uuid4()),
                    project_id=new_id,
                    user_id=member.user_id,
                    role=member.role,
                    can_upload=member.can_upload,
                    can_comment=member.can_comment,
                    can_invite=member.can_invite,
                    can_delete=member.can_delete,
                )
            )
        members.append(_owner_member(new_id, user_id))

        try:
            project = project_repository.create(
                self._db,
                obj_in={
                    "id": new_id,
                    "name": request.name or f"Copy of {source.name}"[:100],
                    "description": source.description,
                    "color": source.color,
                    "owner_id": user_id,
                    "status": ProjectStatus.ACTIVE,
                },
                commit=False,
            )
            self._db.add_all(members)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        self._db.refresh(project)

        logger.info(f"Project {project_id} duplicated as {new_id} by {user_id}: members={len(members)}")
        return DuplicateProjectResponse(project=ProjectSchema.model_validate(project), copied_members=len(members))

    async def delete(self, user_id: str, project_id: str) -> None:
        project = self._get_owned(user_id, project_id, "delete")
        if project.status is ProjectStatus.DELETED:
            raise BadRequestError("Project is already deleted")

        project_repository.update(
            self._db,
            db_obj=project,
            obj_in={"status": ProjectStatus.DELETED, "deleted_at": datetime.now(timezone.utc)},
        )

        logger.info(f"Project {project_id} deleted by {user_id}")
