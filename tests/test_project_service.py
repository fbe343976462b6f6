import logging

import pytest
from sqlalchemy.exc import SQLAlchemyError

from conftest import OWNER, add_member, make_project
from koko_api.exceptions.exceptions import (
    BadRequestError,
    ForbiddenError,
    ProviderError,
    ResourceNotFoundError,
)
from koko_api.models import MemberRole, Project, ProjectMember, ProjectStatus
from koko_api.schema import CreateProjectRequest, DuplicateProjectRequest, UpdateProjectRequest
from koko_api.services.project_service import ProjectService


@pytest.fixture
def service(settings, bunny, db):
    return ProjectService(settings, bunny, db)


async def test_create_project_with_collection_and_owner_membership(db, bunny, service):
    created = await service.create(OWNER, CreateProjectRequest(name="Campaign", color="#FF8800"))

    assert created.bunny_collection_id == "collection-1"
    assert created.owner_id == OWNER
    assert created.status is ProjectStatus.ACTIVE
    assert bunny.called("create_collection") == [("create_collection", "Campaign")]

    member = db.query(ProjectMember).filter(ProjectMember.project_id == created.id).one()
    assert member.user_id == OWNER
    assert member.role is MemberRole.OWNER
    assert member.can_upload and member.can_delete and member.can_invite


async def test_create_fails_fast_without_collection(db, bunny, service):
    bunny.collection_result = None

    with pytest.raises(ProviderError):
        await service.create(OWNER, CreateProjectRequest(name="Campaign"))

    assert db.query(Project).count() == 0


def test_get_by_id_includes_members(db, project, service):
    add_member(db, project, "viewer-1")

    detail = service.get_by_id("viewer-1", project.id)

    assert [m.user_id for m in detail.members] == ["viewer-1"]


def test_get_by_id_forbidden_for_strangers(project, service):
    with pytest.raises(ForbiddenError):
        service.get_by_id("stranger", project.id)


def test_get_all_lists_owned_and_member_projects(db, service):
    owned = make_project(db)
    shared = make_project(db, owner_id="someone-else")
    make_project(db, owner_id="someone-else")
    add_member(db, shared, OWNER)

    ids = {p.id for p in service.get_all(OWNER)}

    assert ids == {owned.id, shared.id}


async def test_rename_updates_collection(db, bunny, service):
    project = make_project(db, collection_id="collection-9")

    updated = await service.update(OWNER, project.id, UpdateProjectRequest(name="Renamed"))

    assert updated.name == "Renamed"
    assert bunny.called("update_collection_name") == [("update_collection_name", "collection-9", "Renamed")]


async def test_rename_tolerates_collection_failure(db, bunny, service):
    project = make_project(db, collection_id="collection-9")
    bunny.rename_result = False

    updated = await service.update(OWNER, project.id, UpdateProjectRequest(name="Renamed"))

    assert updated.name == "Renamed"


async def test_update_without_name_change_leaves_collection(db, bunny, service):
    project = make_project(db, collection_id="collection-9")

    await service.update(OWNER, project.id, UpdateProjectRequest(description="Q3 launch"))

    assert bunny.calls == []


async def test_only_owner_can_update(project, service):
    with pytest.raises(ForbiddenError):
        await service.update("someone-else", project.id, UpdateProjectRequest(name="Mine now"))


async def test_soft_delete(db, project, bunny, service):
    await service.delete(OWNER, project.id)

    db.expire_all()
    stored = db.get(Project, project.id)
    assert stored.status is ProjectStatus.DELETED
    assert stored.deleted_at is not None
    assert bunny.calls == []

    with pytest.raises(ResourceNotFoundError):
        service.get_by_id(OWNER, project.id)
    assert service.get_all(OWNER) == []


async def test_deleting_twice_is_rejected(project, service):
    await service.delete(OWNER, project.id)

    with pytest.raises(BadRequestError):
        await service.delete(OWNER, project.id)


async def test_delete_unknown_project(service):
    with pytest.raises(ResourceNotFoundError):
        await service.delete(OWNER, "missing")


async def test_create_logs_orphaned_collection_when_insert_fails(db, service, monkeypatch, caplog):
    def broken_create(*args, **kwargs):
        raise SQLAlchemyError("database unavailable")

    monkeypatch.setattr("koko_api.services.project_service.project_repository.create", broken_create)

    with caplog.at_level(logging.ERROR, logger="koko_api.services.project_service"):
        with pytest.raises(SQLAlchemyError):
            await service.create(OWNER, CreateProjectRequest(name="Campaign"))

    assert "collection-1" in caplog.text
    assert db.query(Project).count() == 0


async def test_update_can_clear_description(db, service):
    project = make_project(db)
    await service.update(OWNER, project.id, UpdateProjectRequest(description="Q3 launch"))

    updated = await service.update(OWNER, project.id, UpdateProjectRequest(description=None))

    assert updated.description is None
    assert updated.name == "Launch film"


def test_update_rejects_null_name():
    with pytest.raises(ValueError):
        UpdateProjectRequest(name=None)


def test_archive_and_restore(db, project, service):
    archived = service.archive(OWNER, project.id)
    assert archived.status is ProjectStatus.ARCHIVED
    assert archived.archived_at is not None

    assert service.get_all(OWNER) == []
    assert [p.id for p in service.get_all(OWNER, ProjectStatus.ARCHIVED)] == [project.id]

    restored = service.restore(OWNER, project.id)
    assert restored.status is ProjectStatus.ACTIVE
    assert [p.id for p in service.get_all(OWNER)] == [project.id]


def test_archive_twice_is_rejected(project, service):
    service.archive(OWNER, project.id)

    with pytest.raises(BadRequestError, match="already archived"):
        service.archive(OWNER, project.id)


def test_only_owner_can_archive_or_restore(db, project, service):
    add_member(db, project, "editor-1", can_upload=True)

    with pytest.raises(ForbiddenError, match="archive"):
        service.archive("editor-1", project.id)

    service.archive(OWNER, project.id)
    with pytest.raises(ForbiddenError, match="restore"):
        service.restore("editor-1", project.id)


def test_restore_requires_archived_project(project, service):
    with pytest.raises(BadRequestError, match="not archived"):
        service.restore(OWNER, project.id)


async def test_deleted_project_cannot_be_archived_or_restored(project, service):
    await service.delete(OWNER, project.id)

    with pytest.raises(ResourceNotFoundError):
        service.archive(OWNER, project.id)
    with pytest.raises(BadRequestError):
        service.restore(OWNER, project.id)


def test_get_all_paginates(db, service):
    for _ in range(3):
        make_project(db)

    assert len(service.get_all(OWNER, limit=2)) == 2
    assert len(service.get_all(OWNER, limit=2, offset=2)) == 1


def test_get_all_rejects_deleted_status(service):
    with pytest.raises(BadRequestError):
        service.get_all(OWNER, ProjectStatus.DELETED)


def test_duplicate_copies_settings_and_members(db, service):
    source = make_project(db, owner_id="someone-else", collection_id="collection-9")
    source.description = "Q3 launch"
    source.color = "#FF8800"
    db.commit()
    add_member(db, source, OWNER, can_upload=False)
    add_member(db, source, "reviewer-1", role=MemberRole.REVIEWER, can_comment=True)

    result = service.duplicate(OWNER, source.id, DuplicateProjectRequest())

    copy = result.project
    assert copy.id != source.id
    assert copy.name == "Copy of Launch film"
    assert copy.owner_id == OWNER
    assert copy.status is ProjectStatus.ACTIVE
    assert (copy.description, copy.color) == ("Q3 launch", "#FF8800")
    assert copy.bunny_collection_id is None
    assert copy.video_count == 0
    assert result.copied_members == 2

    members = {m.user_id: m for m in db.query(ProjectMember).filter(ProjectMember.project_id == copy.id)}
    assert members[OWNER].role is MemberRole.OWNER
    assert members[OWNER].can_upload and members[OWNER].can_delete
    assert members["reviewer-1"].role is MemberRole.REVIEWER


def test_duplicate_with_custom_name(project, service):
    result = service.duplicate(OWNER, project.id, DuplicateProjectRequest(name="Director's cut"))

    assert result.project.name == "Director's cut"
    assert result.copied_members == 1


def test_duplicate_forbidden_for_non_member(project, service):
    with pytest.raises(ForbiddenError):
        service.duplicate("stranger", project.id, DuplicateProjectRequest())


def test_duplicate_unknown_project(service):
    with pytest.raises(ResourceNotFoundError):
        service.duplicate(OWNER, "missing", DuplicateProjectRequest())
