import pytest

from conftest import OWNER, add_member, make_project, make_video
from koko_api.exceptions.exceptions import ForbiddenError, ProviderError, ResourceNotFoundError
from koko_api.models import Project, Video
from koko_api.schema import CreateUploadRequest
from koko_api.services.deletion_service import FORBIDDEN_REASON, NOT_FOUND_REASON, DeletionService
from koko_api.services.upload_service import UploadService


@pytest.fixture
def service(settings, bunny, db):
    return DeletionService(settings, bunny, db)


def video_count(db, project) -> int:
    db.expire_all()
    return db.get(Project, project.id).video_count


async def test_delete_removes_remote_and_row(db, project, bunny, service):
    video = make_video(db, project, guid="G1")
    video_id = video.id

    response = await service.delete_video(OWNER, video_id)

    assert response.success
    assert bunny.called("delete_video") == [("delete_video", "G1")]
    assert db.get(Video, video_id) is None
    assert video_count(db, project) == 0


async def test_provider_failure_keeps_row(db, project, bunny, service):
    video = make_video(db, project, guid="G1")
    video_id = video.id
    bunny.failing_deletes.add("G1")

    with pytest.raises(ProviderError):
        await service.delete_video(OWNER, video_id)

    db.expire_all()
    assert db.get(Video, video_id) is not None
    assert video_count(db, project) == 1


async def test_delete_unknown_video(service):
    with pytest.raises(ResourceNotFoundError):
        await service.delete_video(OWNER, "missing")


async def test_uploader_may_delete_own_video(db, project, service):
    add_member(db, project, "editor-1", can_upload=True)
    video = make_video(db, project, guid="G1", uploaded_by="editor-1")

    assert (await service.delete_video("editor-1", video.id)).success


async def test_member_with_delete_permission(db, project, service):
    add_member(db, project, "moderator-1", can_delete=True)
    video = make_video(db, project, guid="G1")

    assert (await service.delete_video("moderator-1", video.id)).success


async def test_member_without_delete_permission(db, project, bunny, service):
    add_member(db, project, "viewer-1")
    video = make_video(db, project, guid="G1")

    with pytest.raises(ForbiddenError):
        await service.delete_video("viewer-1", video.id)

    assert bunny.calls == []


async def test_counter_never_goes_negative(db, project, service):
    video = make_video(db, project, guid="G1", count=False)

    await service.delete_video(OWNER, video.id)

    assert video_count(db, project) == 0


async def test_bulk_delete_partial_success(db, project, bunny, service):
    other_project = make_project(db, owner_id="someone-else")
    mine = make_video(db, project, guid="G1")
    theirs = make_video(db, other_project, guid="G2", uploaded_by="someone-else")
    mine_id, theirs_id = mine.id, theirs.id

    response = await service.bulk_delete(OWNER, [mine_id, theirs_id, "missing"])

    assert response.deleted == [mine_id]
    assert {(f.id, f.reason) for f in response.failed} == {
        (theirs_id, FORBIDDEN_REASON),
        ("missing", NOT_FOUND_REASON),
    }
    assert bunny.called("delete_video") == [("delete_video", "G1")]
    assert db.get(Video, theirs_id) is not None
    assert video_count(db, project) == 0
    assert video_count(db, other_project) == 1


async def test_bulk_delete_continues_past_provider_failure(db, project, bunny, service):
    first = make_video(db, project, guid="G1")
    second = make_video(db, project, guid="G2")
    ids = [first.id, second.id]
    bunny.failing_deletes.add("G1")

    response = await service.bulk_delete(OWNER, ids)

    assert response.deleted == ids
    assert response.failed == []
    assert db.query(Video).count() == 0
    assert video_count(db, project) == 0


async def test_bulk_delete_decrements_each_project(db, bunny, service):
    first_project = make_project(db)
    second_project = make_project(db)
    ids = [
        make_video(db, first_project, guid="A1").id,
        make_video(db, first_project, guid="A2").id,
        make_video(db, second_project, guid="B1").id,
    ]
    make_video(db, second_project, guid="B2")

    response = await service.bulk_delete(OWNER, ids)

    assert sorted(response.deleted) == sorted(ids)
    assert video_count(db, first_project) == 0
    assert video_count(db, second_project) == 1


async def test_bulk_delete_ignores_duplicate_ids(db, project, bunny, service):
    video_id = make_video(db, project, guid="G1").id
    make_video(db, project, guid="G2")

    response = await service.bulk_delete(OWNER, [video_id, video_id])

    assert response.deleted == [video_id]
    assert len(bunny.called("delete_video")) == 1
    assert video_count(db, project) == 1


async def test_bulk_delete_with_nothing_deletable(db, project, bunny, service):
    response = await service.bulk_delete(OWNER, ["a", "b"])

    assert response.deleted == []
    assert [f.reason for f in response.failed] == [NOT_FOUND_REASON, NOT_FOUND_REASON]
    assert bunny.calls == []


async def test_counter_matches_rows_across_uploads_and_deletes(db, project, bunny, settings, service):
    uploads = UploadService(settings, bunny, db)

    def upload(title):
        return uploads.create_upload(
            OWNER,
            CreateUploadRequest(
                project_id=project.id, title=title, file_name=f"{title}.mp4", file_size=10, mime_type="video/mp4"
            ),
        )

    def rows() -> int:
        return db.query(Video).filter(Video.project_id == project.id).count()

    first = await upload("one")
    second = await upload("two")
    assert video_count(db, project) == rows() == 2

    await service.delete_video(OWNER, first.video.id)
    assert video_count(db, project) == rows() == 1

    third = await upload("three")
    assert video_count(db, project) == rows() == 2

    await service.bulk_delete(OWNER, [second.video.id, third.video.id, "missing"])
    assert video_count(db, project) == rows() == 0
