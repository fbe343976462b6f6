import itertools
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from koko_api.config.base_config import BaseConfig
from koko_api.database import Base
from koko_api.models import Project, ProjectMember, Video, VideoStatus
from koko_api.storage.bunny_client import BunnyCollection, BunnyVideoMetadata

LIBRARY_ID = "1001"
OWNER = "owner-1"


class FakeBunnyClient:
    """In-memory stand-in for BunnyClient that records every call."""

    def __init__(self):
        self._ids = itertools.count(1)
        self.calls = []
        self.metadata = {}
        self.failing_deletes = set()
        self.create_error = None
        self.assign_result = True
        self.collection_result = BunnyCollection(guid="collection-1", name="")
        self.rename_result = True

    async def create_video(self, title: str) -> str:
        self.calls.append(("create_video", title))
        if self.create_error is not None:
            raise self.create_error
        return f"guid-{next(self._ids)}"

    async def delete_video(self, video_guid: str) -> bool:
        self.calls.append(("delete_video", video_guid))
        return video_guid not in self.failing_deletes

    async def fetch_video(self, video_guid: str) -> Optional[BunnyVideoMetadata]:
        self.calls.append(("fetch_video", video_guid))
        return self.metadata.get(video_guid)

    async def add_video_to_collection(self, video_guid: str, collection_id: str) -> bool:
        self.calls.append(("add_video_to_collection", video_guid, collection_id))
        return self.assign_result

    async def create_collection(self, name: str) -> Optional[BunnyCollection]:
        self.calls.append(("create_collection", name))
        return self.collection_result

    async def update_collection_name(self, collection_id: str, name: str) -> bool:
        self.calls.append(("update_collection_name", collection_id, name))
        return self.rename_result

    def called(self, name: str) -> list:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def settings():
    return BaseConfig(
        _env_file=None,
        DATABASE_URL="sqlite://",
        BUNNY_API_KEY="test-key",
        BUNNY_LIBRARY_ID=LIBRARY_ID,
        BUNNY_CDN_HOSTNAME="cdn.example.com",
    )


@pytest.fixture
def unconfigured_settings():
    return BaseConfig(_env_file=None, DATABASE_URL="sqlite://", BUNNY_API_KEY=None, BUNNY_LIBRARY_ID=None)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def bunny():
    return FakeBunnyClient()


@pytest.fixture
def project(db):
    return make_project(db)


def make_project(db, owner_id: str = OWNER, collection_id: Optional[str] = None, video_count: int = 0) -> Project:
    project = Project(name="Launch film", owner_id=owner_id, bunny_collection_id=collection_id, video_count=video_count)
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


def add_member(db, project: Project, user_id: str, **permissions) -> ProjectMember:
    member = ProjectMember(project_id=project.id, user_id=user_id, **permissions)
    db.add(member)
    db.commit()
    return member


def make_video(
    db,
    project: Project,
    guid: str = "G",
    status: VideoStatus = VideoStatus.UPLOADING,
    uploaded_by: str = OWNER,
    count: bool = True,
) -> Video:
    video = Video(
        project_id=project.id,
        uploaded_by=uploaded_by,
        bunny_video_id=guid,
        bunny_library_id=LIBRARY_ID,
        title=f"Video {guid}",
        original_file_name=f"{guid}.mp4",
        file_size=1024,
        mime_type="video/mp4",
        status=status,
    )
    db.add(video)
    if count:
        project.video_count += 1
    db.commit()
    db.refresh(video)
    return video
