from .database import Base
from sqlalchemy import (
    Column, String, ForeignKey, DateTime, Enum, func, Text, Integer, Boolean, JSON, BigInteger,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import enum
import uuid


def _uuid() -> str:
    return str(uuid.uuid4())


def _values(enum_cls):
    return [member.value for member in enum_cls]


class ProjectStatus(str, enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"



class MemberRole(str, enum.Enum):
    OWNER = "owner"
    EDITOR = "editor"
    REVIEWER = "reviewer"
    VIEWER = "viewer"



class VideoStatus(str, enum.Enum):
    UPLOADING = "uploading"
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


TERMINAL_STATUSES = (VideoStatus.READY, VideoStatus.FAILED)



class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(7), nullable=True)
    owner_id = Column(String(36), nullable=False, index=True)
    bunny_collection_id = Column(String, nullable=True)
    status = Column(
        Enum(ProjectStatus, name="project_status", values_callable=_values),
        nullable=False,
        default=ProjectStatus.ACTIVE,
    )
    video_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    archived_at = Column(DateTime(timezone=True), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    members = relationship("ProjectMember", back_populates="project", cascade="all, delete-orphan")
    videos = relationship("Video", back_populates="project", cascade="all, delete-orphan")



class ProjectMember(Base):
    __tablename__ = "project_members"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_member"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    role = Column(
        Enum(MemberRole, name="member_role", values_callable=_values),
        nullable=False,
        default=MemberRole.VIEWER,
    )
    can_upload = Column(Boolean, nullable=False, default=False)
    can_comment = Column(Boolean, nullable=False, default=True)
    can_invite = Column(Boolean, nullable=False, default=False)
    can_delete = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    project = relationship("Project", back_populates="members")



class Video(Base):
    __tablename__ = "videos"

    id = Column(String(36), primary_key=True, default=_uuid)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    uploaded_by = Column(String(36), nullable=False, index=True)

    # Bunny identity, immutable once assigned
    bunny_video_id = Column(String, nullable=False, unique=True, index=True)
    bunny_library_id = Column(String, nullable=False)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    original_file_name = Column(String, nullable=False)
    file_size = Column(BigInteger, nullable=False)
    mime_type = Column(String(100), nullable=False)

    status = Column(
        Enum(VideoStatus, name="video_status", values_callable=_values),
        nullable=False,
        default=VideoStatus.UPLOADING,
    )

    # Set together with the transition to ready
    duration = Column(Integer, nullable=True)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    fps = Column(Integer, nullable=True)
    thumbnail_url = Column(Text, nullable=True)
    streaming_url = Column(Text, nullable=True)
    processing_progress = Column(Integer, nullable=True)

    error_message = Column(Text, nullable=True)

    view_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)

    version_number = Column(Integer, nullable=False, default=1)
    parent_video_id = Column(String(36), ForeignKey("videos.id", ondelete="SET NULL"), nullable=True)
    is_current_version = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    project = relationship("Project", back_populates="videos")
