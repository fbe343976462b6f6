from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, StringConstraints, model_validator
from typing import Annotated, Optional, Generic, TypeVar
from koko_api.models import MemberRole, ProjectStatus, VideoStatus


Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Tag = Annotated[str, StringConstraints(max_length=50)]
ProjectName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
HexColor = Annotated[str, StringConstraints(pattern=r"^#[0-9A-Fa-f]{6}$")]


############################################################

class CreateUploadRequest(BaseModel):
    project_id: str = Field(min_length=1)
    title: Title
    description: Optional[str] = Field(default=None, max_length=2000)
    tags: Optional[list[Tag]] = Field(default=None, max_length=10)
    file_name: str = Field(min_length=1)
    file_size: int = Field(gt=0)
    mime_type: str = Field(pattern=r"^video/")


class UploadedVideo(BaseModel):
    id: str
    bunny_video_id: str
    status: VideoStatus


class UploadHeaders(BaseModel):
    AuthorizationSignature: str
    AuthorizationExpire: int
    VideoId: str
    LibraryId: str


class UploadMetadata(BaseModel):
    filetype: str
    title: str


class UploadInstructions(BaseModel):
    endpoint: str
    headers: UploadHeaders
    metadata: UploadMetadata


class CreateUploadResponse(BaseModel):
    video: UploadedVideo
    upload: UploadInstructions


############################################################

class VideoSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    uploaded_by: str
    bunny_video_id: str
    title: str
    thumbnail_url: Optional[str] = None
    duration: Optional[int] = None
    status: VideoStatus
    view_count: int = 0
    created_at: Optional[datetime] = None


class VideoDetail(VideoSummary):
    bunny_library_id: str
    description: Optional[str] = None
    tags: list[str] = []
    original_file_name: str
    file_size: int
    mime_type: str
    width: Optional[int] = None
    height: Optional[int] = None
    fps: Optional[int] = None
    processing_progress: Optional[int] = None
    error_message: Optional[str] = None
    streaming_url: Optional[str] = None
    comment_count: int = 0
    version_number: int = 1
    parent_video_id: Optional[str] = None
    is_current_version: bool = True
    updated_at: Optional[datetime] = None


class VideoList(BaseModel):
    videos: list[VideoSummary]
    total: int


class UpdateVideoMetadataRequest(BaseModel):
    title: Optional[Title] = None
    description: Optional[str] = Field(default=None, max_length=2000)
    tags: Optional[list[Tag]] = Field(default=None, max_length=10)

    @model_validator(mode="after")
    def check_fields(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        # description may be cleared with null, title and tags may not
        for field in ("title", "tags"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class ProcessingStatusResponse(BaseModel):
    status: VideoStatus
    progress: Optional[int] = None
    error_message: Optional[str] = None
    resolution: Optional[str] = None
    duration: Optional[int] = None


class PlaybackUrlResponse(BaseModel):
    playback_url: str
    thumbnail_url: Optional[str] = None


class DeleteResponse(BaseModel):
    success: bool


class BulkDeleteRequest(BaseModel):
    ids: list[Annotated[str, StringConstraints(min_length=1)]] = Field(min_length=1, max_length=50)


class BulkDeleteFailure(BaseModel):
    id: str
    reason: str


class BulkDeleteResponse(BaseModel):
    deleted: list[str]
    failed: list[BulkDeleteFailure]


############################################################

class CreateProjectRequest(BaseModel):
    name: ProjectName
    description: Optional[str] = Field(default=None, max_length=1000)
    color: Optional[HexColor] = None


class UpdateProjectRequest(BaseModel):
    name: Optional[ProjectName] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    color: Optional[HexColor] = None

    @model_validator(mode="after")
    def check_fields(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        if "name" in self.model_fields_set and self.name is None:
            raise ValueError("name cannot be null")
        return self


class DuplicateProjectRequest(BaseModel):
    name: Optional[ProjectName] = None


class ProjectSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    owner_id: str
    bunny_collection_id: Optional[str] = None
    status: ProjectStatus
    video_count: int
    comment_count: int
    created_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectMemberSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    role: MemberRole
    can_upload: bool
    can_comment: bool
    can_invite: bool
    can_delete: bool


class ProjectDetail(ProjectSchema):
    members: list[ProjectMemberSchema] = []


class DuplicateProjectResponse(BaseModel):
    project: ProjectSchema
    copied_members: int


############################################################

class BunnyWebhookPayload(BaseModel):
    """Body Bunny Stream posts to the webhook endpoint."""
    VideoLibraryId: StrictInt
    VideoGuid: StrictStr
    Status: StrictInt




T = TypeVar('T')


class ApiResponse(BaseModel, Generic[T]):
    """Standard API response wrapper"""
    success: bool
    message: str
    data: Optional[T] = None
    error: Optional[str] = None
