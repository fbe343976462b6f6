from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from koko_api.controllers.dependencies import (
    get_current_user_id,
    get_deletion_service,
    get_upload_service,
    get_video_service,
)
from koko_api.models import VideoStatus
from koko_api.schema import (
    ApiResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
    CreateUploadRequest,
    CreateUploadResponse,
    DeleteResponse,
    PlaybackUrlResponse,
    ProcessingStatusResponse,
    UpdateVideoMetadataRequest,
    VideoDetail,
    VideoList,
)
from koko_api.services.deletion_service import DeletionService
from koko_api.services.upload_service import UploadService
from koko_api.services.video_service import VideoService


router = APIRouter(prefix="/videos", tags=["Videos"])


@router.post("/upload", response_model=ApiResponse[CreateUploadResponse], status_code=status.HTTP_201_CREATED)
async def create_upload(
    payload: CreateUploadRequest,
    user_id: str = Depends(get_current_user_id),
    upload_service: UploadService = Depends(get_upload_service),
):
    result = await upload_service.create_upload(user_id, payload)
    return ApiResponse(success=True, message="Upload initialized successfully", data=result)


@router.get("", response_model=ApiResponse[VideoList])
async def list_videos(
    project_id: str = Query(min_length=1),
    video_status: Optional[VideoStatus] = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user_id: str = Depends(get_current_user_id),
    video_service: VideoService = Depends(get_video_service),
):
    videos = video_service.get_all(user_id, project_id, video_status, limit, offset)
    return ApiResponse(success=True, message="Videos retrieved successfully", data=videos)


@router.post("/bulk-delete", response_model=ApiResponse[BulkDeleteResponse])
async def bulk_delete_videos(
    payload: BulkDeleteRequest,
    user_id: str = Depends(get_current_user_id),
    deletion_service: DeletionService = Depends(get_deletion_service),
):
    result = await deletion_service.bulk_delete(user_id, payload.ids)
    return ApiResponse(
        success=True,
        message=f"Deleted {len(result.deleted)} of {len(payload.ids)} videos",
        data=result,
    )


@router.get("/{video_id}", response_model=ApiResponse[VideoDetail])
async def get_video(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    video_service: VideoService = Depends(get_video_service),
):
    video = video_service.get_by_id(user_id, video_id)
    return ApiResponse(success=True, message="Video retrieved successfully", data=video)


@router.patch("/{video_id}", response_model=ApiResponse[VideoDetail])
async def update_video_metadata(
    video_id: str,
    payload: UpdateVideoMetadataRequest,
    user_id: str = Depends(get_current_user_id),
    video_service: VideoService = Depends(get_video_service),
):
    video = video_service.update_metadata(user_id, video_id, payload)
    return ApiResponse(success=True, message="Video updated successfully", data=video)


@router.delete("/{video_id}", response_model=ApiResponse[DeleteResponse])
async def delete_video(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    deletion_service: DeletionService = Depends(get_deletion_service),
):
    result = await deletion_service.delete_video(user_id, video_id)
    return ApiResponse(success=True, message=f"Video {video_id} deleted successfully", data=result)


@router.get("/{video_id}/status", response_model=ApiResponse[ProcessingStatusResponse])
async def get_processing_status(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    video_service: VideoService = Depends(get_video_service),
):
    result = await video_service.get_processing_status(user_id, video_id)
    return ApiResponse(success=True, message="Processing status retrieved", data=result)


@router.get("/{video_id}/playback", response_model=ApiResponse[PlaybackUrlResponse])
async def get_playback_url(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    video_service: VideoService = Depends(get_video_service),
):
    result = video_service.get_playback_url(user_id, video_id)
    return ApiResponse(success=True, message="Playback URL retrieved", data=result)
