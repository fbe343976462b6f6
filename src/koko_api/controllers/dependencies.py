from typing import Optional
from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from koko_api.config.base_config import BaseConfig, get_settings
from koko_api.database import get_db
from koko_api.exceptions.exceptions import UnauthorizedError
from koko_api.services.deletion_service import DeletionService
from koko_api.services.project_service import ProjectService
from koko_api.services.upload_service import UploadService
from koko_api.services.video_service import VideoService
from koko_api.services.webhook_service import WebhookReconciler
from koko_api.storage.bunny_client import BunnyClient


def get_bunny_client(request: Request) -> BunnyClient:
    return request.app.state.bunny_client


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Session handling lives in the auth gateway; it forwards the user id."""
    if not x_user_id:
        raise UnauthorizedError("Authentication required")
    return x_user_id


def get_upload_service(
    settings: BaseConfig = Depends(get_settings),
    client: BunnyClient = Depends(get_bunny_client),
    db: Session = Depends(get_db),
) -> UploadService:
    return UploadService(settings, client, db)


def get_deletion_service(
    settings: BaseConfig = Depends(get_settings),
    client: BunnyClient = Depends(get_bunny_client),
    db: Session = Depends(get_db),
) -> DeletionService:
    return DeletionService(settings, client, db)


def get_video_service(
    settings: BaseConfig = Depends(get_settings),
    client: BunnyClient = Depends(get_bunny_client),
    db: Session = Depends(get_db),
) -> VideoService:
    return VideoService(settings, client, db)


def get_project_service(
    settings: BaseConfig = Depends(get_settings),
    client: BunnyClient = Depends(get_bunny_client),
    db: Session = Depends(get_db),
) -> ProjectService:
    return ProjectService(settings, client, db)


def get_webhook_reconciler(
    settings: BaseConfig = Depends(get_settings),
    client: BunnyClient = Depends(get_bunny_client),
    db: Session = Depends(get_db),
) -> WebhookReconciler:
    return WebhookReconciler(settings, client, db)
