import asyncio
import logging
from typing import Any, Optional

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from koko_api.config.base_config import BaseConfig
from koko_api.exceptions.exceptions import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)


class TranscodingMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    time_stamp: Optional[str] = Field(default=None, alias="timeStamp")
    level: Optional[int] = None
    issue_code: Optional[int] = Field(default=None, alias="issueCode")
    message: Optional[str] = None


class BunnyVideoMetadata(BaseModel):
    """Subset of Bunny's video object we rely on."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    guid: str = ""
    status: int = 0
    length: float = 0
    width: int = 0
    height: int = 0
    framerate: float = 0
    encode_progress: float = Field(default=0, alias="encodeProgress")
    thumbnail_file_name: Optional[str] = Field(default=None, alias="thumbnailFileName")
    transcoding_messages: list[TranscodingMessage] = Field(default_factory=list, alias="transcodingMessages")

    @field_validator("status", "length", "width", "height", "framerate", "encode_progress", mode="before")
    @classmethod
    def _none_to_zero(cls, value):
        return 0 if value is None else value

    @field_validator("transcoding_messages", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return [] if value is None else value

    def first_transcoding_message(self) -> Optional[str]:
        for item in self.transcoding_messages:
            if item.message:
                return item.message
        return None


class BunnyCollection(BaseModel):
    guid: str
    name: str


class BunnyClient:
    """
    Async client for the Bunny Stream API.

    create_video raises ProviderError; every other call degrades gracefully
    and reports failure through its return value.
    """

    def __init__(self, settings: BaseConfig, session: Optional[aiohttp.ClientSession] = None):
        self._settings = settings
        self._session = session
        self._owns_session = session is None
        self.base_url = settings.BUNNY_API_BASE_URL.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=settings.BUNNY_REQUEST_TIMEOUT_SECONDS)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    def _library_url(self, path: str) -> str:
        return f"{self.base_url}/library/{self._settings.BUNNY_LIBRARY_ID}/{path}"

    def _headers(self) -> dict[str, str]:
        return {
            "AccessKey": self._settings.BUNNY_API_KEY or "",
            "Accept": "application/json",
        }

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> tuple[int, Any]:
        session = self._get_session()
        async with session.request(
            method,
            self._library_url(path),
            headers=self._headers(),
            json=payload,
            timeout=self.timeout,
        ) as response:
            body = None
            if response.status < 300 and response.content_type == "application/json":
                body = await response.json()
            return response.status, body

    async def _call(self, operation: str, method: str, path: str, payload: Optional[dict] = None, **context):
        """Returns (ok, body); never raises for provider or network failures."""
        if not self._settings.bunny_configured:
            logger.error(f"Bunny {operation} skipped: BUNNY_API_KEY or BUNNY_LIBRARY_ID not configured")
            return False, None
        try:
            status, body = await self._request(method, path, payload)
        except asyncio.TimeoutError:
            logger.error(f"Bunny {operation} timed out after {self.timeout.total}s {context}")
            return False, None
        except aiohttp.ClientError as e:
            logger.error(f"Bunny {operation} network error: {e} {context}")
            return False, None

        if status >= 300:
            logger.error(f"Bunny {operation} failed with HTTP {status} {context}")
            return False, None
        return True, body

    # --- Videos ---

    async def create_video(self, title: str) -> str:
        if not self._settings.bunny_configured:
            raise ConfigurationError("Video storage is not configured.")

        ok, body = await self._call("create_video", "POST", "videos", {"title": title})
        if not ok:
            raise ProviderError("Failed to initialize video upload.")

        guid = body.get("guid") if isinstance(body, dict) else None
        if not guid:
            logger.error(f"Bunny create_video response missing guid: {body}")
            raise ProviderError("Failed to initialize video upload.")
        return guid

    async def delete_video(self, video_guid: str) -> bool:
        ok, _ = await self._call("delete_video", "DELETE", f"videos/{video_guid}", video_guid=video_guid)
        return ok

    async def fetch_video(self, video_guid: str) -> Optional[BunnyVideoMetadata]:
        ok, body = await self._call("fetch_video", "GET", f"videos/{video_guid}", video_guid=video_guid)
        if not ok or body is None:
            return None
        try:
            return BunnyVideoMetadata.model_validate(body)
        except ValidationError as e:
            logger.error(f"Bunny fetch_video returned an unexpected body for {video_guid}: {e}")
            return None

    async def add_video_to_collection(self, video_guid: str, collection_id: str) -> bool:
        ok, _ = await self._call(
            "add_video_to_collection",
            "POST",
            f"videos/{video_guid}",
            {"collectionId": collection_id},
            video_guid=video_guid,
            collection_id=collection_id,
        )
        return ok

    # --- Collections ---

    async def create_collection(self, name: str) -> Optional[BunnyCollection]:
        ok, body = await self._call("create_collection", "POST", "collections", {"name": name}, name=name)
        if not ok:
            return None
        guid = body.get("guid") if isinstance(body, dict) else None
        if not guid:
            logger.error(f"Bunny create_collection response missing guid: {body}")
            return None
        return BunnyCollection(guid=guid, name=body.get("name") or name)

    async def update_collection_name(self, collection_id: str, name: str) -> bool:
        ok, _ = await self._call(
            "update_collection_name",
            "POST",
            f"collections/{collection_id}",
            {"name": name},
            collection_id=collection_id,
        )
        return ok

