import hashlib
import time
from typing import Optional

DEFAULT_THUMBNAIL_FILE = "thumbnail.jpg"


def embed_url(embed_base_url: str, library_id: str, video_guid: str) -> str:
    """Player URL: https://iframe.mediadelivery.net/embed/{library}/{guid}"""
    return f"{embed_base_url.rstrip('/')}/{library_id}/{video_guid}"


def thumbnail_url(cdn_hostname: Optional[str], video_guid: str, file_name: Optional[str] = None) -> Optional[str]:
    if not cdn_hostname:
        return None
    return f"https://{cdn_hostname}/{video_guid}/{file_name or DEFAULT_THUMBNAIL_FILE}"


def sign_upload(library_id: str, api_key: str, expires_at: int, video_guid: str) -> str:
    """
    Signature Bunny's TUS endpoint expects in the AuthorizationSignature header:
    sha256(library_id + api_key + expiration + video_id), hex encoded.
    """
    data = f"{library_id}{api_key}{expires_at}{video_guid}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def upload_expiry(ttl_seconds: int, now: Optional[float] = None) -> int:
    return int(now if now is not None else time.time()) + ttl_seconds
