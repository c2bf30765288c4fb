"""
Profile image uploads.

``BlobStore`` is the object-storage boundary: it takes image bytes and returns
a public URL. The only implementation talks to UploadThing's REST API.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from yuki.core.config import settings
from yuki.core.errors import NotConfigured, UpstreamFailure, ValidationError

logger = logging.getLogger(__name__)

AVATAR = "avatar"
BANNER = "banner"
UPLOAD_TYPES = (AVATAR, BANNER)


@dataclass(frozen=True)
class StoredBlob:
    url: str
    key: Optional[str] = None


class BlobStore(Protocol):
    def put(self, name: str, content: bytes, content_type: str) -> StoredBlob:
        ...


def max_upload_bytes(upload_type: str) -> int:
    return settings.max_avatar_bytes if upload_type == AVATAR else settings.max_banner_bytes


def validate_upload(upload_type: Optional[str], content_type: Optional[str], size: int) -> None:
    """
    Check the upload kind, the MIME prefix and the size ceiling.

    Raises:
        ValidationError: On the first failing check
    """
    if upload_type not in UPLOAD_TYPES:
        raise ValidationError('Invalid type. Must be "avatar" or "banner"', code="INVALID_TYPE")
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError("File must be an image", code="INVALID_FILE_TYPE")
    limit = max_upload_bytes(upload_type)
    if size > limit:
        raise ValidationError(
            f"File too large. Max size: {limit // (1024 * 1024)}MB",
            code="FILE_TOO_LARGE",
        )


class UploadThingBlobStore:
    """
    Two-step UploadThing upload: ask the API for a presigned URL, then PUT
    the bytes to it.
    """

    def __init__(
        self,
        token: str | None = None,
        app_id: str | None = None,
        api_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ):
        self.token = settings.uploadthing_token if token is None else token
        self.app_id = settings.uploadthing_app_id if app_id is None else app_id
        self.api_url = (api_url or settings.uploadthing_api_url).rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)

    def put(self, name: str, content: bytes, content_type: str) -> StoredBlob:
        if not self.token or not self.app_id:
            raise NotConfigured("Upload storage not configured")

        try:
            prepared = self.client.post(
                f"{self.api_url}/v7/prepareUpload",
                headers={"x-uploadthing-api-key": self.token},
                json={
                    "fileName": name,
                    "fileSize": len(content),
                    "fileType": content_type,
                    "contentDisposition": "inline",
                    "acl": "public-read",
                },
            )
            prepared.raise_for_status()
            body = prepared.json()

            uploaded = self.client.put(
                body["url"],
                files={"file": (name, content, content_type)},
            )
            uploaded.raise_for_status()
            key = body["key"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("UploadThing upload of %s failed: %s", name, e)
            raise UpstreamFailure("Upload failed", code="UPLOAD_FAILED")

        return StoredBlob(url=f"https://{self.app_id}.ufs.sh/f/{key}", key=key)
