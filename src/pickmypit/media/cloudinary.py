"""
Image hosting on Cloudinary through its signed REST API.

Uploads accept ``data:image/...;base64,`` URIs (what the web client sends) or
any remote URL Cloudinary can fetch. Requests are signed with SHA-1 over the
sorted parameters plus the API secret.
"""

from __future__ import annotations

import hashlib
import re
import time
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from pickmypit.config import get_settings
from pickmypit.exceptions import ExternalServiceError

logger = structlog.get_logger()

API_BASE = "https://api.cloudinary.com/v1_1"
DATA_URI_PREFIX = "data:image/"
UNSIGNED_PARAMS = frozenset({"file", "api_key", "resource_type", "cloud_name"})

_VERSION_SEGMENT = re.compile(r"^v\d+$")


@dataclass(frozen=True)
class UploadedImage:
    url: str
    public_id: str


def is_data_uri(value: str) -> bool:
    return value.startswith(DATA_URI_PREFIX)


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """Cloudinary request signature: sha1 of ``k=v&k=v`` (sorted) + secret."""
    payload = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
    return hashlib.sha1(f"{payload}{api_secret}".encode()).hexdigest()  # noqa: S324


class CloudinaryImageHost:
    """Upload and delete images on one Cloudinary account."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        *,
        folder: str = "pickmypit",
        timeout: float = 10.0,
    ) -> None:
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def _signed(self, params: dict[str, Any]) -> dict[str, Any]:
        params = {k: v for k, v in params.items() if v not in (None, "")}
        params["timestamp"] = int(time.time())
        # the file itself is never part of the signature
        signed = {k: v for k, v in params.items() if k not in UNSIGNED_PARAMS}
        params["signature"] = sign_params(signed, self.api_secret)
        params["api_key"] = self.api_key
        return params

    async def _post(self, action: str, data: dict[str, Any]) -> dict[str, Any]:
        if not self.configured:
            raise ExternalServiceError("Image hosting is not configured")

        url = f"{API_BASE}/{self.cloud_name}/image/{action}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, data=self._signed(data))
                response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning("image_host_timeout", action=action)
            raise ExternalServiceError("Image host timed out", retryable=True) from e
        except httpx.HTTPStatusError as e:
            logger.warning("image_host_error", action=action, status_code=e.response.status_code)
            raise ExternalServiceError(f"Failed to {action} image") from e
        except httpx.HTTPError as e:
            logger.exception("image_host_failed", action=action)
            raise ExternalServiceError(f"Failed to {action} image") from e
        result: dict[str, Any] = response.json()
        return result

    async def upload(self, file: str, folder: str | None = None) -> UploadedImage:
        """Upload a data URI or remote URL and return its secure URL and public id."""
        result = await self._post("upload", {"file": file, "folder": folder or self.folder})
        image = UploadedImage(url=result["secure_url"], public_id=result["public_id"])
        logger.info("image_uploaded", public_id=image.public_id)
        return image

    async def delete(self, public_id: str) -> bool:
        """Destroy an image. Returns True when Cloudinary reports ``ok``."""
        result = await self._post("destroy", {"public_id": public_id})
        deleted = result.get("result") == "ok"
        logger.info("image_deleted", public_id=public_id, deleted=deleted)
        return deleted

    def public_id_from_url(self, url: str) -> str | None:
        """Recover the public id from a delivery URL on this account, if it is one."""
        marker = f"res.cloudinary.com/{self.cloud_name}/image/upload/"
        if not self.cloud_name or marker not in url:
            return None
        segments = url.split(marker, 1)[1].split("/")
        if segments and _VERSION_SEGMENT.match(segments[0]):
            segments = segments[1:]
        path = "/".join(segments)
        return path.rsplit(".", 1)[0] or None


def get_image_host() -> CloudinaryImageHost:
    """FastAPI dependency; tests override it with an in-memory host."""
    settings = get_settings()
    return CloudinaryImageHost(
        settings.cloudinary_cloud_name,
        settings.cloudinary_api_key,
        settings.cloudinary_api_secret,
        folder=settings.cloudinary_folder,
        timeout=settings.external_timeout_seconds,
    )
