"""Cloudinary access for the media service, built on the official SDK."""

import asyncio
import base64
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET")
CLOUDINARY_UPLOAD_PRESET = os.getenv("CLOUDINARY_UPLOAD_PRESET")

UPLOAD_FOLDER = "evea-vendors"
# 1200x600 fill with automatic quality, then automatic format negotiation
UPLOAD_TRANSFORMATION = [
    {"width": 1200, "height": 600, "crop": "fill", "quality": "auto"},
    {"fetch_format": "auto"},
]

if not CLOUDINARY_CLOUD_NAME:
    logger.error("CLOUDINARY_CLOUD_NAME is not set. Image uploads will fail.")

cloudinary.config(
    cloud_name=CLOUDINARY_CLOUD_NAME,
    api_key=CLOUDINARY_API_KEY,
    api_secret=CLOUDINARY_API_SECRET,
    secure=True,
)


class MediaUploadError(Exception):
    """Raised when the media host rejects or cannot be reached for a request."""


@dataclass
class UploadedImage:
    url: str
    public_id: str


@dataclass
class UploadOutcome:
    """Result of one file in a batch upload."""
    filename: str
    ok: bool
    url: Optional[str] = None
    public_id: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict:
        if self.ok:
            return {"filename": self.filename, "ok": True, "url": self.url, "publicId": self.public_id}
        return {"filename": self.filename, "ok": False, "reason": self.reason}


def to_data_uri(data: bytes, content_type: str) -> str:
    """Encodes raw bytes as a base64 data URI, the form the upload API accepts inline."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


class CloudinaryClient:
    """
    Uploads and deletes images through ``cloudinary.uploader``.

    Signed calls need the API key and secret. Without them, uploads fall back
    to the unsigned upload preset; deletes always need the key and secret.
    The SDK is blocking, so every call runs in a worker thread.
    """

    def __init__(
        self,
        cloud_name: Optional[str],
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        upload_preset: Optional[str] = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.upload_preset = upload_preset

    @property
    def can_sign(self) -> bool:
        return bool(self.api_key and self.api_secret)

    def _credentials(self) -> Dict[str, str]:
        return {"cloud_name": self.cloud_name, "api_key": self.api_key, "api_secret": self.api_secret}

    async def _call(self, action: str, func, *args, **options) -> Dict:
        if not self.cloud_name:
            raise MediaUploadError("CLOUDINARY_CLOUD_NAME is not configured")
        try:
            return await asyncio.to_thread(func, *args, **options)
        except CloudinaryError as exc:
            logger.error(f"Cloudinary {action} failed: {exc}")
            raise MediaUploadError(f"Media host error: {exc}") from exc

    async def upload(self, data: bytes, content_type: str) -> UploadedImage:
        data_uri = to_data_uri(data, content_type)

        if self.can_sign:
            body = await self._call(
                "upload",
                cloudinary.uploader.upload,
                data_uri,
                folder=UPLOAD_FOLDER,
                resource_type="auto",
                transformation=UPLOAD_TRANSFORMATION,
                **self._credentials(),
            )
        elif self.upload_preset:
            # Incoming transformations are not allowed on unsigned uploads; the preset carries them
            body = await self._call(
                "unsigned upload",
                cloudinary.uploader.unsigned_upload,
                data_uri,
                self.upload_preset,
                folder=UPLOAD_FOLDER,
                resource_type="auto",
                cloud_name=self.cloud_name,
            )
        else:
            raise MediaUploadError("Cloudinary credentials are not configured")

        url = body.get("secure_url")
        if not url:
            raise MediaUploadError("Media host response had no secure_url")
        logger.info(f"Uploaded image {body.get('public_id')}")
        return UploadedImage(url=url, public_id=body.get("public_id", ""))

    async def destroy(self, public_id: str) -> None:
        if not self.can_sign:
            raise MediaUploadError("API key and secret are required to delete images")

        body = await self._call("destroy", cloudinary.uploader.destroy, public_id, **self._credentials())
        if body.get("result") not in ("ok", "not found"):
            raise MediaUploadError(f"Unexpected destroy result: {body.get('result')}")
        logger.info(f"Deleted image {public_id} ({body.get('result')})")


async def upload_many(client: CloudinaryClient, files: Sequence[Tuple[str, bytes, str]]) -> List[UploadOutcome]:
    """
    Uploads every (filename, data, content_type) concurrently.
    One outcome per file, in input order; a failing file does not hide the others.
    """
    results = await asyncio.gather(
        *(client.upload(data, content_type) for _, data, content_type in files),
        return_exceptions=True,
    )

    outcomes = []
    for (filename, _, _), result in zip(files, results):
        if isinstance(result, UploadedImage):
            outcomes.append(UploadOutcome(filename=filename, ok=True, url=result.url, public_id=result.public_id))
        elif isinstance(result, MediaUploadError):
            outcomes.append(UploadOutcome(filename=filename, ok=False, reason=str(result)))
        else:
            # Unexpected errors propagate
            raise result
    return outcomes


def get_media_client() -> CloudinaryClient:
    """FastAPI dependency returning a client configured from the environment."""
    return CloudinaryClient(
        cloud_name=CLOUDINARY_CLOUD_NAME,
        api_key=CLOUDINARY_API_KEY,
        api_secret=CLOUDINARY_API_SECRET,
        upload_preset=CLOUDINARY_UPLOAD_PRESET,
    )
