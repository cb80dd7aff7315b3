"""
Image Hosting Service
Validates listing photos and pushes them to the configured asset host
(Cloudflare R2 or Cloudinary). One attempt per upload, no retries.
"""

import io
import logging
import os
import uuid
from dataclasses import dataclass
from typing import Optional

import boto3
import httpx
from botocore.config import Config
from fastapi import HTTPException, UploadFile
from PIL import Image, UnidentifiedImageError

from ..config import (
    CLOUDINARY_CLOUD_NAME,
    CLOUDINARY_UPLOAD_PRESET,
    IMAGE_HOST,
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_PUBLIC_BASE_URL,
    R2_SECRET_ACCESS_KEY,
    UPLOAD_MAX_BYTES,
)

logger = logging.getLogger(__name__)

# Presigned URL expiration time (7 days, the S3 maximum)
PRESIGNED_URL_EXPIRATION = 7 * 24 * 3600

ALLOWED_IMAGE_TYPES = [
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
    "image/gif",
]

VALID_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".gif")

# Per-kind pixel limits: (min_width, max_width, max_height)
DIMENSION_RULES = {
    "main": (600, None, None),
    "gallery": (600, None, None),
    "header": (None, None, 200),
    "background": (None, 2000, 5000),
}


class ImageValidationError(ValueError):
    """The file was rejected before any network call"""


class ImageHostError(Exception):
    """The asset host refused or failed the upload"""

    def __init__(self, message: str, status_code: Optional[int] = None, body=None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass
class ImageInfo:
    width: int
    height: int
    size: int


def validate_image(
    contents: bytes,
    content_type: Optional[str],
    filename: Optional[str],
    kind: str = "main",
    max_bytes: int = UPLOAD_MAX_BYTES,
) -> ImageInfo:
    """
    Check type, size and pixel dimensions of an upload.

    Raises:
        ImageValidationError: with a message suitable for showing the user
    """
    if kind not in DIMENSION_RULES:
        raise ImageValidationError(f"Unknown image kind '{kind}'")

    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ImageValidationError("Invalid file type. Only PNG, JPEG, WebP and GIF images are allowed.")

    if filename:
        safe_filename = os.path.basename(filename)
        if safe_filename != filename or ".." in filename:
            raise ImageValidationError("Invalid filename")
        if not filename.lower().endswith(VALID_EXTENSIONS):
            raise ImageValidationError("Invalid filename - must have a valid image extension")

    if len(contents) > max_bytes:
        raise ImageValidationError(
            f"Image must be under {max_bytes / (1024 * 1024):.0f}MB in size. "
            f"Your file is {len(contents) / (1024 * 1024):.2f}MB."
        )

    try:
        with Image.open(io.BytesIO(contents)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError) as e:
        raise ImageValidationError("Failed to load image") from e

    min_width, max_width, max_height = DIMENSION_RULES[kind]
    if min_width and width < min_width:
        raise ImageValidationError(f"Image must be at least {min_width} pixels wide")
    if max_width and width > max_width:
        raise ImageValidationError(f"Image must be no more than {max_width:,} pixels wide")
    if max_height and height > max_height:
        if kind == "header":
            raise ImageValidationError(f"Header image must be less than {max_height} pixels high")
        raise ImageValidationError(f"Image must be no more than {max_height:,} pixels high")

    return ImageInfo(width=width, height=height, size=len(contents))


def _extension(filename: Optional[str], content_type: str) -> str:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[-1].lower()
    return content_type.split("/")[-1]


class R2ImageHost:
    """Cloudflare R2 through the S3 API"""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
                aws_access_key_id=R2_ACCESS_KEY_ID,
                aws_secret_access_key=R2_SECRET_ACCESS_KEY,
                config=Config(signature_version="s3v4"),
            )
        return self._client

    async def upload(self, contents: bytes, filename: Optional[str], content_type: str) -> str:
        key = f"listings/{uuid.uuid4()}.{_extension(filename, content_type)}"
        try:
            self.client.put_object(
                Bucket=R2_BUCKET_NAME,
                Key=key,
                Body=contents,
                ContentType=content_type,
                CacheControl="public, max-age=31536000",
            )
        except Exception as e:
            logger.error(f"❌ R2 upload failed for {key}: {e}")
            raise ImageHostError(f"Upload failed: {e}") from e

        if R2_PUBLIC_BASE_URL:
            url = f"{R2_PUBLIC_BASE_URL.rstrip('/')}/{key}"
        else:
            url = self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": R2_BUCKET_NAME, "Key": key, "ResponseContentDisposition": "inline"},
                ExpiresIn=PRESIGNED_URL_EXPIRATION,
            )
        logger.info(f"✅ Uploaded image to R2: {key}")
        return url


class CloudinaryImageHost:
    """Unsigned Cloudinary uploads using an upload preset"""

    def __init__(
        self,
        cloud_name: Optional[str] = CLOUDINARY_CLOUD_NAME,
        upload_preset: Optional[str] = CLOUDINARY_UPLOAD_PRESET,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self._transport = transport

    @property
    def upload_url(self) -> str:
        return f"https://api.cloudinary.com/v1_1/{self.cloud_name}/image/upload"

    async def upload(self, contents: bytes, filename: Optional[str], content_type: str) -> str:
        if not self.cloud_name or not self.upload_preset:
            raise ImageHostError("Cloudinary is not configured")

        async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as http_client:
            response = await http_client.post(
                self.upload_url,
                data={"upload_preset": self.upload_preset},
                files={"file": (filename or "upload", contents, content_type)},
            )

        if response.status_code != 200:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            logger.error(f"❌ Cloudinary upload failed: {body}")
            message = "Failed to upload image"
            if isinstance(body, dict):
                message = body.get("error", {}).get("message", message)
            raise ImageHostError(message, status_code=response.status_code, body=body)

        url = response.json().get("secure_url")
        if not url:
            raise ImageHostError("Cloudinary response did not include a URL")
        logger.info(f"✅ Uploaded image to Cloudinary: {url}")
        return url


def get_image_host():
    """Dependency returning the configured asset host"""
    if IMAGE_HOST == "cloudinary":
        return CloudinaryImageHost()
    return R2ImageHost()


async def accept_upload(upload: UploadFile, kind: str, host) -> dict:
    """
    Validate an uploaded file and push it to `host`.

    Raises:
        HTTPException: 400 for a rejected file, 502 when the host fails
    """
    contents = await upload.read()
    try:
        info = validate_image(contents, upload.content_type, upload.filename, kind=kind)
    except ImageValidationError as e:
        logger.info(f"Rejected {kind} upload {upload.filename}: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        url = await host.upload(contents, upload.filename, upload.content_type)
    except ImageHostError as e:
        raise HTTPException(
            status_code=502, detail={"error": str(e), "details": e.body, "status": e.status_code}
        ) from e

    return {
        "url": url,
        "kind": kind,
        "filename": upload.filename,
        "width": info.width,
        "height": info.height,
        "size": info.size,
    }
