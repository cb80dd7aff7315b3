import asyncio

import httpx
import pytest

from dealdispo.services.image_host import (
    CloudinaryImageHost,
    ImageHostError,
    ImageValidationError,
    R2ImageHost,
    validate_image,
)


def test_main_image_must_be_600_wide(image_factory):
    info = validate_image(image_factory(800, 500), "image/png", "front.png", kind="main")
    assert (info.width, info.height) == (800, 500)

    with pytest.raises(ImageValidationError, match="at least 600 pixels wide"):
        validate_image(image_factory(599, 500), "image/png", "front.png", kind="gallery")


def test_header_and_background_limits(image_factory):
    validate_image(image_factory(900, 200), "image/png", "header.png", kind="header")
    with pytest.raises(ImageValidationError, match="less than 200 pixels high"):
        validate_image(image_factory(900, 201), "image/png", "header.png", kind="header")
    with pytest.raises(ImageValidationError, match="2,000 pixels wide"):
        validate_image(image_factory(2001, 100), "image/png", "bg.png", kind="background")


def test_rejects_wrong_type_and_oversized_files(image_factory):
    with pytest.raises(ImageValidationError, match="Invalid file type"):
        validate_image(b"%PDF-1.4", "application/pdf", "doc.pdf")
    with pytest.raises(ImageValidationError, match="under 1MB"):
        validate_image(b"\0" * (1024 * 1024 + 1), "image/png", "big.png", max_bytes=1024 * 1024)
    with pytest.raises(ImageValidationError, match="Failed to load image"):
        validate_image(b"not an image", "image/png", "broken.png")


def test_rejects_path_tricks_in_filename(image_factory):
    with pytest.raises(ImageValidationError, match="Invalid filename"):
        validate_image(image_factory(800, 600), "image/png", "../etc/passwd.png")


def test_cloudinary_returns_secure_url():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.content
        return httpx.Response(200, json={"secure_url": "https://res.cloudinary.com/demo/a.png"})

    host = CloudinaryImageHost("demo", "unsigned", transport=httpx.MockTransport(handler))
    url = asyncio.run(host.upload(b"img", "a.png", "image/png"))

    assert url == "https://res.cloudinary.com/demo/a.png"
    assert seen["url"] == "https://api.cloudinary.com/v1_1/demo/image/upload"
    assert b"unsigned" in seen["body"]


def test_cloudinary_error_carries_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"message": "Upload preset not found"}})

    host = CloudinaryImageHost("demo", "missing", transport=httpx.MockTransport(handler))
    with pytest.raises(ImageHostError, match="Upload preset not found") as exc:
        asyncio.run(host.upload(b"img", "a.png", "image/png"))
    assert exc.value.status_code == 400


class RecordingS3Client:
    def __init__(self):
        self.objects = {}

    def put_object(self, **kwargs):
        self.objects[kwargs["Key"]] = kwargs

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        return f"https://signed.example.com/{Params['Key']}?expires={ExpiresIn}"


def test_r2_upload_stores_object_under_listings():
    s3 = RecordingS3Client()
    url = asyncio.run(R2ImageHost(client=s3).upload(b"img", "Front.JPG", "image/jpeg"))

    (key,) = s3.objects
    assert key.startswith("listings/") and key.endswith(".jpg")
    assert s3.objects[key]["ContentType"] == "image/jpeg"
    assert key in url
