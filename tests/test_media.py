# tests/test_media.py
import asyncio

import cloudinary.uploader
import pytest
from cloudinary.exceptions import BadRequest, GeneralError
from fastapi.testclient import TestClient

from media_service.cloudinary_client import (
    UPLOAD_FOLDER,
    UPLOAD_TRANSFORMATION,
    CloudinaryClient,
    MediaUploadError,
    to_data_uri,
    upload_many,
)
from media_service.main import app as media_app, get_media_client

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
FAIL_URI = to_data_uri(b"fail", "image/png")


class FakeUploader:
    """Stands in for cloudinary.uploader; the data URI of b'fail' is rejected."""

    def __init__(self):
        self.calls = []

    def _answer(self, file):
        if file == FAIL_URI:
            raise BadRequest("Invalid image file")
        index = len(self.calls)
        return {
            "secure_url": f"https://res.cloudinary.com/demo/image/upload/evea-vendors/img{index}.png",
            "public_id": f"evea-vendors/img{index}",
        }

    def upload(self, file, **options):
        self.calls.append(("upload", file, options))
        return self._answer(file)

    def unsigned_upload(self, file, upload_preset, **options):
        self.calls.append(("unsigned_upload", file, dict(options, upload_preset=upload_preset)))
        return self._answer(file)

    def destroy(self, public_id, **options):
        self.calls.append(("destroy", public_id, options))
        return {"result": "ok"}


@pytest.fixture
def uploader(monkeypatch):
    fake = FakeUploader()
    monkeypatch.setattr(cloudinary.uploader, "upload", fake.upload)
    monkeypatch.setattr(cloudinary.uploader, "unsigned_upload", fake.unsigned_upload)
    monkeypatch.setattr(cloudinary.uploader, "destroy", fake.destroy)
    return fake


@pytest.fixture
def signed_client(uploader):
    return CloudinaryClient(cloud_name="demo", api_key="123456", api_secret="shh")


@pytest.fixture
def media_client(signed_client):
    media_app.dependency_overrides[get_media_client] = lambda: signed_client
    yield TestClient(media_app, raise_server_exceptions=False)
    media_app.dependency_overrides.clear()


def test_upload_single_image(media_client, uploader):
    r = media_client.post("/upload", files={"file": ("stage.png", PNG_BYTES, "image/png")})

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["url"].startswith("https://res.cloudinary.com/")
    assert body["publicId"] == "evea-vendors/img1"

    action, file, options = uploader.calls[0]
    assert action == "upload"
    assert file == to_data_uri(PNG_BYTES, "image/png")
    assert options["folder"] == UPLOAD_FOLDER
    assert options["resource_type"] == "auto"
    assert options["transformation"] == UPLOAD_TRANSFORMATION
    assert options["api_key"] == "123456"
    assert options["api_secret"] == "shh"


def test_upload_rejected_by_host_is_bad_gateway(media_client):
    r = media_client.post("/upload", files={"file": ("bad.png", b"fail", "image/png")})

    assert r.status_code == 502
    assert r.json() == {"success": False, "error": "Failed to upload image"}


def test_upload_rejects_non_image(media_client, uploader):
    r = media_client.post("/upload", files={"file": ("notes.txt", b"hello", "text/plain")})

    assert r.status_code == 400
    assert r.json()["error"].startswith("notes.txt")
    assert uploader.calls == []


def test_upload_rejects_empty_file(media_client, uploader):
    r = media_client.post("/upload", files={"file": ("empty.png", b"", "image/png")})

    assert r.status_code == 400
    assert uploader.calls == []


def test_upload_multiple_all_succeed(media_client):
    files = [
        ("files", ("a.png", PNG_BYTES, "image/png")),
        ("files", ("b.png", PNG_BYTES + b"2", "image/png")),
    ]
    r = media_client.post("/upload-multiple", files=files)

    assert r.status_code == 200, r.text
    body = r.json()
    assert len(body["urls"]) == 2
    assert [item["filename"] for item in body["results"]] == ["a.png", "b.png"]
    assert all(item["ok"] for item in body["results"])


def test_upload_multiple_reports_each_file_on_partial_failure(media_client):
    files = [
        ("files", ("good.png", PNG_BYTES, "image/png")),
        ("files", ("broken.png", b"fail", "image/png")),
    ]
    r = media_client.post("/upload-multiple", files=files)

    assert r.status_code == 502
    body = r.json()
    assert body["success"] is False
    assert body["error"] == "Failed to upload images"
    assert "urls" not in body

    good, broken = body["results"]
    assert good["filename"] == "good.png" and good["ok"] is True and good["url"]
    assert broken["filename"] == "broken.png" and broken["ok"] is False
    assert broken["reason"] == "Media host error: Invalid image file"


def test_delete_image(media_client, uploader):
    r = media_client.delete("/images/evea-vendors/img7")

    assert r.status_code == 200
    assert r.json() == {"success": True}
    action, public_id, options = uploader.calls[0]
    assert action == "destroy"
    assert public_id == "evea-vendors/img7"
    assert options["api_secret"] == "shh"


def test_unsigned_preset_is_used_without_api_secret(uploader):
    client = CloudinaryClient(cloud_name="demo", upload_preset="evea_unsigned")

    image = asyncio.run(client.upload(PNG_BYTES, "image/png"))

    assert image.public_id == "evea-vendors/img1"
    action, _, options = uploader.calls[0]
    assert action == "unsigned_upload"
    assert options["upload_preset"] == "evea_unsigned"
    assert "api_secret" not in options


def test_delete_needs_key_and_secret(uploader):
    client = CloudinaryClient(cloud_name="demo", upload_preset="evea_unsigned")

    with pytest.raises(MediaUploadError, match="API key and secret are required"):
        asyncio.run(client.destroy("evea-vendors/a"))
    assert uploader.calls == []


def test_missing_credentials_raise(uploader):
    client = CloudinaryClient(cloud_name="demo")

    with pytest.raises(MediaUploadError):
        asyncio.run(client.upload(PNG_BYTES, "image/png"))
    assert uploader.calls == []


def test_upload_many_keeps_input_order(signed_client):
    files = [
        ("one.png", PNG_BYTES, "image/png"),
        ("two.png", b"fail", "image/png"),
        ("three.png", PNG_BYTES, "image/png"),
    ]

    outcomes = asyncio.run(upload_many(signed_client, files))

    assert [o.filename for o in outcomes] == ["one.png", "two.png", "three.png"]
    assert [o.ok for o in outcomes] == [True, False, True]


def test_media_host_unreachable(monkeypatch):
    def refuse(file, **options):
        raise GeneralError("Socket error: connection refused")

    monkeypatch.setattr(cloudinary.uploader, "upload", refuse)
    client = CloudinaryClient(cloud_name="demo", api_key="k", api_secret="s")

    with pytest.raises(MediaUploadError, match="connection refused"):
        asyncio.run(client.upload(PNG_BYTES, "image/png"))
