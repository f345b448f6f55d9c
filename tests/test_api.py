"""End-to-end tests for the HTTP surface."""
import asyncio
import io
import os

from PIL import Image

from converter import config as app_config
from converter.api import uploads
from converter.conversion.models import TaskStatus


def _upload(client, filename, data, output_format, content_type="image/png"):
    return client.post(
        "/convert",
        params={"output_format": output_format},
        files={"file": (filename, data, content_type)},
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_formats(client):
    assert client.get("/formats").json() == {"output": ["png", "jpg", "gif", "bmp", "webp", "ico", "tiff"]}


def test_convert_png_to_jpg_and_download(client, storage, make_image):
    _, downloads = storage
    response = _upload(client, "cat.png", make_image("PNG"), "jpg")

    assert response.status_code == 200
    assert response.json() == {"task_id": 1, "converted_file": "/download/cat_1.jpg"}

    download = client.get("/download/cat_1.jpg")
    assert download.status_code == 200
    assert download.headers["content-type"].startswith("image/jpeg")
    assert download.content == (downloads / "cat_1.jpg").read_bytes()
    with Image.open(io.BytesIO(download.content)) as img:
        img.load()
        assert img.format == "JPEG"


def test_convert_to_icon_fits_256(client, make_image):
    response = _upload(client, "logo.png", make_image("PNG", size=(800, 600), mode="RGBA"), "ico")
    assert response.status_code == 200
    converted = response.json()["converted_file"]
    assert converted == "/download/logo_1.ico"

    download = client.get(converted)
    assert download.status_code == 200
    assert download.headers["content-type"].startswith("image/vnd.microsoft.icon")
    with Image.open(io.BytesIO(download.content)) as img:
        assert max(img.size) <= 256


def test_same_filename_gets_distinct_artifacts(client, storage, make_image):
    _, downloads = storage
    first = _upload(client, "cat.png", make_image("PNG"), "webp").json()
    second = _upload(client, "cat.png", make_image("PNG"), "webp").json()

    assert first["converted_file"] == "/download/cat_1.webp"
    assert second["converted_file"] == "/download/cat_2.webp"
    assert sorted(p.name for p in downloads.iterdir()) == ["cat_1.webp", "cat_2.webp"]


def test_part_without_filename_is_rejected(client, allocator, make_image):
    response = client.post(
        "/convert",
        params={"output_format": "png"},
        data={"note": "hello"},
        files={"file": ("cat.png", make_image("PNG"), "image/png")},
    )
    assert response.status_code == 400
    assert response.text == "No filename provided in the request"
    # The allocator was not advanced
    assert allocator.next_id() == 1


def test_plain_field_only_is_rejected(client):
    response = client.post("/convert", params={"output_format": "png"}, data={"file": "not a file"})
    assert response.status_code == 400
    assert response.text == "No filename provided in the request"


def test_no_file_uploaded(client, allocator):
    response = client.post("/convert", params={"output_format": "png"})
    assert response.status_code == 400
    assert response.text == "No file uploaded"
    assert allocator.next_id() == 1


def test_unsupported_format_is_rejected_before_upload(client, storage, allocator, make_image):
    uploads, downloads = storage
    response = _upload(client, "cat.png", make_image("PNG"), "svg")

    assert response.status_code == 400
    assert "Unsupported output format" in response.text
    assert list(uploads.iterdir()) == []
    assert list(downloads.iterdir()) == []
    assert allocator.next_id() == 1


def test_missing_output_format(client, make_image):
    response = client.post("/convert", files={"file": ("cat.png", make_image("PNG"), "image/png")})
    assert response.status_code == 400
    assert "output_format" in response.text


def test_corrupt_upload_reports_conversion_failure(client, events):
    response = _upload(client, "broken.png", b"this is not a png", "gif")

    assert response.status_code == 500
    assert response.text.startswith("Conversion failed: Failed to decode image: ")
    assert [e.status for e in events] == [TaskStatus.CREATED, TaskStatus.UPLOADING, TaskStatus.CONVERTING, TaskStatus.FAILED]
    assert events[-1].task_id == 1


def test_pipeline_events_for_successful_conversion(client, events, make_image):
    _upload(client, "cat.png", make_image("PNG"), "bmp")

    assert [e.status for e in events] == [TaskStatus.CREATED, TaskStatus.UPLOADING, TaskStatus.CONVERTING, TaskStatus.READY]
    assert events[0].task_id is None
    assert all(e.filename == "cat.png" for e in events)
    assert events[-1].task_id == 1
    assert events[-1].detail == "cat_1.bmp"


def test_transient_upload_is_removed(client, storage, make_image):
    uploads, _ = storage
    assert _upload(client, "cat.png", make_image("PNG"), "tiff").status_code == 200
    assert list(uploads.iterdir()) == []


def test_transient_upload_kept_when_cleanup_disabled(client, storage, make_image, monkeypatch):
    uploads, _ = storage
    monkeypatch.setattr(app_config, "CLEANUP_UPLOADS", False)
    data = make_image("PNG")
    assert _upload(client, "cat.png", data, "png").status_code == 200

    kept = list(uploads.iterdir())
    assert len(kept) == 1
    assert kept[0].name.endswith("_cat.png")
    assert kept[0].read_bytes() == data


def test_download_missing_artifact(client):
    response = client.get("/download/nothing_1.png")
    assert response.status_code == 404
    assert response.text == "File not found"


def test_download_does_not_escape_storage(client, storage):
    uploads, _ = storage
    (uploads / "secret.txt").write_text("hidden")
    response = client.get("/download/..%2Fuploads%2Fsecret.txt")
    assert response.status_code == 404


def test_download_is_served_inline(client, make_image):
    _upload(client, "cat.png", make_image("PNG"), "png")
    response = client.get("/download/cat_1.png")
    assert response.status_code == 200
    assert response.headers["content-disposition"].startswith("inline")
    assert "cat_1.png" in response.headers["content-disposition"]


def test_upload_write_failure_is_reported(client, storage, allocator, events, make_image):
    uploads_dir, _ = storage
    uploads_dir.rmdir()
    response = _upload(client, "cat.png", make_image("PNG"), "png")

    assert response.status_code == 500
    assert response.text.startswith("Conversion failed: Upload failed: ")
    assert [e.status for e in events] == [TaskStatus.CREATED, TaskStatus.UPLOADING, TaskStatus.FAILED]
    assert events[-1].task_id is None
    assert events[-1].detail.startswith("Upload failed: ")
    # No task id is consumed by a failed upload
    assert allocator.next_id() == 1


def test_upload_is_synced_off_the_event_loop(client, make_image, monkeypatch):
    calls = []
    real_fsync = os.fsync

    def recording_fsync(fd):
        try:
            asyncio.get_running_loop()
            calls.append("event loop")
        except RuntimeError:
            calls.append("worker thread")
        real_fsync(fd)

    monkeypatch.setattr(uploads.os, "fsync", recording_fsync)
    assert _upload(client, "cat.png", make_image("PNG"), "png").status_code == 200
    assert calls == ["worker thread"]
