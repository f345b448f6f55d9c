"""Shared fixtures. Storage directories are redirected before the app is imported."""
import io
import os
import tempfile

_session_dir = tempfile.mkdtemp(prefix="converter-tests-")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_session_dir, "uploads"))
os.environ.setdefault("OUTPUT_DIR", os.path.join(_session_dir, "downloads"))

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from converter import config as app_config
from converter.conversion.allocator import TaskAllocator, get_task_allocator
from converter.conversion.events import get_pipeline_observer
from converter.main import app


@pytest.fixture
def make_image():
    """Factory returning encoded image bytes."""

    def _make(fmt: str = "PNG", size=(64, 48), mode: str = "RGB", color=None) -> bytes:
        if color is None:
            color = {"RGB": (200, 30, 30), "RGBA": (20, 120, 220, 128), "L": 90}.get(mode, 0)
        buf = io.BytesIO()
        Image.new(mode, size, color).save(buf, format=fmt)
        return buf.getvalue()

    return _make


@pytest.fixture
def storage(tmp_path, monkeypatch):
    uploads = tmp_path / "uploads"
    downloads = tmp_path / "downloads"
    uploads.mkdir()
    downloads.mkdir()
    monkeypatch.setattr(app_config, "UPLOAD_DIR", uploads)
    monkeypatch.setattr(app_config, "OUTPUT_DIR", downloads)
    return uploads, downloads


@pytest.fixture
def allocator():
    return TaskAllocator()


@pytest.fixture
def events():
    return []


@pytest.fixture
def app_overrides(storage, allocator, events):
    app.dependency_overrides[get_task_allocator] = lambda: allocator
    app.dependency_overrides[get_pipeline_observer] = lambda: events.append
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app_overrides):
    with TestClient(app_overrides) as c:
        yield c
