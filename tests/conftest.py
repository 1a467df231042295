"""pytest 공용 fixture.

모든 API 테스트는 tmp_path 아래의 임시 blob 저장소를 사용하여 격리된다.
- blob_store: put() 호출을 기록하는 LocalBlobStore
- client: get_blob_store를 테스트 저장소로 오버라이드한 TestClient
- make_image / make_jpeg_of_size: 메모리에서 만드는 테스트 이미지
"""

import io
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# src/ 디렉토리를 import path에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from core.dependencies import get_blob_store
from main import app
from storage.blob_store import LocalBlobStore

TEST_BASE_URL = "http://testserver/blobs"


class RecordingBlobStore(LocalBlobStore):
    """put()으로 쓴 pathname을 순서대로 기록한다."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.writes: list[str] = []

    def put(self, pathname, data, **kwargs):
        self.writes.append(pathname)
        return super().put(pathname, data, **kwargs)


@pytest.fixture()
def blob_store(tmp_path):
    return RecordingBlobStore(root=tmp_path / "blobs", base_url=TEST_BASE_URL)


@pytest.fixture()
def client(blob_store):
    """get_blob_store를 테스트용 저장소로 오버라이드한 TestClient."""
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_image(fmt: str = "PNG", size: tuple[int, int] = (100, 100), mode: str = "RGB") -> bytes:
    """테스트용 단색 이미지를 지정 포맷 바이트로 만든다."""
    buf = io.BytesIO()
    color = (0, 0, 255, 128) if mode == "RGBA" else "blue"
    Image.new(mode, size, color=color).save(buf, format=fmt)
    return buf.getvalue()


def make_jpeg_of_size(total: int) -> bytes:
    """정확히 total 바이트인 JPEG. EOI 뒤를 0으로 채운다 (디코더는 무시)."""
    data = make_image("JPEG", (64, 64))
    assert len(data) <= total
    return data + b"\x00" * (total - len(data))


@pytest.fixture()
def png_upload():
    def _make(filename: str = "test.png") -> tuple[str, bytes, str]:
        return (filename, make_image("PNG"), "image/png")

    return _make
