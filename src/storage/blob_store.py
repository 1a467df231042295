"""임시 blob 저장소.

로컬 디렉토리에 blob을 저장하고 공개 URL(PUBLIC_BASE_URL + /blobs/<pathname>)을 돌려준다.
각 blob 옆에 <pathname>.meta.json 사이드카를 두어
Content-Type, Cache-Control, 생성 시각을 기록한다.

    store.put("uploads/abc.jpg", data, content_type="image/jpeg")
    -> StoredBlob(url="http://.../blobs/uploads/abc.jpg", pathname="uploads/abc.jpg")
"""

import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, unquote

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from core.exceptions import BlobNotFound, StorageWriteError, UpstreamFetchError

META_SUFFIX = ".meta.json"


@dataclass(frozen=True)
class StoredBlob:
    url: str
    pathname: str


class BlobInfo(BaseModel):
    content_type: str
    cache_control: str
    created_at: float


class LocalBlobStore:
    def __init__(self, root: str | Path, base_url: str, fetch_timeout: float = 30.0):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.fetch_timeout = fetch_timeout

    # --- 쓰기 ---

    def put(
        self,
        pathname: str,
        data: bytes,
        *,
        content_type: str,
        access: str = "public",
        cache_max_age: int = 3600,
    ) -> StoredBlob:
        """blob을 저장하고 공개 URL을 반환한다.

        같은 pathname에 다시 쓰면 덮어쓴다 (마지막 쓰기가 이김).
        임시 파일에 쓴 뒤 os.replace로 교체하므로 읽는 쪽이 반쯤 쓰인 파일을 보지 않는다.
        """
        if access != "public":
            raise StorageWriteError(f"Unsupported blob access: {access}")

        try:
            target = self._resolve(pathname)
        except ValueError as e:
            raise StorageWriteError(str(e)) from e
        info = BlobInfo(
            content_type=content_type,
            cache_control=f"public, max-age={cache_max_age}",
            created_at=time.time(),
        )
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write(target, data)
            _atomic_write(_meta_path(target), info.model_dump_json().encode())
        except OSError as e:
            raise StorageWriteError(f"Failed to store blob {pathname}: {e}") from e

        logger.debug(f"blob stored: {pathname} ({len(data)} bytes, {content_type})")
        return StoredBlob(url=self.url_for(pathname), pathname=pathname)

    # --- 읽기 ---

    def fetch(self, url: str) -> bytes:
        """URL로 blob을 가져온다.

        자기 저장소 URL이면 디스크에서 바로 읽고, 그 외에는 HTTP GET.
        실패하면 UpstreamFetchError.
        """
        prefix = self.base_url + "/"
        if url.startswith(prefix):
            pathname = unquote(url[len(prefix):].split("?", 1)[0])
            try:
                path, _ = self.open(pathname)
                return path.read_bytes()
            except (BlobNotFound, OSError) as e:
                raise UpstreamFetchError("Failed to fetch blob: Not Found") from e

        try:
            response = httpx.get(url, timeout=self.fetch_timeout, follow_redirects=True)
        except httpx.HTTPError as e:
            raise UpstreamFetchError(f"Failed to fetch blob: {e}") from e
        if not response.is_success:
            raise UpstreamFetchError(f"Failed to fetch blob: {response.reason_phrase}")
        return response.content

    def open(self, pathname: str) -> tuple[Path, BlobInfo]:
        """저장된 blob의 경로와 메타데이터를 반환한다. 없으면 BlobNotFound."""
        try:
            path = self._resolve(pathname)
        except ValueError as e:
            raise BlobNotFound from e
        if not path.is_file() or path.name.endswith(META_SUFFIX):
            raise BlobNotFound

        meta = _meta_path(path)
        if meta.is_file():
            info = BlobInfo.model_validate_json(meta.read_bytes())
        else:
            info = BlobInfo(
                content_type="application/octet-stream",
                cache_control="no-cache",
                created_at=path.stat().st_mtime,
            )
        return path, info

    def url_for(self, pathname: str) -> str:
        return f"{self.base_url}/{quote(pathname)}"

    # --- 정리 ---

    def purge_expired(self, max_age_seconds: float) -> int:
        """생성된 지 max_age_seconds가 지난 파일을 삭제하고 삭제 개수를 반환한다.

        - blob: 사이드카의 created_at 기준, 사이드카가 없으면 파일 mtime 기준
        - 남겨진 .tmp-* 파일과 blob 없는 사이드카: mtime 기준
        - 읽을 수 없는 사이드카는 경고만 남기고 건너뛴다
        """
        if not self.root.is_dir():
            return 0

        cutoff = time.time() - max_age_seconds
        removed = 0
        for path in list(self.root.rglob("*")):
            if not path.is_file():
                continue

            if path.name.endswith(META_SUFFIX):
                blob = path.with_name(path.name[: -len(META_SUFFIX)])
                if blob.exists():
                    continue  # blob 쪽에서 함께 처리
                targets, created_at = [path], _mtime(path)
            elif path.name.startswith(".tmp-"):
                targets, created_at = [path], _mtime(path)
            else:
                meta = _meta_path(path)
                targets = [path, meta]
                if meta.is_file():
                    try:
                        created_at = BlobInfo.model_validate_json(meta.read_bytes()).created_at
                    except (ValidationError, OSError) as e:
                        logger.warning(f"Skipping unreadable blob sidecar {meta}: {e}")
                        continue
                else:
                    created_at = _mtime(path)

            if created_at is None or created_at >= cutoff:
                continue
            for target in targets:
                target.unlink(missing_ok=True)
            removed += 1
        return removed

    def _resolve(self, pathname: str) -> Path:
        # 키는 상대 경로만, '..'/'.'/빈 세그먼트 금지 (processed/<id>가 다른 blob을 가리키지 않도록)
        segments = pathname.replace("\\", "/").split("/")
        if pathname.startswith(("/", "\\")) or any(s in ("", ".", "..") for s in segments):
            raise ValueError(f"Invalid blob pathname: {pathname}")

        root = self.root.resolve()
        path = (root / pathname).resolve()
        if path == root or root not in path.parents:
            raise ValueError(f"Invalid blob pathname: {pathname}")
        return path


def _meta_path(path: Path) -> Path:
    return path.with_name(path.name + META_SUFFIX)


def _mtime(path: Path) -> float | None:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


def _atomic_write(target: Path, data: bytes) -> None:
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=".tmp-")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, target)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
