from functools import lru_cache

from core.config import settings
from storage.blob_store import LocalBlobStore


@lru_cache
def get_blob_store() -> LocalBlobStore:
    """앱 전역 blob 저장소.

    라우터에서 Depends(get_blob_store)로 주입받는다.
    테스트에서는 app.dependency_overrides로 임시 디렉토리 저장소로 교체한다.
    """
    return LocalBlobStore(
        root=settings.BLOB_DIR,
        base_url=settings.blob_base_url,
        fetch_timeout=settings.FETCH_TIMEOUT_SECONDS,
    )
