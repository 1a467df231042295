from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from core.config import settings
from core.dependencies import get_blob_store
from storage.blob_store import LocalBlobStore

router = APIRouter(prefix=settings.BLOB_ROUTE_PREFIX, tags=["blobs"])


@router.get("/{pathname:path}")
def download_blob(pathname: str, store: LocalBlobStore = Depends(get_blob_store)):
    """저장된 blob을 put 시점의 Content-Type / Cache-Control과 함께 내려준다."""
    path, info = store.open(pathname)
    return FileResponse(
        path,
        media_type=info.content_type,
        headers={"Cache-Control": info.cache_control},
    )
