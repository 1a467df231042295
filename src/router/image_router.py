from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from core.dependencies import get_blob_store
from core.exceptions import UploadRejected
from model.image import ProcessRequest
from service import image_service
from service.image_service import UploadFailure, UploadPartial, UploadSuccess
from storage.blob_store import LocalBlobStore

router = APIRouter(prefix="/api", tags=["images"])


@router.post("/upload")
def upload_images(
    files: list[UploadFile] | None = File(default=None),
    store: LocalBlobStore = Depends(get_blob_store),
):
    result = image_service.save_uploads(files or [], store)

    match result:
        case UploadSuccess(records):
            return JSONResponse([r.to_json() for r in records])
        case UploadPartial(records, errors):
            return JSONResponse(
                {"uploadedFiles": [r.to_json() for r in records], "uploadErrors": errors},
                status_code=207,
            )
        case UploadFailure(errors):
            raise UploadRejected(f"Upload failed. Errors: {', '.join(errors)}")


@router.post("/process")
def process_image(
    req: ProcessRequest,
    store: LocalBlobStore = Depends(get_blob_store),
):
    outcome = image_service.process_image(req, store)
    # 실패해도 갱신된 레코드를 함께 돌려준다
    return JSONResponse(outcome.record.to_json(), status_code=200 if outcome.ok else 500)
