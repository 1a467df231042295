import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from core.config import settings
from core.error_handlers import app_exception_handler, validation_exception_handler
from core.exceptions import AppException
from core.lifespan import lifespan
from core.middleware import RequestLoggingMiddleware
from router.blob_router import router as blob_router
from router.image_router import router as image_router

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="이미지 업로드 → 압축/메타데이터 편집 → 다운로드",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(image_router)
app.include_router(blob_router)


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        access_log=False,
    )
