from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from core.config import settings
from core.dependencies import get_blob_store
from utility.logger import setup_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    # === 시작 ===
    setup_logger(settings.LOG_LEVEL)
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION}")

    # 테스트에서 override된 저장소가 있으면 그걸 정리한다
    store_factory = app.dependency_overrides.get(get_blob_store, get_blob_store)
    store = store_factory()
    removed = store.purge_expired(settings.BLOB_RETENTION_SECONDS)
    logger.info(f"Blob store ready ({store.root}, purged {removed} expired)")

    app.state.settings = settings

    yield

    # === 종료 ===
    logger.info("Shutting down")
