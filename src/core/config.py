from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 앱 설정
    APP_NAME: str = "compactimg"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "DEBUG"

    # 서버 설정
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # 임시 blob 저장소
    BLOB_DIR: str = "/app/blobs"
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    BLOB_ROUTE_PREFIX: str = "/blobs"
    BLOB_CACHE_MAX_AGE: int = 3600
    BLOB_RETENTION_SECONDS: int = 24 * 3600

    # 업로드 검증
    MAX_UPLOAD_MB: float = 10
    ALLOWED_MIME_TYPES: list[str] = ["image/jpeg", "image/png", "image/webp", "image/avif"]

    # 처리 가능한 코덱 (webp/avif는 업로드만 허용)
    PROCESS_FORMATS: list[str] = ["jpeg", "png"]

    FETCH_TIMEOUT_SECONDS: float = 30.0

    @property
    def max_upload_bytes(self) -> int:
        return int(self.MAX_UPLOAD_MB * 1024 * 1024)

    @property
    def blob_base_url(self) -> str:
        return self.PUBLIC_BASE_URL.rstrip("/") + self.BLOB_ROUTE_PREFIX

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
