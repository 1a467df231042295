"""이미지 레코드와 압축 설정 모델.

JSON 키는 camelCase(originalName, blobUrl ...), 파이썬 속성은 snake_case.
DB 없이 요청/응답 사이에서만 오가는 임시 레코드이다.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        """응답용 dict. 값이 없는 필드는 생략한다."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ImageStatus(str, Enum):
    UPLOADED = "uploaded"
    QUEUED = "queued"  # 예약됨, 현재 흐름에서는 쓰지 않음
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TargetFormat = Literal["jpeg", "png", "webp", "avif", "original"]


class ImageMetadata(CamelModel):
    title: str | None = None
    description: str | None = None
    author: str | None = None
    copyright: str | None = None
    keywords: list[str] | None = None
    custom_fields: dict[str, str] | None = None


class ResizeOptions(CamelModel):
    max_width: int | None = None
    max_height: int | None = None


class CompressionSettings(CamelModel):
    # 60-100 권장, 서버에서는 강제하지 않음
    quality: int
    target_format: TargetFormat
    # 아래 옵션은 받아서 기록만 하고 처리에는 쓰지 않음
    strip_metadata: bool | None = None
    preserve_metadata: bool | None = None
    resize: ResizeOptions | None = None


class ProcessSettings(CompressionSettings):
    metadata: ImageMetadata = Field(default_factory=ImageMetadata)

    def compression_only(self) -> CompressionSettings:
        return CompressionSettings.model_validate(self.model_dump(exclude={"metadata"}))


class ImageRecord(CamelModel):
    id: str
    original_name: str
    original_size: int
    original_format: str
    status: ImageStatus = ImageStatus.UPLOADED
    metadata: ImageMetadata = Field(default_factory=ImageMetadata)
    original_metadata: dict[str, Any] | None = None
    processing_settings: CompressionSettings | None = None
    compressed_size: int | None = None
    compression_ratio: float | None = None
    processing_time_ms: int | None = None
    download_url: str | None = None
    error_message: str | None = None
    blob_url: str | None = None


class ProcessRequest(CamelModel):
    # 누락 여부는 서비스에서 검사해 400 MISSING_INPUT으로 응답한다
    image_file: ImageRecord | None = None
    settings: ProcessSettings | None = None
