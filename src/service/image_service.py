import os
import uuid
from dataclasses import dataclass, field
from typing import BinaryIO

from fastapi import UploadFile
from loguru import logger

from core.config import settings
from core.exceptions import (
    ErrorKind,
    MissingProcessInput,
    NoFilesProvided,
    ProcessingError,
    StorageWriteError,
)
from model.image import ImageRecord, ImageStatus, ProcessRequest, ProcessSettings
from processor.operations import (
    build_exif,
    compression_ratio,
    encode,
    ensure_supported,
    resolve_target_format,
)
from storage.blob_store import LocalBlobStore
from utility.timer import timer

# ============================================================
# 업로드
# ============================================================


@dataclass
class UploadSuccess:
    records: list[ImageRecord]


@dataclass
class UploadPartial:
    records: list[ImageRecord]
    errors: list[str]


@dataclass
class UploadFailure:
    errors: list[str]


UploadResult = UploadSuccess | UploadPartial | UploadFailure


def save_uploads(files: list[UploadFile], store: LocalBlobStore) -> UploadResult:
    """업로드된 파일을 하나씩 검증하고 blob 저장소에 저장한다.

    파일마다 독립적으로 처리한다:
    1. Content-Type이 허용 목록에 없으면 거절
    2. 크기가 상한을 넘으면 거절
    3. 통과하면 uploads/<uuid>.<ext>에 저장하고 status=uploaded 레코드 생성
    검증에 실패한 파일은 저장을 시도하지 않는다.
    """
    if not files:
        raise NoFilesProvided

    records: list[ImageRecord] = []
    errors: list[str] = []

    for file in files:
        name = file.filename or "unknown"
        content_type = file.content_type or ""

        if content_type not in settings.ALLOWED_MIME_TYPES:
            errors.append(f"Unsupported file type: {name} ({content_type})")
            continue

        size = file.size if file.size is not None else _stream_size(file.file)
        if size > settings.max_upload_bytes:
            errors.append(f"File too large: {name} ({size / 1024 / 1024:.2f} MB)")
            continue

        ext = name.rsplit(".", 1)[1] if "." in name else ""
        pathname = f"uploads/{uuid.uuid4().hex}.{ext or 'bin'}"

        try:
            file.file.seek(0)
            data = file.file.read()
            stored = store.put(
                pathname,
                data,
                content_type=content_type,
                cache_max_age=settings.BLOB_CACHE_MAX_AGE,
            )
        except (StorageWriteError, OSError) as e:
            logger.error(f"Failed to upload {name}: {e}")
            errors.append(f"Failed to upload {name}.")
            continue

        records.append(
            ImageRecord(
                id=stored.pathname,
                original_name=name,
                original_size=len(data),
                original_format=content_type,
                status=ImageStatus.UPLOADED,
                blob_url=stored.url,
            )
        )

    if not records:
        logger.warning(f"Upload rejected: {errors}")
        return UploadFailure(errors)
    if errors:
        logger.warning(f"Some files failed to upload: {errors}")
        return UploadPartial(records, errors)
    return UploadSuccess(records)


def _stream_size(stream: BinaryIO) -> int:
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


# ============================================================
# 압축 처리
# ============================================================


@dataclass
class ProcessOutcome:
    record: ImageRecord
    error_kind: ErrorKind | None = field(default=None)

    @property
    def ok(self) -> bool:
        return self.error_kind is None


def process_image(req: ProcessRequest, store: LocalBlobStore) -> ProcessOutcome:
    """원본을 가져와 압축하고 결과를 저장한 뒤 갱신된 레코드를 반환한다.

    처리 중 어떤 단계가 실패하든 예외를 밖으로 던지지 않는다.
    status=failed, error_message, processing_time_ms가 채워진 레코드를
    ErrorKind와 함께 돌려준다. 재시도는 없다.
    """
    record, opts = req.image_file, req.settings
    if record is None or opts is None or not record.blob_url:
        raise MissingProcessInput

    updates: dict = {"status": ImageStatus.PROCESSING, "error_message": None}
    error_kind: ErrorKind | None = None

    with timer(f"process {record.id}") as t:
        try:
            updates.update(_compress_and_store(record, opts, store))
        except ProcessingError as e:
            error_kind = e.kind
            updates.update(status=ImageStatus.FAILED, error_message=e.message)
        except Exception as e:
            logger.exception(f"Unexpected error while processing {record.original_name}")
            error_kind = ErrorKind.UNKNOWN
            updates.update(
                status=ImageStatus.FAILED,
                error_message=str(e) or "Unknown processing error",
            )

    updates["processing_time_ms"] = t.elapsed_ms
    if error_kind is not None:
        logger.error(
            f"Processing failed for {record.original_name} "
            f"[{error_kind.value}]: {updates['error_message']}"
        )

    return ProcessOutcome(record=record.model_copy(update=updates), error_kind=error_kind)


def _compress_and_store(
    record: ImageRecord, opts: ProcessSettings, store: LocalBlobStore
) -> dict:
    raw = store.fetch(record.blob_url)

    target_format = resolve_target_format(opts.target_format, record.original_format)
    ensure_supported(target_format, settings.PROCESS_FORMATS)

    exif = build_exif(opts.metadata.title, opts.metadata.description)
    encoded = encode(raw, target_format, opts.quality, exif)

    stored = store.put(
        f"processed/{record.id}.{target_format}",
        encoded,
        content_type=f"image/{target_format}",
        cache_max_age=settings.BLOB_CACHE_MAX_AGE,
    )

    metadata = record.metadata.model_copy(
        update={"title": opts.metadata.title, "description": opts.metadata.description}
    )
    return {
        "status": ImageStatus.COMPLETED,
        "compressed_size": len(encoded),
        "compression_ratio": compression_ratio(record.original_size, len(encoded)),
        "download_url": stored.url,
        "processing_settings": opts.compression_only(),
        "metadata": metadata,
    }
