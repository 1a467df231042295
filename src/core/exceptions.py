"""앱 전역 커스텀 예외 클래스.

AppException을 상속하면 전역 핸들러(error_handlers.py)가 자동으로
{"error": "...", "error_code": "..."} 형식의 JSON 응답을 생성한다.

ProcessingError 계열은 HTTP 응답으로 직접 나가지 않는다.
image_service.process_image()가 한 번에 잡아서 failed 레코드로 변환한다.
"""

from enum import Enum


class AppException(Exception):
    """앱 전역 베이스 예외.

    서브클래스에서 status_code, error_code, message를 클래스 변수로 정의하면
    전역 핸들러가 해당 값을 읽어 HTTP 응답을 생성한다.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


# --- 요청 검증 (저장되지 않고 즉시 응답) ---


class InvalidRequest(AppException):
    status_code = 400
    error_code = "INVALID_REQUEST"
    message = "Invalid request body."


class NoFilesProvided(AppException):
    status_code = 400
    error_code = "NO_FILES"
    message = "No files provided."


class UploadRejected(AppException):
    status_code = 400
    error_code = "UPLOAD_FAILED"
    message = "Upload failed."


class MissingProcessInput(AppException):
    status_code = 400
    error_code = "MISSING_INPUT"
    message = "Missing image file data, settings, or blob URL."


# --- 처리 단계 오류 (failed 레코드로 변환) ---


class ErrorKind(str, Enum):
    UPSTREAM_FETCH = "upstream_fetch"
    UNSUPPORTED_FORMAT = "unsupported_format"
    ENCODE = "encode"
    STORAGE_WRITE = "storage_write"
    UNKNOWN = "unknown"


class ProcessingError(AppException):
    kind: ErrorKind = ErrorKind.UNKNOWN
    error_code = "PROCESSING_FAILED"
    message = "Unknown processing error"


class UpstreamFetchError(ProcessingError):
    kind = ErrorKind.UPSTREAM_FETCH
    message = "Failed to fetch blob"


class UnsupportedFormatError(ProcessingError):
    kind = ErrorKind.UNSUPPORTED_FORMAT
    message = "Unsupported target format"


class EncodeError(ProcessingError):
    kind = ErrorKind.ENCODE
    message = "Failed to encode image"


class StorageWriteError(ProcessingError):
    kind = ErrorKind.STORAGE_WRITE
    message = "Failed to store blob"


class BlobNotFound(AppException):
    status_code = 404
    error_code = "BLOB_NOT_FOUND"
    message = "Blob not found"
