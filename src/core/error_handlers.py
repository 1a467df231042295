"""전역 예외 핸들러.

AppException 계열 예외와 FastAPI 요청 검증 오류를 잡아
{"error": "...", "error_code": "..."} 형식의 JSON 응답으로 변환한다.
main.py에서 app.add_exception_handler()로 등록한다.
"""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from core.exceptions import AppException, InvalidRequest


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "error_code": exc.error_code,
        },
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """422 대신 400 + 공통 에러 형식으로 응답한다."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    detail = first.get("msg", "")
    logger.warning(f"Invalid request on {request.url.path}: {location} {detail}")

    message = f"Invalid request body: {location} {detail}".strip() if first else None
    return await app_exception_handler(request, InvalidRequest(message))
