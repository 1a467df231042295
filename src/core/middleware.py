import time

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

SLOW_THRESHOLD_MS = 500


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """모든 HTTP 요청을 로깅하고 X-Response-Time-Ms 헤더를 붙인다.

    기록 항목: 메서드, 경로, 클라이언트 IP, 상태코드, 처리시간(ms)
    5xx 응답은 ERROR, 처리시간이 500ms를 초과하면 WARNING.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - start) * 1000
        client_ip = request.client.host if request.client else "unknown"
        line = (
            f"{request.method} {request.url.path} | {client_ip} | "
            f"{response.status_code} | {elapsed_ms:.0f}ms"
        )

        if response.status_code >= 500:
            logger.error(line)
        elif elapsed_ms > SLOW_THRESHOLD_MS:
            logger.warning(f"{line} (slow)")
        else:
            logger.info(line)

        response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.0f}"
        return response
