"""처리 시간 측정 유틸리티."""

import time
from contextlib import contextmanager

from loguru import logger


@contextmanager
def timer(label: str = ""):
    """컨텍스트 매니저: 블록 실행 시간을 측정한다.

    블록 안에서 예외가 나도 elapsed는 채워진다.

    사용법:
        with timer("process uploads/abc.jpg") as t:
            ...
        print(t.elapsed_ms)
    """
    t = _TimerResult()
    start = time.perf_counter()
    try:
        yield t
    finally:
        t.elapsed = time.perf_counter() - start
        if label:
            logger.debug(f"[{label}] {t.elapsed_ms}ms")


class _TimerResult:
    elapsed: float = 0.0

    @property
    def elapsed_ms(self) -> int:
        return round(self.elapsed * 1000)
