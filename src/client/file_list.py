"""클라이언트 측 파일 목록 상태.

브라우저 UI가 들고 있는 이미지 레코드 목록을 파이썬으로 옮긴 것.
업로드 → 처리 호출 순서를 관리하고, 응답으로 받은 레코드를 목록에 반영한다.

http 인자는 base_url이 설정된 httpx.Client (테스트에서는 FastAPI TestClient).

    state = ImageListState(httpx.Client(base_url="http://localhost:8000"))
    state.upload([("a.jpg", data, "image/jpeg")])
    state.process(state.files[0].id, ProcessSettings(quality=80, target_format="original"))
"""

import threading

import httpx
from loguru import logger

from model.image import ImageRecord, ImageStatus, ProcessSettings


class ImageListState:
    def __init__(self, http: httpx.Client):
        self._http = http
        self._files: list[ImageRecord] = []
        # 여러 스레드에서 process()를 동시에 불러도 목록이 깨지지 않도록
        self._lock = threading.Lock()
        # UI 버튼 비활성화용 힌트일 뿐, 중복 요청을 막지 않는다
        self.is_processing_any = False
        self.error_message: str | None = None

    @property
    def files(self) -> list[ImageRecord]:
        with self._lock:
            return list(self._files)

    def get(self, image_id: str) -> ImageRecord | None:
        with self._lock:
            return next((f for f in self._files if f.id == image_id), None)

    def upload(self, files: list[tuple[str, bytes, str]]) -> list[str]:
        """(파일명, 바이트, MIME) 목록을 업로드하고 파일별 에러 메시지를 반환한다.

        200/207이면 성공한 레코드를 목록에 합친다.
        400이면 error_message에 서버 메시지를 남기고 아무것도 추가하지 않는다.
        """
        try:
            resp = self._http.post("/api/upload", files=[("files", f) for f in files])
        except httpx.HTTPError as e:
            logger.error(f"Upload error: {e}")
            self.error_message = str(e) or "An unknown error occurred during upload."
            return [self.error_message]

        try:
            body = resp.json()
        except ValueError:
            # 프록시의 413 같은 JSON이 아닌 응답
            logger.error(f"Upload error: non-JSON response ({resp.status_code})")
            self.error_message = f"Upload failed ({resp.status_code})"
            return [self.error_message]

        if resp.status_code == 200:
            records, errors = body, []
        elif resp.status_code == 207:
            records, errors = body["uploadedFiles"], body["uploadErrors"]
        else:
            self.error_message = (
                body.get("error", "Upload failed") if isinstance(body, dict) else "Upload failed"
            )
            return [self.error_message]

        self.add_uploaded([ImageRecord.model_validate(r) for r in records])
        return errors

    def add_uploaded(self, records: list[ImageRecord]) -> None:
        """새 레코드를 뒤에 붙인다. blob_url이 이미 있는 레코드는 버린다 (id 기준 아님)."""
        with self._lock:
            existing = {f.blob_url for f in self._files}
            self._files.extend(r for r in records if r.blob_url not in existing)
        self.error_message = None

    def process(self, image_id: str, settings: ProcessSettings) -> ImageRecord | None:
        """레코드를 processing으로 표시하고 /api/process를 호출한 뒤 결과를 반영한다.

        응답이 실패(4xx/5xx)거나 통신 오류면 status=failed + error_message만 갱신한다.
        같은 레코드를 동시에 처리하면 나중에 반영된 응답이 남는다.
        """
        record = self.get(image_id)
        if record is None:
            return None

        with self._lock:
            self.is_processing_any = True
            self._update(image_id, status=ImageStatus.PROCESSING, error_message=None)

        try:
            resp = self._http.post(
                "/api/process",
                json={"imageFile": record.to_json(), "settings": settings.to_json()},
            )
            body = resp.json()
            if resp.is_success:
                result = ImageRecord.model_validate(body)
                with self._lock:
                    self._update(
                        image_id, **{k: getattr(result, k) for k in result.model_fields_set}
                    )
            else:
                message = body.get("errorMessage") or body.get("error") or "Processing failed"
                with self._lock:
                    self._update(image_id, status=ImageStatus.FAILED, error_message=message)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Processing error for {image_id}: {e}")
            with self._lock:
                self._update(
                    image_id,
                    status=ImageStatus.FAILED,
                    error_message=str(e) or "An unknown error occurred during processing.",
                )
        finally:
            with self._lock:
                self.is_processing_any = any(
                    f.id != image_id and f.status == ImageStatus.PROCESSING
                    for f in self._files
                )

        return self.get(image_id)

    def _update(self, image_id: str, **changes) -> None:
        # 호출하는 쪽에서 self._lock을 잡고 있어야 한다
        self._files = [
            f.model_copy(update=changes) if f.id == image_id else f for f in self._files
        ]
