"""
Pillow 기반 압축/변환 함수.
encode()는 원본 바이트를 받아서 목표 포맷으로 인코딩된 바이트를 반환한다.
"""

import io
import math

from PIL import ExifTags, Image

from core.exceptions import EncodeError, UnsupportedFormatError

# EXIF IFD0 태그
IMAGE_DESCRIPTION = ExifTags.Base.ImageDescription
USER_COMMENT = ExifTags.Base.UserComment


def resolve_target_format(target_format: str, original_format: str) -> str:
    """'original'이면 원본 MIME 타입의 subtype(image/png → png)을 쓴다."""
    if target_format == "original":
        return original_format.split("/")[-1].lower()
    return target_format


def ensure_supported(target_format: str, supported: list[str]) -> None:
    if target_format not in supported:
        raise UnsupportedFormatError(
            f"Unsupported target format: {target_format}. "
            f"Only {' and '.join(supported)} are supported."
        )


def png_compression_level(quality: int) -> int:
    """60-100 quality를 PNG 압축 강도(0-9)로 바꾼다.

    quality가 높을수록 압축 강도는 낮아진다. 범위를 벗어난 값은 0-9로 clamp.
    반올림은 0.5에서 올림 (quality=55 → 5).
    """
    level = math.floor((100 - quality) / 10 + 0.5)
    return max(0, min(9, level))


def compression_ratio(original_size: int, compressed_size: int) -> float:
    """원본 대비 줄어든 비율(%). 원본 크기가 0이면 0."""
    if original_size <= 0:
        return 0
    return (1 - compressed_size / original_size) * 100


def build_exif(title: str | None, description: str | None) -> Image.Exif | None:
    """title → ImageDescription, description → UserComment. 둘 다 없으면 None."""
    if not title and not description:
        return None

    exif = Image.Exif()
    if title:
        exif[IMAGE_DESCRIPTION] = title
    if description:
        # UserComment는 8바이트 문자셋 헤더 + 본문
        exif[USER_COMMENT] = b"UNICODE\x00" + description.encode("utf-16-be")
    return exif


def encode(
    data: bytes, target_format: str, quality: int, exif: Image.Exif | None = None
) -> bytes:
    """원본 바이트를 디코딩해서 target_format으로 다시 인코딩한다.

    jpeg: quality를 그대로 전달
    png:  png_compression_level(quality)를 compress_level로 전달
    """
    if target_format == "jpeg":
        options = {"quality": quality}
    elif target_format == "png":
        options = {"compress_level": png_compression_level(quality)}
    else:
        raise UnsupportedFormatError(f"Unsupported target format: {target_format}")
    if exif is not None:
        options["exif"] = exif

    try:
        with Image.open(io.BytesIO(data)) as source:
            image = _convert_for(source, target_format)
            buf = io.BytesIO()
            image.save(buf, format=target_format.upper(), **options)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise EncodeError(f"Failed to encode image as {target_format}: {e}") from e

    return buf.getvalue()


def _convert_for(image: Image.Image, target_format: str) -> Image.Image:
    # JPEG은 알파 채널/팔레트를 지원하지 않음
    if target_format == "jpeg" and image.mode not in ("RGB", "L", "CMYK"):
        return image.convert("RGB")
    if target_format == "png" and image.mode == "CMYK":
        return image.convert("RGB")
    image.load()
    return image
