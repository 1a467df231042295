"""압축/변환 함수 단위 테스트."""

import io

import pytest
from PIL import Image

from conftest import make_image
from core.exceptions import EncodeError, UnsupportedFormatError
from processor.operations import (
    IMAGE_DESCRIPTION,
    USER_COMMENT,
    build_exif,
    compression_ratio,
    encode,
    ensure_supported,
    png_compression_level,
    resolve_target_format,
)


@pytest.mark.parametrize(
    ("quality", "level"),
    [(100, 0), (95, 1), (90, 1), (80, 2), (70, 3), (60, 4), (55, 5), (0, 9), (-20, 9), (150, 0)],
)
def test_png_compression_level(quality, level):
    """quality가 높을수록 압축 강도가 낮고, 범위 밖은 0-9로 clamp."""
    assert png_compression_level(quality) == level


def test_compression_ratio():
    assert compression_ratio(1000, 400) == pytest.approx(60)
    assert compression_ratio(1000, 1500) == pytest.approx(-50)


def test_compression_ratio_zero_original():
    """원본 크기 0 → 0 (ZeroDivisionError 없음)."""
    assert compression_ratio(0, 400) == 0


def test_resolve_target_format():
    assert resolve_target_format("original", "image/png") == "png"
    assert resolve_target_format("original", "image/jpeg") == "jpeg"
    assert resolve_target_format("png", "image/jpeg") == "png"


def test_ensure_supported():
    ensure_supported("jpeg", ["jpeg", "png"])
    with pytest.raises(UnsupportedFormatError, match="avif"):
        ensure_supported("avif", ["jpeg", "png"])


def test_build_exif_empty():
    assert build_exif(None, None) is None
    assert build_exif("", "") is None


def test_build_exif_title_and_description():
    exif = build_exif("Sunset", "beach")
    assert exif[IMAGE_DESCRIPTION] == "Sunset"
    assert exif[USER_COMMENT].startswith(b"UNICODE\x00")


def test_encode_png_to_jpeg_with_title():
    """RGBA PNG → JPEG (RGB 변환) + ImageDescription 기록."""
    data = make_image("PNG", (40, 30), mode="RGBA")
    out = encode(data, "jpeg", 70, build_exif("Sunset", None))

    result = Image.open(io.BytesIO(out))
    assert result.format == "JPEG"
    assert result.mode == "RGB"
    assert result.size == (40, 30)
    assert result.getexif()[IMAGE_DESCRIPTION] == "Sunset"


def test_encode_jpeg_to_png():
    data = make_image("JPEG", (20, 20))
    out = encode(data, "png", 60)

    result = Image.open(io.BytesIO(out))
    assert result.format == "PNG"
    assert result.size == (20, 20)


def test_encode_lower_quality_is_smaller():
    img = Image.effect_noise((128, 128), 64).convert("RGB")
    buf = io.BytesIO()
    img.save(buf, format="PNG")

    high = encode(buf.getvalue(), "jpeg", 95)
    low = encode(buf.getvalue(), "jpeg", 60)
    assert len(low) < len(high)


def test_encode_garbage_raises_encode_error():
    with pytest.raises(EncodeError):
        encode(b"definitely not an image", "png", 80)


def test_encode_unsupported_format():
    with pytest.raises(UnsupportedFormatError):
        encode(make_image("PNG"), "webp", 80)
