"""Image normalization: bounds, aspect ratio, two-pass budget, inline references."""

import base64
import io

import pytest
from PIL import Image

from fieldlog.application import image_normalizer
from fieldlog.application.image_normalizer import (
    NormalizedImage,
    inline_payload_size,
    is_inline_reference,
    normalize_image,
    normalize_to_budget,
    normalize_to_budget_async,
    scaled_size,
)
from fieldlog.domain.exceptions import PayloadTooLargeException, ValidationException


def _decode(data_uri: str) -> Image.Image:
    return Image.open(io.BytesIO(base64.b64decode(data_uri.split(",", 1)[1])))


def test_scaled_size_keeps_aspect_ratio() -> None:
    assert scaled_size(4000, 3000, 800, 600) == (800, 600)
    assert scaled_size(3000, 4000, 800, 600) == (450, 600)


def test_scaled_size_never_upscales() -> None:
    assert scaled_size(320, 240, 800, 600) == (320, 240)


def test_normalize_image_fits_bounds(make_jpeg) -> None:
    result = normalize_image(make_jpeg(2400, 1200), 800, 600, 0.7)
    assert result.width <= 800 and result.height <= 600
    assert abs(result.width / result.height - 2.0) < 0.01
    assert result.data_uri.startswith("data:image/jpeg;base64,")
    assert inline_payload_size(result.data_uri) == result.byte_size
    img = _decode(result.data_uri)
    assert img.size == (result.width, result.height)


def test_normalize_image_flattens_alpha() -> None:
    out = io.BytesIO()
    Image.new("RGBA", (100, 50), (255, 0, 0, 128)).save(out, format="PNG")
    result = normalize_image(out.getvalue(), 800, 600, 0.7)
    assert _decode(result.data_uri).mode == "RGB"
    assert (result.width, result.height) == (100, 50)


def test_normalize_image_rejects_bad_quality(make_jpeg) -> None:
    with pytest.raises(ValueError):
        normalize_image(make_jpeg(10, 10), 800, 600, 0)


def test_large_photo_fits_budget(make_jpeg) -> None:
    """A 5000x4000 photo is reduced below 900 KB within 800x600."""
    result = normalize_to_budget(make_jpeg(5000, 4000, noise=True), 900 * 1024)
    assert result.byte_size <= 900 * 1024
    assert result.width <= 800 and result.height <= 600


def test_second_pass_used_when_first_over_budget(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake(image_bytes, max_width, max_height, quality):
        calls.append((max_width, max_height, quality))
        size = 1000 if max_width == 800 else 500
        return NormalizedImage("data:image/jpeg;base64,", max_width, max_height, size)

    monkeypatch.setattr(image_normalizer, "normalize_image", fake)
    result = normalize_to_budget(b"img", budget=800)
    assert calls == [(800, 600, 0.7), (600, 400, 0.5)]
    assert result.byte_size == 500


def test_payload_too_large_after_second_pass(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        image_normalizer,
        "normalize_image",
        lambda b, w, h, q: NormalizedImage("data:image/jpeg;base64,", w, h, 2000),
    )
    with pytest.raises(PayloadTooLargeException) as exc_info:
        normalize_to_budget(b"img", budget=1000)
    assert exc_info.value.error_code == "PAYLOAD_TOO_LARGE"
    assert exc_info.value.details == {"size": 2000, "budget": 1000}
    assert "smaller image" in exc_info.value.message


def test_undecodable_bytes_embedded_when_small() -> None:
    result = normalize_to_budget(b"not an image", budget=1024)
    assert result.data_uri == "data:application/octet-stream;base64," + base64.b64encode(b"not an image").decode()
    assert result.byte_size == len(b"not an image")


def test_undecodable_bytes_over_budget() -> None:
    with pytest.raises(PayloadTooLargeException):
        normalize_to_budget(b"x" * 2048, budget=1024)


@pytest.mark.asyncio
async def test_normalize_to_budget_async(make_jpeg) -> None:
    result = await normalize_to_budget_async(make_jpeg(1600, 1200))
    assert (result.width, result.height) == (800, 600)


def test_is_inline_reference() -> None:
    assert is_inline_reference("data:image/jpeg;base64,AAAA")
    assert not is_inline_reference("https://example.com/a.jpg")
    assert not is_inline_reference("")
    assert not is_inline_reference(None)


def test_truncated_jpeg_is_embedded_raw(make_jpeg) -> None:
    jpeg = make_jpeg(400, 300, noise=True)
    truncated = jpeg[: len(jpeg) // 2]
    result = normalize_to_budget(truncated)
    assert result.mime_type == "image/jpeg"
    assert result.byte_size == len(truncated)
    assert base64.b64decode(result.data_uri.partition(",")[2]) == truncated


def test_truncated_jpeg_over_budget(make_jpeg) -> None:
    jpeg = make_jpeg(400, 300, noise=True)
    with pytest.raises(PayloadTooLargeException):
        normalize_to_budget(jpeg[: len(jpeg) // 2], budget=100)


def test_decompression_bomb_is_rejected(make_jpeg, monkeypatch) -> None:
    jpeg = make_jpeg(200, 200)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1_000)
    with pytest.raises(ValidationException) as exc_info:
        normalize_to_budget(jpeg)
    assert exc_info.value.details == {"field": "image"}
