"""Image normalization for inline (data URI) photo storage.

Downscales and recompresses images with Pillow so the inline payload
stays under the document size budget. Pillow work is CPU-bound; async
callers use normalize_to_budget_async which runs it in a thread.
"""

from __future__ import annotations

import asyncio
import base64
import io
import logging
from dataclasses import dataclass

from PIL import Image, ImageOps

from fieldlog.core.constants import (
    DEFAULT_PHOTO_SIZE_BUDGET_BYTES,
    FIRST_PASS_BOUNDS,
    FIRST_PASS_QUALITY,
    SECOND_PASS_BOUNDS,
    SECOND_PASS_QUALITY,
)
from fieldlog.domain.exceptions import PayloadTooLargeException, ValidationException

logger = logging.getLogger(__name__)

_SNIFFED_MIME = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


@dataclass(frozen=True)
class NormalizedImage:
    """Inline image produced by the normalizer."""

    data_uri: str
    width: int
    height: int
    byte_size: int
    mime_type: str = "image/jpeg"


def scaled_size(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Largest size within bounds that keeps the aspect ratio; never upscales."""
    if width <= 0 or height <= 0:
        raise ValueError("image dimensions must be positive")
    scale = min(max_width / width, max_height / height, 1.0)
    if scale >= 1.0:
        return width, height
    return max(1, min(max_width, round(width * scale))), max(1, min(max_height, round(height * scale)))


def to_data_uri(payload: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(payload).decode('ascii')}"


def is_inline_reference(reference: str | None) -> bool:
    """True for self-contained data URIs; only the 'data:' prefix is inspected."""
    return bool(reference) and reference.startswith("data:")


def inline_payload_size(reference: str) -> int:
    """Decoded byte length of a base64 data URI."""
    _, _, encoded = reference.partition(",")
    return len(base64.b64decode(encoded))


def sniff_mime_type(payload: bytes) -> str:
    for magic, mime in _SNIFFED_MIME:
        if payload.startswith(magic):
            return mime
    if payload[:4] == b"RIFF" and payload[8:12] == b"WEBP":
        return "image/webp"
    return "application/octet-stream"


def normalize_image(
    image_bytes: bytes,
    max_width: int,
    max_height: int,
    quality: float,
) -> NormalizedImage:
    """Downscale to fit max_width x max_height and re-encode as JPEG.

    Args:
        image_bytes: Encoded source image.
        max_width: Width bound in pixels.
        max_height: Height bound in pixels.
        quality: JPEG quality factor in (0, 1].

    Raises:
        OSError: image_bytes is not a decodable image (UnidentifiedImageError)
            or is truncated.
        DecompressionBombError: The pixel count is beyond Pillow's safety limit.
        ValueError: quality or bounds out of range.
    """
    if not 0 < quality <= 1:
        raise ValueError(f"quality must be in (0, 1], got {quality}")
    if max_width <= 0 or max_height <= 0:
        raise ValueError("bounds must be positive")

    with Image.open(io.BytesIO(image_bytes)) as img:
        img = ImageOps.exif_transpose(img)
        target = scaled_size(img.width, img.height, max_width, max_height)
        if target != (img.width, img.height):
            img = img.resize(target, Image.Resampling.LANCZOS)
        if img.mode in ("RGBA", "LA", "P"):
            rgba = img.convert("RGBA")
            flat = Image.new("RGB", rgba.size, (255, 255, 255))
            flat.paste(rgba, mask=rgba.getchannel("A"))
            img = flat
        elif img.mode != "RGB":
            img = img.convert("RGB")

        out = io.BytesIO()
        img.save(
            out,
            format="JPEG",
            quality=max(1, min(95, round(quality * 100))),
            optimize=True,
        )
        payload = out.getvalue()
        return NormalizedImage(
            data_uri=to_data_uri(payload, "image/jpeg"),
            width=img.width,
            height=img.height,
            byte_size=len(payload),
        )


def normalize_to_budget(
    image_bytes: bytes,
    budget: int = DEFAULT_PHOTO_SIZE_BUDGET_BYTES,
) -> NormalizedImage:
    """Normalize with a first pass and, if still over budget, a tighter second pass.

    Undecodable input (unknown format, truncated data) is embedded as-is
    when it fits the budget.

    Raises:
        ValidationException: The image exceeds Pillow's decompression-bomb limit.
        PayloadTooLargeException: Output of the last attempt exceeds budget.
    """
    try:
        first = normalize_image(image_bytes, *FIRST_PASS_BOUNDS, FIRST_PASS_QUALITY)
    except Image.DecompressionBombError as e:
        raise ValidationException(f"Photo rejected: {e}", "image") from e
    except OSError as e:
        # UnidentifiedImageError, truncated or otherwise corrupt data
        logger.warning("Photo could not be decoded (%s); embedding raw bytes", e)
        if len(image_bytes) > budget:
            raise PayloadTooLargeException(len(image_bytes), budget) from None
        mime = sniff_mime_type(image_bytes)
        return NormalizedImage(
            data_uri=to_data_uri(image_bytes, mime),
            width=0,
            height=0,
            byte_size=len(image_bytes),
            mime_type=mime,
        )

    logger.debug("Photo compressed to %d KB (%dx%d)", round(first.byte_size / 1024), first.width, first.height)
    if first.byte_size <= budget:
        return first

    logger.warning(
        "Photo still %d KB after first pass (budget %d KB); compressing again",
        round(first.byte_size / 1024),
        round(budget / 1024),
    )
    second = normalize_image(image_bytes, *SECOND_PASS_BOUNDS, SECOND_PASS_QUALITY)
    if second.byte_size > budget:
        raise PayloadTooLargeException(second.byte_size, budget)
    return second


async def normalize_to_budget_async(
    image_bytes: bytes,
    budget: int = DEFAULT_PHOTO_SIZE_BUDGET_BYTES,
) -> NormalizedImage:
    """normalize_to_budget in a worker thread so the event loop is not blocked."""
    return await asyncio.to_thread(normalize_to_budget, image_bytes, budget)
