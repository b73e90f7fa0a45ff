"""Validation helpers for images attached to chat turns."""

from __future__ import annotations

import base64
import binascii
import re

from backend.config import settings
from backend.errors import ImageInputError

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w=.+-]+)*;base64,(?P<payload>.*)$", re.DOTALL)

# Magic numbers for formats accepted without a declared media type
_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


def sniff_image_type(data: bytes) -> str | None:
    """Media type from leading bytes, or None if not a recognised image."""
    for signature, mime in _SIGNATURES:
        if data.startswith(signature):
            return mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def decode_image(raw: str, max_bytes: int | None = None) -> tuple[str, bytes]:
    """
    Decode and validate a base64 image, optionally wrapped in a data URI.

    Args:
        raw: Base64 payload or "data:<mime>;base64,<payload>"
        max_bytes: Decoded size limit, defaults to settings.MAX_IMAGE_BYTES

    Returns:
        (media type, decoded bytes)

    Raises:
        ImageInputError: 422 undecodable, 413 too large, 415 not an image
    """
    limit = settings.MAX_IMAGE_BYTES if max_bytes is None else max_bytes

    declared: str | None = None
    payload = raw.strip()
    match = _DATA_URI.match(payload)
    if match:
        declared = (match.group("mime") or "").lower() or None
        payload = match.group("payload")
    payload = re.sub(r"\s+", "", payload)

    # Reject oversized payloads before decoding them
    if len(payload) * 3 // 4 > limit + 2:
        raise ImageInputError("Image is too large.", status_code=413)

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageInputError("Invalid image data. Must be base64-encoded.") from e

    if not data:
        raise ImageInputError("Invalid image data. Image is empty.")
    if len(data) > limit:
        raise ImageInputError("Image is too large.", status_code=413)

    if declared is not None:
        if not declared.startswith("image/"):
            raise ImageInputError("Only image files are allowed.", status_code=415)
        return declared, data

    sniffed = sniff_image_type(data)
    if sniffed is None:
        raise ImageInputError("Only image files are allowed.", status_code=415)
    return sniffed, data


def to_data_uri(mime: str, data: bytes) -> str:
    """Encode image bytes the way messages store them."""
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def normalize_image(raw: str) -> str:
    """Validate an incoming image and return it as a canonical data URI."""
    mime, data = decode_image(raw)
    return to_data_uri(mime, data)
