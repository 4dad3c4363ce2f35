"""Capture upload helpers: file validation, image preparation, request ids."""

import io
import logging
import uuid
from typing import Tuple

from PIL import Image, ImageOps

from kyc_ocr.core.config import get_settings

logger = logging.getLogger("kyc.ocr")

ALLOWED_EXT = {"jpg", "jpeg", "png", "webp"}  # Camera captures and gallery picks
MEDIA_EXT = {"image/jpeg": "jpg", "image/png": "png"}


def generate_request_id() -> str:
    """Return a random hex string for correlation in logs/responses."""
    return uuid.uuid4().hex[:12]


def extension_from_filename(filename: str) -> str:
    return filename.rsplit('.', 1)[-1].lower() if filename and '.' in filename else ''


def validate_source(filename: str, data: bytes) -> Tuple[str, bytes]:
    """Validate raw upload bytes and extension.

    Raises ValueError with concise error code strings that map directly to
    user-facing error.detail in API responses.
    """
    settings = get_settings()
    if not data:
        raise ValueError("empty_file")
    ext = extension_from_filename(filename)
    if ext not in ALLOWED_EXT:
        raise ValueError("unsupported_extension")
    size_mb = len(data) / (1024 * 1024)
    if size_mb > settings.MAX_FILE_MB:
        raise ValueError("file_too_large")
    return ext, data


def prepare_image(data: bytes) -> Tuple[bytes, str]:
    """Re-encode a captured image before it is forwarded for OCR.

    Returns (bytes, media_type). EXIF orientation is applied to the pixels,
    since the re-encoded file carries no orientation tag. Small PNGs stay PNG;
    everything else becomes a JPEG at JPEG_QUALITY. When the image cannot be
    decoded the original bytes are forwarded unchanged.
    """
    settings = get_settings()
    try:
        with Image.open(io.BytesIO(data)) as im:
            keep_png = im.format == "PNG" and len(data) <= settings.CONVERT_SIZE_BYTES
            upright = ImageOps.exif_transpose(im)
            out = io.BytesIO()
            if keep_png:
                upright.save(out, format="PNG", optimize=True)
                return out.getvalue(), "image/png"
            upright.convert("RGB").save(out, format="JPEG", quality=settings.JPEG_QUALITY)
            return out.getvalue(), "image/jpeg"
    except Exception as exc:
        logger.warning("image_prepare_failed size=%d err=%s", len(data), exc)
        return data, "application/octet-stream"


def capture_filename(side: str, media_type: str, original: str) -> str:
    """Name a prepared capture after its side and re-encoded format ("back_id.jpg").

    Pass-through bytes keep the uploaded name.
    """
    ext = MEDIA_EXT.get(media_type)
    if not ext:
        return original
    return f"{side}_id.{ext}"
