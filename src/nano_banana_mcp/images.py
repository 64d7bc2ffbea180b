"""
Image input resolution and artifact persistence.
"""
import base64
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .errors import ImageNotFoundError, ImageReadError


logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"

_MIME_TYPE_MAP = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


@dataclass(frozen=True)
class ResolvedImage:
    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE


def mime_type_for_path(path: str) -> str:
    """Determine MIME type from file extension."""
    ext = os.path.splitext(path)[1].lower()
    return _MIME_TYPE_MAP.get(ext, DEFAULT_MIME_TYPE)


def read_image_file(path: str) -> ResolvedImage:
    try:
        with open(path, "rb") as f:
            img_bytes = f.read()
    except FileNotFoundError:
        raise ImageNotFoundError(f"Image not found: {path}")
    except OSError as e:
        raise ImageReadError(f"Failed to read image {path}: {e}")
    return ResolvedImage(img_bytes, mime_type_for_path(path))


def resolve_image(image_data: Optional[str] = None, image_path: Optional[str] = None) -> ResolvedImage:
    """Turn an inline base64 payload or a file path into image bytes.

    Inline data takes precedence and is always treated as PNG; payload bytes
    are not sniffed.
    """
    if image_data:
        return ResolvedImage(base64.b64decode(image_data), DEFAULT_MIME_TYPE)
    if image_path:
        return read_image_file(image_path)
    raise ValueError("Either imageData or imagePath must be provided")


def extension_for_mime_type(mime_type: str) -> str:
    return "jpg" if mime_type == "image/jpeg" else "png"


def filesystem_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC instant (millisecond precision) with ':' and '.' swapped for '-'."""
    now = now or datetime.now(timezone.utc)
    now = now.astimezone(timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"
    return stamp.replace(":", "-").replace(".", "-")


def save_artifact(
    data: bytes,
    mime_type: str,
    output_dir: str,
    prefix: str,
    *,
    now: Optional[datetime] = None,
) -> str:
    """Write image bytes to ``{output_dir}/{prefix}-{timestamp}.{ext}``.

    The directory is created if needed; an existing file with the same name is
    overwritten.

    Returns:
        The path of the written file.
    """
    filename = f"{prefix}-{filesystem_timestamp(now)}.{extension_for_mime_type(mime_type)}"
    out_path = os.path.join(output_dir, filename)

    os.makedirs(output_dir or ".", exist_ok=True)
    with open(out_path, "wb") as f:
        f.write(data)

    logger.info("Saved %s (%d bytes)", out_path, len(data))
    return out_path
