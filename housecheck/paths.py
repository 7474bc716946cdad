from __future__ import annotations

import re
import time
import uuid
from pathlib import PurePosixPath
from typing import Optional

# Image types accepted for inspection photos
IMG_EXTS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

IMAGE_PREFIX = "inspections"

_KEY_RE = re.compile(rf"^{IMAGE_PREFIX}/(?P<inspection_id>[^/]+)/(?P<name>[^/]+)$")
_PREFIX_RE = re.compile(rf"^{IMAGE_PREFIX}/(?P<inspection_id>[^/]+)/?$")

def content_type_for(name: str) -> str:
    """Get appropriate content type for a file name."""
    return CONTENT_TYPES.get(PurePosixPath(name).suffix.lower(), "application/octet-stream")

def inspection_prefix(inspection_id: str) -> str:
    return f"{IMAGE_PREFIX}/{inspection_id}/"

def file_extension(filename: str) -> str:
    # "photo.JPG" -> "JPG"; a name without a dot is its own extension
    return filename.rsplit(".", 1)[-1]

def generate_image_path(inspection_id: str, filename: str, now: Optional[float] = None) -> str:
    """
    Build inspections/<inspection_id>/<timestamp_ms>-<random>.<ext>.
    Keys are not checked for collisions here; the service refuses to overwrite.
    """
    ts = int((time.time() if now is None else now) * 1000)
    return f"{inspection_prefix(inspection_id)}{ts}-{uuid.uuid4().hex}.{file_extension(filename)}"

def parse_image_path(path: str) -> Optional[tuple[str, str]]:
    """Return (inspection_id, filename) for a well-formed image key, else None."""
    m = _KEY_RE.match(path)
    if not m or m.group("name") in (".", ".."):
        return None
    return m.group("inspection_id"), m.group("name")

def parse_inspection_prefix(prefix: str) -> Optional[str]:
    """Return the inspection id for "inspections/<id>/", else None."""
    m = _PREFIX_RE.match(prefix)
    return m.group("inspection_id") if m else None
