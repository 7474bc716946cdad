"""
Batch image uploader: every file is uploaded as an independent unit of work,
all units start together and are awaited jointly, and one failure never stops
the others.
"""
from __future__ import annotations

import concurrent.futures
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from ..config import settings
from ..paths import IMG_EXTS, content_type_for, generate_image_path
from ..schemas import UploadedImage
from .errors import UploadInProgressError
from .notifications import Notifier

logger = logging.getLogger(__name__)


@dataclass
class LocalImage:
    """A file picked for upload."""
    name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: str | Path) -> "LocalImage":
        p = Path(path)
        return cls(name=p.name, content=p.read_bytes(), content_type=content_type_for(p.name))

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class Rejection:
    name: str
    reason: str


def select_images(
    files: Sequence[LocalImage],
    max_files: Optional[int] = None,
    max_bytes: Optional[int] = None,
) -> Tuple[List[LocalImage], List[Rejection]]:
    """
    File-picker gate, applied before any upload starts. Too many files rejects
    the whole selection; oversized or non-image files are rejected one by one.
    """
    max_files = settings.MAX_UPLOAD_FILES if max_files is None else max_files
    max_bytes = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes

    if len(files) > max_files:
        return [], [Rejection(f.name, f"Too many files (max {max_files})") for f in files]

    accepted, rejected = [], []
    for f in files:
        if Path(f.name).suffix.lower() not in IMG_EXTS:
            rejected.append(Rejection(f.name, "Unsupported file type"))
        elif f.size > max_bytes:
            rejected.append(Rejection(f.name, f"File is larger than {max_bytes // (1024 * 1024)}MB"))
        else:
            accepted.append(f)
    return accepted, rejected


class UploadStatus(str, Enum):
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class UploadProgress:
    file: str
    progress: int = 0
    status: UploadStatus = UploadStatus.UPLOADING


@dataclass
class UploadFailure:
    file: str
    error: Exception


@dataclass
class BatchResult:
    uploaded: List[UploadedImage] = field(default_factory=list)
    failed: List[UploadFailure] = field(default_factory=list)


class BatchImageUploader:
    """Uploads batches of images for one inspection."""

    def __init__(self, client, inspection_id: str, notifier: Notifier, clear_delay: Optional[float] = None):
        self.client = client
        self.inspection_id = inspection_id
        self.notifier = notifier
        self.clear_delay = settings.UPLOAD_PROGRESS_CLEAR_SECONDS if clear_delay is None else clear_delay
        self.progress: List[UploadProgress] = []
        self.uploading = False
        self.clear_timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def _set_progress(self, index: int, progress: int, status: UploadStatus) -> None:
        with self._lock:
            if index < len(self.progress):
                self.progress[index] = UploadProgress(self.progress[index].file, progress, status)

    def _upload_one(self, index: int, image: LocalImage):
        """One unit of work. Never raises: failures come back as UploadFailure."""
        path = generate_image_path(self.inspection_id, image.name)
        stored = False
        try:
            self.client.upload_object(path, image.content, image.name, image.content_type)
            stored = True
            url = self.client.get_public_url(path)
            self._set_progress(index, 100, UploadStatus.COMPLETED)
            return UploadedImage(id=path.rsplit("/", 1)[-1], url=url, path=path)
        except Exception as e:
            logger.error(f"Error uploading {image.name}: {e}")
            if stored:
                self._discard(path)
            self._set_progress(index, 0, UploadStatus.ERROR)
            return UploadFailure(image.name, e)

    def _discard(self, path: str) -> None:
        """Remove an object whose upload is being reported as failed."""
        try:
            self.client.delete_object(path)
        except Exception as e:
            logger.warning(f"Could not remove {path} after a failed upload: {e}")

    def upload(
        self,
        files: Sequence[LocalImage],
        on_uploaded: Optional[Callable[[List[UploadedImage]], None]] = None,
    ) -> BatchResult:
        if not files:
            return BatchResult()

        with self._lock:
            if self.uploading:
                raise UploadInProgressError("An upload is already running")
            self.uploading = True
            if self.clear_timer is not None:
                self.clear_timer.cancel()
            self.progress = [UploadProgress(f.name) for f in files]

        result = BatchResult()
        try:
            with concurrent.futures.ThreadPoolExecutor(max_workers=len(files)) as executor:
                futures = [executor.submit(self._upload_one, i, f) for i, f in enumerate(files)]
                outcomes = [future.result() for future in futures]

            for outcome in outcomes:
                if isinstance(outcome, UploadedImage):
                    result.uploaded.append(outcome)
                else:
                    result.failed.append(outcome)

            if result.uploaded:
                if on_uploaded is not None:
                    on_uploaded(result.uploaded)
                self.notifier.success(f"{len(result.uploaded)} image(s) uploaded successfully")
            if result.failed:
                self.notifier.error(f"{len(result.failed)} image(s) failed to upload")
        finally:
            with self._lock:
                self.uploading = False
            self.clear_timer = threading.Timer(self.clear_delay, self.clear_progress)
            self.clear_timer.daemon = True
            self.clear_timer.start()

        return result

    def clear_progress(self) -> None:
        with self._lock:
            self.progress = []
