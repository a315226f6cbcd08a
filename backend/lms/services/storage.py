"""File storage for course materials and lecture recordings.

Rows store an opaque reference string; the active backend maps it to bytes.
Only the local-disk backend is functional. The object-store backend is the
extension point for S3-style storage and currently keeps files on local disk.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Protocol

from lms.config import settings
from lms.errors import BestEffort, FileTooLarge, Internal, NotFound, ValidationError

logger = logging.getLogger(__name__)

MATERIAL_CONTENT_TYPES = frozenset({
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "video/mp4",
    "video/avi",
    "video/mov",
    "video/wmv",
    "image/jpeg",
    "image/png",
    "image/gif",
    "text/plain",
})

LECTURE_VIDEO_CONTENT_TYPES = frozenset({
    "video/mp4",
    "video/avi",
    "video/mov",
    "video/wmv",
    "video/mkv",
    "video/webm",
})

VIDEO_CONTENT_TYPES = {
    ".mp4": "video/mp4",
    ".avi": "video/avi",
    ".mov": "video/quicktime",
    ".wmv": "video/x-ms-wmv",
    ".mkv": "video/x-matroska",
    ".webm": "video/webm",
    ".m4v": "video/x-m4v",
    ".flv": "video/x-flv",
}

_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,10}$")
_object_store_warned = False


@dataclass(frozen=True)
class UploadPolicy:
    max_size: int
    allowed_types: frozenset


def material_policy() -> UploadPolicy:
    return UploadPolicy(max_size=settings.MAX_MATERIAL_SIZE, allowed_types=MATERIAL_CONTENT_TYPES)


def lecture_video_policy() -> UploadPolicy:
    return UploadPolicy(max_size=settings.MAX_LECTURE_VIDEO_SIZE, allowed_types=LECTURE_VIDEO_CONTENT_TYPES)


def validate_upload(data: bytes, content_type: Optional[str], policy: UploadPolicy) -> None:
    """Reject an upload before any byte of it is persisted."""
    if not data:
        raise ValidationError("File is required")
    if content_type not in policy.allowed_types:
        raise ValidationError(
            f"Invalid file type '{content_type}'",
            allowed_types=sorted(policy.allowed_types),
        )
    if len(data) > policy.max_size:
        raise FileTooLarge(f"File too large (max {policy.max_size // (1024 * 1024)}MB)")


def video_content_type(reference: str) -> str:
    return VIDEO_CONTENT_TYPES.get(Path(reference).suffix.lower(), "video/mp4")


class StorageBackend(Protocol):
    def store(self, data: bytes, original_name: Optional[str], prefix: str = "") -> str: ...

    def resolve(self, reference: str) -> BinaryIO: ...

    def remove(self, reference: str) -> BestEffort: ...


class LocalStorage:
    """Flat directory of generated file names under ``root``."""

    def __init__(self, root: str):
        self.root = Path(root)

    def _path(self, reference: str) -> Path:
        root = self.root.resolve()
        candidate = (root / reference).resolve()
        if candidate.parent != root:
            raise NotFound("File not found")
        return candidate

    def store(self, data: bytes, original_name: Optional[str], prefix: str = "") -> str:
        ext = Path(original_name or "").suffix.lower()
        if not _EXTENSION_RE.match(ext):
            ext = ""
        reference = f"{prefix}{uuid.uuid4().hex}{ext}"
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            (self.root / reference).write_bytes(data)
        except OSError as e:
            raise Internal("Failed to store file", cause=e) from e
        return reference

    def resolve(self, reference: str) -> BinaryIO:
        path = self._path(reference)
        if not path.is_file():
            raise NotFound("File not found")
        return path.open("rb")

    def remove(self, reference: str) -> BestEffort:
        try:
            self._path(reference).unlink(missing_ok=True)
        except (OSError, NotFound) as e:
            logger.exception("Failed to delete stored file %s", reference)
            return BestEffort(error=e)
        return BestEffort()


class ObjectStoreStorage(LocalStorage):
    """Placeholder for bucket storage; keeps files under the local upload dir."""

    def __init__(self, root: str, bucket: Optional[str] = None):
        global _object_store_warned
        super().__init__(root)
        self.bucket = bucket
        if not _object_store_warned:
            logger.warning(
                "Object storage is not implemented yet (bucket=%s); falling back to local storage at %s",
                bucket,
                root,
            )
            _object_store_warned = True


def get_storage() -> StorageBackend:
    backend = settings.STORAGE_BACKEND
    if backend == "local":
        return LocalStorage(settings.UPLOAD_DIR)
    if backend == "object_store":
        return ObjectStoreStorage(settings.UPLOAD_DIR, settings.S3_BUCKET_NAME)
    raise ValueError(f"Unknown STORAGE_BACKEND '{backend}'")


def iter_file(handle: BinaryIO, chunk_size: int = 1024 * 1024) -> Iterator[bytes]:
    """Yield a resolved file in chunks, closing it when exhausted."""
    with handle:
        while True:
            chunk = handle.read(chunk_size)
            if not chunk:
                break
            yield chunk
