# core/storage.py
"""
Attachment storage.

Entities only ever hold opaque handles (bare filenames). A ``BlobStore``
maps handles to files under one directory of Django's default storage,
which is the local media root in dev and S3 when ``USE_S3_MEDIA=1``.
"""
import logging
import os
import time
from typing import Iterable, List, Optional, Sequence

from django.core.files.storage import default_storage
from django.utils.text import get_valid_filename

from .exceptions import StorageFailure, ValidationFailed

logger = logging.getLogger("collab.storage")


IMAGE_TYPES = ("image/",)
IMAGE_OR_PDF_TYPES = ("image/", "application/pdf")


def content_type_allowed(content_type: Optional[str], allowed: Sequence[str]) -> bool:
    if not content_type:
        return False
    content_type = content_type.lower()
    for pattern in allowed:
        if pattern.endswith("/"):
            if content_type.startswith(pattern):
                return True
        elif content_type == pattern:
            return True
    return False


class BlobStore:
    def __init__(self, location: str, allowed_types: Sequence[str] = IMAGE_TYPES, storage=None):
        self.location = location.strip("/")
        self.allowed_types = tuple(allowed_types)
        self._storage = storage

    @property
    def storage(self):
        # Resolved per call so settings overrides (tests, S3 switch) apply
        return self._storage or default_storage

    def path_for(self, handle: str) -> str:
        return f"{self.location}/{handle}"

    def check(self, files: Iterable) -> None:
        for upload in files:
            content_type = getattr(upload, "content_type", None)
            if not content_type_allowed(content_type, self.allowed_types):
                allowed = " or ".join(t.rstrip("/") for t in self.allowed_types)
                raise ValidationFailed(
                    f"File '{getattr(upload, 'name', '?')}' is not an accepted type ({allowed})."
                )

    def put(self, upload, prefix: str = "") -> str:
        """Store one uploaded file and return its handle."""
        self.check([upload])
        original = get_valid_filename(os.path.basename(getattr(upload, "name", "") or "file"))
        stem = "-".join(part for part in (prefix, str(int(time.time() * 1000)), original) if part)
        try:
            saved = self.storage.save(self.path_for(get_valid_filename(stem)), upload)
        except OSError as exc:
            logger.exception(f"Failed to store attachment {original} under {self.location}")
            raise StorageFailure() from exc
        return os.path.basename(saved)

    def put_many(self, uploads: Sequence, prefix: str = "") -> List[str]:
        """
        Store every upload or none of them.

        Types are checked before anything is written; if a later write fails,
        files already written by this call are removed again.
        """
        self.check(uploads)
        handles = []
        try:
            for upload in uploads:
                handles.append(self.put(upload, prefix=prefix))
        except StorageFailure:
            for handle in handles:
                self.delete(handle, missing_ok=True)
            raise
        return handles

    def exists(self, handle: str) -> bool:
        return self.storage.exists(self.path_for(handle))

    def delete(self, handle: str, missing_ok: bool = False) -> bool:
        """
        Remove one stored file. Returns False when it was already gone.

        ``OSError`` from the backend propagates unless ``missing_ok`` is set,
        so background callers can retry.
        """
        if not handle or "/" in handle or "\\" in handle:
            return False
        path = self.path_for(handle)
        try:
            if not self.storage.exists(path):
                return False
            self.storage.delete(path)
        except OSError:
            if missing_ok:
                logger.warning(f"Could not remove {path}; leaving it for the orphan collector")
                return False
            raise
        return True

    def list_handles(self) -> List[str]:
        try:
            _, files = self.storage.listdir(self.location)
        except FileNotFoundError:
            return []
        return list(files)

    def age_seconds(self, handle: str) -> float:
        modified = self.storage.get_modified_time(self.path_for(handle))
        return time.time() - modified.timestamp()


# Registry of the stores used by the domain apps; background tasks resolve by name
PROJECT_RESULTS = "project-results"
LOGBOOK_ATTACHMENTS = "logbook-attachments"

STORES = {
    PROJECT_RESULTS: BlobStore("projects/results", IMAGE_TYPES),
    LOGBOOK_ATTACHMENTS: BlobStore("projects/logbooks", IMAGE_OR_PDF_TYPES),
}


def get_store(name: str) -> BlobStore:
    return STORES[name]
