from __future__ import annotations

import asyncio
import logging
import re
import time
import unicodedata
from datetime import UTC, datetime
from uuid import uuid4

import inject

from src.pv_review.application.poller import SleepFn
from src.pv_review.domain.exceptions import GatewayError, UploadError
from src.pv_review.domain.models import FileType, UploadedFile
from src.pv_review.domain.repositories import ObjectStorageRepository
from src.setup.api_config import ApiSettings, get_api_settings
from src.setup.poller_config import PollerSettings, get_poller_settings

logger = logging.getLogger(__name__)

PROJECT_FILES_BUCKET = "project-files"
STANDARDS_BUCKET = "standards"

_UNSAFE = re.compile(r"[^a-zA-Z0-9._-]+")
_DASHES = re.compile(r"-+")
_EDGES = re.compile(r"^[-.]+|[-.]+$")
_MAX_BASE_LENGTH = 120


def sanitize_storage_filename(original_name: str) -> str:
    """
    Storage keys reject unicode and punctuation; keep the stored display name
    untouched and only sanitize the object path segment.
    """
    base, dot, ext = original_name.rpartition(".")
    if not dot or not base:
        base, ext = original_name, ""
    decomposed = unicodedata.normalize("NFKD", base)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    safe = _UNSAFE.sub("-", stripped)
    safe = _DASHES.sub("-", safe)
    safe = _EDGES.sub("", safe)[:_MAX_BASE_LENGTH]
    safe = safe or "standard"
    return f"{safe}.{ext.lower()}" if ext else safe


def detect_file_type(file_name: str) -> FileType:
    ext = file_name.rpartition(".")[2].lower() if "." in file_name else ""
    if ext in ("dwg", "dxf"):
        return FileType.DWG
    if ext == "pdf":
        return FileType.PDF
    if ext in ("xlsx", "xls", "csv"):
        return FileType.EXCEL
    return FileType.DATASHEET


class UploadService:
    """Uploads files to object storage; a failed upload is retried exactly once."""

    def __init__(
        self,
        storage: ObjectStorageRepository | None = None,
        *,
        settings: PollerSettings | None = None,
        api_settings: ApiSettings | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._storage = storage or inject.instance(ObjectStorageRepository)
        self._retry_delay = (settings or get_poller_settings()).UPLOAD_RETRY_DELAY_MS / 1000
        self._max_bytes = (api_settings or get_api_settings()).MAX_UPLOAD_BYTES
        self._sleep = sleep

    async def upload_project_file(
        self, user_id: str, project_id: str, file_name: str, content: bytes, credential: str
    ) -> UploadedFile:
        object_path = f"{user_id}/{project_id}/{_timestamp_ms()}-{sanitize_storage_filename(file_name)}"
        await self.upload(PROJECT_FILES_BUCKET, object_path, file_name, content, credential)
        return self._uploaded(file_name, content, object_path, detect_file_type(file_name))

    async def upload_standard(
        self, user_id: str, file_name: str, content: bytes, credential: str
    ) -> UploadedFile:
        object_path = f"{user_id}/{_timestamp_ms()}-{sanitize_storage_filename(file_name)}"
        await self.upload(STANDARDS_BUCKET, object_path, file_name, content, credential)
        return self._uploaded(file_name, content, object_path, FileType.STANDARD)

    async def upload(
        self, bucket: str, object_path: str, file_name: str, content: bytes, credential: str
    ) -> None:
        if len(content) > self._max_bytes:
            raise UploadError(file_name, f"File too large (max {self._max_bytes // (1024 * 1024)}MB)")

        try:
            await self._storage.upload(bucket, object_path, content, credential)
            return
        except GatewayError as exc:
            logger.warning(
                "Upload failed, retrying once",
                extra={"file_name": file_name, "bucket": bucket, "error": str(exc)},
            )

        await self._sleep(self._retry_delay)
        try:
            await self._storage.upload(bucket, object_path, content, credential)
        except GatewayError as exc:
            raise UploadError(file_name, str(exc)) from exc

    @staticmethod
    def _uploaded(file_name: str, content: bytes, object_path: str, file_type: FileType) -> UploadedFile:
        return UploadedFile(
            id=uuid4().hex,
            name=file_name,
            type=file_type,
            size=len(content),
            uploaded_at=datetime.now(UTC),
            storage_path=object_path,
        )


def _timestamp_ms() -> int:
    return int(time.time() * 1000)
