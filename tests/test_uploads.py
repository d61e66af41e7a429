from __future__ import annotations

import pytest

from src.pv_review.application.uploads import (
    PROJECT_FILES_BUCKET,
    STANDARDS_BUCKET,
    UploadService,
    detect_file_type,
    sanitize_storage_filename,
)
from src.pv_review.domain.exceptions import GatewayError, UploadError
from src.pv_review.domain.models import FileType
from src.setup.api_config import ApiSettings
from src.setup.poller_config import PollerSettings


class FlakyStorage:
    """Fails the first ``failures`` uploads."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.calls: list[tuple[str, str]] = []

    async def upload(self, bucket: str, object_path: str, content: bytes, credential: str) -> None:
        self.calls.append((bucket, object_path))
        if len(self.calls) <= self.failures:
            raise GatewayError("Bad gateway", 502)


class FakeSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_service(storage: FlakyStorage, sleep: FakeSleep, max_bytes: int = 1024) -> UploadService:
    return UploadService(
        storage,
        settings=PollerSettings(UPLOAD_RETRY_DELAY_MS=250),
        api_settings=ApiSettings(MAX_UPLOAD_BYTES=max_bytes),
        sleep=sleep,
    )


@pytest.mark.parametrize(
    ("original", "expected"),
    [
        ("IEC 62548 – Édition 2.PDF", "IEC-62548-Edition-2.pdf"),
        ("layout.dwg", "layout.dwg"),
        ("...---.pdf", "standard.pdf"),
        ("plan (final)!!", "plan-final"),
    ],
)
def test_sanitize_storage_filename(original: str, expected: str) -> None:
    assert sanitize_storage_filename(original) == expected


def test_sanitized_base_is_truncated() -> None:
    assert sanitize_storage_filename("a" * 300 + ".pdf") == "a" * 120 + ".pdf"


@pytest.mark.parametrize(
    ("name", "file_type"),
    [
        ("site.DWG", FileType.DWG),
        ("site.dxf", FileType.DWG),
        ("sld.pdf", FileType.PDF),
        ("bom.xlsx", FileType.EXCEL),
        ("module-spec", FileType.DATASHEET),
    ],
)
def test_detect_file_type(name: str, file_type: FileType) -> None:
    assert detect_file_type(name) is file_type


@pytest.mark.asyncio
async def test_upload_succeeds_first_time() -> None:
    storage, sleep = FlakyStorage(), FakeSleep()

    uploaded = await make_service(storage, sleep).upload_project_file(
        "user-1", "p-1", "Site Plan.pdf", b"%PDF", "token"
    )

    bucket, object_path = storage.calls[0]
    assert bucket == PROJECT_FILES_BUCKET
    assert object_path.startswith("user-1/p-1/")
    assert object_path.endswith("-Site-Plan.pdf")
    assert uploaded.name == "Site Plan.pdf"
    assert uploaded.type is FileType.PDF
    assert uploaded.size == 4
    assert uploaded.storage_path == object_path
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_failed_upload_is_retried_once_after_delay() -> None:
    storage, sleep = FlakyStorage(failures=1), FakeSleep()

    uploaded = await make_service(storage, sleep).upload_standard(
        "user-1", "IEC 62446.pdf", b"%PDF", "token"
    )

    assert len(storage.calls) == 2
    assert storage.calls[0] == storage.calls[1]
    assert storage.calls[0][0] == STANDARDS_BUCKET
    assert sleep.delays == [0.25]
    assert uploaded.type is FileType.STANDARD


@pytest.mark.asyncio
async def test_second_failure_raises() -> None:
    storage, sleep = FlakyStorage(failures=2), FakeSleep()

    with pytest.raises(UploadError, match="Failed to upload a.pdf: Bad gateway"):
        await make_service(storage, sleep).upload_standard("user-1", "a.pdf", b"%PDF", "token")

    assert len(storage.calls) == 2


@pytest.mark.asyncio
async def test_oversized_file_is_refused_without_upload() -> None:
    storage, sleep = FlakyStorage(), FakeSleep()
    service = make_service(storage, sleep, max_bytes=2 * 1024 * 1024)

    with pytest.raises(UploadError, match=r"File too large \(max 2MB\)"):
        await service.upload_standard("user-1", "big.pdf", b"0" * (2 * 1024 * 1024 + 1), "token")

    assert storage.calls == []
