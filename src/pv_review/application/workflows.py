from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from src.pv_review.application.poller import ProgressObserver, TaskPoller
from src.pv_review.application.result_mapper import decode_payload, map_result
from src.pv_review.application.submitter import TaskSubmitter
from src.pv_review.domain.models import (
    AnalysisResult,
    ComplianceFinding,
    CompliancePayload,
    DeliverablesPayload,
    ExtractedData,
    ExtractionPayload,
    GenerationResult,
    ProjectFileContent,
    Submission,
    TaskKind,
    TaskPayload,
)
from src.pv_review.domain.models.outcomes import Immediate, Rejected

logger = logging.getLogger(__name__)


class ReviewWorkflow:
    """Client-side submit and poll cycle for each kind of AI-backed work."""

    def __init__(
        self,
        submitter: TaskSubmitter | None = None,
        poller_factory: Callable[[], TaskPoller] | None = None,
    ) -> None:
        self._submitter = submitter or TaskSubmitter()
        self._poller_factory = poller_factory or TaskPoller
        self._active_poller: TaskPoller | None = None

    def cancel(self) -> None:
        """Abandon the poll in flight, e.g. when the user navigates away."""
        if self._active_poller is not None:
            self._active_poller.cancel()

    async def run(
        self,
        kind: TaskKind,
        payload: TaskPayload,
        credential: str | None,
        *,
        label: str,
        on_progress: ProgressObserver | None = None,
    ) -> Any:
        outcome = await self._submitter.submit(kind, payload, credential)
        if isinstance(outcome, Rejected):
            outcome.raise_error()
        if isinstance(outcome, Immediate):
            return outcome.result

        logger.info("Polling task", extra={"task_id": outcome.task_id, "kind": kind.value})
        poller = self._poller_factory()
        self._active_poller = poller
        try:
            poll_outcome = await poller.poll(outcome.task_id, on_progress=on_progress)
        finally:
            self._active_poller = None
        return poll_outcome.unwrap(label)

    async def extract_data(self, project_id: str, credential: str | None) -> ExtractedData:
        result = await self.run(
            TaskKind.EXTRACTION,
            ExtractionPayload(project_id=project_id),
            credential,
            label="Extraction",
        )
        payload = decode_payload(result)
        return map_result(payload.get("extractedData", payload), ExtractedData)

    async def analyze_compliance(
        self,
        project_id: str,
        project_files: list[ProjectFileContent],
        credential: str | None,
        on_progress: ProgressObserver | None = None,
    ) -> AnalysisResult:
        result = await self.run(
            TaskKind.COMPLIANCE,
            CompliancePayload(project_id=project_id, project_files=project_files),
            credential,
            label="Analysis",
            on_progress=on_progress,
        )
        return map_result(result, AnalysisResult)

    async def generate_deliverables(
        self,
        project_id: str,
        findings: list[ComplianceFinding],
        extracted_data: ExtractedData | None,
        credential: str | None,
        submission_id: str | None = None,
        on_progress: ProgressObserver | None = None,
    ) -> GenerationResult:
        payload = DeliverablesPayload(
            project_id=project_id,
            submission_id=submission_id,
            findings=[finding.model_dump(mode="json", by_alias=True) for finding in findings],
            extracted_data=(
                extracted_data.model_dump(mode="json", by_alias=True) if extracted_data else None
            ),
        )
        result = await self.run(
            TaskKind.DELIVERABLES,
            payload,
            credential,
            label="Generation",
            on_progress=on_progress,
        )
        generation = map_result(result, GenerationResult)
        if generation.submission_id is None and submission_id is not None:
            generation = generation.model_copy(update={"submission_id": submission_id})
        return generation


def build_submission(
    result: AnalysisResult, submitted_by: str, now: datetime | None = None
) -> Submission:
    """Record a finished analysis as a submission in the project history."""
    now = now or datetime.now(UTC)
    return Submission(
        id=f"SUB-{uuid4().hex[:12]}",
        submitted_by=submitted_by,
        submitted_at=now,
        completed_at=now,
        status=Submission.status_for(result.compliance_percentage),
        compliance_percentage=result.compliance_percentage,
        findings=result.findings,
    )
