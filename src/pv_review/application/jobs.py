from __future__ import annotations

import logging
from typing import Any, Protocol, cast

import inject

from src.pv_review.application import prompts
from src.pv_review.application.services import (
    NO_READABLE_STANDARDS_MESSAGE,
    NO_STANDARDS_MESSAGE,
    decode_answer,
    readable,
)
from src.pv_review.domain.models import CompliancePayload, DeliverablesPayload, DeliverableType
from src.pv_review.domain.models.chat import ChatMessage
from src.pv_review.domain.models.compliance import round_half_up
from src.pv_review.domain.models.deliverables import missing_deliverable_types
from src.pv_review.domain.repositories import (
    ChatCompletionRepository,
    DeliverableRepository,
    DocumentRepository,
)
from src.setup.worker_config import get_worker_settings

logger = logging.getLogger(__name__)


class ProgressReporter(Protocol):
    async def report_progress(self, progress: int) -> None: ...

    async def report_completed(self, result: Any) -> None: ...

    async def report_failed(self, error: str) -> None: ...


class ReviewJobs:
    """Long-running AI work executed by the worker for deferred tasks."""

    def __init__(self) -> None:
        self._documents = cast(DocumentRepository, inject.instance(DocumentRepository))
        self._deliverables = cast(DeliverableRepository, inject.instance(DeliverableRepository))
        self._chat = cast(ChatCompletionRepository, inject.instance(ChatCompletionRepository))
        self._settings = get_worker_settings()

    async def run_compliance(
        self, message: CompliancePayload | dict[str, Any], reporter: ProgressReporter
    ) -> Any:
        async def job() -> dict[str, Any]:
            payload = CompliancePayload.model_validate(message)
            await reporter.report_progress(10)
            standards = await self._documents.list_global_standards()
            if not standards:
                raise RuntimeError(NO_STANDARDS_MESSAGE)
            readable_standards = readable(standards)
            if not readable_standards:
                raise RuntimeError(NO_READABLE_STANDARDS_MESSAGE)
            project_files = await self._documents.list_project_files(payload.project_id)
            await reporter.report_progress(40)

            limit = self._settings.MAX_DOCUMENT_CHARS
            completion = await self._chat.complete(
                [
                    ChatMessage(role="system", content=prompts.COMPLIANCE_SYSTEM_PROMPT),
                    ChatMessage(
                        role="user",
                        content=prompts.compliance_user_prompt(
                            readable_standards, project_files, payload.project_files, limit
                        ),
                    ),
                ],
                response_format={"type": "json_object"},
                max_completion_tokens=self._settings.COMPLIANCE_MAX_TOKENS,
            )
            await reporter.report_progress(80)
            analysis = decode_answer(completion.content)
            return {
                "findings": analysis.get("findings") or [],
                "compliancePercentage": analysis.get("compliancePercentage") or 0,
                "summary": analysis.get("summary") or "Analysis complete",
                "standardsUsed": [doc.name for doc in standards],
                "tokensUsed": completion.total_tokens,
            }

        return await self._execute("compliance", job, reporter)

    async def run_deliverables(
        self, message: DeliverablesPayload | dict[str, Any], reporter: ProgressReporter
    ) -> Any:
        async def job() -> dict[str, Any]:
            payload = DeliverablesPayload.model_validate(message)
            if payload.submission_id is None:
                raise ValueError("Deliverables require a submission")
            submission_id = payload.submission_id

            await reporter.report_progress(10)
            existing = await self._deliverables.list_deliverables(submission_id)
            missing = missing_deliverable_types(existing)
            await reporter.report_progress(20)

            generated: list[tuple[DeliverableType, str]] = []
            step = 60 / max(len(missing), 1)
            for idx, deliverable_type in enumerate(missing):
                content = await self._generate(deliverable_type, payload)
                generated.append((deliverable_type, content))
                await reporter.report_progress(round_half_up(20 + (idx + 1) * step))

            await reporter.report_progress(85)
            for deliverable_type, content in generated:
                await self._deliverables.save_deliverable(submission_id, deliverable_type, content)

            return {
                "generated": [item.value for item, _ in generated],
                "totalGenerated": len(generated),
                "submissionId": submission_id,
            }

        return await self._execute("deliverables", job, reporter)

    async def _generate(self, deliverable_type: DeliverableType, payload: DeliverablesPayload) -> str:
        completion = await self._chat.complete(
            [
                ChatMessage(role="system", content=prompts.deliverable_system_prompt(deliverable_type)),
                ChatMessage(
                    role="user",
                    content=prompts.deliverable_user_prompt(
                        deliverable_type, payload.project_id, payload.findings, payload.extracted_data
                    ),
                ),
            ],
            max_completion_tokens=self._settings.DELIVERABLE_MAX_TOKENS,
        )
        return completion.content or f"[{deliverable_type.value} content could not be generated]"

    @staticmethod
    async def _execute(kind: str, job, reporter: ProgressReporter) -> Any:
        """Run ``job`` and record exactly one terminal transition."""
        try:
            result = await job()
        except Exception as exc:
            logger.exception("Task failed", extra={"kind": kind})
            await reporter.report_failed(str(exc) or "Generation failed")
            raise
        await reporter.report_completed(result)
        return result
