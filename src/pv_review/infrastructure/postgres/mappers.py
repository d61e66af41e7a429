from __future__ import annotations

from src.pv_review.domain.models.deliverables import Deliverable
from src.pv_review.domain.models.payloads import (
    CompliancePayload,
    DeliverablesPayload,
    ExtractionPayload,
    TaskPayload,
)
from src.pv_review.domain.models.project import DocumentText
from src.pv_review.domain.models.task import Task
from src.pv_review.domain.models.task_kind import TaskKind
from src.pv_review.domain.models.task_metadata import TaskMetadata
from src.pv_review.domain.models.task_status import TaskStatus
from src.pv_review.infrastructure.postgres.orm import (
    DeliverableRow,
    ProcessingJobRow,
    ProjectFileRow,
    StandardRow,
)


class OrmMapper:
    @staticmethod
    def to_job_row(user_id: str, task: Task) -> ProcessingJobRow:
        if task.id is None:
            raise ValueError("Task id is required to persist ProcessingJobRow.")
        return ProcessingJobRow(
            id=task.id,
            project_id=task.payload.project_id,
            user_id=user_id,
            job_type=task.kind,
            status=task.status.state,
            progress=task.status.progress,
            payload=task.payload.model_dump(mode="json"),
            result=task.status.result,
            error=task.status.error,
            created_at=task.metadata.created_at,
            updated_at=task.metadata.updated_at or task.metadata.created_at,
        )

    @staticmethod
    def apply_status(row: ProcessingJobRow, status: TaskStatus) -> None:
        row.status = status.state
        row.progress = status.progress
        row.result = status.result
        row.error = status.error

    @staticmethod
    def to_domain_status(row: ProcessingJobRow) -> TaskStatus:
        return TaskStatus(
            state=row.status,
            progress=row.progress,
            result=row.result,
            error=row.error,
        )

    @staticmethod
    def to_domain_task(row: ProcessingJobRow) -> Task:
        return Task(
            id=row.id,
            kind=row.job_type,
            payload=OrmMapper._payload_from_row(row.job_type, row.payload or {}),
            status=OrmMapper.to_domain_status(row),
            metadata=TaskMetadata(created_at=row.created_at, updated_at=row.updated_at),
        )

    @staticmethod
    def file_to_document(row: ProjectFileRow) -> DocumentText:
        return DocumentText(
            name=row.name,
            content=row.extracted_text or "",
            file_type=row.file_type,
            size=row.size,
        )

    @staticmethod
    def standard_to_document(row: StandardRow) -> DocumentText:
        return DocumentText(
            name=row.file_name,
            content=row.extracted_text or "",
            file_type="standard",
            size=row.file_size,
        )

    @staticmethod
    def to_domain_deliverable(row: DeliverableRow) -> Deliverable:
        return Deliverable(
            id=row.id,
            type=row.type,
            name=row.name,
            status=row.status,
            generated_at=row.generated_at,
            updated_at=row.updated_at,
            content=row.content,
        )

    @staticmethod
    def _payload_from_row(kind: TaskKind, payload: dict) -> TaskPayload:
        if kind == TaskKind.COMPLIANCE:
            return CompliancePayload(**payload)
        if kind == TaskKind.DELIVERABLES:
            return DeliverablesPayload(**payload)
        return ExtractionPayload(**payload)
