from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import select

from src.pv_review.domain.exceptions import TaskAccessDeniedError, TaskNotFoundError
from src.pv_review.domain.models.deliverables import Deliverable, DeliverableStatus, DeliverableType
from src.pv_review.domain.models.project import DocumentText
from src.pv_review.domain.models.task import Task
from src.pv_review.domain.models.task_status import TaskStatus
from src.pv_review.domain.repositories import (
    DeliverableRepository,
    DocumentRepository,
    TaskStoreRepository,
    TaskWriterRepository,
)
from src.pv_review.infrastructure.postgres.mappers import OrmMapper
from src.pv_review.infrastructure.postgres.orm import (
    DeliverableRow,
    PostgresOrm,
    ProcessingJobRow,
    ProjectFileRow,
    ProjectRow,
    StandardRow,
    SubmissionRow,
)

logger = logging.getLogger(__name__)


class PostgresTaskStore(TaskStoreRepository, TaskWriterRepository):
    """Task store backed by the ``processing_jobs`` table."""

    def __init__(self, orm: PostgresOrm) -> None:
        self._orm = orm

    async def create_task(self, user_id: str, task: Task) -> str:
        """Persist a new task and return its id."""
        if task.id is None:
            task.id = uuid4().hex

        row = OrmMapper.to_job_row(user_id, task)
        async with self._orm.session_factory() as session:
            async with session.begin():
                session.add(row)
        return task.id

    async def get_task(self, user_id: str, task_id: str) -> Task:
        """Fetch a task by id and enforce ownership."""
        async with self._orm.session_factory() as session:
            row = await session.get(ProcessingJobRow, task_id)

        if row is None:
            raise TaskNotFoundError(task_id)
        if row.user_id != user_id:
            raise TaskAccessDeniedError(task_id, user_id)
        return OrmMapper.to_domain_task(row)

    async def read_task(self, task_id: str) -> TaskStatus:
        async with self._orm.session_factory() as session:
            row = await session.get(ProcessingJobRow, task_id)
        if row is None:
            raise TaskNotFoundError(task_id)
        return OrmMapper.to_domain_status(row)

    async def update_progress(self, task_id: str, progress: int) -> TaskStatus:
        return await self._transition(task_id, lambda status: status.advance(progress, task_id))

    async def complete_task(self, task_id: str, result: Any) -> TaskStatus:
        return await self._transition(task_id, lambda status: status.complete(result, task_id))

    async def fail_task(self, task_id: str, error: str) -> TaskStatus:
        return await self._transition(task_id, lambda status: status.fail(error, task_id))

    async def _transition(
        self, task_id: str, apply: Callable[[TaskStatus], TaskStatus]
    ) -> TaskStatus:
        async with self._orm.session_factory() as session:
            async with session.begin():
                # Row lock serialises concurrent writers of the same task.
                result = await session.execute(
                    select(ProcessingJobRow)
                    .where(ProcessingJobRow.id == task_id)
                    .with_for_update()
                )
                row = result.scalar_one_or_none()
                if row is None:
                    raise TaskNotFoundError(task_id)

                status = apply(OrmMapper.to_domain_status(row))
                OrmMapper.apply_status(row, status)
                row.updated_at = datetime.now(UTC)

        logger.debug(
            "Task status written",
            extra={"task_id": task_id, "status": status.state.value, "progress": status.progress},
        )
        return status


class PostgresDocumentRepository(DocumentRepository):
    def __init__(self, orm: PostgresOrm) -> None:
        self._orm = orm

    async def get_project_owner(self, project_id: str) -> str | None:
        async with self._orm.session_factory() as session:
            row = await session.get(ProjectRow, project_id)
        return row.user_id if row is not None else None

    async def list_global_standards(self) -> list[DocumentText]:
        statement = (
            select(StandardRow)
            .where(StandardRow.is_global.is_(True))
            .order_by(StandardRow.uploaded_at)
        )
        async with self._orm.session_factory() as session:
            rows = (await session.execute(statement)).scalars().all()
        return [OrmMapper.standard_to_document(row) for row in rows]

    async def list_project_files(self, project_id: str) -> list[DocumentText]:
        statement = (
            select(ProjectFileRow)
            .where(ProjectFileRow.project_id == project_id)
            .order_by(ProjectFileRow.uploaded_at)
        )
        async with self._orm.session_factory() as session:
            rows = (await session.execute(statement)).scalars().all()
        return [OrmMapper.file_to_document(row) for row in rows]


class PostgresDeliverableRepository(DeliverableRepository):
    def __init__(self, orm: PostgresOrm) -> None:
        self._orm = orm

    async def ensure_submission(
        self, project_id: str, submission_id: str | None, submitted_by: str
    ) -> str:
        async with self._orm.session_factory() as session:
            async with session.begin():
                if submission_id:
                    existing = await session.get(SubmissionRow, submission_id)
                    if existing is not None and existing.project_id == project_id:
                        return existing.id
                    logger.info(
                        "Submission not found for project, creating a new one",
                        extra={"submission_id": submission_id, "project_id": project_id},
                    )
                row = SubmissionRow(
                    id=uuid4().hex,
                    project_id=project_id,
                    submitted_by=submitted_by,
                    submitted_at=datetime.now(UTC),
                    status="pending",
                    compliance_percentage=0,
                )
                session.add(row)
        return row.id

    async def submission_project(self, submission_id: str) -> str | None:
        async with self._orm.session_factory() as session:
            row = await session.get(SubmissionRow, submission_id)
        return row.project_id if row is not None else None

    async def list_deliverables(self, submission_id: str) -> list[Deliverable]:
        statement = select(DeliverableRow).where(DeliverableRow.submission_id == submission_id)
        async with self._orm.session_factory() as session:
            rows = (await session.execute(statement)).scalars().all()
        return [OrmMapper.to_domain_deliverable(row) for row in rows]

    async def save_deliverable(
        self, submission_id: str, deliverable_type: DeliverableType, content: str
    ) -> Deliverable:
        now = datetime.now(UTC)
        async with self._orm.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    select(DeliverableRow).where(
                        DeliverableRow.submission_id == submission_id,
                        DeliverableRow.type == deliverable_type,
                    )
                )
                row = result.scalar_one_or_none()
                if row is None:
                    row = DeliverableRow(
                        id=uuid4().hex,
                        submission_id=submission_id,
                        type=deliverable_type,
                        name=deliverable_type.display_name,
                        status=DeliverableStatus.GENERATED,
                        content=content,
                        generated_at=now,
                    )
                    session.add(row)
                else:
                    row.name = deliverable_type.display_name
                    row.status = DeliverableStatus.UPDATED
                    row.content = content
                    row.updated_at = now
        return OrmMapper.to_domain_deliverable(row)
