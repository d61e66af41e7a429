from typing import Any

from pydantic import Field

from src.pv_review.domain.models.project import CamelModel, ProjectFileContent


class TaskPayload(CamelModel):
    """Marker/base class for task payloads."""

    project_id: str = Field(min_length=1, description="Project the work belongs to.")


class ExtractionPayload(TaskPayload):
    pass


class CompliancePayload(TaskPayload):
    project_files: list[ProjectFileContent] = Field(
        default_factory=list,
        description="Structured client-side context (for example extracted data as JSON).",
    )


class DeliverablesPayload(TaskPayload):
    submission_id: str | None = Field(
        default=None, description="Submission to attach deliverables to; created when missing."
    )
    findings: list[dict[str, Any]] = Field(default_factory=list)
    extracted_data: dict[str, Any] | None = None
