from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from src.pv_review.domain.models import (
    ComplianceFinding,
    ComplianceSummary,
    ExtractedData,
    Project,
    ProjectStatus,
    Submission,
    UploadedFile,
)
from src.pv_review.domain.models.project import SystemType

logger = logging.getLogger(__name__)

# Wizard steps: setup, analysis, review.
STEP_SETUP = 0
STEP_ANALYSIS = 1
STEP_REVIEW = 2


class ViewMode(str, Enum):
    NEW = "new"
    HISTORY = "history"


class ProjectState(BaseModel):
    """Everything the review screens render. Never mutated in place."""

    model_config = ConfigDict(frozen=True)

    current_project: Project | None = None
    project_history: tuple[Project, ...] = ()
    view_mode: ViewMode = ViewMode.NEW
    current_step: int = STEP_SETUP
    extracted_data: ExtractedData | None = None
    findings: tuple[ComplianceFinding, ...] = ()
    submissions: tuple[Submission, ...] = ()
    is_analyzing: bool = False
    is_reviewing: bool = False

    @property
    def summary(self) -> ComplianceSummary:
        return ComplianceSummary.from_findings(list(self.findings))


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class ProjectCreated(_Event):
    type: Literal["project_created"] = "project_created"
    project_id: str
    name: str
    location: str = ""
    system_type: SystemType = SystemType.ON_GRID
    at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ProjectOpened(_Event):
    type: Literal["project_opened"] = "project_opened"
    project_id: str


class FilesAdded(_Event):
    type: Literal["files_added"] = "files_added"
    files: tuple[UploadedFile, ...]
    standards: bool = False


class FileRemoved(_Event):
    type: Literal["file_removed"] = "file_removed"
    file_id: str


class StepSelected(_Event):
    type: Literal["step_selected"] = "step_selected"
    step: int = Field(ge=STEP_SETUP, le=STEP_REVIEW)


class ViewModeSelected(_Event):
    type: Literal["view_mode_selected"] = "view_mode_selected"
    view_mode: ViewMode


class AnalysisStarted(_Event):
    type: Literal["analysis_started"] = "analysis_started"


class AnalysisFinished(_Event):
    type: Literal["analysis_finished"] = "analysis_finished"
    extracted_data: ExtractedData


class ReviewStarted(_Event):
    type: Literal["review_started"] = "review_started"


class ReviewFinished(_Event):
    type: Literal["review_finished"] = "review_finished"
    submission: Submission


class WorkFailed(_Event):
    """Analysis or review ended with an error; both busy flags are cleared."""

    type: Literal["work_failed"] = "work_failed"
    error: str


class ProjectReset(_Event):
    type: Literal["project_reset"] = "project_reset"


ProjectEvent = Annotated[
    ProjectCreated
    | ProjectOpened
    | FilesAdded
    | FileRemoved
    | StepSelected
    | ViewModeSelected
    | AnalysisStarted
    | AnalysisFinished
    | ReviewStarted
    | ReviewFinished
    | WorkFailed
    | ProjectReset,
    Field(discriminator="type"),
]


def step_for_status(status: ProjectStatus) -> int:
    """Wizard step to show when a project is reopened from history."""
    if status in (ProjectStatus.REVIEWING, ProjectStatus.COMPLETED):
        return STEP_REVIEW
    if status is ProjectStatus.ANALYZING:
        return STEP_ANALYSIS
    return STEP_SETUP


def _touch(state: ProjectState, project: Project, **changes) -> ProjectState:
    """Replace the current project and its history entry."""
    history = tuple(project if item.id == project.id else item for item in state.project_history)
    return state.model_copy(update={"current_project": project, "project_history": history, **changes})


def _require_project(state: ProjectState, event: _Event) -> Project | None:
    if state.current_project is None:
        logger.warning("Event ignored without a current project", extra={"event": type(event).__name__})
    return state.current_project


def _project_created(state: ProjectState, event: ProjectCreated) -> ProjectState:
    project = Project(
        id=event.project_id,
        name=event.name,
        location=event.location,
        system_type=event.system_type,
        created_at=event.at,
        updated_at=event.at,
    )
    return ProjectState(
        current_project=project,
        project_history=(project, *state.project_history),
        view_mode=ViewMode.NEW,
    )


def _project_opened(state: ProjectState, event: ProjectOpened) -> ProjectState:
    project = next((item for item in state.project_history if item.id == event.project_id), None)
    if project is None:
        logger.warning("Unknown project opened", extra={"project_id": event.project_id})
        return state
    return ProjectState(
        current_project=project,
        project_history=state.project_history,
        view_mode=ViewMode.NEW,
        current_step=step_for_status(project.status),
    )


def _files_added(state: ProjectState, event: FilesAdded) -> ProjectState:
    project = _require_project(state, event)
    if project is None:
        return state
    if event.standards:
        update = {"standard_files": [*project.standard_files, *event.files]}
    else:
        update = {"files": [*project.files, *event.files]}
    return _touch(state, project.model_copy(update=update))


def _file_removed(state: ProjectState, event: FileRemoved) -> ProjectState:
    project = _require_project(state, event)
    if project is None:
        return state
    return _touch(
        state,
        project.model_copy(
            update={
                "files": [item for item in project.files if item.id != event.file_id],
                "standard_files": [
                    item for item in project.standard_files if item.id != event.file_id
                ],
            }
        ),
    )


def _step_selected(state: ProjectState, event: StepSelected) -> ProjectState:
    return state.model_copy(update={"current_step": event.step})


def _view_mode_selected(state: ProjectState, event: ViewModeSelected) -> ProjectState:
    return state.model_copy(update={"view_mode": event.view_mode})


def _analysis_started(state: ProjectState, event: AnalysisStarted) -> ProjectState:
    project = _require_project(state, event)
    if project is None:
        return state
    return _touch(
        state,
        project.model_copy(update={"status": ProjectStatus.ANALYZING}),
        is_analyzing=True,
        current_step=STEP_ANALYSIS,
    )


def _analysis_finished(state: ProjectState, event: AnalysisFinished) -> ProjectState:
    project = _require_project(state, event)
    if project is None:
        return state
    return _touch(
        state,
        project.model_copy(update={"status": ProjectStatus.STANDARDS}),
        is_analyzing=False,
        extracted_data=event.extracted_data,
    )


def _review_started(state: ProjectState, event: ReviewStarted) -> ProjectState:
    project = _require_project(state, event)
    if project is None:
        return state
    return _touch(
        state,
        project.model_copy(update={"status": ProjectStatus.REVIEWING}),
        is_reviewing=True,
    )


def _review_finished(state: ProjectState, event: ReviewFinished) -> ProjectState:
    project = _require_project(state, event)
    if project is None:
        return state
    return _touch(
        state,
        project.model_copy(update={"status": ProjectStatus.COMPLETED}),
        is_reviewing=False,
        findings=tuple(event.submission.findings),
        submissions=(event.submission, *state.submissions),
        current_step=STEP_REVIEW,
    )


def _work_failed(state: ProjectState, event: WorkFailed) -> ProjectState:
    logger.info("Review work failed", extra={"error": event.error})
    return state.model_copy(update={"is_analyzing": False, "is_reviewing": False})


def _project_reset(state: ProjectState, event: ProjectReset) -> ProjectState:
    return ProjectState(project_history=state.project_history, view_mode=state.view_mode)


_REDUCERS: dict[type[_Event], Callable[[ProjectState, _Event], ProjectState]] = {
    ProjectCreated: _project_created,
    ProjectOpened: _project_opened,
    FilesAdded: _files_added,
    FileRemoved: _file_removed,
    StepSelected: _step_selected,
    ViewModeSelected: _view_mode_selected,
    AnalysisStarted: _analysis_started,
    AnalysisFinished: _analysis_finished,
    ReviewStarted: _review_started,
    ReviewFinished: _review_finished,
    WorkFailed: _work_failed,
    ProjectReset: _project_reset,
}


def reduce(state: ProjectState, event: _Event) -> ProjectState:
    """Return the state that follows ``event``; ``state`` itself is left untouched."""
    try:
        reducer = _REDUCERS[type(event)]
    except KeyError as exc:
        raise ValueError(f"No reducer registered for {type(event).__name__}") from exc
    return reducer(state, event)


class ProjectStore:
    """Single owner of the current ``ProjectState``."""

    def __init__(self, initial: ProjectState | None = None) -> None:
        self._state = initial or ProjectState()

    @property
    def state(self) -> ProjectState:
        return self._state

    def dispatch(self, event: _Event) -> ProjectState:
        self._state = reduce(self._state, event)
        return self._state
