from src.pv_review.domain.models.compliance import (
    ActionType,
    AnalysisResult,
    ComplianceFinding,
    ComplianceSummary,
    SeverityLevel,
    Submission,
    SubmissionStatus,
)
from src.pv_review.domain.models.deliverables import (
    Deliverable,
    DeliverableStatus,
    DeliverableType,
    GenerationResult,
)
from src.pv_review.domain.models.extraction import CableSummary, ExtractedData, PvParameters
from src.pv_review.domain.models.outcomes import (
    Deferred,
    Immediate,
    PollCancelled,
    PollCompleted,
    PollErrored,
    PollFailed,
    PollOutcome,
    PollTimedOut,
    Rejected,
    SubmissionOutcome,
)
from src.pv_review.domain.models.payloads import (
    CompliancePayload,
    DeliverablesPayload,
    ExtractionPayload,
    TaskPayload,
)
from src.pv_review.domain.models.project import (
    DocumentText,
    FileType,
    Project,
    ProjectFileContent,
    ProjectStatus,
    UploadedFile,
)
from src.pv_review.domain.models.task import Task
from src.pv_review.domain.models.task_kind import TaskKind
from src.pv_review.domain.models.task_metadata import TaskMetadata
from src.pv_review.domain.models.task_state import TaskState
from src.pv_review.domain.models.task_status import TaskStatus

__all__ = [
    "Task",
    "TaskStatus",
    "TaskState",
    "TaskKind",
    "TaskMetadata",
    "TaskPayload",
    "ExtractionPayload",
    "CompliancePayload",
    "DeliverablesPayload",
    "Immediate",
    "Deferred",
    "Rejected",
    "SubmissionOutcome",
    "PollOutcome",
    "PollCompleted",
    "PollFailed",
    "PollTimedOut",
    "PollErrored",
    "PollCancelled",
    "ExtractedData",
    "CableSummary",
    "PvParameters",
    "ComplianceFinding",
    "AnalysisResult",
    "ComplianceSummary",
    "SeverityLevel",
    "ActionType",
    "Submission",
    "SubmissionStatus",
    "Deliverable",
    "DeliverableType",
    "DeliverableStatus",
    "GenerationResult",
    "Project",
    "UploadedFile",
    "ProjectStatus",
    "FileType",
    "DocumentText",
    "ProjectFileContent",
]
