from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest

from src.pv_review.application.poller import TaskPoller
from src.pv_review.application.submitter import TaskSubmitter
from src.pv_review.application.workflows import ReviewWorkflow, build_submission
from src.pv_review.domain.exceptions import (
    PollCancelledError,
    SubmissionRejectedError,
    TaskFailedError,
)
from src.pv_review.domain.models import (
    AnalysisResult,
    ComplianceFinding,
    DeliverableType,
    SubmissionStatus,
    TaskState,
    TaskStatus,
)
from src.setup.poller_config import PollerSettings


class StubFunctions:
    def __init__(self, response: dict[str, Any]) -> None:
        self.response = response
        self.bodies: list[dict[str, Any]] = []

    async def invoke(self, function_name: str, body: dict[str, Any], credential: str) -> dict[str, Any]:
        self.bodies.append(body)
        return self.response


class ScriptedStore:
    def __init__(self, *statuses: TaskStatus) -> None:
        self.statuses = list(statuses)

    async def read_task(self, task_id: str) -> TaskStatus:
        return self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]


async def no_sleep(seconds: float) -> None:
    return None


def make_workflow(response: dict[str, Any], store: ScriptedStore, sleep=no_sleep) -> ReviewWorkflow:
    settings = PollerSettings(POLL_INTERVAL_MS=10, POLL_MAX_ATTEMPTS=5)
    return ReviewWorkflow(
        submitter=TaskSubmitter(StubFunctions(response)),
        poller_factory=lambda: TaskPoller(store, settings=settings, sleep=sleep),
    )


@pytest.mark.asyncio
async def test_extraction_answers_immediately() -> None:
    response = {
        "immediateResult": {
            "success": True,
            "projectId": "p-1",
            "extractedData": {"pvParameters": {"moduleCount": 12, "maxVoltage": "NOT_FOUND"}},
        }
    }
    store = ScriptedStore(TaskStatus())
    workflow = make_workflow(response, store)

    data = await workflow.extract_data("p-1", "token")

    assert data.pv_parameters.module_count == 12
    assert data.pv_parameters.max_voltage == 0


@pytest.mark.asyncio
async def test_compliance_is_polled_until_completed() -> None:
    store = ScriptedStore(
        TaskStatus(state=TaskState.PROCESSING, progress=40),
        TaskStatus().complete(
            {"findings": [{"name": "Cable sizing", "severity": "major"}], "compliancePercentage": 70}
        ),
    )
    workflow = make_workflow({"taskId": "t-1"}, store)
    seen: list[int] = []

    result = await workflow.analyze_compliance("p-1", [], "token", on_progress=seen.append)

    assert seen == [40]
    assert result.compliance_percentage == 70
    assert result.findings[0].issue_id == "ISSUE-1"


@pytest.mark.asyncio
async def test_rejection_is_raised_with_the_service_message() -> None:
    workflow = make_workflow({"errorMessage": "No project files found"}, ScriptedStore(TaskStatus()))

    with pytest.raises(SubmissionRejectedError, match="No project files found"):
        await workflow.analyze_compliance("p-1", [], "token")


@pytest.mark.asyncio
async def test_worker_failure_is_raised() -> None:
    store = ScriptedStore(TaskStatus().fail("AI gateway error: 500"))
    workflow = make_workflow({"taskId": "t-1"}, store)

    with pytest.raises(TaskFailedError, match="AI gateway error: 500"):
        await workflow.analyze_compliance("p-1", [], "token")


@pytest.mark.asyncio
async def test_generation_keeps_the_requested_submission() -> None:
    store = ScriptedStore(TaskStatus().complete({"generated": ["bom_boq"], "totalGenerated": 1}))
    functions_response = {"taskId": "t-2"}
    workflow = make_workflow(functions_response, store)
    findings = [ComplianceFinding(name="Earthing", severity="critical")]

    result = await workflow.generate_deliverables(
        "p-1", findings, None, "token", submission_id="sub-9"
    )

    assert result.generated == [DeliverableType.BOM_BOQ]
    assert result.submission_id == "sub-9"
    body = workflow._submitter._functions.bodies[0]
    assert body["submissionId"] == "sub-9"
    assert body["findings"][0]["name"] == "Earthing"
    assert body["extractedData"] is None


@pytest.mark.asyncio
async def test_cancel_abandons_the_poll() -> None:
    store = ScriptedStore(TaskStatus(state=TaskState.PROCESSING, progress=10))
    workflow: ReviewWorkflow

    async def cancelling_sleep(seconds: float) -> None:
        workflow.cancel()

    workflow = make_workflow({"taskId": "t-1"}, store, sleep=cancelling_sleep)

    with pytest.raises(PollCancelledError, match="Analysis was cancelled."):
        await workflow.analyze_compliance("p-1", [], "token")


@pytest.mark.parametrize(
    ("percentage", "status"),
    [(80, SubmissionStatus.PASSED), (79, SubmissionStatus.FAILED), (0, SubmissionStatus.FAILED)],
)
def test_submission_status_follows_compliance(percentage: int, status: SubmissionStatus) -> None:
    now = datetime(2026, 3, 1, tzinfo=UTC)
    result = AnalysisResult(compliance_percentage=percentage)

    submission = build_submission(result, "reviewer@example.com", now=now)

    assert submission.status is status
    assert submission.compliance_percentage == percentage
    assert submission.submitted_at == now
    assert submission.id.startswith("SUB-")
