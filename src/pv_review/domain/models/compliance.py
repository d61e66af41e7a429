from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BeforeValidator, Field, model_validator

from src.pv_review.domain.models.coercion import (
    LenientInt,
    OptionalText,
    TextList,
    choice_or,
    text_or,
    to_list,
    unwrap_value,
)
from src.pv_review.domain.models.project import CamelModel

PASSING_COMPLIANCE_PERCENTAGE = 80


class SeverityLevel(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    PASS = "pass"


class ActionType(str, Enum):
    CORRECTIVE = "corrective"
    RECOMMENDATION = "recommendation"


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"


_SEVERITIES = {level.value for level in SeverityLevel}
_ACTION_TYPES = {action.value for action in ActionType}


class ComplianceFinding(CamelModel):
    id: Annotated[str, BeforeValidator(text_or(""))] = ""
    issue_id: Annotated[str, BeforeValidator(text_or(""))] = ""
    name: Annotated[str, BeforeValidator(text_or("Unnamed Finding"))] = "Unnamed Finding"
    description: Annotated[str, BeforeValidator(text_or(""))] = ""
    location: Annotated[str, BeforeValidator(text_or("Unknown"))] = "Unknown"
    standard_reference: Annotated[str, BeforeValidator(text_or("N/A"))] = "N/A"
    severity: Annotated[
        SeverityLevel, BeforeValidator(choice_or(_SEVERITIES, SeverityLevel.MINOR.value))
    ] = SeverityLevel.MINOR
    action_type: Annotated[
        ActionType, BeforeValidator(choice_or(_ACTION_TYPES, ActionType.RECOMMENDATION.value))
    ] = ActionType.RECOMMENDATION
    action: Annotated[str, BeforeValidator(text_or("Review required"))] = "Review required"
    evidence_pointer: OptionalText = None
    violated_requirement: OptionalText = None
    risk_explanation: OptionalText = None
    impact_if_unresolved: OptionalText = None


def _number_findings(findings: list[dict[str, Any]]) -> list[dict[str, Any]]:
    numbered = []
    for idx, raw in enumerate(findings):
        finding = dict(raw)
        issue_id = unwrap_value(finding.get("issueId") or finding.get("issue_id"))
        finding["issueId"] = issue_id or f"ISSUE-{idx + 1}"
        finding["id"] = issue_id or f"finding-{idx}"
        numbered.append(finding)
    return numbered


class AnalysisResult(CamelModel):
    findings: Annotated[list[ComplianceFinding], BeforeValidator(to_list)] = Field(
        default_factory=list
    )
    compliance_percentage: LenientInt = 0
    summary: Annotated[str, BeforeValidator(text_or("Analysis complete"))] = "Analysis complete"
    standards_used: TextList = Field(default_factory=list)
    tokens_used: LenientInt = 0

    @model_validator(mode="before")
    @classmethod
    def _assign_finding_ids(cls, data: Any) -> Any:
        if isinstance(data, dict):
            findings = unwrap_value(data.get("findings"))
            if isinstance(findings, list):
                data = dict(data)
                data["findings"] = _number_findings(
                    [item for item in findings if isinstance(item, dict)]
                )
        return data


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class ComplianceSummary(CamelModel):
    critical: int = 0
    major: int = 0
    minor: int = 0
    passed: int = 0
    total: int = 0

    @classmethod
    def from_findings(cls, findings: list[ComplianceFinding]) -> "ComplianceSummary":
        counts = {level: 0 for level in SeverityLevel}
        for finding in findings:
            counts[finding.severity] += 1
        return cls(
            critical=counts[SeverityLevel.CRITICAL],
            major=counts[SeverityLevel.MAJOR],
            minor=counts[SeverityLevel.MINOR],
            passed=counts[SeverityLevel.PASS],
            total=len(findings),
        )

    @property
    def compliance_percentage(self) -> int:
        if self.total == 0:
            return 0
        return round_half_up(self.passed / self.total * 100)


class Submission(CamelModel):
    id: str
    submitted_by: str
    submitted_at: datetime
    completed_at: datetime | None = None
    status: SubmissionStatus = SubmissionStatus.PENDING
    compliance_percentage: int = 0
    findings: list[ComplianceFinding] = Field(default_factory=list)

    @staticmethod
    def status_for(compliance_percentage: int) -> SubmissionStatus:
        if compliance_percentage >= PASSING_COMPLIANCE_PERCENTAGE:
            return SubmissionStatus.PASSED
        return SubmissionStatus.FAILED
