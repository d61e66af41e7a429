from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from src.pv_review.domain.models.coercion import LenientInt, OptionalText, unwrap_value
from src.pv_review.domain.models.compliance import round_half_up
from src.pv_review.domain.models.project import CamelModel


class DeliverableType(str, Enum):
    AI_PROMPT_LOG = "ai_prompt_log"
    DESIGN_REVIEW_REPORT = "design_review_report"
    ISSUE_REGISTER = "issue_register"
    COMPLIANCE_CHECKLIST = "compliance_checklist"
    RECALCULATION_SHEET = "recalculation_sheet"
    REDLINE_NOTES = "redline_notes"
    BOM_BOQ = "bom_boq"
    RISK_REFLECTION = "risk_reflection"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    DeliverableType.AI_PROMPT_LOG: "AI Prompt Log",
    DeliverableType.DESIGN_REVIEW_REPORT: "Design Review Report",
    DeliverableType.ISSUE_REGISTER: "Issue Register (NCR)",
    DeliverableType.COMPLIANCE_CHECKLIST: "Standards Compliance Checklist",
    DeliverableType.RECALCULATION_SHEET: "Recalculation Sheet",
    DeliverableType.REDLINE_NOTES: "Redline Notes",
    DeliverableType.BOM_BOQ: "Optimized BoM & BoQ",
    DeliverableType.RISK_REFLECTION: "Risk Reflection",
}

# Display and generation order.
DELIVERABLE_ORDER: tuple[DeliverableType, ...] = tuple(DeliverableType)


class DeliverableStatus(str, Enum):
    NOT_GENERATED = "not_generated"
    GENERATED = "generated"
    UPDATED = "updated"


class Deliverable(CamelModel):
    id: str
    type: DeliverableType
    name: str
    status: DeliverableStatus = DeliverableStatus.NOT_GENERATED
    generated_at: datetime | None = None
    updated_at: datetime | None = None
    content: str | None = None
    download_url: str | None = None


def _to_deliverable_types(value: Any) -> list[DeliverableType]:
    value = unwrap_value(value)
    if not isinstance(value, list):
        return []
    known = {item.value: item for item in DeliverableType}
    return [known[item] for item in value if isinstance(item, str) and item in known]


class GenerationResult(CamelModel):
    generated: Annotated[list[DeliverableType], BeforeValidator(_to_deliverable_types)] = Field(
        default_factory=list
    )
    total_generated: LenientInt = 0
    submission_id: OptionalText = None


def missing_deliverable_types(existing: list[Deliverable]) -> list[DeliverableType]:
    """Deliverable types not generated yet, in display order."""
    done = {item.type for item in existing if item.status is not DeliverableStatus.NOT_GENERATED}
    return [item for item in DELIVERABLE_ORDER if item not in done]


def completion_percentage(existing: list[Deliverable]) -> int:
    generated = len(DELIVERABLE_ORDER) - len(missing_deliverable_types(existing))
    return round_half_up(generated / len(DELIVERABLE_ORDER) * 100)
