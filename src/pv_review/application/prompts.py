"""Prompt templates sent to the AI gateway."""

from __future__ import annotations

import json
from typing import Any

from src.pv_review.domain.models import DeliverableType, DocumentText, ProjectFileContent

TRUNCATION_MARKER = "[TRUNCATED]"
EXTRACTION_TOOL_NAME = "extract_pv_data"


def clip(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, marking the cut."""
    text = text or ""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}\n{TRUNCATION_MARKER}"


def render_documents(documents: list[DocumentText], limit: int, *, with_size: bool = False) -> str:
    blocks = []
    for doc in documents:
        header = f"--- {doc.name} ({doc.file_type}, {doc.size} bytes)" if with_size else f"--- {doc.name}"
        blocks.append(f"{header} [{doc.extraction_status}] ---\n{clip(doc.content, limit)}")
    return "\n\n".join(blocks)


def render_client_context(files: list[ProjectFileContent], limit: int) -> str:
    return "\n\n".join(
        f"--- {item.name} [client-provided] ---\n{clip(item.content, limit)}" for item in files
    )


EXTRACTION_SYSTEM_PROMPT = """You are a PV design engineer reading project documents.

Rules:
- Never estimate. A value that is not written in the files is returned as null
  and listed in missingData with the reason.
- Every numeric value carries a trace entry naming the source file and the
  page or cell it came from.
- When a PDF has no extractable text, say so in notes and ask for a DWG,
  a native CAD export or a text-based PDF.

Extract the bill of materials, the bill of quantities, module, inverter,
string and array counts, DC and AC cable lengths in metres, the maximum DC
voltage and the total capacity.

Answer only through the provided tool call."""


def _nullable_number() -> dict[str, Any]:
    return {"type": ["number", "null"]}


def _bill_schema() -> dict[str, Any]:
    return {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                "category": {"type": "string"},
                "description": {"type": "string"},
                "quantity": _nullable_number(),
                "unit": {"type": "string"},
                "specification": {"type": "string"},
                "source": {
                    "type": "object",
                    "properties": {
                        "sourceFile": {"type": "string"},
                        "sourceReference": {"type": "string"},
                    },
                    "required": ["sourceFile", "sourceReference"],
                    "additionalProperties": False,
                },
                "notes": {"type": "string"},
            },
            "required": ["category", "description", "quantity", "unit"],
            "additionalProperties": False,
        },
    }


EXTRACTION_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": EXTRACTION_TOOL_NAME,
        "description": "Return the PV design quantities, BoM/BoQ and their trace pointers.",
        "parameters": {
            "type": "object",
            "properties": {
                "layers": {"type": "array", "items": {"type": "string"}},
                "textLabels": {"type": "array", "items": {"type": "string"}},
                "cableSummary": {
                    "type": "object",
                    "properties": {"dcLength": _nullable_number(), "acLength": _nullable_number()},
                    "required": ["dcLength", "acLength"],
                    "additionalProperties": False,
                },
                "pvParameters": {
                    "type": "object",
                    "properties": {
                        "moduleCount": _nullable_number(),
                        "inverterCount": _nullable_number(),
                        "stringCount": _nullable_number(),
                        "arrayCount": _nullable_number(),
                        "maxVoltage": _nullable_number(),
                        "totalCapacity": _nullable_number(),
                    },
                    "required": [
                        "moduleCount",
                        "inverterCount",
                        "stringCount",
                        "maxVoltage",
                        "totalCapacity",
                    ],
                    "additionalProperties": False,
                },
                "bom": _bill_schema(),
                "boq": _bill_schema(),
                "trace": {
                    "type": "object",
                    "additionalProperties": {
                        "type": "object",
                        "properties": {
                            "value": {"type": ["string", "number"]},
                            "sourceFile": {"type": "string"},
                            "sourceReference": {"type": "string"},
                            "unit": {"type": "string"},
                        },
                        "required": ["value", "sourceFile", "sourceReference"],
                        "additionalProperties": False,
                    },
                },
                "missingData": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "field": {"type": "string"},
                            "reason": {"type": "string"},
                            "sourceHint": {"type": "string"},
                        },
                        "required": ["field", "reason"],
                        "additionalProperties": False,
                    },
                },
                "notes": {"type": "array", "items": {"type": "string"}},
            },
            "required": [
                "layers",
                "textLabels",
                "cableSummary",
                "pvParameters",
                "bom",
                "boq",
                "trace",
                "missingData",
                "notes",
            ],
            "additionalProperties": False,
        },
    },
}

EXTRACTION_TOOL_CHOICE: dict[str, Any] = {
    "type": "function",
    "function": {"name": EXTRACTION_TOOL_NAME},
}


def extraction_user_prompt(files: list[DocumentText], limit: int) -> str:
    total_chars = sum(len(item.content) for item in files)
    return (
        f"PROJECT FILES ({len(files)})\n"
        f"Total extracted text characters: {total_chars}\n\n"
        f"{render_documents(files, limit, with_size=True)}"
    )


COMPLIANCE_SYSTEM_PROMPT = """You are a PV design engineer reviewing a design against the supplied standards.

Rules:
1. Cite only clauses that appear in the supplied standards. Never assume a requirement.
2. Missing data is reported as INSUFFICIENT DATA, never guessed.
3. Each finding names the clause, points to the evidence (file and page or
   section), shows the comparison that decides pass or fail and gives the
   corrective action.

Severity:
- critical: safety hazard, code violation, the system cannot work
- major: performance or warranty risk, significant rework
- minor: documentation gap or optimisation
- pass: requirement verified and met

Answer with one JSON object:
{
  "findings": [
    {
      "issueId": "...",
      "name": "...",
      "description": "...",
      "location": "...",
      "standardReference": "...",
      "severity": "critical|major|minor|pass",
      "actionType": "corrective|recommendation",
      "action": "...",
      "evidencePointer": "...",
      "violatedRequirement": "...",
      "riskExplanation": "...",
      "impactIfUnresolved": "..."
    }
  ],
  "compliancePercentage": 0,
  "summary": "..."
}"""


def compliance_user_prompt(
    standards: list[DocumentText],
    project_files: list[DocumentText],
    client_files: list[ProjectFileContent],
    limit: int,
) -> str:
    return (
        f"STANDARDS LIBRARY ({len(standards)} documents):\n"
        f"{render_documents(standards, limit)}\n\n"
        f"PROJECT FILES TO REVIEW ({len(project_files)} files):\n"
        f"{render_documents(project_files, limit)}\n\n"
        "ADDITIONAL STRUCTURED CONTEXT (client-provided):\n"
        f"{render_client_context(client_files, limit)}\n\n"
        "Review the project files against every supplied standard. Files marked no_text "
        "produce minor findings stating INSUFFICIENT DATA and the exact source needed. "
        "Return the JSON object with findings, compliancePercentage and summary."
    )


_DELIVERABLE_RULES = """Rules:
- Use only facts from the inputs.
- Write INSUFFICIENT DATA for anything the inputs cannot support.
- Give a file and page reference for every claim.
- Answer in Markdown."""

_DELIVERABLE_BRIEFS: dict[DeliverableType, str] = {
    DeliverableType.AI_PROMPT_LOG: (
        "Write the AI prompt log used as the audit trail of this review: header with "
        "project, review date and model, then one entry per prompt category (extraction, "
        "compliance, calculation, deliverables) with input summary, output summary, token "
        "usage and validation status, and close with a governance statement."
    ),
    DeliverableType.DESIGN_REVIEW_REPORT: (
        "Write the design review report. Treat every requirement without evidence as "
        "non-compliant. Sections: title block, executive summary with an explicit approval "
        "recommendation and the compliance score, project overview, standards compliance "
        "matrix, gap audit per category, traceability, string configuration analysis, "
        "detailed findings and a final judgment in deterministic language."
    ),
    DeliverableType.ISSUE_REGISTER: (
        "Write the issue register (NCR log) as a table with issue id (NCR-001 ...), severity, "
        "title, description, location, standard reference, evidence, required action and "
        "verification method."
    ),
    DeliverableType.COMPLIANCE_CHECKLIST: (
        "Write the standards compliance checklist: applicable standards, then a matrix of "
        "category, requirement, clause, evidence and status (PASS, FAIL, N/A or "
        "INSUFFICIENT DATA)."
    ),
    DeliverableType.RECALCULATION_SHEET: (
        "Write the recalculation sheet. For string voltage at minimum temperature, string "
        "currents, inverter compatibility, cable voltage drop and protection breaking "
        "capacity show formula, inputs with their source, substitution, result and verdict."
    ),
    DeliverableType.REDLINE_NOTES: (
        "Write the redline notes: one entry per issue with file name, page or sheet, "
        "location on the drawing, current state, required correction, standard reference "
        "and priority."
    ),
    DeliverableType.BOM_BOQ: (
        "Write the optimised bill of materials and bill of quantities as tables with a "
        "source reference per line, followed by optimisation notes. Never invent quantities."
    ),
    DeliverableType.RISK_REFLECTION: (
        "Write a one-page risk reflection: confidence per data category, data quality "
        "issues, the checklist of items a qualified engineer must verify and the "
        "limitations of this AI-assisted review."
    ),
}


def deliverable_system_prompt(deliverable_type: DeliverableType) -> str:
    return (
        "You are an independent electrical engineer preparing a design approval package.\n\n"
        f"{_DELIVERABLE_BRIEFS[deliverable_type]}\n\n{_DELIVERABLE_RULES}"
    )


def deliverable_user_prompt(
    deliverable_type: DeliverableType,
    project_id: str,
    findings: list[dict[str, Any]],
    extracted_data: dict[str, Any] | None,
) -> str:
    return (
        f"PROJECT ID: {project_id}\n\n"
        f"## COMPLIANCE FINDINGS ({len(findings)} issues)\n"
        f"{json.dumps(findings, indent=2)}\n\n"
        f"## EXTRACTED DATA\n{json.dumps(extracted_data or {}, indent=2)}\n\n"
        f"Generate the {deliverable_type.display_name}. Use PASS/FAIL rather than hedged "
        "wording; this document is part of a regulatory submission."
    )
