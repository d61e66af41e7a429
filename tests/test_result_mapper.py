import json

import pytest

from src.pv_review.application.result_mapper import decode_payload, map_result
from src.pv_review.domain.exceptions import MalformedResultError
from src.pv_review.domain.models import (
    ActionType,
    AnalysisResult,
    DeliverableType,
    ExtractedData,
    GenerationResult,
    SeverityLevel,
)


def test_missing_and_wrapped_values_get_defaults() -> None:
    data = map_result(
        {
            "layers": None,
            "textLabels": [{"value": "INV-01"}, "NOT_FOUND", "STR-A"],
            "cableSummary": None,
            "pvParameters": {
                "moduleCount": {"value": "24"},
                "inverterCount": 2,
                "maxVoltage": "NOT_FOUND",
                "totalCapacity": "10.5",
            },
        },
        ExtractedData,
    )

    assert data.layers == []
    assert data.text_labels == ["INV-01", "STR-A"]
    assert data.cable_summary.dc_length == 0
    assert data.cable_summary.ac_length == 0
    assert data.pv_parameters.module_count == 24
    assert data.pv_parameters.inverter_count == 2
    assert data.pv_parameters.string_count == 0
    assert data.pv_parameters.max_voltage == 0
    assert data.pv_parameters.total_capacity == 10.5
    assert data.bom == []
    assert data.missing_data == []


def test_json_text_and_bytes_are_decoded() -> None:
    raw = json.dumps({"layers": ["PV-MODULES"]})

    assert map_result(raw, ExtractedData).layers == ["PV-MODULES"]
    assert map_result(raw.encode(), ExtractedData).layers == ["PV-MODULES"]


def test_findings_are_numbered_and_normalised() -> None:
    result = map_result(
        {
            "findings": [
                {"name": "String fuse undersized", "severity": "CRITICAL", "actionType": "corrective"},
                {"issueId": "NCR-7", "severity": "bogus", "actionType": None},
                "not a finding",
            ],
            "compliancePercentage": "85",
        },
        AnalysisResult,
    )

    first, second = result.findings
    assert first.issue_id == "ISSUE-1"
    assert first.id == "finding-0"
    assert first.severity is SeverityLevel.CRITICAL
    assert first.action_type is ActionType.CORRECTIVE
    assert second.issue_id == "NCR-7"
    assert second.id == "NCR-7"
    assert second.name == "Unnamed Finding"
    assert second.severity is SeverityLevel.MINOR
    assert second.action_type is ActionType.RECOMMENDATION
    assert second.location == "Unknown"
    assert second.standard_reference == "N/A"
    assert result.compliance_percentage == 85
    assert result.summary == "Analysis complete"


def test_empty_result_maps_to_defaults() -> None:
    result = map_result({}, AnalysisResult)

    assert result.findings == []
    assert result.compliance_percentage == 0
    assert result.standards_used == []


def test_generation_result_ignores_unknown_types() -> None:
    result = map_result(
        {"generated": ["bom_boq", "poster"], "totalGenerated": 1, "submissionId": "s-1"},
        GenerationResult,
    )

    assert result.generated == [DeliverableType.BOM_BOQ]
    assert result.total_generated == 1
    assert result.submission_id == "s-1"


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]", 42, None, b"\xff\xfe"])
def test_malformed_results_raise(raw: object) -> None:
    with pytest.raises(MalformedResultError):
        decode_payload(raw)


def test_numeric_strings_are_coerced_and_the_rest_defaults() -> None:
    data = map_result({"pvParameters": {"moduleCount": "120"}}, ExtractedData)

    assert data.pv_parameters.model_dump(by_alias=True) == {
        "moduleCount": 120,
        "inverterCount": 0,
        "stringCount": 0,
        "arrayCount": 0,
        "maxVoltage": 0,
        "totalCapacity": 0,
    }
    assert data.layers == []
    assert data.trace == {}


def test_wrapped_findings_are_numbered() -> None:
    result = map_result({"findings": {"value": [{"name": "A"}, {"name": "B"}]}}, AnalysisResult)

    assert [(item.id, item.issue_id) for item in result.findings] == [
        ("finding-0", "ISSUE-1"),
        ("finding-1", "ISSUE-2"),
    ]
