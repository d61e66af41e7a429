from __future__ import annotations

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from src.pv_review.domain.models.coercion import (
    LenientFloat,
    LenientInt,
    LenientText,
    OptionalText,
    TextList,
    to_dict,
    to_list,
)
from src.pv_review.domain.models.project import CamelModel


class CableSummary(CamelModel):
    dc_length: LenientFloat = Field(default=0, description="DC cable length in metres.")
    ac_length: LenientFloat = Field(default=0, description="AC cable length in metres.")


class PvParameters(CamelModel):
    module_count: LenientInt = 0
    inverter_count: LenientInt = 0
    string_count: LenientInt = 0
    array_count: LenientInt = 0
    max_voltage: LenientFloat = Field(default=0, description="Maximum DC voltage (V).")
    total_capacity: LenientFloat = Field(default=0, description="Total capacity (kWp).")


class SourceReference(CamelModel):
    source_file: LenientText = ""
    source_reference: LenientText = ""


class BillItem(CamelModel):
    """One BoM or BoQ line."""

    category: LenientText = ""
    description: LenientText = ""
    quantity: LenientFloat = 0
    unit: LenientText = ""
    specification: LenientText = ""
    source: Annotated[SourceReference, BeforeValidator(to_dict)] = Field(
        default_factory=SourceReference
    )
    notes: LenientText = ""


class MissingDataItem(CamelModel):
    field: LenientText = ""
    reason: LenientText = ""
    source_hint: OptionalText = None


class ExtractedData(CamelModel):
    """Design parameters extracted from the project files."""

    layers: TextList = Field(default_factory=list)
    text_labels: TextList = Field(default_factory=list)
    cable_summary: Annotated[CableSummary, BeforeValidator(to_dict)] = Field(
        default_factory=CableSummary
    )
    pv_parameters: Annotated[PvParameters, BeforeValidator(to_dict)] = Field(
        default_factory=PvParameters
    )
    bom: Annotated[list[BillItem], BeforeValidator(to_list)] = Field(default_factory=list)
    boq: Annotated[list[BillItem], BeforeValidator(to_list)] = Field(default_factory=list)
    trace: Annotated[dict[str, Any], BeforeValidator(to_dict)] = Field(default_factory=dict)
    missing_data: Annotated[list[MissingDataItem], BeforeValidator(to_list)] = Field(
        default_factory=list
    )
    notes: TextList = Field(default_factory=list)
