"""
models.py - Data models shared by the extraction engine and the filing layer.

    analyze.py / vision.py  ->  AnalysisResult
    api.py                  ->  FilingItem (human-confirmed values)
    filing.py               ->  FilingOutcome

Every extracted field is a `FieldValue`: a value plus a high/low confidence
tag. Confidence is a review hint, not a probability:

    high  a pattern matched with low ambiguity
    low   a fallback/default was used or the match was weakly anchored

`AnalysisResult` is frozen. The engine builds one per call and never touches
it again; reviewers correct values by producing a `FilingItem`.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DATE_VALUE_RE = re.compile(r"^[0-9]{4}\.[0-9]{2}\.[0-9]{2}$")
PO_VALUE_RE = re.compile(r"^PO[0-9]+$")
DESCRIPTION_MAX_CHARS = 120


class Confidence(str, Enum):
    """Reviewer-facing certainty for one extracted field."""

    HIGH = "high"
    LOW = "low"


class FieldValue(BaseModel):
    """One extracted field and how much the extractor trusts it."""

    model_config = ConfigDict(frozen=True)

    value: Optional[str] = Field(
        default=None,
        description=(
            "Extracted value. Empty string for missing vendor/description, "
            "None for missing PO/part numbers."
        ),
    )
    confidence: Confidence = Field(default=Confidence.LOW)

    @classmethod
    def high(cls, value: Optional[str]) -> "FieldValue":
        return cls(value=value, confidence=Confidence.HIGH)

    @classmethod
    def low(cls, value: Optional[str]) -> "FieldValue":
        return cls(value=value, confidence=Confidence.LOW)

    @property
    def is_high(self) -> bool:
        return self.confidence == Confidence.HIGH


class AnalysisResult(BaseModel):
    """Immutable result of analyzing one (possibly multi-page) document.

    `raw_text` is the audit record of what the recognizer produced. Noise
    normalization only ever runs on a derived copy, so this is byte-for-byte
    the input handed to the analyzer.
    """

    model_config = ConfigDict(frozen=True)

    vendor: FieldValue
    doc_type: FieldValue
    date: FieldValue
    po_number: FieldValue
    part_number: FieldValue
    description: FieldValue
    raw_text: str = ""

    @field_validator("date")
    @classmethod
    def _date_format(cls, v: FieldValue) -> FieldValue:
        if not v.value or not DATE_VALUE_RE.match(v.value):
            raise ValueError(f"date must be YYYY.MM.DD, got {v.value!r}")
        return v

    @field_validator("po_number")
    @classmethod
    def _po_format(cls, v: FieldValue) -> FieldValue:
        if v.value is not None and not PO_VALUE_RE.match(v.value):
            raise ValueError(f"po_number must look like PO<digits>, got {v.value!r}")
        return v

    @field_validator("description")
    @classmethod
    def _description_length(cls, v: FieldValue) -> FieldValue:
        if v.value is not None and len(v.value) > DESCRIPTION_MAX_CHARS:
            raise ValueError(f"description longer than {DESCRIPTION_MAX_CHARS} chars")
        return v

    @property
    def po_digits(self) -> Optional[str]:
        """PO number without its literal PO prefix."""
        if not self.po_number.value:
            return None
        return self.po_number.value[2:]

    @property
    def low_confidence_fields(self) -> list[str]:
        """Names of the fields a reviewer should double-check."""
        names = ["vendor", "doc_type", "date", "po_number", "part_number", "description"]
        return [name for name in names if not getattr(self, name).is_high]


class FilingItem(BaseModel):
    """Reviewer-confirmed values for one staged document."""

    temp_file: str = Field(..., min_length=1, description="Staged upload name (first page).")
    temp_files: list[str] = Field(
        default_factory=list,
        description="All staged page names for a multi-page document, in page order.",
    )
    original_name: str = Field(
        default="",
        description="Uploaded file name; multi-page uploads are joined with ' + '.",
    )
    vendor: str = ""
    doc_type: str = ""
    date: str = ""
    description: str = ""
    part_number: str = ""
    po_number: str = ""
    requested_by: str = ""

    @property
    def pages(self) -> list[str]:
        return list(self.temp_files) if self.temp_files else [self.temp_file]


class FilingOutcome(BaseModel):
    """What happened to one FilingItem."""

    original_name: str
    new_name: str = ""
    target_dir: str = ""
    success: bool = False
    error: Optional[str] = None
