"""
Data Models
===========
Pydantic models for the scan pipeline.
All models are serializable to JSON for the HTTP layer and the CLI.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ─── Enums ────────────────────────────────────────────────────────────────────


class MarkerType(str, Enum):
    """Directive type selected by the first character of a heading."""
    BUTTON = "button"
    LABEL = "label"
    NONE = "none"


class BoundaryKind(str, Enum):
    """Anchor of a range boundary inside the document body."""
    PARAGRAPH_END = "paragraph_end"
    PARAGRAPH_START = "paragraph_start"
    DOCUMENT_END = "document_end"


class ScanStatus(str, Enum):
    """Terminal outcome of a scan."""
    NO_HEADINGS = "no_headings"
    NO_DIRECTIVES = "no_directives"
    DIRECTIVES = "directives"
    FAILED = "failed"


class CopyStatus(str, Enum):
    """Outcome of handing a button payload to the clipboard."""
    COPIED = "copied"
    EMPTY_PAYLOAD = "empty_payload"
    FAILED = "failed"


# ─── Document Models ──────────────────────────────────────────────────────────


class Paragraph(BaseModel):
    """
    A paragraph snapshot as returned by the document service.
    Order in the paragraph stream is the document's top-to-bottom order.
    """
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    style_tag: str = ""
    text: str = ""


class Heading(BaseModel):
    """A heading-styled paragraph together with its marker classification."""
    paragraph_index: int = Field(ge=0)
    raw_text: str
    trimmed_text: str
    position: int = Field(
        ge=0,
        description="Index within the heading sequence"
    )
    marker: MarkerType = MarkerType.NONE

    @property
    def display_text(self) -> str:
        """Heading text with the marker character removed."""
        if self.marker == MarkerType.NONE:
            return self.trimmed_text
        return self.trimmed_text[1:].strip()


# ─── Range Models ─────────────────────────────────────────────────────────────


class Boundary(BaseModel):
    """One end of a content range."""
    model_config = ConfigDict(frozen=True)

    kind: BoundaryKind
    paragraph_index: Optional[int] = Field(default=None, ge=0)

    @classmethod
    def end_of(cls, paragraph_index: int) -> Boundary:
        return cls(kind=BoundaryKind.PARAGRAPH_END, paragraph_index=paragraph_index)

    @classmethod
    def start_of(cls, paragraph_index: int) -> Boundary:
        return cls(kind=BoundaryKind.PARAGRAPH_START, paragraph_index=paragraph_index)

    @classmethod
    def document_end(cls) -> Boundary:
        return cls(kind=BoundaryKind.DOCUMENT_END)


class ContentRangeDescriptor(BaseModel):
    """
    Handle to everything strictly between the end of one heading paragraph
    and the start of the next heading paragraph (or the document end).
    """
    model_config = ConfigDict(frozen=True)

    start: Boundary
    end: Boundary


# ─── Directive Models ─────────────────────────────────────────────────────────


class LabelDirective(BaseModel):
    """Section separator rendered as a heading in the panel."""
    type: Literal["label"] = "label"
    text: str


class ButtonDirective(BaseModel):
    """Button whose payload is copied to the clipboard."""
    type: Literal["button"] = "button"
    text: str
    payload: str = ""


UIDirective = Annotated[
    Union[LabelDirective, ButtonDirective],
    Field(discriminator="type"),
]


# ─── Report / Result Models ───────────────────────────────────────────────────


class ScanReport(BaseModel):
    """Post-scan summary. Contains only values derived from document content."""
    paragraph_count: int = 0
    heading_count: int = 0
    unmarked_heading_count: int = 0
    label_count: int = 0
    button_count: int = 0
    round_trips: int = 0
    empty_payload_buttons: list[str] = Field(default_factory=list)
    duplicate_button_texts: list[str] = Field(default_factory=list)


class ScanResult(BaseModel):
    """
    Complete output of one scan.
    This is the top-level JSON structure returned to callers.
    """
    status: ScanStatus
    directives: list[UIDirective] = Field(default_factory=list)
    reason: Optional[str] = None
    report: Optional[ScanReport] = None

    @classmethod
    def no_headings(cls, report: Optional[ScanReport] = None) -> ScanResult:
        return cls(status=ScanStatus.NO_HEADINGS, report=report)

    @classmethod
    def no_directives(cls, report: Optional[ScanReport] = None) -> ScanResult:
        return cls(status=ScanStatus.NO_DIRECTIVES, report=report)

    @classmethod
    def with_directives(
        cls,
        directives: list,
        report: Optional[ScanReport] = None,
    ) -> ScanResult:
        return cls(
            status=ScanStatus.DIRECTIVES,
            directives=list(directives),
            report=report,
        )

    @classmethod
    def failed(cls, reason: str) -> ScanResult:
        return cls(status=ScanStatus.FAILED, reason=reason)

    @computed_field
    @property
    def message(self) -> str:
        """Status line for the panel."""
        if self.status == ScanStatus.NO_HEADINGS:
            return "No headings found in this document."
        if self.status == ScanStatus.NO_DIRECTIVES:
            return "No prompts found (use '*' or '_' in headings)."
        if self.status == ScanStatus.FAILED:
            return f"Error scanning document: {self.reason}"
        return ""

    @property
    def buttons(self) -> list[ButtonDirective]:
        return [d for d in self.directives if isinstance(d, ButtonDirective)]

    @property
    def labels(self) -> list[LabelDirective]:
        return [d for d in self.directives if isinstance(d, LabelDirective)]


class CopyOutcome(BaseModel):
    """Result of a copy action on one button."""
    status: CopyStatus
    button_text: str
    message: str
