"""
Validation Engine
=================
Post-scan report.

After each successful scan, summarizes:
    - Paragraphs and headings seen
    - Headings without a recognized marker
    - Labels and buttons emitted
    - Round trips spent on range resolution
    - Buttons with an empty payload (copy will warn)
    - Button texts used more than once (ambiguous for lookup by text)

Findings are warnings only; they never turn a scan into a failure.
"""

from __future__ import annotations

import logging
from collections import Counter

from .models import (
    ButtonDirective,
    Heading,
    LabelDirective,
    MarkerType,
    ScanReport,
)

logger = logging.getLogger(__name__)


class ScanValidator:

    def validate(
        self,
        paragraph_count: int,
        headings: list[Heading],
        directives: list,
        round_trips: int = 0,
    ) -> ScanReport:
        report = ScanReport(
            paragraph_count=paragraph_count,
            heading_count=len(headings),
            unmarked_heading_count=sum(
                1 for h in headings if h.marker == MarkerType.NONE
            ),
            round_trips=round_trips,
        )

        buttons = [d for d in directives if isinstance(d, ButtonDirective)]
        report.button_count = len(buttons)
        report.label_count = sum(
            1 for d in directives if isinstance(d, LabelDirective)
        )
        report.empty_payload_buttons = [b.text for b in buttons if not b.payload]

        text_counts = Counter(b.text for b in buttons)
        report.duplicate_button_texts = sorted(
            text for text, count in text_counts.items() if count > 1
        )

        logger.info(
            f"Scan report: {report.heading_count} headings "
            f"({report.unmarked_heading_count} unmarked), "
            f"{report.label_count} labels, {report.button_count} buttons, "
            f"{report.round_trips} range round trip(s)"
        )
        if report.empty_payload_buttons:
            logger.warning(
                f"Buttons with empty payload: {report.empty_payload_buttons}"
            )
        if report.duplicate_button_texts:
            logger.warning(
                f"Duplicate button texts: {report.duplicate_button_texts}"
            )

        return report
