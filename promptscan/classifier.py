"""
Heading Classifier
==================
Turns the ordered paragraph stream into the ordered heading sequence and
assigns each heading its marker type.

Only "is a heading" matters; heading level is ignored.
"""

from __future__ import annotations

import logging
from typing import Iterable

from .models import Heading, MarkerType, Paragraph

logger = logging.getLogger(__name__)

# ─── Markers ──────────────────────────────────────────────────────────────────

BUTTON_MARKER = "*"
LABEL_MARKER = "_"

# Matches "Heading1".."Heading9" (built-in enum) and "Heading 1" (style name)
HEADING_STYLE_PREFIX = "Heading"


class HeadingClassifier:
    """
    Stateless classifier. The same paragraph stream always yields the same
    heading sequence, in input order, with nothing skipped or deduplicated.
    """

    def __init__(
        self,
        heading_style_prefix: str = HEADING_STYLE_PREFIX,
        button_marker: str = BUTTON_MARKER,
        label_marker: str = LABEL_MARKER,
    ):
        self.heading_style_prefix = heading_style_prefix
        self.button_marker = button_marker
        self.label_marker = label_marker

    def is_heading(self, paragraph: Paragraph) -> bool:
        return paragraph.style_tag.startswith(self.heading_style_prefix)

    def classify_marker(self, trimmed_text: str) -> MarkerType:
        if trimmed_text.startswith(self.button_marker):
            return MarkerType.BUTTON
        if trimmed_text.startswith(self.label_marker):
            return MarkerType.LABEL
        return MarkerType.NONE

    def classify(self, paragraphs: Iterable[Paragraph]) -> list[Heading]:
        headings: list[Heading] = []

        for paragraph in paragraphs:
            if not self.is_heading(paragraph):
                continue

            trimmed = paragraph.text.strip()
            heading = Heading(
                paragraph_index=paragraph.index,
                raw_text=paragraph.text,
                trimmed_text=trimmed,
                position=len(headings),
                marker=self.classify_marker(trimmed),
            )
            logger.debug(
                f"Heading {heading.position} at paragraph "
                f"{paragraph.index}: {heading.marker.value} {trimmed!r}"
            )
            headings.append(heading)

        return headings
