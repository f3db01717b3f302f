"""
Boundary Resolver
=================
Builds the directive stubs and the content-range descriptors for one scan.

A button's range runs from the end of its own heading paragraph to the start
of the next heading of any marker type, or to the end of the document when it
is the last heading. Labels and unmarked headings close a preceding button's
range just like another button does.

No text is resolved here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .models import (
    Boundary,
    ButtonDirective,
    ContentRangeDescriptor,
    Heading,
    LabelDirective,
    MarkerType,
)

logger = logging.getLogger(__name__)


@dataclass
class BoundaryPlan:
    """
    Directive stubs in heading order plus one descriptor per button.

    ``button_slots[k]`` is the position in ``directives`` of the button that
    owns ``descriptors[k]``.
    """
    directives: list = field(default_factory=list)
    descriptors: list[ContentRangeDescriptor] = field(default_factory=list)
    button_slots: list[int] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.directives


class BoundaryResolver:

    def resolve(self, headings: list[Heading]) -> BoundaryPlan:
        plan = BoundaryPlan()

        for i, heading in enumerate(headings):
            if heading.marker == MarkerType.LABEL:
                plan.directives.append(LabelDirective(text=heading.display_text))

            elif heading.marker == MarkerType.BUTTON:
                next_heading = headings[i + 1] if i + 1 < len(headings) else None
                end = (
                    Boundary.start_of(next_heading.paragraph_index)
                    if next_heading is not None
                    else Boundary.document_end()
                )
                descriptor = ContentRangeDescriptor(
                    start=Boundary.end_of(heading.paragraph_index),
                    end=end,
                )

                plan.button_slots.append(len(plan.directives))
                plan.directives.append(ButtonDirective(text=heading.display_text))
                plan.descriptors.append(descriptor)

                logger.debug(
                    f"Button {heading.display_text!r}: paragraphs after "
                    f"{heading.paragraph_index} up to "
                    f"{end.paragraph_index if end.paragraph_index is not None else 'end'}"
                )

        logger.info(
            f"Resolved {len(plan.directives)} directives, "
            f"{len(plan.descriptors)} content ranges pending"
        )
        return plan
