"""
Batched Retriever
=================
Resolves every pending content range in one request to the document service
and binds the returned text back to its button by position.

The batch is only submitted once the resolver has produced the complete set
of descriptors for the scan. Results are joined on the descriptor's position
in the batch, never on arrival order.
"""

from __future__ import annotations

import logging

from .models import ButtonDirective
from .resolver import BoundaryPlan
from .service import DocumentService, ServiceUnavailable

logger = logging.getLogger(__name__)


class BatchedRetriever:

    def __init__(self, service: DocumentService):
        self.service = service
        self.round_trips = 0

    async def retrieve(self, plan: BoundaryPlan) -> list:
        """
        Resolve all payloads of a plan and return the final directives.

        Args:
            plan: Complete output of the boundary resolver.

        Returns:
            Directives in heading order with button payloads bound.

        Raises:
            ServiceUnavailable: If the batch call fails or returns a batch
                that cannot be correlated with the request.
        """
        directives = list(plan.directives)

        if not plan.descriptors:
            logger.debug("No content ranges to resolve")
            return directives

        logger.info(f"Resolving {len(plan.descriptors)} content ranges in one batch")
        self.round_trips += 1
        texts = await self.service.resolve_ranges(list(plan.descriptors))

        if len(texts) != len(plan.descriptors):
            raise ServiceUnavailable(
                f"{self.service.name} returned {len(texts)} texts "
                f"for {len(plan.descriptors)} ranges"
            )

        for k, text in enumerate(texts):
            if text is not None and not isinstance(text, str):
                raise ServiceUnavailable(
                    f"{self.service.name} returned non-string text for range {k}"
                )

        for slot, text in zip(plan.button_slots, texts):
            stub = directives[slot]
            payload = (text or "").strip()
            directives[slot] = ButtonDirective(text=stub.text, payload=payload)

            if not payload:
                logger.warning(f"Button {stub.text!r} has no content to copy")

        return directives
