"""
Document Service Boundary
=========================
The narrow interface the scan engine consumes. Both operations are batch
calls and both are coroutines, so a scan has exactly two suspension points:

    fetch_paragraphs()          → whole paragraph stream, in document order
    resolve_ranges(descriptors) → enclosed text per descriptor, same order

Concrete file and HTTP backends live in ``sources``.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .models import BoundaryKind, ContentRangeDescriptor, Paragraph

logger = logging.getLogger(__name__)

PARAGRAPH_SEPARATOR = "\n"


class ServiceUnavailable(Exception):
    """A document service call failed (host, network or I/O error)."""


class DocumentService(ABC):
    """Abstract document service."""

    name = "document"

    @abstractmethod
    async def fetch_paragraphs(self) -> list[Paragraph]:
        """Return the entire paragraph stream of the document body."""

    @abstractmethod
    async def resolve_ranges(
        self,
        descriptors: Sequence[ContentRangeDescriptor],
    ) -> list[str]:
        """Resolve every descriptor to its enclosed, untrimmed text."""


def paragraph_positions(paragraphs: Sequence[Paragraph]) -> dict[int, int]:
    """Map each paragraph index to its position in the stream."""
    return {p.index: pos for pos, p in enumerate(paragraphs)}


def range_text(
    paragraphs: Sequence[Paragraph],
    descriptor: ContentRangeDescriptor,
    positions: Optional[dict[int, int]] = None,
) -> str:
    """
    Text of the paragraphs enclosed by a descriptor.

    Args:
        paragraphs: The paragraph stream the descriptor was computed from.
        descriptor: Range to resolve.
        positions: ``paragraph_positions(paragraphs)``, when resolving many
            descriptors against the same stream.

    Raises:
        ValueError: If a boundary refers to a paragraph not in the stream.
    """
    if positions is None:
        positions = paragraph_positions(paragraphs)

    def locate(boundary, default: int) -> int:
        if boundary.kind == BoundaryKind.DOCUMENT_END:
            return default
        if boundary.paragraph_index not in positions:
            raise ValueError(
                f"Boundary refers to unknown paragraph {boundary.paragraph_index}"
            )
        pos = positions[boundary.paragraph_index]
        # Half-open [first, stop) slice over the paragraph list
        if boundary.kind == BoundaryKind.PARAGRAPH_END:
            return pos + 1
        return pos

    first = locate(descriptor.start, len(paragraphs))
    stop = locate(descriptor.end, len(paragraphs))
    if stop <= first:
        return ""

    return PARAGRAPH_SEPARATOR.join(p.text for p in paragraphs[first:stop])


class SnapshotDocumentService(DocumentService):
    """
    Base for services that load the whole body locally.

    Each ``fetch_paragraphs()`` loads a fresh snapshot; ranges are resolved
    against the most recent snapshot so both calls of one scan see the same
    content.
    """

    def __init__(self):
        self._snapshot: Optional[list[Paragraph]] = None

    @abstractmethod
    def _load_paragraphs(self) -> list[Paragraph]:
        """Blocking load of the paragraph stream."""

    async def fetch_paragraphs(self) -> list[Paragraph]:
        try:
            paragraphs = await asyncio.to_thread(self._load_paragraphs)
        except ServiceUnavailable:
            raise
        except (OSError, ValueError) as e:
            raise ServiceUnavailable(f"Cannot read {self.name}: {e}") from e

        self._snapshot = list(paragraphs)
        logger.debug(f"Loaded {len(self._snapshot)} paragraphs from {self.name}")
        return list(self._snapshot)

    async def resolve_ranges(
        self,
        descriptors: Sequence[ContentRangeDescriptor],
    ) -> list[str]:
        if self._snapshot is None:
            await self.fetch_paragraphs()

        positions = paragraph_positions(self._snapshot)
        try:
            return [range_text(self._snapshot, d, positions) for d in descriptors]
        except ValueError as e:
            raise ServiceUnavailable(str(e)) from e


class InMemoryDocumentService(SnapshotDocumentService):
    """Service over a paragraph list held in memory."""

    name = "in-memory document"

    def __init__(self, paragraphs: Sequence[Paragraph]):
        super().__init__()
        self.paragraphs = list(paragraphs)

    @classmethod
    def from_pairs(cls, pairs: Sequence[tuple[str, str]]) -> InMemoryDocumentService:
        """Build from ``(style_tag, text)`` pairs in document order."""
        return cls([
            Paragraph(index=i, style_tag=style, text=text)
            for i, (style, text) in enumerate(pairs)
        ])

    def _load_paragraphs(self) -> list[Paragraph]:
        return list(self.paragraphs)
