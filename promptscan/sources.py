"""
Document Sources
================
Concrete document services.

    JsonDocumentService  → paragraph snapshot stored as JSON
    DocxDocumentService  → Word documents via python-docx
    PdfDocumentService   → PDFs via PyMuPDF (fitz), headings inferred from font size
    HttpDocumentService  → remote document service over HTTP (requests)

``open_document()`` picks one from a URL or file suffix.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import Counter
from pathlib import Path
from typing import Sequence
from zipfile import BadZipFile

import fitz  # PyMuPDF
import requests
from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from pydantic import ValidationError

from .models import ContentRangeDescriptor, Paragraph
from .service import DocumentService, ServiceUnavailable, SnapshotDocumentService

logger = logging.getLogger(__name__)

# A PDF text block counts as a heading when its font is this much larger
# than the most common (body) font size.
PDF_HEADING_SIZE_RATIO = 1.15
PDF_BODY_STYLE = "Normal"


def _check_exists(path: Path):
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")


# ─── JSON Snapshot ────────────────────────────────────────────────────────────


class JsonDocumentService(SnapshotDocumentService):
    """
    Paragraph snapshot file. Accepts either a list of paragraphs or an
    object with a ``paragraphs`` list; each paragraph is
    ``{"style": "Heading1", "text": "*Explain"}`` (``style_tag`` also accepted).
    """

    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)
        self.name = self.path.name

    def _load_paragraphs(self) -> list[Paragraph]:
        _check_exists(self.path)
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return paragraphs_from_json(data)


def paragraphs_from_json(data) -> list[Paragraph]:
    """Build paragraphs from decoded snapshot JSON, indexed by position."""
    items = data.get("paragraphs") if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise ValueError("Snapshot must be a list of paragraphs")

    paragraphs = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"Paragraph {i} is not an object")
        paragraphs.append(Paragraph(
            index=i,
            style_tag=str(item.get("style_tag", item.get("style", "")) or ""),
            text=str(item.get("text", "") or ""),
        ))
    return paragraphs


# ─── Word ─────────────────────────────────────────────────────────────────────


class DocxDocumentService(SnapshotDocumentService):
    """Word document; the paragraph style name is the style tag."""

    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)
        self.name = self.path.name

    def _load_paragraphs(self) -> list[Paragraph]:
        _check_exists(self.path)
        try:
            document = Document(str(self.path))
        except (PackageNotFoundError, BadZipFile) as e:
            raise ServiceUnavailable(f"Cannot open {self.name}: {e}") from e

        paragraphs = []
        for i, p in enumerate(document.paragraphs):
            style = p.style.name if p.style is not None else ""
            paragraphs.append(Paragraph(index=i, style_tag=style or "", text=p.text))
        return paragraphs


# ─── PDF ──────────────────────────────────────────────────────────────────────


def assign_pdf_styles(
    sizes: Sequence[float],
    ratio: float = PDF_HEADING_SIZE_RATIO,
) -> list[str]:
    """
    Map block font sizes to style tags.

    The most common size is body text. Larger sizes above ``ratio`` become
    Heading1, Heading2, ... by descending size (capped at Heading9).
    """
    if not sizes:
        return []

    rounded = [round(s, 1) for s in sizes]
    body = Counter(rounded).most_common(1)[0][0]
    heading_sizes = sorted(
        {s for s in rounded if s >= body * ratio},
        reverse=True,
    )
    rank = {s: i for i, s in enumerate(heading_sizes)}

    return [
        f"Heading{min(rank[s] + 1, 9)}" if s in rank else PDF_BODY_STYLE
        for s in rounded
    ]


class PdfDocumentService(SnapshotDocumentService):
    """PDF document; each text block is one paragraph."""

    def __init__(self, path: str, heading_size_ratio: float = PDF_HEADING_SIZE_RATIO):
        super().__init__()
        self.path = Path(path)
        self.name = self.path.name
        self.heading_size_ratio = heading_size_ratio

    def _load_paragraphs(self) -> list[Paragraph]:
        _check_exists(self.path)
        blocks: list[tuple[str, float]] = []

        try:
            with fitz.open(str(self.path)) as doc:
                for page in doc:
                    page_blocks = []
                    page_dict = page.get_text(
                        "dict", flags=fitz.TEXT_PRESERVE_WHITESPACE
                    )
                    for block in page_dict.get("blocks", []):
                        if block["type"] != 0:  # Text only
                            continue
                        text = self._block_text(block)
                        if not text.strip():
                            continue
                        page_blocks.append((block["bbox"], text, self._block_size(block)))

                    # Reading order: top to bottom, then left to right
                    page_blocks.sort(key=lambda b: (b[0][1], b[0][0]))
                    blocks.extend((text, size) for _, text, size in page_blocks)
        except RuntimeError as e:
            raise ServiceUnavailable(f"Cannot open {self.name}: {e}") from e

        styles = assign_pdf_styles(
            [size for _, size in blocks], self.heading_size_ratio
        )
        return [
            Paragraph(index=i, style_tag=style, text=text)
            for i, ((text, _), style) in enumerate(zip(blocks, styles))
        ]

    def _block_text(self, block: dict) -> str:
        """Combine spans in a text block into a single string."""
        lines = []
        for line in block.get("lines", []):
            lines.append("".join(span["text"] for span in line.get("spans", [])))
        return "\n".join(lines)

    def _block_size(self, block: dict) -> float:
        """Font size of the first span of a block."""
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                return float(span.get("size", 0.0))
        return 0.0


# ─── Remote ───────────────────────────────────────────────────────────────────


class HttpDocumentService(DocumentService):
    """
    Remote document service.

    Endpoints:
        GET  {base_url}/paragraphs → {"paragraphs": [{index, style_tag, text}]}
        POST {base_url}/ranges     ← {"ranges": [descriptor, ...]}
                                   → {"results": [{"index": i, "text": ...}]}

    Range results may arrive in any order; they are placed by ``index``.
    """

    def __init__(self, base_url: str, timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.name = self.base_url

    def _get(self, endpoint: str) -> dict:
        try:
            resp = requests.get(
                f"{self.base_url}/{endpoint}",
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.RequestException as e:
            raise ServiceUnavailable(f"GET {endpoint} failed: {e}") from e
        except ValueError as e:
            raise ServiceUnavailable(f"GET {endpoint} returned invalid JSON") from e

    def _post(self, endpoint: str, payload: dict) -> dict:
        try:
            resp = requests.post(
                f"{self.base_url}/{endpoint}",
                json=payload,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.RequestException as e:
            raise ServiceUnavailable(f"POST {endpoint} failed: {e}") from e
        except ValueError as e:
            raise ServiceUnavailable(f"POST {endpoint} returned invalid JSON") from e

    async def fetch_paragraphs(self) -> list[Paragraph]:
        data = await asyncio.to_thread(self._get, "paragraphs")
        items = data.get("paragraphs") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise ServiceUnavailable("Response has no paragraph list")

        try:
            return [Paragraph.model_validate(item) for item in items]
        except ValidationError as e:
            raise ServiceUnavailable(f"Malformed paragraph in response: {e}") from e

    async def resolve_ranges(
        self,
        descriptors: Sequence[ContentRangeDescriptor],
    ) -> list[str]:
        payload = {"ranges": [d.model_dump(mode="json") for d in descriptors]}
        data = await asyncio.to_thread(self._post, "ranges", payload)
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise ServiceUnavailable("Response has no result list")

        texts: dict[int, str] = {}
        for item in results:
            index = item.get("index") if isinstance(item, dict) else None
            if not isinstance(index, int) or not 0 <= index < len(descriptors):
                raise ServiceUnavailable(f"Result with invalid index: {item!r}")
            if index in texts:
                raise ServiceUnavailable(f"Duplicate result for range {index}")
            text = item.get("text")
            if text is not None and not isinstance(text, str):
                raise ServiceUnavailable(f"Result {index} has non-string text")
            texts[index] = text or ""

        missing = [i for i in range(len(descriptors)) if i not in texts]
        if missing:
            raise ServiceUnavailable(f"No result for ranges {missing}")

        return [texts[i] for i in range(len(descriptors))]


# ─── Factory ──────────────────────────────────────────────────────────────────


def open_document(source: str, timeout: float = 30) -> DocumentService:
    """
    Pick a document service for a URL or file path.

    Raises:
        ValueError: If the file type is not supported.
    """
    if source.startswith(("http://", "https://")):
        return HttpDocumentService(source, timeout=timeout)

    suffix = Path(source).suffix.lower()
    if suffix == ".docx":
        return DocxDocumentService(source)
    if suffix == ".pdf":
        return PdfDocumentService(source)
    if suffix == ".json":
        return JsonDocumentService(source)

    raise ValueError(f"Unsupported document type: {suffix or source}")
