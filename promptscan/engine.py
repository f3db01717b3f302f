"""
Scan Engine
===========
Main orchestrator that runs the heading classifier, boundary resolver and
batched retriever against one document service.

Usage:
    engine = ScanEngine(service, config)
    result = await engine.scan()
    # or, from synchronous code:
    result = engine.scan_sync()

Architecture:
    fetch_paragraphs() → HeadingClassifier → Headings → BoundaryResolver →
    BoundaryPlan → BatchedRetriever (one resolve_ranges call) → ScanResult
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .classifier import BUTTON_MARKER, HEADING_STYLE_PREFIX, LABEL_MARKER, HeadingClassifier
from .models import ScanReport, ScanResult
from .resolver import BoundaryResolver
from .retriever import BatchedRetriever
from .service import DocumentService, ServiceUnavailable
from .state_machine import ScanState, ScanStateMachine
from .validator import ScanValidator

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class ScanConfig:
    """Configuration for the scan engine."""

    # Classification
    heading_style_prefix: str = HEADING_STYLE_PREFIX
    button_marker: str = BUTTON_MARKER
    label_marker: str = LABEL_MARKER

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


class ScanEngine:
    """
    Scans a document into UI directives.

    Every call to ``scan()`` starts from IDLE with fresh state and makes at
    most two requests to the service: one paragraph fetch and one batched
    range resolution. Scans on one engine must not overlap.
    """

    def __init__(
        self,
        service: DocumentService,
        config: Optional[ScanConfig] = None,
    ):
        self.service = service
        self.config = config or ScanConfig()
        self.classifier = HeadingClassifier(
            heading_style_prefix=self.config.heading_style_prefix,
            button_marker=self.config.button_marker,
            label_marker=self.config.label_marker,
        )
        self.resolver = BoundaryResolver()
        self.validator = ScanValidator()
        self.last_scan: Optional[ScanStateMachine] = None
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        package_logger = logging.getLogger("promptscan")
        package_logger.setLevel(log_level)

        # Console handler (level follows the package logger)
        if not package_logger.handlers:
            console = logging.StreamHandler()
            console.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(console)

        # File handler
        if self.config.log_file:
            log_path = Path(self.config.log_file)
            already_attached = any(
                isinstance(h, logging.FileHandler)
                and Path(h.baseFilename) == log_path.resolve()
                for h in package_logger.handlers
            )
            if not already_attached:
                log_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(log_path, encoding="utf-8")
                file_handler.setLevel(log_level)
                file_handler.setFormatter(
                    logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
                )
                package_logger.addHandler(file_handler)

    async def scan(self) -> ScanResult:
        """
        Run one complete scan.

        Returns:
            ScanResult with status no_headings, no_directives, directives
            or failed. Service errors never escape as exceptions.
        """
        machine = ScanStateMachine()
        self.last_scan = machine
        logger.info(f"Scanning {self.service.name}")

        try:
            # ── Phase 1: Paragraph metadata (round trip 1) ───────────────
            paragraphs = await self.service.fetch_paragraphs()
            machine.advance(ScanState.METADATA_FETCHED)

            headings = self.classifier.classify(paragraphs)
            if not headings:
                logger.info("No headings found")
                machine.advance(ScanState.DONE)
                return ScanResult.no_headings(
                    ScanReport(paragraph_count=len(paragraphs))
                )

            # ── Phase 2: Boundaries ──────────────────────────────────────
            plan = self.resolver.resolve(headings)
            machine.advance(ScanState.BOUNDARIES_COMPUTED)

            if plan.is_empty:
                logger.info(
                    f"{len(headings)} headings found, none with a marker"
                )
                machine.advance(ScanState.DONE)
                return ScanResult.no_directives(
                    self.validator.validate(len(paragraphs), headings, [])
                )

            # ── Phase 3: Range text (round trip 2) ───────────────────────
            retriever = BatchedRetriever(self.service)
            directives = await retriever.retrieve(plan)
            machine.advance(ScanState.TEXT_RESOLVED)

            report = self.validator.validate(
                len(paragraphs),
                headings,
                directives,
                round_trips=retriever.round_trips,
            )
            machine.advance(ScanState.DONE)

        except ServiceUnavailable as e:
            reason = str(e) or type(e).__name__
            logger.error(f"Scan failed in state {machine.state.value}: {reason}")
            machine.fail(reason)
            return ScanResult.failed(reason)

        return ScanResult.with_directives(directives, report)

    def scan_sync(self) -> ScanResult:
        """Run ``scan()`` to completion from synchronous code."""
        return asyncio.run(self.scan())
