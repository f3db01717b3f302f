"""
HTTP Microservice
=================
Flask-based HTTP API for the prompt scan engine.

Two roles:
    - Scan front end for panels/UIs that render the directives
    - Document service back end, serving one configured document so another
      instance (or HttpDocumentService) can scan it remotely

Endpoints:
    GET    /api/health              → Health check
    GET    /api/info                → Version and capability info
    POST   /api/scan                → Scan posted paragraphs or an uploaded file
    GET    /api/document/paragraphs → Paragraph stream of DOCUMENT_PATH
    POST   /api/document/ranges     → Batched range text of DOCUMENT_PATH
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
from pathlib import Path

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError
from werkzeug.utils import secure_filename

from . import __version__
from .classifier import HEADING_STYLE_PREFIX
from .engine import LOG_LEVELS, ScanConfig, ScanEngine
from .models import ContentRangeDescriptor, ScanStatus
from .service import InMemoryDocumentService, ServiceUnavailable
from .sources import open_document, paragraphs_from_json

logger = logging.getLogger(__name__)

SUPPORTED_UPLOADS = (".docx", ".pdf", ".json")

app = Flask(__name__)
CORS(app)


def create_app(config: dict = None) -> Flask:
    """Create and configure the Flask app."""
    if config:
        app.config.update(config)

    app.config.setdefault("DOCUMENT_PATH", None)
    app.config.setdefault("LOG_LEVEL", "INFO")
    app.config.setdefault("MAX_CONTENT_LENGTH", 50 * 1024 * 1024)  # 50MB

    return app


class InvalidScanParams(ValueError):
    """Request parameters that cannot form a ScanConfig."""


def _scan_config(params) -> ScanConfig:
    """
    Build a ScanConfig from request JSON or form fields.

    Raises:
        InvalidScanParams: If a parameter has the wrong type or value.
    """
    prefix = params.get("heading_style_prefix") or HEADING_STYLE_PREFIX
    if not isinstance(prefix, str):
        raise InvalidScanParams("heading_style_prefix must be a string")

    log_level = params.get("log_level") or app.config.get("LOG_LEVEL", "INFO")
    if not isinstance(log_level, str) or log_level.upper() not in LOG_LEVELS:
        raise InvalidScanParams(
            f"log_level must be one of {', '.join(LOG_LEVELS)}"
        )

    return ScanConfig(heading_style_prefix=prefix, log_level=log_level.upper())


def _scan_response(service, params):
    try:
        config = _scan_config(params)
    except InvalidScanParams as e:
        return jsonify({"error": str(e)}), 400

    result = ScanEngine(service, config).scan_sync()
    status = 502 if result.status == ScanStatus.FAILED else 200
    return jsonify(result.model_dump(mode="json")), status


# ─── Health Check ─────────────────────────────────────────────────────────────


@app.route("/api/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "promptscan",
        "version": __version__,
        "document": app.config.get("DOCUMENT_PATH"),
    })


@app.route("/api/info", methods=["GET"])
def info():
    """Version and capability info."""
    return jsonify({
        "version": __version__,
        "markers": {"button": "*", "label": "_"},
        "capabilities": [
            "heading_classification",
            "batched_range_resolution",
            "document_service",
        ],
        "supported_formats": [s.lstrip(".") for s in SUPPORTED_UPLOADS],
    })


# ─── Scan Endpoint ────────────────────────────────────────────────────────────


@app.route("/api/scan", methods=["POST"])
def scan_document():
    """
    Scan a document and return its directives.

    Accepts either:
        - A file upload (multipart/form-data, .docx / .pdf / .json)
        - A JSON body with a ``paragraphs`` list of {style, text}

    Returns the ScanResult JSON; 502 when the document could not be read.
    """
    if "file" in request.files:
        file = request.files["file"]
        if not file.filename:
            return jsonify({"error": "No file selected"}), 400

        filename = secure_filename(file.filename)
        if Path(filename).suffix.lower() not in SUPPORTED_UPLOADS:
            return jsonify({
                "error": f"Unsupported file type: {filename}"
            }), 400

        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / filename
            file.save(str(path))
            return _scan_response(open_document(str(path)), request.form)

    if request.is_json:
        data = request.get_json(silent=True) or {}
        try:
            paragraphs = paragraphs_from_json(data)
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        params = data if isinstance(data, dict) else {}
        return _scan_response(InMemoryDocumentService(paragraphs), params)

    return jsonify({
        "error": "Provide a file upload or JSON with paragraphs"
    }), 400


# ─── Document Service Endpoints ───────────────────────────────────────────────


def _configured_document():
    document_path = app.config.get("DOCUMENT_PATH")
    if not document_path:
        return None
    return open_document(str(document_path))


@app.route("/api/document/paragraphs", methods=["GET"])
def document_paragraphs():
    """Paragraph stream of the configured document."""
    service = _configured_document()
    if service is None:
        return jsonify({"error": "No document configured"}), 404

    try:
        paragraphs = asyncio.run(service.fetch_paragraphs())
    except ServiceUnavailable as e:
        logger.error(f"Paragraph fetch failed: {e}")
        return jsonify({"error": str(e)}), 502

    return jsonify({
        "paragraphs": [p.model_dump(mode="json") for p in paragraphs],
    })


@app.route("/api/document/ranges", methods=["POST"])
def document_ranges():
    """Resolve a batch of content ranges of the configured document."""
    service = _configured_document()
    if service is None:
        return jsonify({"error": "No document configured"}), 404

    data = request.get_json(silent=True)
    raw_ranges = data.get("ranges") if isinstance(data, dict) else None
    if not isinstance(raw_ranges, list):
        return jsonify({"error": "Body must contain a ranges list"}), 400

    try:
        descriptors = [
            ContentRangeDescriptor.model_validate(r) for r in raw_ranges
        ]
    except ValidationError as e:
        return jsonify({"error": f"Invalid range: {e}"}), 400

    try:
        texts = asyncio.run(service.resolve_ranges(descriptors))
    except ServiceUnavailable as e:
        logger.error(f"Range resolution failed: {e}")
        return jsonify({"error": str(e)}), 502

    return jsonify({
        "results": [
            {"index": i, "text": text} for i, text in enumerate(texts)
        ],
    })


# ─── Run Server ───────────────────────────────────────────────────────────────


def run_server(
    host: str = "0.0.0.0",
    port: int = 5000,
    debug: bool = False,
    document_path: str = None,
):
    """Start the microservice server."""
    create_app({"DOCUMENT_PATH": document_path} if document_path else None)
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_server(debug=True)
