"""
Prompt Scan Service: Main Entry Point
=====================================
Starts the Flask-based scan service.

Usage:
    python main.py                          # Default: 0.0.0.0:5000
    python main.py --port 8000              # Custom port
    python main.py --document prompts.docx  # Also serve a document
    python main.py --debug                  # Debug mode
"""

import argparse
import logging

from promptscan.server import create_app, app

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Prompt Scan Service")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=5000, help="Bind port")
    parser.add_argument("--document", default=None, help="Document to serve")
    parser.add_argument("--debug", action="store_true", help="Debug mode")
    args = parser.parse_args()

    create_app({"DOCUMENT_PATH": args.document} if args.document else None)

    if args.document:
        logger.info(f"Serving document: {args.document}")
    logger.info(f"Starting server on {args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
