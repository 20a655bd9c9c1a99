"""
HTTP Microservice
=================
Flask-based HTTP API for the extraction engine, used by the question
review UI.

Endpoints:
    POST   /api/extract       → Extract questions from an uploaded PDF
    GET    /api/health        → Health check
    GET    /api/info          → Extractor version info

The service is stateless: the uploaded PDF is read into memory, extracted
and discarded. Persisting the reviewed questions is the caller's job.
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify, request
from flask_cors import CORS

from . import __version__
from .engine import ExtractionEngine, ParserConfig
from .errors import ExtractionError
from .review import ReviewEngine

logger = logging.getLogger(__name__)

_FALSE_VALUES = {"0", "false", "no", "off"}


def create_app(config: dict = None) -> Flask:
    """Create and configure the Flask app."""
    app = Flask(__name__)
    CORS(app)

    app.config.update(
        MAX_CONTENT_LENGTH=100 * 1024 * 1024,  # 100MB
        FIGURE_SCALE=1.5,
        LOG_LEVEL="INFO",
    )
    if config:
        app.config.update(config)

    _register_routes(app)
    return app


def _register_routes(app: Flask):

    # ─── Health Check ─────────────────────────────────────────────────────

    @app.route("/api/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({
            "status": "healthy",
            "service": "quiz-pdf-parser",
            "version": __version__,
        })

    @app.route("/api/info", methods=["GET"])
    def info():
        """Extractor version and capability info."""
        return jsonify({
            "version": __version__,
            "engine": "PyMuPDF",
            "capabilities": [
                "text_reconstruction",
                "section_detection",
                "numbered_and_paragraph_splitting",
                "solution_mapping",
                "page_figures",
            ],
            "supported_formats": ["pdf"],
        })

    # ─── Extract Endpoint ─────────────────────────────────────────────────

    @app.route("/api/extract", methods=["POST"])
    def extract():
        """
        Extract questions from an uploaded PDF synchronously.

        Form fields:
            file:      the PDF (multipart upload, required)
            category:  category stamped on every question (required)
            year:      integer year (optional)
            figures:   "false" to skip page figures (optional)
        """
        file = request.files.get("file")
        if file is None or not file.filename:
            return jsonify({"error": "No file uploaded"}), 400

        category = (request.form.get("category") or "").strip()
        if not category:
            return jsonify({"error": "Missing category"}), 400

        year = None
        raw_year = (request.form.get("year") or "").strip()
        if raw_year:
            try:
                year = int(raw_year)
            except ValueError:
                return jsonify({"error": f"Invalid year: {raw_year}"}), 400

        figures = (
            request.form.get("figures", "true").strip().lower()
            not in _FALSE_VALUES
        )

        config = ParserConfig(
            extract_figures=figures,
            figure_scale=float(app.config["FIGURE_SCALE"]),
            log_level=app.config["LOG_LEVEL"],
            review_summary=False,
        )

        try:
            engine = ExtractionEngine(config)
            questions = engine.extract(file.read(), category, year)
        except ExtractionError as e:
            logger.warning(f"Extraction failed for {file.filename}: {e}")
            return jsonify({"error": str(e)}), 422

        report = ReviewEngine().review(questions)
        return jsonify({
            "questions": [q.model_dump(mode="json") for q in questions],
            "review": report.model_dump(),
        }), 200


# ─── Run Server ──────────────────────────────────────────────────────────────


def run_server(
    host: str = "0.0.0.0",
    port: int = 5000,
    debug: bool = False,
):
    """Start the microservice server."""
    app = create_app()
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_server(debug=True)
