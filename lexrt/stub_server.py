"""
Flask development stub of the word-list and results services.

This module provides:
- GET /api/words: the stimulus set as ``{trialWords, testWords}``
- POST /api/results: accepts ``{email, results}`` and stores it as JSON

It exists to run the experiment locally and to exercise the runtime in
integration tests; the real services are deployed separately.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from .utils.helpers import load_json, save_json

logger = logging.getLogger(__name__)

DEFAULT_WORDS: Dict[str, List[Dict[str, str]]] = {
    "trialWords": [
        {"word": "güneş", "emotion": "positive", "language": "tr"},
        {"word": "kavga", "emotion": "negative", "language": "tr"},
        {"word": "hediye", "emotion": "positive", "language": "tr"},
        {"word": "korku", "emotion": "negative", "language": "tr"},
    ],
    "testWords": [
        {"word": "mutluluk", "emotion": "positive", "language": "tr"},
        {"word": "hastalık", "emotion": "negative", "language": "tr"},
        {"word": "sevgi", "emotion": "positive", "language": "tr"},
        {"word": "kayıp", "emotion": "negative", "language": "tr"},
        {"word": "umut", "emotion": "positive", "language": "tr"},
        {"word": "acı", "emotion": "negative", "language": "tr"},
        {"word": "kahkaha", "emotion": "positive", "language": "tr"},
        {"word": "yalnızlık", "emotion": "negative", "language": "tr"},
    ],
}

RESULT_FIELDS = ("word", "emotion", "language", "response", "responseTime")


def _validate_results(data: Any) -> Optional[str]:
    """Return an error message for an invalid results body, else None."""
    if not isinstance(data, dict):
        return "Request body must be a JSON object"

    email = data.get("email")
    if not isinstance(email, str) or "@" not in email:
        return "A valid email is required"

    results = data.get("results")
    if not isinstance(results, list):
        return "Results must be a list"

    for i, row in enumerate(results):
        if not isinstance(row, dict):
            return f"Result {i} must be an object"
        missing = [f for f in RESULT_FIELDS if f not in row]
        if missing:
            return f"Result {i} is missing {', '.join(missing)}"
        if row["response"] not in ("positive", "negative"):
            return f"Result {i} has invalid response: {row['response']}"
        if not isinstance(row["responseTime"], int) or row["responseTime"] < 0:
            return f"Result {i} has invalid responseTime"

    return None


def create_app(
    words: Optional[Dict[str, Any]] = None,
    results_dir: Optional[Path] = None,
    words_failures: int = 0,
) -> Flask:
    """
    Create the stub application.

    Parameters
    ----------
    words : Optional[Dict[str, Any]]
        Word-list payload to serve. Uses a built-in Turkish list if None.
    results_dir : Optional[Path]
        Where accepted payloads are written. Kept in memory only if None.
    words_failures : int
        Number of initial word-list requests answered with 503, for
        exercising the client's retry behaviour

    Returns
    -------
    Flask
        The configured application
    """
    app = Flask(__name__)
    # The experiment client may run on another origin and sends cookies
    CORS(app, supports_credentials=True)

    state = {
        "words": words if words is not None else DEFAULT_WORDS,
        "words_failures": words_failures,
        "word_requests": 0,
        "submissions": [],
    }
    app.config["STUB_STATE"] = state

    @app.route("/api/words", methods=["GET"])
    def get_words():
        state["word_requests"] += 1
        if state["words_failures"] > 0:
            state["words_failures"] -= 1
            logger.info("Stub: simulated word list outage")
            return jsonify({"error": "Service temporarily unavailable"}), 503
        return jsonify(state["words"])

    @app.route("/api/results", methods=["POST"])
    def save_results():
        data = request.get_json(silent=True)
        error = _validate_results(data)
        if error:
            logger.warning(f"Stub: rejected results: {error}")
            return jsonify({"error": error}), 400

        submission_id = uuid.uuid4().hex
        state["submissions"].append(data)
        if results_dir is not None:
            save_json(data, Path(results_dir) / f"{submission_id}.json")

        logger.info(f"Stub: stored {len(data['results'])} results for {data['email']}")
        return jsonify({
            "success": True,
            "id": submission_id,
            "count": len(data["results"]),
        }), 201

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not found"}), 404

    return app


def load_words_file(path: Path) -> Dict[str, Any]:
    """Load a word-list payload from a JSON file."""
    words = load_json(path)
    if "trialWords" not in words or "testWords" not in words:
        raise ValueError(f"{path} must contain 'trialWords' and 'testWords'")
    return words
