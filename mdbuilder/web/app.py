"""Flask application serving the output tree for local preview."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from flask import Flask, jsonify, request, send_file
from werkzeug.utils import safe_join

from mdbuilder.logger import get_logger

from .tasks import RebuildCoordinator

logger = get_logger(__name__)

INDEX_DOCUMENT = "index.html"


def candidate_files(request_path: str) -> List[str]:
    """
    Output-relative files that may answer a request path, in order.

    ``/`` and paths ending in ``/`` map to their ``index.html``; a path without
    an extension also tries ``<path>.html`` and ``<path>/index.html``.
    """
    path = request_path.lstrip("/")
    if not path or path.endswith("/"):
        return [f"{path}{INDEX_DOCUMENT}"]

    candidates = [path]
    if not os.path.splitext(path.rsplit("/", 1)[-1])[1]:
        candidates.append(f"{path}.html")
        candidates.append(f"{path}/{INDEX_DOCUMENT}")
    return candidates


def resolve_request(output_dir: Path, request_path: str) -> Optional[str]:
    """Absolute file path for a request, or None; never escapes output_dir."""
    for candidate in candidate_files(request_path):
        resolved = safe_join(str(output_dir), candidate)
        if resolved and os.path.isfile(resolved):
            return resolved
    return None


def build_app(output_dir: Path, coordinator: Optional[RebuildCoordinator] = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__, static_folder=None)
    app.config["JSON_AS_ASCII"] = False
    app.config["OUTPUT_DIR"] = Path(output_dir).resolve()

    register_default_routes(app, coordinator)
    return app


def register_default_routes(app: Flask, coordinator: Optional[RebuildCoordinator]) -> None:
    """Register health, rebuild and file routes."""

    @app.get("/health")
    def health_check():
        logger.debug("Health check requested")
        payload = {"status": "ok"}
        if coordinator is not None:
            payload["rebuild"] = coordinator.status()
        return jsonify(payload)

    @app.post("/__rebuild")
    def trigger_rebuild():
        if coordinator is None:
            return jsonify({"error": "Rebuilds are not enabled"}), 503
        started = coordinator.request(reason="http")
        return jsonify({"started": started, "rebuild": coordinator.status()}), 202

    @app.get("/")
    @app.get("/<path:subpath>")
    def serve_output(subpath: str = ""):
        resolved = resolve_request(app.config["OUTPUT_DIR"], request.path)
        if resolved is None:
            return "Not found", 404
        return send_file(resolved)
