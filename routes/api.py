"""
API routes.

Handles:
- /health - Health check endpoint
- /generations/<id> - Metadata of a finished generation
"""

from flask import Blueprint, current_app, jsonify

from core.exceptions import ArtifactNotFoundError
from .helpers import generation_service, session_store


api_bp = Blueprint("api", __name__)


@api_bp.route("/health", methods=["GET"])
def health():
    """Liveness check with a few counters."""
    return jsonify({
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT"),
        "sessions": len(session_store()),
        "pending_generations": len(generation_service().artifact_store),
    })


@api_bp.route("/generations/<generation_id>", methods=["GET"])
def generation_status(generation_id: str):
    """Metadata of a generation whose artifacts are not all downloaded yet."""
    result = generation_service().artifact_store.get(generation_id)
    if result is None:
        raise ArtifactNotFoundError(generation_id, "generation")
    return jsonify(result.to_dict())
