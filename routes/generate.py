"""
Generate and download routes.

POST /generate consumes the caller's session and produces the report and
the photo archive. Each artifact can be downloaded once; its file is
deleted as it is sent.
"""

import io

from flask import (
    Blueprint,
    jsonify,
    redirect,
    send_file,
    session,
    url_for,
)

from core.exceptions import ArtifactNotFoundError
from models.generation_result import ArtifactKind
from logging_config import get_logger
from .helpers import (
    current_session_id,
    flash_message,
    generation_service,
    wants_json,
)


# Module logger
logger = get_logger(__name__)

generate_bp = Blueprint("generate", __name__)


def _download_urls(generation_id: str) -> dict:
    return {
        kind.value: url_for(
            "generate.download", generation_id=generation_id, kind=kind.value
        )
        for kind in ArtifactKind
    }


@generate_bp.route("/generate", methods=["POST"])
def generate():
    """
    Generate the report and archive for the caller's session.

    Success clears the session. GenerationFailedError propagates to the
    app error handler (500) with the session left untouched.
    """
    session_id = current_session_id()
    logger.info(f"Generate requested for session {session_id[:8]}")

    result = generation_service().generate(session_id)

    payload = result.to_dict()
    payload["downloads"] = _download_urls(result.generation_id)

    if wants_json():
        return jsonify(payload), 200

    session["last_generation"] = payload
    session.modified = True
    flash_message(
        "Generated report with <strong>{count}</strong> barcodes.",
        "success",
        count=result.entries_rendered,
    )
    return redirect(url_for("main.index"))


@generate_bp.route("/download/<generation_id>/<kind>", methods=["GET"])
def download(generation_id: str, kind: str):
    """
    Send one artifact of a finished generation.

    The artifact is released from the store and its file deleted before
    the body is sent.
    """
    try:
        artifact = ArtifactKind(kind)
    except ValueError:
        raise ArtifactNotFoundError(generation_id, kind)

    path = generation_service().artifact_store.release(generation_id, artifact)
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        raise ArtifactNotFoundError(generation_id, kind)
    path.unlink(missing_ok=True)

    logger.info(f"Sending {artifact.value} of generation {generation_id} ({len(data)} bytes)")
    return send_file(
        io.BytesIO(data),
        mimetype=artifact.mimetype,
        as_attachment=True,
        download_name=artifact.download_name,
    )
