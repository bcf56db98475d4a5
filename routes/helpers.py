"""Request helpers shared by the blueprints."""

import uuid

from flask import current_app, flash, request, session
from markupsafe import escape

from modules.naming import safe_markup


def current_session_id() -> str:
    """
    Session ID of the calling client, created on first use.

    The cookie only carries this ID; entries live in the SessionStore.
    """
    session_id = session.get("session_id")
    if not session_id:
        session_id = uuid.uuid4().hex
        session["session_id"] = session_id
        session.modified = True
    return session_id


def wants_json() -> bool:
    """True unless the client prefers HTML (a browser form post)."""
    if request.is_json or request.args.get("format") == "json":
        return True
    best = request.accept_mimetypes.best_match(["application/json", "text/html"])
    return best != "text/html"


def flash_message(template: str, category: str = "info", **values) -> None:
    """
    Flash an HTML message.

    Values are escaped before interpolation; the result is passed through
    bleach so only the message tags survive.

    Example:
        flash_message("Added barcode <strong>{barcode}</strong>.", "success",
                      barcode="X<Y>Z")
    """
    html = template.format(**{key: escape(value) for key, value in values.items()})
    flash(safe_markup(html), category)


def session_store():
    return current_app.config["SESSION_STORE"]


def document_composer():
    return current_app.config["DOCUMENT_COMPOSER"]


def generation_service():
    return current_app.config["GENERATION_SERVICE"]
