"""
Main route (entry form).

Shows the entries collected so far and the links of the last generation.
"""

from flask import Blueprint, render_template, session

from .helpers import current_session_id, session_store

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    """Entry form with the caller's pending entries."""
    entries = session_store().entries(current_session_id())
    return render_template(
        "index.html",
        entries=entries,
        last_generation=session.pop("last_generation", None),
    )
