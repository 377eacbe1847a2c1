"""Endpoint hit by the periodic external trigger."""

from __future__ import annotations

from flask import current_app, jsonify, request

from ledgercron.exceptions import RuleLoadError
from ledgercron.extensions import get_admin_client
from ledgercron.logging_config import get_logger
from ledgercron.services.cron_auth import extract_cron_secret, is_authorized
from ledgercron.services.recurring import run_recurring

from . import bp

logger = get_logger("cron")


def _no_store(response, status: int = 200):
    response.status_code = status
    response.headers["Cache-Control"] = "no-store"
    return response


@bp.route("/recurring", methods=["GET", "POST"])
def recurring():
    """Materialize due recurring rules and report counts."""
    expected = current_app.config["LEDGERCRON_CONFIG"].CRON_SECRET
    if not is_authorized(extract_cron_secret(request.headers), expected):
        logger.warning("Rejected recurring trigger from %s", request.remote_addr)
        return _no_store(jsonify({"error": "Unauthorized."}), 401)

    try:
        summary = run_recurring(get_admin_client())
    except RuleLoadError as exc:
        logger.error("Failed to load recurring rules: %s", exc)
        return _no_store(jsonify({"error": "Failed to load recurring rules"}), 500)

    return _no_store(jsonify(summary.to_dict()))
