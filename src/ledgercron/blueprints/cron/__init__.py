"""Cron trigger blueprint package."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("cron", __name__, url_prefix="/api/cron")

from . import routes  # noqa: E402,F401

__all__ = ["bp"]
