"""Database and administrative-client wiring for the Flask app."""

from __future__ import annotations

from flask import Flask, current_app

from .config import BaseConfig
from .infra.database import SessionFactory, create_db_engine, create_session_factory, init_database
from .domain.repositories import RecurringLedgerClient
from .infra.repositories import SQLModelRecurringLedgerClient

ENGINE_KEY = "ledgercron.engine"
SESSION_FACTORY_KEY = "ledgercron.session_factory"
ADMIN_CLIENT_KEY = "ledgercron.admin_client"


def init_db(app: Flask) -> None:
    """Create the engine and schema, and attach them to ``app.extensions``.

    The administrative client is user-unscoped; it is stored per app so that tests can
    replace it with a double instead of patching module state.
    """

    config: BaseConfig = app.config["LEDGERCRON_CONFIG"]
    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    app.extensions[ENGINE_KEY] = engine
    app.extensions[SESSION_FACTORY_KEY] = session_factory
    app.extensions[ADMIN_CLIENT_KEY] = SQLModelRecurringLedgerClient(session_factory)


def get_session_factory(app: Flask | None = None) -> SessionFactory:
    """Return the session factory of ``app`` (default: the current app)."""

    target = app or current_app
    return target.extensions[SESSION_FACTORY_KEY]


def get_admin_client(app: Flask | None = None) -> RecurringLedgerClient:
    """Return the administrative ledger client of ``app`` (default: the current app)."""

    target = app or current_app
    return target.extensions[ADMIN_CLIENT_KEY]
