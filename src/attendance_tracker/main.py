from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .container import Container, build_container
from .core.errors import register_error_handlers
from .core.logging import configure_logging
from .database.bootstrap import apply_schema, list_tables
from .jobs.commands import register as register_commands
from .schedules.controller import register as register_schedules
from .sessions.controller import register as register_sessions

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "database" / "schema.sql"


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app.

    Passing a ready ``container`` skips all database setup (used by tests).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = dict(getattr(settings, "DB_CONFIG"))
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["DB_CONFIG"] = db_config

    logger.info(
        "Starting with settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        container = build_container(db_config=db_config, settings=settings)

    app.extensions["attendance_container"] = container

    register_error_handlers(app)
    register_schedules(app, container)
    register_sessions(app, container)
    register_attendance(app, container)
    register_commands(app, container)

    return app
