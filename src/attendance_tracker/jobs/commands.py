"""``flask attendance ...`` commands, meant to be run from cron or a timer."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from flask import Flask, current_app
from flask.cli import AppGroup

from ..container import Container
from ..database.bootstrap import apply_schema, list_tables

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "database" / "schema.sql"


def _report(name: str, result: dict) -> None:
    summary = ", ".join(f"{k}={v}" for k, v in result.items())
    logger.info("%s finished: %s", name, summary)
    click.echo(f"{name}: {summary}")


def register(app: Flask, container: Container) -> None:
    group = AppGroup("attendance", help="Scheduled attendance jobs.")

    @group.command("activate-sessions")
    def activate_sessions():
        activated = container.session_service.activate_due()
        _report("activate-sessions", {"activated": len(activated)})

    @group.command("mark-absent")
    @click.option("--session-id", type=int, default=None, help="Only process this session.")
    def mark_absent(session_id):
        _report("mark-absent", container.absence_job.run(session_id))

    @group.command("end-expired-breaks")
    def end_expired_breaks():
        _report("end-expired-breaks", container.break_sweep_job.run())

    @group.command("auto-checkout")
    def auto_checkout():
        _report("auto-checkout", container.auto_checkout_job.run())

    @group.command("recalculate-status")
    @click.option("--session-id", type=int, default=None, help="Only process this session.")
    def recalculate_status(session_id):
        _report("recalculate-status", container.recalculate_job.run(session_id))

    @group.command("init-db")
    def init_db():
        db_config = current_app.config["DB_CONFIG"]
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        tables = list_tables(db_config)
        click.echo(
            "OK: Applied schema.sql -> "
            f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
            f"(tables={len(tables)})"
        )

    app.cli.add_command(group)
