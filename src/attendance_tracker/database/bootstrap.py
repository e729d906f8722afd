from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)


def _connect(config: DBConfig, *, with_database: bool = True):
    params = dict(host=config.host, port=config.port, user=config.user, password=config.password, use_pure=True)
    if with_database:
        params["database"] = config.database
    return mysql.connector.connect(**params)


def _strip_create_db_and_use(sql: str) -> str:
    # The target database comes from DB_CONFIG, never from the script.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    return re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)


def split_statements(sql: str) -> Iterator[str]:
    """Split a script on ';' outside of quoted strings; comment lines are dropped."""
    buf: list[str] = []
    quote = None
    prev = ""
    for line in sql.splitlines(keepends=True):
        if quote is None and line.lstrip().startswith("--"):
            continue
        for ch in line:
            if quote:
                if ch == quote and prev != "\\":
                    quote = None
            elif ch in ("'", '"', "`"):
                quote = ch
            elif ch == ";":
                stmt = "".join(buf).strip()
                buf.clear()
                prev = ch
                if stmt:
                    yield stmt
                continue
            buf.append(ch)
            prev = ch

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    config = DBConfig.from_dict(db_config)
    conn = _connect(config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    """Create the database (if needed) and run every statement of schema.sql."""
    ensure_database_exists(db_config)
    config = DBConfig.from_dict(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connect(config)
    try:
        cur = conn.cursor()
        count = 0
        for stmt in split_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    logger.info("Applied %s schema statement(s) to %s", count, config.database)


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
