"""
Logging setup for the salon backend.

Every record may carry ``extra={"context": {...}}``; both formatters render it.
Console output is colored text (or JSON when asked), log files are always JSON.
Each request gets an id (``X-Request-ID`` is honored and echoed back).

Usage:
    from salon.core.logging_config import setup_logging

    setup_logging(app, log_level="INFO")

    logger = logging.getLogger(__name__)
    logger.info("Appointment created", extra={"context": {"appointment_id": 12}})
"""

import json
import logging
import logging.handlers
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from flask import Flask, g, request
from flask_login import current_user
from sqlalchemy import event
from sqlalchemy.engine import Engine

LOG_DIR = Path(__file__).resolve().parents[2] / "logs"
LOG_FILES = (("app.log", None), ("salon_errors.log", logging.ERROR))
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

_sql_timing_installed = False


def _context_of(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    return getattr(record, "context", None)


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with the record's context nested under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        context = _context_of(record)
        if context is not None:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self):
        super().__init__(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        colored = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno, "")
        colored.levelname = f"{color}{record.levelname:8}{self.RESET}"
        line = super().format(colored)
        context = _context_of(record)
        if context:
            line += " | " + json.dumps(context, default=str)
        return line


def _resolve_level(log_level: Union[int, str]) -> int:
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(str(log_level).upper())
    return level if isinstance(level, int) else logging.INFO


def _attach_file_handlers(root: logging.Logger, level: int) -> None:
    """Add rotating JSON files; on any OS error keep logging to the console only."""
    try:
        LOG_DIR.mkdir(exist_ok=True)
        for filename, file_level in LOG_FILES:
            handler = logging.handlers.RotatingFileHandler(
                LOG_DIR / filename,
                maxBytes=MAX_LOG_BYTES,
                backupCount=LOG_BACKUPS,
                encoding="utf-8",
            )
            handler.setLevel(file_level or level)
            handler.setFormatter(JSONFormatter())
            root.addHandler(handler)
    except OSError as e:
        root.warning(
            "File logging unavailable, console only",
            extra={"context": {"log_dir": str(LOG_DIR), "error": str(e)}},
        )


def _install_sql_timing() -> None:
    global _sql_timing_installed
    if _sql_timing_installed:
        return
    _sql_timing_installed = True
    perf_logger = logging.getLogger("sqlalchemy.performance")

    @event.listens_for(Engine, "before_cursor_execute")
    def _start(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("salon_query_started", []).append(time.perf_counter())

    @event.listens_for(Engine, "after_cursor_execute")
    def _finish(conn, cursor, statement, parameters, context, executemany):
        elapsed_ms = (time.perf_counter() - conn.info["salon_query_started"].pop()) * 1000
        perf_logger.debug(
            "SQL %.2fms",
            elapsed_ms,
            extra={"context": {"sql": statement[:500], "duration_ms": round(elapsed_ms, 2)}},
        )


def _install_request_hooks(app: Flask) -> None:
    request_logger = logging.getLogger("salon.request")

    @app.before_request
    def _begin_request():
        g.request_started = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        principal = current_user if current_user and current_user.is_authenticated else None
        request_logger.info(
            "%s %s",
            request.method,
            request.path,
            extra={
                "context": {
                    "request_id": g.request_id,
                    "user_id": getattr(principal, "user_id", None),
                    "role": getattr(principal, "role", None),
                    "remote_addr": request.remote_addr,
                }
            },
        )

    @app.after_request
    def _end_request(response):
        started = g.get("request_started")
        if started is None:
            return response
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        request_logger.info(
            "%s %s -> %s",
            request.method,
            request.path,
            response.status_code,
            extra={
                "context": {
                    "request_id": g.request_id,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                }
            },
        )
        response.headers["X-Request-ID"] = g.request_id
        return response


def setup_logging(
    app: Optional[Flask] = None,
    log_level: Union[int, str] = "INFO",
    enable_sql_echo: bool = False,
    log_to_file: bool = True,
    use_json_format: bool = False,
) -> None:
    """
    Configure the root logger, replacing any handlers already installed.

    Args:
        app: When given, request/response logging hooks are registered on it
        log_level: ``logging.INFO`` or a name such as ``"DEBUG"``
        enable_sql_echo: Log each SQL statement with its duration
        log_to_file: Also write rotating JSON files under ``backend/logs``
        use_json_format: JSON on the console instead of colored text
    """
    level = _resolve_level(log_level)
    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(JSONFormatter() if use_json_format else ConsoleFormatter())
    root.addHandler(console)

    if log_to_file:
        _attach_file_handlers(root, level)
    if enable_sql_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
        _install_sql_timing()
    if app is not None:
        _install_request_hooks(app)

    for noisy in ("werkzeug", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger("salon").info(
        "Logging configured",
        extra={
            "context": {
                "level": logging.getLevelName(level),
                "sql_echo": enable_sql_echo,
                "log_to_file": log_to_file,
                "json_format": use_json_format,
            }
        },
    )
