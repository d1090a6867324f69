"""Structured logging for a machine-parseable analysis audit trail."""

from __future__ import annotations

import json
from pathlib import Path
from typing import IO, Any

import structlog
from structlog.processors import JSONRenderer
from structlog.typing import Processor

AUDIT_LOG_NAME = "analysis.jsonl"

_configured = False
_logger: structlog.BoundLogger | None = None
_file_handle: IO[str] | None = None


def configure_run_logging(log_dir: str) -> Path:
    """One-time setup. Writes JSON lines to {log_dir}/analysis.jsonl and returns that path."""
    global _configured, _logger, _file_handle
    app_log_path = Path(log_dir) / AUDIT_LOG_NAME
    if _configured:
        return app_log_path
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    _file_handle = open(app_log_path, "a", encoding="utf-8")
    file_handle = _file_handle

    def _file_logger_factory(*args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file_handle)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        JSONRenderer(),
    ]
    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=_file_logger_factory,
        cache_logger_on_first_use=False,
    )
    _configured = True
    _logger = structlog.get_logger()
    return app_log_path


def reset_run_logging() -> None:
    """Close the audit file and return structlog to its defaults."""
    global _configured, _logger, _file_handle
    if _file_handle is not None:
        _file_handle.close()
    _file_handle = None
    _logger = None
    _configured = False
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


def is_configured() -> bool:
    return _configured


def bind_analysis(analysis_id: str) -> None:
    """Bind analysis context so every event includes analysis_id."""
    structlog.contextvars.bind_contextvars(analysis_id=analysis_id)


def log_analysis(kind: str, status: str, **summary: Any) -> None:
    """Log one completed (or failed) analysis step."""
    if _logger is not None:
        _logger.info("analysis", kind=kind, status=status, **summary)


def log_validation(
    backend: str,
    agrees: bool,
    attempts: int,
    *,
    max_difference: float | None = None,
    error: str | None = None,
) -> None:
    """Log an external cross-validation outcome."""
    payload: dict[str, Any] = {"backend": backend, "agrees": agrees, "attempts": attempts}
    if max_difference is not None:
        payload["max_difference"] = max_difference
    if error is not None:
        payload["error"] = error
    if _logger is not None:
        _logger.info("validation", **payload)


def load_events_from_jsonl(path: str) -> list[dict[str, Any]]:
    """Read an analysis.jsonl file; lines that fail to parse are skipped."""
    events: list[dict[str, Any]] = []
    log_path = Path(path)
    if not log_path.exists():
        return events
    with log_path.open("r", encoding="utf-8") as file_obj:
        for line in file_obj:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(entry, dict):
                events.append(entry)
    return events
