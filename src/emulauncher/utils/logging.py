from __future__ import annotations

import json
import os
import sys
import threading
from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars

_LOG_FILE_NAME = "emulauncher.log"


def _log_dir_from_env() -> Path | None:
    """File sink directory from EMULAUNCHER_LOG_DIR; None disables the sink."""
    raw = os.getenv("EMULAUNCHER_LOG_DIR")
    return Path(raw) if raw else None


def _level_from_env() -> int:
    """Get log level from EMULAUNCHER_LOG_LEVEL (TRACE|DEBUG|INFO|WARNING|ERROR)."""
    import logging

    raw = os.getenv("EMULAUNCHER_LOG_LEVEL", "INFO").upper()
    if raw == "TRACE":
        # Level below DEBUG
        return 5
    return getattr(logging, raw, logging.INFO)


_file_lock = threading.RLock()


def _copy_event_to_message(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> Mapping[str, Any]:
    if "event" in event_dict and "message" not in event_dict:
        event_dict["message"] = event_dict["event"]
    return event_dict


def _drop_none_values(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> Mapping[str, Any]:
    return {k: v for k, v in event_dict.items() if v is not None}


def _safe_name(name: str) -> str:
    return name.replace(os.sep, "_").replace("/", "_").replace(" ", "_").replace(":", "_")


def device_log_path(log_dir: Path, device: str | None = None) -> Path:
    """
    Return the path of the per-device log file, or the common log file
    when no device name is given.
    """
    if not device:
        return log_dir / _LOG_FILE_NAME
    return log_dir / f"device_{_safe_name(device)}.log"


def _make_file_sink(log_dir: Path) -> Any:
    def _file_sink_processor(
        logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        """
        Duplicate log records into JSON-lines files:
        - <log_dir>/emulauncher.log        — all events
        - <log_dir>/device_<name>.log      — events bound to one AVD
        """
        line = json.dumps(event_dict, ensure_ascii=False, default=str)
        device = event_dict.get("device")
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            with _file_lock:
                with device_log_path(log_dir).open("a", encoding="utf-8") as f:
                    f.write(line + "\n")
                if isinstance(device, str) and device:
                    with device_log_path(log_dir, device).open("a", encoding="utf-8") as f:
                        f.write(line + "\n")
        except OSError:
            # Never break execution because of log write issues
            pass
        return event_dict

    return _file_sink_processor


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    # Resolve sys.stderr on every logger creation so redirected streams are honoured
    return structlog.PrintLogger(file=sys.stderr)


def bind_context(*, device: str | None = None, operation: str | None = None) -> None:
    """
    Bind the AVD name and the current operation into the logging context.

    This data is then automatically included in all structured log records.
    """
    bind_contextvars(device=device, operation=operation)


_CONFIGURED = False


def setup_logging(force: bool = False) -> None:
    """
    Centralized setup of structured logging with JSON output.

    Includes:
    - Log level from EMULAUNCHER_LOG_LEVEL
    - ISO 8601 timestamp (key: "timestamp")
    - Context (device, operation) via contextvars
    - Optional duplication of each record into EMULAUNCHER_LOG_DIR
    - JSON lines printed to stderr (stdout carries command results)
    """
    import logging

    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    level = _level_from_env()

    processors: list[Any] = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
        structlog.processors.CallsiteParameterAdder(
            [structlog.processors.CallsiteParameter.MODULE]
        ),
        _copy_event_to_message,
        _drop_none_values,
    ]
    log_dir = _log_dir_from_env()
    if log_dir is not None:
        processors.append(_make_file_sink(log_dir))
    processors.append(structlog.processors.JSONRenderer(default=str))

    structlog.configure(
        processors=processors,
        logger_factory=_stderr_logger_factory,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )

    # Sync root logging level (for third-party libraries)
    logging.getLogger().setLevel(level)

    _CONFIGURED = True


def get_logger(name: str | None = None) -> Any:
    """
    Get a structlog logger instance.

    Ensures logging is configured even when used as a library without the CLI.
    """
    if not _CONFIGURED:
        setup_logging()
    return structlog.get_logger(name or __name__)


__all__ = [
    "setup_logging",
    "bind_context",
    "device_log_path",
    "get_logger",
    "clear_contextvars",
]
