"""Crash reports: stderr banner plus a JSON line with the simulation context."""

import json
import os
import sys
import traceback
import uuid

from utils.clock import format_timestamp

# Default crash log path, can be overridden by configure()
_crash_log = "logs/crash.log"
# Callable returning a dict describing the simulation at crash time
_context_provider = None


def configure(crash_file, context_provider=None):
    """Set crash log file path and, optionally, a simulation context provider."""
    global _crash_log, _context_provider
    _crash_log = crash_file
    if context_provider is not None:
        _context_provider = context_provider


def engine_context(engine):
    """Context provider summarizing ``engine`` for crash records."""
    def provide():
        thermo = engine.context.thermo
        return {"tick": engine.tick, "state": engine.state, "particles": len(engine.particles),
                **thermo.to_dict()}
    return provide


def _simulation_context():
    if _context_provider is None:
        return None
    try:
        return _context_provider()
    except Exception as exc:
        return {"unavailable": repr(exc)}


def _write_crash(record):
    """Append crash record to file. Never raises."""
    try:
        log_dir = os.path.dirname(_crash_log)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        with open(_crash_log, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=str) + "\n")
    except OSError as exc:
        sys.stderr.write(f"crash log unavailable ({_crash_log}): {exc}\n")


def _build_record(exc_name, exc_msg, tb, extra=None):
    record = {"id": uuid.uuid4().hex[:16], "timestamp": format_timestamp(),
              "type": exc_name, "msg": exc_msg, "traceback": tb}
    simulation = _simulation_context()
    if simulation:
        record["simulation"] = simulation
    if extra:
        record["context"] = extra
    return record


def log_crash(exc_type, exc_value, exc_tb):
    """Log sync crash to stderr and file. Never raises."""
    exc_name = exc_type.__name__ if exc_type else "Unknown"
    exc_msg = str(exc_value) if exc_value else ""
    tb = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
    record = _build_record(exc_name, exc_msg, tb)

    sys.stderr.write(f"\n{'=' * 60}\nCRASH [{record['id']}] {record['timestamp']}\n{'=' * 60}\n")
    sys.stderr.write(f"{exc_name}: {exc_msg}\n{'-' * 60}\n{tb}{'=' * 60}\n\n")
    _write_crash(record)
    return record


def log_async_crash(exc, context_dict, logger=None):
    """Log async task crash. Never raises."""
    exc_name = type(exc).__name__ if exc else "AsyncError"
    exc_msg = str(exc) if exc else context_dict.get("message", "Unknown")
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)) if exc else None

    if logger:
        logger.error("async exception", error=exc_msg, task=str(context_dict.get("future", "unknown")))

    record = _build_record(exc_name, exc_msg, tb, str(context_dict))
    _write_crash(record)
    return record


def create_async_handler(logger=None):
    """Create async exception handler for event loop."""
    def handler(loop, context):
        log_async_crash(context.get("exception"), context, logger)
    return handler


def install_crash_handler():
    """Install global sync exception handler."""
    sys.excepthook = log_crash
