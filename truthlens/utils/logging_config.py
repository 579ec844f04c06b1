"""
Structured logging configuration for TruthLens.

JSON logs in production (one object per line, ready for log aggregation),
human-readable lines in development. Google API keys travel as `?key=` query
parameters, so every handler redacts them before a line is written.

Also holds the in-process metrics collector exposed on /admin/metrics.
"""

import json
import logging
import os
import re
import sys
import threading
import time
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Dict, List, Optional

from truthlens.config import settings


# Set per request by the API middleware
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

_API_KEY_PARAM = re.compile(r"([?&]key=)[^&\s'\"]+")

FALLBACK_STEPS = ("analysis", "story_prompt", "detailed_report")


def redact(text: str) -> str:
    """Mask `key=` query parameters (Google API keys) in a log line."""
    return _API_KEY_PARAM.sub(r"\1***", text)


class RequestContextFilter(logging.Filter):
    """Stamps every record with the current request id and strips API keys."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        if isinstance(record.msg, str) and "key=" in record.msg:
            record.msg = redact(record.msg)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": settings.service_name,
            "environment": settings.environment,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None)
        if request_id and request_id != "-":
            log_data["request_id"] = request_id

        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return redact(json.dumps(log_data, default=str))


class ConsoleFormatter(logging.Formatter):
    """Development format; keyword context is appended as key=value pairs."""

    def __init__(self):
        super().__init__("%(asctime)s | %(levelname)-8s | %(request_id)s | %(name)s | %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        line = super().format(record)
        extra = getattr(record, "extra_data", None)
        if extra:
            line += " | " + " ".join(f"{k}={v}" for k, v in extra.items())
        return redact(line)


class StructuredLogger:
    """
    Logger taking keyword context instead of formatted strings.

    Usage:
        logger = StructuredLogger(__name__)
        logger.info("Analysis completed", analysis_id=record.id, degraded=degraded)
        logger.warning("Story generation failed, using template", error=str(e))
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, exc_info: bool = False, **context):
        if self._logger.isEnabledFor(level):
            extra = {"extra_data": context} if context else None
            self._logger.log(level, message, exc_info=exc_info, extra=extra, stacklevel=3)

    def debug(self, message: str, **context):
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context):
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context):
        self._log(logging.WARNING, message, **context)

    def error(self, message: str, exc_info: bool = False, **context):
        self._log(logging.ERROR, message, exc_info=exc_info, **context)


def setup_logging(level: str = "INFO", json_format: bool = True, log_file: Optional[str] = None):
    """
    Configure the root logger.

    Args:
        level: Log level name (DEBUG, INFO, ...)
        json_format: JSON lines (prod) or console format (dev)
        log_file: Optional file path; file output is always JSON
    """
    numeric_level = getattr(logging, level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())
    handlers: List[logging.Handler] = [console_handler]

    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.addFilter(RequestContextFilter())
        root_logger.addHandler(handler)

    # urllib3 logs full request URLs (API key included) at DEBUG
    for noisy in ("urllib3", "httpx", "httpcore", "multipart"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)


def init_logging():
    """Configure logging from settings: JSON + file in prod, console in dev."""
    is_prod = settings.is_production
    setup_logging(
        level="INFO" if is_prod else "DEBUG",
        json_format=is_prod,
        log_file="logs/truthlens.log" if is_prod else None,
    )


# ============== METRICS ==============


def _summarize(values: List[float]) -> Dict[str, Any]:
    ordered = sorted(values)
    return {
        "count": len(ordered),
        "min": ordered[0],
        "max": ordered[-1],
        "avg": sum(ordered) / len(ordered),
        "p50": ordered[len(ordered) // 2],
        "p95": ordered[int(len(ordered) * 0.95)] if len(ordered) >= 20 else None,
    }


class MetricsCollector:
    """
    Thread-safe counters and timings for one process.

    Counter names used by the service:
        analysis.requests, analysis.content_type.<type>, analysis.risk.<level>,
        analysis.fallback.<step>, analysis.batch.requests, analysis.batch.item_errors,
        errors.<operation>
    """

    MAX_SAMPLES = 1000

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = {}
        self._timings: Dict[str, List[float]] = {}
        self._start_time = time.time()

    def increment(self, name: str, value: int = 1):
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + value

    def timing(self, name: str, seconds: float):
        with self._lock:
            samples = self._timings.setdefault(name, [])
            samples.append(seconds)
            del samples[: -self.MAX_SAMPLES]

    def counter(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            counters = dict(self._counters)
            timings = {name: _summarize(values) for name, values in self._timings.items() if values}

        requests = counters.get("analysis.requests", 0)
        fallback_rates = {
            step: counters.get(f"analysis.fallback.{step}", 0) / requests if requests else 0.0
            for step in FALLBACK_STEPS
        }
        return {
            "uptime_seconds": time.time() - self._start_time,
            "counters": counters,
            "fallback_rates": fallback_rates,
            "timings": timings,
        }

    def reset(self):
        with self._lock:
            self._counters.clear()
            self._timings.clear()


# Global metrics instance
metrics = MetricsCollector()


def log_execution_time(logger_name: str = "truthlens"):
    """Log the duration of each call and record it as `timing.<function>`."""
    def decorator(func):
        logger = StructuredLogger(logger_name)

        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.error(f"{func.__name__} failed", error=str(e), error_type=type(e).__name__)
                raise
            finally:
                duration = time.perf_counter() - start
                metrics.timing(f"timing.{func.__name__}", duration)
                logger.debug(f"{func.__name__} finished", duration_ms=round(duration * 1000, 2))

        return wrapper

    return decorator
