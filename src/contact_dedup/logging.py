"""
Structured logging configuration for the contact deduplication engine.

Uses structlog for structured, context-aware logging with:
- JSON output for production
- Pretty console output for development
- Per-stage timing for import runs
- Trace and import-run ID propagation
"""

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Generator

import structlog
from structlog.types import Processor

from .config import config

# Context variables for run-scoped data
_trace_id: ContextVar[str | None] = ContextVar('trace_id', default=None)
_import_run_id: ContextVar[str | None] = ContextVar('import_run_id', default=None)


def get_trace_id() -> str | None:
    """Get the current trace ID from context."""
    return _trace_id.get()


def get_import_run_id() -> str | None:
    """Get the current import run ID from context."""
    return _import_run_id.get()


def add_context_info(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor that adds context variables to log entries."""
    trace_id = get_trace_id()
    import_run_id = get_import_run_id()

    if trace_id:
        event_dict['trace_id'] = trace_id
    if import_run_id:
        event_dict['import_run_id'] = import_run_id

    return event_dict


def configure_logging(
    json_output: bool = False,
    log_level: str | None = None,
) -> None:
    """
    Configure structlog for the application.

    Args:
        json_output: If True, output JSON logs (for production).
                    If False, output pretty console logs (for development).
        log_level: Override log level (defaults to config.LOG_LEVEL)
    """
    level = log_level or config.LOG_LEVEL
    level_num = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format='%(message)s',
        stream=sys.stdout,
        level=level_num,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_context_info,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


@contextmanager
def logging_context(
    trace_id: str | None = None,
    import_run_id: str | None = None,
) -> Generator[None, None, None]:
    """
    Context manager for setting logging context variables.

    Usage:
        with logging_context(import_run_id="run_42"):
            summary = aggregate(candidates, directory)  # logs carry import_run_id
    """
    old_trace = _trace_id.get()
    old_run = _import_run_id.get()

    try:
        if trace_id is not None:
            _trace_id.set(trace_id)
        if import_run_id is not None:
            _import_run_id.set(import_run_id)
        yield
    finally:
        _trace_id.set(old_trace)
        _import_run_id.set(old_run)


class PipelineTimer:
    """
    Timer for tracking engine stage durations.

    Durations are for logs only; they never enter a DeduplicationSummary.

    Usage:
        timer = PipelineTimer()
        with timer.stage("blocking"):
            ...
        logger.info("done", **timer.summary())
    """

    def __init__(self):
        self.stages: dict[str, float] = {}
        self.start_time: float = time.perf_counter()
        self._stage_start: float | None = None

    @contextmanager
    def stage(self, name: str) -> Generator[None, None, None]:
        """Time a pipeline stage."""
        self._stage_start = time.perf_counter()
        try:
            yield
        finally:
            if self._stage_start is not None:
                elapsed = time.perf_counter() - self._stage_start
                self.stages[name] = elapsed * 1000
            self._stage_start = None

    def summary(self) -> dict[str, Any]:
        """Get timing summary as a dictionary."""
        return {
            'total_ms': round((time.perf_counter() - self.start_time) * 1000, 2),
            'stages': {k: round(v, 2) for k, v in self.stages.items()},
        }


# Initialize logging on module import (development mode by default)
# Production deployments should call configure_logging(json_output=True)
configure_logging(json_output=config.LOG_JSON)
