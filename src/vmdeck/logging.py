"""
Structured logging for vmdeck using structlog.

Log lines go to stderr so they never mix with command output on stdout.
An optional log file always receives JSON.
"""

import logging
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

import structlog

SECRET_KEYS = frozenset({"password", "passwd", "secret"})


def redact_secrets(logger, method_name, event_dict):
    """Mask any secret-looking keys before rendering."""
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def _pre_chain() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _handler(handler: logging.Handler, renderer) -> logging.Handler:
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=_pre_chain())
    )
    return handler


def configure_logging(
    level: str = "WARNING",
    json_output: bool = False,
    log_file: Optional[Path] = None,
) -> None:
    """
    Route structlog events through stdlib logging.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render stderr lines as JSON instead of colored text
        log_file: Also append JSON lines to this file
    """
    structlog.configure(
        processors=_pre_chain() + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if json_output:
        console_renderer = structlog.processors.JSONRenderer()
    else:
        console_renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
    handlers = [_handler(logging.StreamHandler(sys.stderr), console_renderer)]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(_handler(logging.FileHandler(log_file), structlog.processors.JSONRenderer()))

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        handlers=handlers,
        force=True,
    )


@contextmanager
def log_operation(logger: structlog.stdlib.BoundLogger, operation: str, **kwargs):
    """
    Bind *operation* and *kwargs* and log its outcome with a duration.

    Usage:
        with log_operation(log, "start_vm", vm_name="my-vm") as op_log:
            ...
    """
    op_log = logger.bind(operation=operation, **kwargs)
    started = time.monotonic()
    op_log.info(f"{operation}.started")

    def elapsed_ms() -> float:
        return round((time.monotonic() - started) * 1000, 2)

    try:
        yield op_log
    except Exception as e:
        op_log.error(
            f"{operation}.failed",
            error=str(e),
            error_type=type(e).__name__,
            duration_ms=elapsed_ms(),
        )
        raise
    op_log.info(f"{operation}.completed", duration_ms=elapsed_ms())
