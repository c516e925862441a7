"""Route dpui and library logging through structlog on stderr.

stdout belongs to command output (tables, ``--json``), so every log line
goes to stderr: colored key/value lines by default, one JSON object per
line with ``--log-json``.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Loggers that stay at WARNING even with --verbose.
_CHATTY_LOGGERS = ("pynput",)


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _stderr_handler(log_json: bool) -> logging.Handler:
    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    return handler


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Install the stderr handler and set levels.

    ``dpui.*`` loggers emit DEBUG with *verbose* and WARNING otherwise;
    everything else stays at WARNING. Safe to call more than once: the
    root handler is replaced, not stacked.
    """
    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_stderr_handler(log_json))
    root.setLevel(logging.WARNING)

    logging.getLogger("dpui").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
