"""Logging setup for the reconciler.

structlog events are handed to stdlib handlers and rendered there: one
console handler on stderr and, when ``log_file`` is set, a rotating file
handler. Each handler owns its renderer, so console colors never reach the
log file.
"""

import sys
import logging
import logging.handlers
from pathlib import Path
from typing import List
import structlog
from structlog.stdlib import LoggerFactory, ProcessorFormatter

from btc_reconciler.models.config import ReconcilerConfig

# Applied to structlog events and to records from plain stdlib loggers (requests, urllib3)
SHARED_PROCESSORS: List = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
]


def _formatter(log_format: str, colors: bool) -> ProcessorFormatter:
    if log_format.lower() == "json":
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=colors)]

    return ProcessorFormatter(
        processors=[ProcessorFormatter.remove_processors_meta, *renderers],
        foreign_pre_chain=SHARED_PROCESSORS,
    )


def setup_logging(config: ReconcilerConfig) -> None:
    """Route structlog through stderr and the optional rotating log file."""
    level = getattr(logging, config.log_level.upper())

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(_formatter(config.log_format, colors=sys.stderr.isatty()))
    handlers: List[logging.Handler] = [console_handler]

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=config.log_max_size_mb * 1024 * 1024,
            backupCount=config.log_backup_count
        )
        file_handler.setFormatter(_formatter(config.log_format, colors=False))
        handlers.append(file_handler)

    # Replaces handlers from any earlier call in the same process
    logging.basicConfig(level=level, handlers=handlers, force=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *SHARED_PROCESSORS,
            ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )
