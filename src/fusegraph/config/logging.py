"""structlog configuration for fusegraph.

Library modules log through stdlib ``logging.getLogger(__name__)``. The
handler installed here renders those records, and native structlog events,
through one processor chain:

- Human (default): key-value console lines, colored on a TTY.
- JSON (``--log-json``): one object per line, tracebacks as strings.

Logs never go to stdout, which carries command results.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

HANDLER_NAME = "fusegraph"


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Install the fusegraph log handler on the root logger.

    Calling it again replaces the handler from the previous call; handlers
    installed by anything else are left alone.

    Args:
        verbose: Let ``fusegraph.*`` DEBUG records through (extraction and
            surgery decisions). Otherwise WARNING and above.
        log_json: Render JSON lines instead of console lines.
        stream: Destination; defaults to the current ``sys.stderr``.
    """
    out = stream if stream is not None else sys.stderr

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    render: list[structlog.types.Processor]
    if log_json:
        render = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        render = [structlog.dev.ConsoleRenderer(colors=out.isatty())]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(out)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *render],
        )
    )

    root = logging.getLogger()
    for old in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("fusegraph").setLevel(logging.DEBUG if verbose else logging.WARNING)
