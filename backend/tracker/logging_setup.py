from __future__ import annotations

import logging
import os
import sys


def setup_logging(level: int | str | None = None) -> None:
    """
    Configure root logging with one stderr handler.

    Call once at process start, before the first logger.info.
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO").upper()

    root = logging.getLogger()
    root.setLevel(level)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)

    # per-request access lines are noise next to our own logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
