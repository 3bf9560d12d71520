"""Shared helpers: hashing, timestamps, logging setup."""

from __future__ import annotations

import hashlib
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def setup_logging(level: str = "WARNING", *, force: bool = False) -> None:
    """Configure root logging to stderr once per process.

    *level* is a name such as ``DEBUG`` or ``INFO``; unknown names fall back
    to ``WARNING``.
    """
    global _configured
    if _configured and not force:
        return
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.WARNING
    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    # openpyxl is chatty about unsupported extensions at INFO/WARNING
    logging.getLogger("openpyxl").setLevel(logging.ERROR)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name (e.g. ``__name__``)."""
    return logging.getLogger(name)
