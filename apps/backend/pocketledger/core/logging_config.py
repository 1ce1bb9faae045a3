from __future__ import annotations

import logging

from .config import settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a single stream handler on the root logger.

    Safe to call more than once; uvicorn's own handlers are left alone.
    """
    root = logging.getLogger()
    resolved = (level or settings.LOG_LEVEL or "INFO").upper()
    root.setLevel(resolved)
    if any(getattr(h, "_pocketledger", False) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._pocketledger = True  # type: ignore[attr-defined]
    root.addHandler(handler)
