"""Logging helpers."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Catalog lookups log every request at INFO; keep them out of CLI output.
_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str, log_dir: Optional[Path] = None, *, filename: str = "variants.log") -> None:
    """Configure stream (and optional file) logging for CLI usage."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / filename))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
