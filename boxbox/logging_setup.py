"""Root logger configuration."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(process)d] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


def start_log(
    *,
    app_name: str = "boxbox",
    level: str | int = "INFO",
    log_dir: Optional[str | Path] = None,
    to_console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Initialize logging for the whole application.

    Configures the ROOT logger so every module using logging.getLogger(__name__)
    writes through the same handlers. When log_dir is given, a size-rotating
    UTF-8 file named <app_name>.log is written there as well.

    Returns the configured root logger.
    """
    root = logging.getLogger()
    root.setLevel(_coerce_level(level))

    # Avoid duplicate handlers if start_log() gets called twice (e.g., dev reload)
    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / f"{app_name}.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if to_console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root.addHandler(console)

    root.info(
        "Logging started app=%s dir=%s level=%s",
        app_name,
        str(log_dir) if log_dir is not None else "-",
        logging.getLevelName(root.level),
    )
    return root
