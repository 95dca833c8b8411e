"""Logging setup: console plus rotating file, same format everywhere.

The package never configures logging on import. The embedding application
calls `configure_logging()` once at startup, before building a
`BaaPOrchestrator`; until then records go to whatever handlers the host has.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from baap.config import Settings, settings as default_settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(settings: Settings | None = None) -> Path:
    """Install stream + rotating file handlers on the root logger.

    Returns the path of the log file.
    """
    settings = settings or default_settings

    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / settings.log_file

    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[
            logging.StreamHandler(),
            RotatingFileHandler(
                log_path,
                maxBytes=10 * 1024 * 1024,  # 10 MB
                backupCount=5,
                encoding="utf-8",
            ),
        ],
        force=True,
    )
    return log_path
