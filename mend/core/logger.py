"""Loguru sinks for mend processes.

Components prefix their messages with a bracketed tag ([ENGINE],
[COOLDOWN], [LOAD], ...) so a single sink can be grepped per component.
"""

import sys
from pathlib import Path

from loguru import logger

from mend.core.settings import Settings, get_settings

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> <level>{level: <7}</level> <cyan>{name}:{line}</cyan> | <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DDTHH:mm:ss.SSSZZ} {level: <7} {name}:{function}:{line} | {message}"

LOG_ROTATION = "10 MB"
LOG_RETENTION = "7 days"


def setup_logger(settings: Settings | None = None, *, level: str | None = None) -> None:
    """Replace loguru's default sink with mend's console and file sinks.

    ``level`` overrides ``settings.log_level``. The file sink is added only
    when ``settings.log_file`` is set and keeps a week of zipped history.
    """
    settings = settings or get_settings()
    level = (level or settings.log_level).upper()

    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=FILE_FORMAT,
            level=level,
            rotation=LOG_ROTATION,
            retention=LOG_RETENTION,
            compression="zip",
            encoding="utf-8",
        )

    logger.debug(f"[LOGGER] level={level} file={settings.log_file or '-'}")
