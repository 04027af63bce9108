"""
Logging setup.

Library modules only log through loguru's shared logger; applications and
scripts call configure_logging() once to install a sink.
"""

import sys
from typing import Optional

from loguru import logger

from cardsense.config import Settings, get_settings


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(
    level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    settings: Optional[Settings] = None,
) -> int:
    """
    Replace loguru's default sink with a configured stderr sink.

    Args:
        level: Minimum level, defaults to settings.log_level
        json_logs: Emit serialized JSON records instead of text
        settings: Settings to read defaults from

    Returns:
        Handler id of the installed sink
    """
    settings = settings or get_settings()
    level = level or settings.log_level
    if json_logs is None:
        json_logs = settings.json_logs

    logger.remove()
    if json_logs:
        return logger.add(sys.stderr, level=level, serialize=True)
    return logger.add(sys.stderr, level=level, format=LOG_FORMAT)
