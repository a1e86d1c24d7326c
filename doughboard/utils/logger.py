"""
Logging configuration

One loguru logger for the whole app: a console sink, a daily file and an
errors-only file, all under settings.log_dir.
"""
from loguru import logger
import os
import sys
from doughboard.config import get_settings

settings = get_settings()

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def setup_logger(log_dir: str = None, level: str = None):
    """
    Configure the shared logger

    Args:
        log_dir: Directory for the log files (defaults to settings.log_dir)
        level: Console level (defaults to settings.log_level)
    """
    log_dir = log_dir or settings.log_dir
    os.makedirs(log_dir, exist_ok=True)

    logger.remove()

    logger.add(
        sys.stdout,
        colorize=True,
        format=CONSOLE_FORMAT,
        level=level or settings.log_level,
        # Tracebacks with variable values only while debugging; they can hold tokens
        diagnose=settings.debug,
    )

    logger.add(
        os.path.join(log_dir, "doughboard_{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention="30 days",
        compression="zip",
        level="INFO",
        diagnose=False,
    )

    logger.add(
        os.path.join(log_dir, "errors_{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention="90 days",
        level="ERROR",
        diagnose=False,
    )

    return logger


log = setup_logger()
