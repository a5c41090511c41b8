import sys

from loguru import logger


def setup_logging(level: str = "INFO") -> None:
    """Configure the loguru sink used by the backend.

    Args:
        level: Minimum level to emit (DEBUG adds module/function/line)
    """
    logger.remove()

    if level.upper() == "DEBUG":
        logger.add(
            sys.stderr,
            level="DEBUG",
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
        )
    else:
        logger.add(
            sys.stderr,
            level=level.upper(),
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
        )
