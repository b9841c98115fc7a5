import logging
import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

# stdlib loggers that flood the console at INFO
NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "hpack")


class InterceptHandler(logging.Handler):
    """Forwards stdlib log records (uvicorn, httpx, supabase) to loguru."""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO", log_dir: str = "logs"):
    logger.remove()
    logger.add(sys.stdout, level=level.upper(), format=CONSOLE_FORMAT)

    # Errors also go to a rotating file
    logger.add(
        str(Path(log_dir) / "errors.log"),
        level="ERROR",
        rotation="10 MB",
        retention="1 month",
        compression="zip",
        format=FILE_FORMAT,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["logger", "setup_logging"]
