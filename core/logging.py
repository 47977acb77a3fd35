import logging
import sys

from core.config import config

RESET = "\033[0m"

# Level name colours for terminal output
LEVEL_COLORS = {
    logging.DEBUG: "\033[96m",
    logging.INFO: "\033[92m",
    logging.WARNING: "\033[93m",
    logging.ERROR: "\033[91m",
    logging.CRITICAL: "\033[1m\033[41m\033[37m",
}
DIM = "\033[90m"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "asyncio",
    "multipart",
    "python_multipart",
    "celery",
)


class ConsoleFormatter(logging.Formatter):
    """Plain formatter that tints the level name when writing to a TTY."""

    def __init__(self, use_colors: bool):
        super().__init__(LOG_FORMAT, DATE_FORMAT)
        self.use_colors = use_colors

    def formatTime(self, record: logging.LogRecord, datefmt: str = None) -> str:
        timestamp = super().formatTime(record, datefmt)
        return f"{DIM}{timestamp}{RESET}" if self.use_colors else timestamp

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)

        levelname = record.levelname
        color = LEVEL_COLORS.get(record.levelno, "")
        # Pad before colouring so the columns still line up
        record.levelname = f"{color}{levelname:<8}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def setup_logging() -> logging.Logger:
    """
    Configure the root logger from LOG_LEVEL.

    SQL statements are only echoed at DEBUG.
    """
    level = logging.getLevelName(config.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ConsoleFormatter(use_colors=sys.stdout.isatty()))
    handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # Replace handlers so a reload does not print every line twice
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    )

    root_logger.info(
        f"Logging initialized for {config.APP_NAME} "
        f"(env={config.APP_ENV}, level={logging.getLevelName(level)})"
    )
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(name)
