import logging
import os
from logging.handlers import TimedRotatingFileHandler

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s – %(message)s"

# Libraries that log every request / job run at INFO
_QUIET_LOGGERS = ("httpx", "apscheduler", "telegram.ext", "uvicorn.access")


def configure_logging(log_file="logs/sentiment_bot.log", level="INFO"):
    """
    Configure root logger with a timed rotating file handler and console output.
    Rotates logs at midnight and keeps 7 days of backups.
    """
    # Ensure log directory exists
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)

    # Timed rotating file handler: rotate at midnight, keep 7 backups
    handler = TimedRotatingFileHandler(
        log_file,
        when="midnight",
        backupCount=7,
        encoding="utf-8"
    )
    handler.setFormatter(formatter)

    # Console handler
    console = logging.StreamHandler()
    console.setFormatter(formatter)

    # Apply handlers
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        handlers=[handler, console],
        force=True,
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
