import json
import logging
import os
from logging.handlers import RotatingFileHandler

from config import Config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class JsonFormatter(logging.Formatter):
    """Outputs log records as single-line JSON objects."""

    def format(self, record):
        log_entry = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "filename": record.filename,
            "lineno": record.lineno,
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def setup_logging(level=None, log_format=None, log_dir=None):
    """
    Configure the root logger: console handler plus a rotating file handler.
    Safe to call more than once; handlers are only installed the first time.
    """
    level = (level or Config.LOG_LEVEL).upper()
    log_format = (log_format or Config.LOG_FORMAT).lower()
    log_dir = log_dir or Config.LOG_DIR

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if getattr(root_logger, "_agrisense_configured", False):
        return root_logger

    formatter = JsonFormatter() if log_format == "json" else logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler with rotation (5MB max, keep 5 backups)
    try:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'agrisense.log'),
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    except OSError as e:
        root_logger.warning("File logging disabled: %s", e)

    # Reduce noise from third-party libraries
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('anthropic').setLevel(logging.WARNING)

    root_logger._agrisense_configured = True
    logging.getLogger('agrisense').info("AgriSense logging initialized")
    return root_logger
