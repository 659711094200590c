# logging_config.py
import logging
from config import get_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(debug_mode: bool) -> int:
    """
    Configures the root logger once for the whole daemon.
    Returns the effective level.
    """
    level = logging.DEBUG if debug_mode else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    return level


config = get_config()
LOG_LEVEL = configure_logging(config["DEBUG_MODE"])


def get_logger(name: str) -> logging.Logger:
    """
    Returns a logger with the given name.
    """
    return logging.getLogger(name)
