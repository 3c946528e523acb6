import logging
import os
from typing import Optional

LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'

# Root of the engine's logger hierarchy; every module logs beneath it
logger = logging.getLogger('spectral_engine')


def configure_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach console and optional file handlers to the engine logger.

    Calling it again adjusts the level and adds a file handler for a new
    path, but never duplicates a handler.

    Args:
        level: Logging level for the logger and its handlers
        log_file: Optional path of a log file (parent directory is created)

    Returns:
        The configured 'spectral_engine' logger
    """
    formatter = logging.Formatter(LOG_FORMAT)
    logger.setLevel(level)

    # Stream handler (console)
    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(formatter)
        logger.addHandler(sh)

    # File handler
    if log_file:
        log_file = os.path.abspath(log_file)
        known = {getattr(h, 'baseFilename', None) for h in logger.handlers}
        if log_file not in known:
            os.makedirs(os.path.dirname(log_file), exist_ok=True)
            fh = logging.FileHandler(log_file)
            fh.setFormatter(formatter)
            logger.addHandler(fh)

    for handler in logger.handlers:
        handler.setLevel(level)
    return logger


# Convenience function
def get_logger():
    return logger
