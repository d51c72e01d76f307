import logging
import os
from typing import Optional

from .config import LOG_FILE, LOG_LEVEL

FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


def setup_logging(level: str = LOG_LEVEL, log_file: Optional[str] = LOG_FILE) -> logging.Logger:
    """Configure the ``chat_backend`` logger tree.

    Installs a console handler at ``level`` and, when ``log_file`` is set,
    a file handler that records everything from DEBUG up. Calling it twice
    does not duplicate handlers.

    Returns:
        logging.Logger: the package root logger
    """
    logger = logging.getLogger('chat_backend')
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level.upper())
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    return logger
