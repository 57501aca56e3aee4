"""Logging setup for command-line runs."""

import logging
import os
from datetime import datetime
from typing import Optional

FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logger(log_dir: Optional[str] = None, name: str = 'pfpeval',
                 level: int = logging.INFO) -> logging.Logger:
    """Console handler at ``level`` plus, with ``log_dir``, a DEBUG file handler.

    Handlers from an earlier call are closed and replaced.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    formatter = logging.Formatter(FORMAT)

    if log_dir is not None:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        fh = logging.FileHandler(os.path.join(log_dir, f"evaluation_{timestamp}.log"))
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    return logger
