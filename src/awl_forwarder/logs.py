import logging
from typing import Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(level: Union[str, int] = logging.INFO) -> logging.Logger:
    """Configure root logging for forwarder processes and return the package logger."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"unknown log level: {level}")
        level = resolved

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger = logging.getLogger("awl_forwarder")
    logger.setLevel(level)
    return logger
