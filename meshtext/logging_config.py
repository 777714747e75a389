import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _handlers(log_file: Optional[Union[str, Path]]) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    handlers = [console]

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        to_file = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        to_file.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(to_file)

    return handlers


def setup_logging(level: int = logging.INFO,
                  log_file: Optional[Union[str, Path]] = None) -> logging.Logger:
    """
    Route the `meshtext` loggers to stderr, and to `log_file` when given.

    Calling it again replaces the handlers from the previous call.
    """
    logger = logging.getLogger("meshtext")
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    for handler in _handlers(log_file):
        handler.setLevel(level)
        logger.addHandler(handler)

    if log_file is not None:
        logger.debug(f"Logging to {log_file}")

    return logger
