"""
Logging for simulation setup scripts.

Every CompartmentTools module logs to a child of the 'CompartmentTools'
logger; placement fallbacks are reported at WARNING and sampling batches at
DEBUG. Nothing is printed until a script calls `setup_logging`.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from CompartmentTools.util.constants import LOG_DATE_FORMAT, LOG_FORMAT

PACKAGE_LOGGER = 'CompartmentTools'


def setup_logging(level: int | str = logging.INFO,
                  log_file: Optional[str | Path] = None) -> logging.Logger:
    """
    Sends the package log records to stdout and, optionally, to a file.

    Calling it again replaces the handlers of the previous call, so a
    notebook can switch e.g. from INFO to DEBUG without duplicated records.

    Args:
        level (int, str): Logging level, either a constant such as
            logging.DEBUG or its name, e.g. 'DEBUG'.
        log_file (str, Path, None): File the records are also written to.
            It is overwritten.

    Returns:
        logging.Logger: The 'CompartmentTools' logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        handlers.append(
            logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if log_file is not None:
        logger.debug('Also logging to %s', log_file)
    return logger
