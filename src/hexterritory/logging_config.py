"""
Logging Configuration
Sets up the package logger for the territory engine and its tooling.
"""
import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "hexterritory"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    quiet_third_party: bool = True,
) -> logging.Logger:
    """
    Configures the 'hexterritory' namespace logger.

    Selection operations log rejected transitions at DEBUG, so DEBUG is the
    level to use when tracing a paint-drag gesture tile by tile.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
        quiet_third_party: Raise pyvista/vtk loggers to WARNING.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Re-running setup (tests, interactive sessions) must not duplicate output
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if quiet_third_party:
        for name in ("pyvista", "vtkmodules"):
            logging.getLogger(name).setLevel(logging.WARNING)

    logger.info("Logging initialized.")
    return logger
