"""
Logging Configuration
Console (and optional file) logging for the ``polycube`` namespace.
"""
import logging
import sys
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Rendering libraries log every font lookup and texture upload at DEBUG
NOISY_LOGGERS = ("matplotlib", "PIL", "pyvista", "vtkmodules", "pyqtgraph")


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach a stdout handler (and a file handler when ``log_file`` is given) to
    the package logger. Safe to call again; existing handlers are replaced.

    Returns:
        The configured ``polycube`` logger.
    """
    logger = logging.getLogger("polycube")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.info(f"Logging initialized at {logging.getLevelName(level)}.")
    return logger
