# src/flow_sim/logger_setup.py

import logging
import os

LOGGER_NAME = "flow_sim"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level="INFO", log_file=None, fmt=DEFAULT_FORMAT):
    """
    Sets up logging for the application.

    Configures the dedicated "flow_sim" logger (not the root logger) to write
    to the console and, when ``log_file`` is given, to that file as well.
    Numba's own loggers are left untouched.

    Data Contract:
    - Inputs: level (str | int), log_file (path or None), fmt (str).
    - Outputs: the configured logger.
    - Side Effects:
        - Replaces any handlers previously attached to "flow_sim".
        - Creates the parent directory of log_file.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # --- Keep records away from the root logger ---
    logger.propagate = False

    formatter = logging.Formatter(fmt)

    # Clear existing handlers to avoid duplication if this function is called again
    if logger.hasHandlers():
        logger.handlers.clear()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        log_dir = os.path.dirname(os.fspath(log_file))
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.info(f"Logging initialized. Log file: {log_file}")

    return logger
