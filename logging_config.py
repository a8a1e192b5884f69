"""
Logging Configuration
Sets up the 'keycalc' logger used by the engine, the session table and the API.
"""
import logging
import sys


def setup_logging(level=logging.INFO, log_file=None):
    """Send 'keycalc.*' records to stdout, and to `log_file` when one is configured"""
    logger = logging.getLogger("keycalc")
    logger.setLevel(level)
    logger.handlers.clear()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                                  datefmt='%H:%M:%S')
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
