import logging
import os

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s %(message)s"


def configure_logging(level=None) -> logging.Logger:
    """Attach one stream handler to the ``reel_tuning`` logger tree. Safe to call twice."""
    logger = logging.getLogger("reel_tuning")
    if level is None:
        level = os.getenv("REEL_TUNING_LOG_LEVEL", "INFO").upper()
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
