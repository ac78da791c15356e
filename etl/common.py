# etl/common.py
import logging, sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"

def setup_logger(name="analytics", level="INFO"):
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if logger.handlers:  # avoid duplicate handlers on reruns
        return logger
    h = logging.StreamHandler(sys.stdout)
    h.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(h)
    return logger
