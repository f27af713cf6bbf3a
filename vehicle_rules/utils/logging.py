# vehicle_rules/utils/logging.py
import logging
import sys

from vehicle_rules.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def _build_logger() -> logging.Logger:
    log = logging.getLogger("vehicle_rules")
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
    log.setLevel(settings.LOG_LEVEL.upper())
    return log

logger = _build_logger()
