"""
The package logger. Records go to stderr through a single handler and are not passed on to the root
logger, so applications embedding tickscan keep control of their own log output.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(module)s] %(message)s"

logger = logging.getLogger("tickscan")
logger.propagate = False
logger.setLevel(logging.INFO)

_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter(LOG_FORMAT))
logger.addHandler(_handler)
