"""Logging setup for the bridge.

Modules log through ``logging.getLogger(__name__)``; this only decides how
verbose the package logger is, driven by the persisted ``debug`` flag.
"""

import logging

PACKAGE_LOGGER = "supernavi_bridge"


def configure_logging(debug: bool = False) -> logging.Logger:
    """Set the package logger level from the debug flag.

    Args:
        debug: When True, per-call detail (cache hits, edge fallbacks) is emitted

    Returns:
        The package logger
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        level=logging.INFO,
    )
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.debug("Debug logging enabled")
    return logger
