# backend/utils/logging_config.py
import logging

LOGGER_NAMES = ("main", "routes", "repository", "utils")
HANDLER_NAME = "storefront"


def configure_logging(level: str = "INFO") -> None:
    """Attach one stream handler to each application logger namespace (idempotent)."""
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(level.upper())
        # Other handlers (e.g. a test runner's capture) are left alone
        if any(h.get_name() == HANDLER_NAME for h in logger.handlers):
            continue
        handler = logging.StreamHandler()
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False
