import logging
import os
from pathlib import Path

PACKAGE_LOGGER = "mxvoice"


def configure_logging(log_path: Path, debug: bool = False) -> logging.Logger:
    """Send package logs to ``log_path``. Safe to call more than once."""
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        handler = logging.FileHandler(log_path, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        logger.addHandler(handler)
        try:
            os.chmod(log_path, 0o600)
        except OSError:
            pass
    return logger


def apply_debug_preference(enabled: bool) -> None:
    """Follow the profile's ``debug_log_enabled`` preference."""
    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if enabled else logging.INFO)
