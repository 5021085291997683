import logging

from call_intake.core.config import settings

LOG_FORMAT = "%(asctime)s — %(levelname)s — %(name)s — %(message)s"


def configure_logging() -> None:
    """Apply LOG_LEVEL and a single format to the root logger."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("httpx").setLevel(logging.WARNING)
