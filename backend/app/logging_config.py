"""Logging setup for the marketplace API."""
import logging
import re
import sys
from typing import Optional

# Stripe secret keys, restricted keys and webhook signing secrets
_SECRET_PATTERN = re.compile(r"\b(sk|rk|whsec)_(live|test)?_?[A-Za-z0-9]{4,}")


class SecretRedactingFilter(logging.Filter):
    """Mask gateway credentials that end up in log messages (e.g. inside SDK errors)."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if _SECRET_PATTERN.search(message):
            record.msg = _SECRET_PATTERN.sub(lambda m: f"{m.group(1)}_***", message)
            record.args = ()
        return True


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging to stdout.

    Args:
        level: Level name such as "DEBUG" or "warning". Defaults to INFO.
    """
    log_level = (level or "INFO").upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(SecretRedactingFilter())

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[handler],
    )

    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).setLevel(log_level)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    # The Stripe SDK logs full request bodies at INFO
    logging.getLogger("stripe").setLevel(logging.WARNING)
