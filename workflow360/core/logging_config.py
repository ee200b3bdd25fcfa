"""Logging configuration."""

import logging
import sys

_PLACEHOLDER_BANNER = """
+--------------------------------------------------------------+
|  IDENTITY PROVIDER NOT CONFIGURED                            |
|  Set SUPABASE_URL and SUPABASE_ANON_KEY in .env and restart. |
|  Auth flows are disabled until then.                         |
+--------------------------------------------------------------+"""


def setup_logging(level: str | int = logging.INFO) -> None:
    """Configure root logging once for the API process.

    Args:
        level: Logging level name or number.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)
    # httpx logs every request at INFO, including URLs with one-time codes
    logging.getLogger("httpx").setLevel(logging.WARNING)


def warn_unconfigured(logger: logging.Logger) -> None:
    logger.warning(_PLACEHOLDER_BANNER)
