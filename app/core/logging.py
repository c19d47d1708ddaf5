import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Send application logs to stdout next to Gunicorn's access/error logs."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
    # httpx logs every request line at INFO, including streaming calls.
    logging.getLogger("httpx").setLevel(logging.WARNING)
