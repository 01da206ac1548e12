import logging
import sys


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level="INFO"):
    """Attach a single stdout handler to the package logger."""
    package_logger = logging.getLogger("social_feed")
    package_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if not any(getattr(h, "_social_feed", False) for h in package_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._social_feed = True
        package_logger.addHandler(handler)

    return package_logger
