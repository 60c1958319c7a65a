"""Logging configuration."""
import sys

import sentry_sdk
from loguru import logger

from jobmirror.config.settings import settings


def setup_logger(log_level: str = "INFO") -> None:
    logger.remove()

    # Console / journalctl
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        level=log_level,
        colorize=True,
    )

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.sentry_environment,
        )

        def sentry_sink(message):
            record = message.record
            if record["exception"]:
                sentry_sdk.capture_exception(record["exception"].value)
            else:
                with sentry_sdk.new_scope() as scope:
                    scope.set_extra("name", record["name"])
                    scope.set_extra("line", record["line"])
                    scope.set_tag("component", record["extra"].get("component", "jobmirror"))
                    sentry_sdk.capture_message(record["message"], level="error", scope=scope)
        logger.add(sentry_sink, level="ERROR")

    logger.debug(f"Logger initialized at level {log_level}")
