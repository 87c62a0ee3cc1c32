import logging
import sys


PIPELINE_LOGGERS = (
    "request_pipeline",
    "config",
)


def configure_logging(level: int = logging.INFO) -> None:
    """
    Install a single STDOUT handler on the root logger. Calls made from worker
    threads or background event loops log through the same handler, so the
    output of concurrent calls stays in one stream.
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove default handlers to avoid duplication
    for h in list(logger.handlers):
        logger.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    ))

    logger.addHandler(handler)


def set_pipeline_logging_level(level: int) -> None:
    """Adjust the level of the pipeline loggers without touching the root logger."""
    for name in PIPELINE_LOGGERS:
        logging.getLogger(name).setLevel(level)


def set_transport_logging_level(level: int = logging.WARNING) -> None:
    """Lowers logging level for aiohttp internals to avoid unnecessary logging events in STDIO"""
    logging.getLogger("aiohttp.client").setLevel(level)
    logging.getLogger("aiohttp.internal").setLevel(level)
