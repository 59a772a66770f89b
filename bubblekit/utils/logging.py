"""Loguru sink setup for hosts that want bubblekit's logs."""

import sys

from loguru import logger

from bubblekit.settings import get_settings

_sink_ids: list[int] = []


def _only_bubblekit(record: dict) -> bool:
    return (record["name"] or "").startswith("bubblekit")


def setup_logging(level: str | None = None) -> None:
    """Enable ``bubblekit`` log records and install stderr (and file) sinks.

    The package disables its own records on import so an embedding host
    stays quiet unless it opts in.
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()

    for sink_id in _sink_ids:
        logger.remove(sink_id)
    _sink_ids.clear()

    _sink_ids.append(logger.add(sys.stderr, level=level, filter=_only_bubblekit))
    if settings.log_file:
        _sink_ids.append(
            logger.add(settings.log_file, level=level, filter=_only_bubblekit, rotation="10 MB")
        )
    logger.enable("bubblekit")


def disable_logging() -> None:
    logger.disable("bubblekit")
