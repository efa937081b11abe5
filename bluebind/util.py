#
# Copyright (C) 2026 bluebind Developers — LGPL-3.0-or-later
#

# pylint: disable=invalid-name
"""
Various helper functions that are used across the library.
"""
import asyncio
import logging
import re

import colorlog
from wrapt import synchronized


# Trace log levels
LOG_TRACE = 5

logging.addLevelName(LOG_TRACE, 'TRACE')


def snake_to_camel(name: str) -> str:
    """
    Returns a CamelCaseName from a snake_case_name
    """
    return re.sub(r'(?:^|_)([a-z])', lambda x: x.group(1).upper(), name)


def camel_to_snake(name: str) -> str:
    """
    Returns a snake_case_name from a CamelCaseName
    """
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    return re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1).lower()


LOGGERS = {}
_LOG_LEVEL = None

@synchronized
def get_logger(tag):
    """
    Get the global logger instance for the given tag

    :param tag: the log tag
    :return: the logger instance
    """
    if tag not in LOGGERS:
        handler = colorlog.StreamHandler()
        handler.setFormatter(colorlog.ColoredFormatter( \
            ' %(log_color)s%(name)s/%(levelname)-8s%(reset)s | %(log_color)s%(message)s%(reset)s'))
        logger = logging.getLogger(tag)
        logger.addHandler(handler)
        if _LOG_LEVEL is not None:
            logger.setLevel(_LOG_LEVEL)

        LOGGERS[tag] = logger

    return LOGGERS[tag]


@synchronized
def set_log_level(level):
    """
    Set the level of every logger returned by get_logger, including
    the ones created after this call.

    :param level: A level name ('DEBUG', 'trace', ..) or number
    """
    global _LOG_LEVEL # pylint: disable=global-statement

    if isinstance(level, str):
        name = level.upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise ValueError('Unknown log level: %s' % name)

    _LOG_LEVEL = level
    for logger in LOGGERS.values():
        logger.setLevel(level)


def ensure_future(coro, loop=None):
    """
    Wrapper for asyncio.ensure_future which dumps exceptions
    """
    if loop is None:
        loop = asyncio.get_event_loop()
    fut = asyncio.ensure_future(coro, loop=loop)
    def exception_logging_done_cb(fut):
        try:
            e = fut.exception()
        except asyncio.CancelledError:
            return
        if e is not None:
            loop.call_exception_handler({
                'message': 'Unhandled exception in async future',
                'future': fut,
                'exception': e,
            })
    fut.add_done_callback(exception_logging_done_cb)
    return fut
