"""
Logging utility for kanata-observer daemon.

- TRACE: Raw protocol traffic, only shown at "trace" level
- DEBUG: Shown at "debug" level or when DEBUG=1 environment variable is set
- INFO, WARN: General information
- ERROR: Print to STDERR

The level is process-wide and set once at startup with configure().
"""

import os
import sys
import time
from typing import Any

TRACE = 5
DEBUG = 10
INFO = 20

LEVELS = {
    'trace': TRACE,
    'debug': DEBUG,
    'info': INFO,
}

_level = INFO


def parse_level(name: str) -> int:
    """Map a level name to its numeric value, falling back to info."""
    return LEVELS.get(str(name).strip().lower(), INFO)


def configure(level) -> None:
    """Set the process-wide log level.

    Args:
        level: Level name ("info", "debug", "trace") or numeric level
    """
    global _level
    _level = level if isinstance(level, int) else parse_level(level)


def get_level() -> int:
    return _level


def _enabled(level: int) -> bool:
    if level == DEBUG and os.environ.get('DEBUG', '0') == '1':
        return True
    return _level <= level


def _emit(tag: str, message: str, args: tuple, stream=None) -> None:
    formatted_message = message % args if args else message
    timestamp = time.strftime('%H:%M:%S')
    print(f"{timestamp} [{tag}] {formatted_message}", file=stream or sys.stdout)


def trace(message: str, *args: Any) -> None:
    if _enabled(TRACE):
        _emit('TRACE', message, args)


def debug(message: str, *args: Any) -> None:
    if _enabled(DEBUG):
        _emit('DEBUG', message, args)


def info(message: str, *args: Any) -> None:
    _emit('INFO', message, args)


def warn(message: str, *args: Any) -> None:
    _emit('WARN', f"⚠️  {message}", args)


def error(message: str, *args: Any) -> None:
    _emit('ERROR', f"❌  {message}", args, sys.stderr)
