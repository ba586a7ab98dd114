"""kanata-observer - run a script whenever kanata changes layer."""

__version__ = "0.1.0"
__description__ = "Linux daemon that follows kanata layer changes over its TCP server"

from .core.daemon import KanataObserverDaemon

__all__ = ["KanataObserverDaemon"]
