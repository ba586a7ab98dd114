"""Kanata connection supervision with fixed-delay retry."""

import enum
import socket
import time
from typing import Callable, NoReturn

from .stream import MessageStreamProcessor
from ..utils.config import DEFAULT_HOST, CONNECT_TIMEOUT, RETRY_DELAY
from ..utils import logger


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class ConnectionSupervisor:
    """Keeps a connection to kanata's TCP server alive.

    Connect failures and lost sessions are handled the same way: log the
    cause, wait retry_delay seconds, try again. There is no retry limit since
    kanata may start after this client or restart at any time.
    """

    def __init__(
        self,
        port: int,
        processor: MessageStreamProcessor,
        host: str = DEFAULT_HOST,
        connect_timeout: float = CONNECT_TIMEOUT,
        retry_delay: float = RETRY_DELAY,
        connect: Callable[..., socket.socket] = socket.create_connection,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize connection supervisor.

        Args:
            port: Kanata TCP server port
            processor: Stream processor handed each live connection
            host: Kanata TCP server host
            connect_timeout: Seconds to wait for a connection
            retry_delay: Seconds to wait before reconnecting
            connect: Connection factory, socket.create_connection signature
            sleep: Delay function
        """
        self.host = host
        self.port = port
        self.processor = processor
        self.connect_timeout = connect_timeout
        self.retry_delay = retry_delay
        self._connect = connect
        self._sleep = sleep
        self.state = ConnectionState.DISCONNECTED

    def attempt(self) -> None:
        """Run one connect-and-process cycle, including the retry delay on failure."""
        logger.info(f"attempting to connect to kanata on port {self.port}")
        try:
            sock = self._connect((self.host, self.port), timeout=self.connect_timeout)
        except OSError as e:
            logger.error(f"failed to connect to kanata: {e}. retrying in {self.retry_delay:g} seconds...")
            self._retry_later()
            return

        logger.info("successfully connected to kanata")
        self.state = ConnectionState.CONNECTED
        try:
            # Session reads block without a timeout
            sock.settimeout(None)
            self.processor.process(sock)
        except OSError as e:
            logger.error(f"connection lost: {e}. retrying in {self.retry_delay:g} seconds...")
        finally:
            # process() closes the socket itself; this covers settimeout failing first
            sock.close()
            self.state = ConnectionState.DISCONNECTED
        self._retry_later()

    def run(self) -> NoReturn:
        """Supervise the connection forever."""
        while True:
            self.attempt()

    def _retry_later(self) -> None:
        self.state = ConnectionState.DISCONNECTED
        self._sleep(self.retry_delay)
