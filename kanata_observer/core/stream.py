"""Kanata notification stream processing."""

import socket
from typing import Optional

from .messages import LayerChange, Unrecognized, decode_message
from .processes import ScriptRunner
from ..utils import logger


class ConnectionTerminated(ConnectionError):
    """Raised when kanata closes the connection."""


class MessageStreamProcessor:
    """Reads newline-delimited messages from one kanata connection.

    Every LayerChange runs the layer change script once, in arrival order,
    before the next line is read. Other messages and lines that don't decode
    are dropped.
    """

    def __init__(self, script_path: str, runner: Optional[ScriptRunner] = None):
        """Initialize stream processor.

        Args:
            script_path: Path to layer change script, may use ~ shorthand
            runner: Script runner, built from script_path if not given
        """
        self.runner = runner or ScriptRunner(script_path)

    def process(self, sock: socket.socket) -> None:
        """Consume messages until the connection ends.

        Takes ownership of the socket and closes it on return.

        Raises:
            ConnectionTerminated: kanata closed the connection
            OSError: Reading from the socket failed
        """
        logger.debug("reader starting")
        with sock, sock.makefile('rb') as reader:
            while True:
                line = reader.readline()
                if not line:
                    raise ConnectionTerminated("connection closed by kanata")

                logger.debug("message received")
                self.handle_line(line)

    def handle_line(self, line: bytes) -> None:
        message = decode_message(line)

        if isinstance(message, Unrecognized):
            logger.trace(f"ignoring message: {message.reason}")
            return

        if isinstance(message, LayerChange):
            logger.debug(f"Layer changed to: {message.new}")
            self.runner.run(message.new)
        else:
            logger.trace(f"ignoring {message.TAG} message")
