import setproctitle

from .stream import MessageStreamProcessor
from .supervisor import ConnectionSupervisor
from ..utils.config import ObserverConfig
from ..utils import logger


class KanataObserverDaemon:
    """Main daemon class for kanata layer observation."""

    def __init__(self, config: ObserverConfig, port=None):
        """Initialize daemon.

        Args:
            config: Loaded configuration
            port: Port override, config port is used if None
        """
        self.config = config
        self.port = port if port is not None else config.port
        self.supervisor = None

    def start(self):
        # Set recognizable process title
        setproctitle.setproctitle("kanata-observer")

        logger.info("Starting kanata-observer daemon...")

        processor = MessageStreamProcessor(self.config.script_path)
        self.supervisor = ConnectionSupervisor(self.port, processor)

        logger.info(f"Layer change script: {processor.runner.script_path}")
        logger.info("Press Ctrl+C to exit")

    def run(self):
        try:
            self.start()
            self.supervisor.run()
        except KeyboardInterrupt:
            logger.info("Daemon stopped")
