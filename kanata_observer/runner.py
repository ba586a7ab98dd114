"""Daemon runner for kanata-observer service."""

import sys
import argparse
from importlib.metadata import version, PackageNotFoundError

from . import __version__
from .core.daemon import KanataObserverDaemon
from .utils import logger
from .utils.config import CONFIG_PATH, ConfigCreated, ConfigError, get_config


def _package_version() -> str:
    try:
        return version("kanata-observer")
    except PackageNotFoundError:
        return __version__


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
    if not 0 < port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kanata-observer",
        description="Run a script whenever kanata changes layer"
    )

    parser.add_argument(
        "-c", "--config",
        default=CONFIG_PATH,
        help="Path to configuration file"
    )
    parser.add_argument(
        "-p", "--port",
        type=_port,
        default=None,
        help="Port that kanata's TCP server is listening on (overrides config file)"
    )
    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Enable debug logging (overrides config file)"
    )
    parser.add_argument(
        "-t", "--trace",
        action="store_true",
        help="Enable trace logging (overrides config file)"
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"kanata-observer {_package_version()}"
    )
    return parser


def resolve_log_level(args: argparse.Namespace, config_level: str) -> int:
    """CLI flags override the config file, trace wins over debug."""
    if args.trace:
        return logger.TRACE
    if args.debug:
        return logger.DEBUG
    return logger.parse_level(config_level)


def main(argv=None):
    """Main entry point for daemon runner."""
    args = build_parser().parse_args(argv)

    config_manager = get_config(args.config)
    try:
        config = config_manager.load_config()
    except ConfigCreated as e:
        print(str(e), file=sys.stderr)
        print("Please edit it with your desired settings.", file=sys.stderr)
        sys.exit(0)
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    logger.configure(resolve_log_level(args, config.log_level))
    if config.log_level.strip().lower() not in logger.LEVELS:
        logger.warn(f"Unknown log_level {config.log_level!r} in config, using info")

    daemon = KanataObserverDaemon(config, port=args.port)
    daemon.run()


if __name__ == "__main__":
    main()
