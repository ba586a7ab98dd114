"""Command line interface for kanata-observer service management."""

import argparse
import sys
import subprocess
from importlib.metadata import version, PackageNotFoundError

from . import __version__
from .setup import SERVICE_NAME, run_setup, run_uninstall, needs_setup
from .utils.config import CONFIG_PATH


class ServiceManager:
    """Manages systemd user service operations."""

    def __init__(self, service_name: str = SERVICE_NAME):
        self.service_name = service_name

    def _run_systemctl(self, command: str) -> bool:
        """Run systemctl command.

        Args:
            command: systemctl command to run

        Returns:
            bool: True if command succeeded
        """
        try:
            result = subprocess.run(
                ['systemctl', '--user', command, self.service_name],
                capture_output=True, text=True
            )
        except FileNotFoundError:
            print("Error: systemctl not found. Is systemd installed?")
            return False

        if result.returncode == 0:
            if result.stdout.strip():
                print(result.stdout.strip())
            return True

        print(f"Error: {result.stderr.strip()}")
        return False

    def _action(self, command: str, doing: str, done: str) -> bool:
        print(f"{doing} {self.service_name} service...")
        if self._run_systemctl(command):
            print(f"Service {done} successfully")
            return True
        return False

    def start(self) -> bool:
        return self._action('start', "Starting", "started")

    def stop(self) -> bool:
        return self._action('stop', "Stopping", "stopped")

    def restart(self) -> bool:
        return self._action('restart', "Restarting", "restarted")

    def enable(self) -> bool:
        return self._action('enable', "Enabling", "enabled")

    def disable(self) -> bool:
        return self._action('disable', "Disabling", "disabled")

    def status(self) -> bool:
        """Show service status."""
        try:
            result = subprocess.run(
                ['systemctl', '--user', 'status', self.service_name],
                capture_output=True, text=True
            )
        except FileNotFoundError:
            print("Error: systemctl not found. Is systemd installed?")
            return False

        # Always show output for status command, regardless of exit code
        if result.stdout.strip():
            print(result.stdout.strip())
        if result.stderr.strip():
            print(result.stderr.strip())

        # Status command can return non-zero for inactive services, that's normal
        return True

    def is_service_installed(self) -> bool:
        try:
            result = subprocess.run(
                ['systemctl', '--user', 'list-unit-files', self.service_name + '.service'],
                capture_output=True, text=True
            )
        except FileNotFoundError:
            return False
        return self.service_name in result.stdout


SERVICE_COMMANDS = {
    'start': 'Start the service',
    'stop': 'Stop the service',
    'restart': 'Restart the service',
    'status': 'Show service status',
    'enable': 'Enable service to start automatically',
    'disable': 'Disable service from starting automatically',
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kanata-observer-ctl",
        description="kanata-observer - manage the layer observer service"
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    for name, help_text in SERVICE_COMMANDS.items():
        subparsers.add_parser(name, help=help_text)

    for name, help_text in (('setup', 'Run interactive setup wizard'),
                            ('uninstall', 'Uninstall service and configuration')):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "-c", "--config",
            default=CONFIG_PATH,
            help="Path to configuration file (default: ~/.config/kanata-observer/config.yaml)"
        )

    try:
        pkg_version = version("kanata-observer")
    except PackageNotFoundError:
        pkg_version = __version__

    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"kanata-observer {pkg_version}"
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        # Only auto-run setup on a true first run
        if needs_setup():
            if not run_setup():
                print("\nSetup was not completed.")
                sys.exit(1)
        else:
            parser.print_help()
        return

    if args.command == 'setup':
        success = run_setup(args.config)
        if not success:
            print("\nSetup was not completed.")
    elif args.command == 'uninstall':
        success = run_uninstall(args.config)
        if not success:
            print("\nUninstall was not completed.")
    else:
        service_manager = ServiceManager()
        if args.command in ('start', 'restart') and not service_manager.is_service_installed():
            print("Service is not installed. Run 'kanata-observer-ctl setup' first.")
            sys.exit(1)
        success = getattr(service_manager, args.command)()

    if not success:
        sys.exit(1)


if __name__ == "__main__":
    main()
