"""Interactive setup utility for kanata-observer daemon."""

import os
import sys
import shutil
import subprocess
from pathlib import Path
from typing import Optional

from .utils import logger
from .utils.config import CONFIG_PATH, ConfigError, ConfigManager
from .utils.file_utils import expand_path

SERVICE_NAME = "kanata-observer"

_MARKERS = {'ok': "✅", 'error': "❌", 'warn': "⚠️ "}
_ANSWERS = {'y': True, 'yes': True, 'n': False, 'no': False}


def report(kind: str, message: str) -> None:
    if kind == 'error':
        logger.error(message)
    print(f"{_MARKERS[kind]} {message}")


def ask_yes_no(question: str, default: bool = True) -> bool:
    """Prompt until the user answers; empty input picks the default.

    Raises:
        KeyboardInterrupt: The prompt was interrupted or stdin closed
    """
    hint = "Y/n" if default else "y/N"
    while True:
        try:
            answer = input(f"🔍 {question} ({hint}): ").strip().lower()
        except (EOFError, KeyboardInterrupt):
            print()
            raise KeyboardInterrupt
        if not answer:
            return default
        if answer in _ANSWERS:
            return _ANSWERS[answer]
        print("Please answer 'y' or 'n'")


class SystemdUserServiceInstaller:
    """Installs the observer as a systemd user unit."""

    def __init__(self, service_name: str, python_path: str, config_path: str,
                 unit_dir: Optional[Path] = None):
        self.service_name = service_name
        self.python_path = python_path
        self.config_path = config_path
        self.unit_dir = unit_dir or Path.home() / ".config" / "systemd" / "user"

    @property
    def service_file(self) -> Path:
        return self.unit_dir / f"{self.service_name}.service"

    def is_available(self) -> bool:
        try:
            return subprocess.run(['systemctl', '--version'], capture_output=True).returncode == 0
        except FileNotFoundError:
            return False

    def unit_content(self) -> str:
        exec_start = f"{self.python_path} -m kanata_observer.runner --config {self.config_path}"

        # kanata may start later, the daemon retries on its own
        return f"""[Unit]
Description=Kanata layer change observer
After=graphical-session.target

[Service]
Type=simple
ExecStart={exec_start}
Restart=always
RestartSec=5

[Install]
WantedBy=default.target
"""

    def _systemctl(self, *args: str, check: bool = True) -> None:
        command = ['systemctl', '--user', *args]
        if check:
            subprocess.run(command, check=True)
        else:
            subprocess.run(command, capture_output=True)

    def install_service(self) -> bool:
        try:
            self.unit_dir.mkdir(parents=True, exist_ok=True)
            self.service_file.write_text(self.unit_content())
            self._systemctl('daemon-reload')
            self._systemctl('enable', self.service_name)
        except (subprocess.CalledProcessError, OSError) as e:
            report('error', f"Failed to install service: {e}")
            return False

        report('ok', f"Installed user service {self.service_file}")
        return True

    def uninstall_service(self) -> bool:
        try:
            # stop/disable fail harmlessly when the unit isn't running or enabled
            self._systemctl('stop', self.service_name, check=False)
            self._systemctl('disable', self.service_name, check=False)
            if self.service_file.exists():
                self.service_file.unlink()
            self._systemctl('daemon-reload')
        except (subprocess.CalledProcessError, OSError) as e:
            report('error', f"Failed to uninstall service: {e}")
            return False

        report('ok', f"Removed user service {self.service_file}")
        return True


class SetupManager:

    def __init__(self, config_path: str = CONFIG_PATH):
        self.config_path = Path(expand_path(config_path))
        self.installer = SystemdUserServiceInstaller(
            SERVICE_NAME, sys.executable, str(self.config_path)
        )

    def run_interactive_setup(self) -> bool:
        print("Setting up kanata-observer")

        try:
            if not self._create_config_file():
                return False

            if ask_yes_no("Install kanata-observer as a systemd user service?"):
                if self._install_service():
                    print("Use 'kanata-observer-ctl start' to start the service")
                else:
                    print("You can run 'kanata-observer' manually instead.")

            print(f"\nConfiguration file: {self.config_path}")
            print("Make sure kanata runs with its TCP server enabled (e.g. `kanata -p 5829`).")
            return True

        except KeyboardInterrupt:
            print("\nSetup interrupted by user.")
            return False

    def run_interactive_uninstall(self) -> bool:
        try:
            changed = False

            if ask_yes_no("Remove the user service?"):
                changed = self._install_service(remove=True)

            config_dir = self.config_path.parent
            if config_dir.exists() and ask_yes_no(
                    f"Remove configuration directory {config_dir}? (This cannot be undone!)",
                    default=False):
                try:
                    shutil.rmtree(config_dir)
                except OSError as e:
                    report('error', f"Failed to remove configuration directory: {e}")
                    return False
                report('ok', f"Removed configuration directory: {config_dir}")
                changed = True

            print("\nUninstall completed." if changed else "\nNo changes were made.")
            return True

        except KeyboardInterrupt:
            print("\nUninstall interrupted by user.")
            return False

    def _create_config_file(self) -> bool:
        if self.config_path.exists():
            report('ok', f"Using existing config file: {self.config_path}")
            return True

        if not ask_yes_no(f"Create default config file at {self.config_path}?"):
            return False

        try:
            ConfigManager(str(self.config_path)).create_default_config()
        except ConfigError as e:
            report('error', str(e))
            return False

        report('ok', f"Created config file: {self.config_path}")
        print("Edit it to point script_path at your layer change script.")
        return True

    def _install_service(self, remove: bool = False) -> bool:
        if not self.installer.is_available():
            report('warn', "systemd not found, set up the service manually.")
            return False
        if remove:
            return self.installer.uninstall_service()
        return self.installer.install_service()


def run_setup(config_path: str = CONFIG_PATH) -> bool:
    return SetupManager(config_path).run_interactive_setup()


def run_uninstall(config_path: str = CONFIG_PATH) -> bool:
    return SetupManager(config_path).run_interactive_uninstall()


def needs_setup(config_path: str = CONFIG_PATH) -> bool:
    # CLI uses this to auto-trigger setup on first run
    return not os.path.exists(expand_path(config_path))
