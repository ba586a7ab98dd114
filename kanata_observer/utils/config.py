"""Configuration parameters and manager."""

import os
import yaml
from dataclasses import dataclass
from typing import Any, Optional

from .file_utils import expand_path, ensure_parent_dir

# Main configuration directory
CONFIG_DIR = "~/.config/kanata-observer"
CONFIG_PATH = os.path.join(CONFIG_DIR, "config.yaml")

# Kanata TCP server defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5829
DEFAULT_SCRIPT_PATH = os.path.join(CONFIG_DIR, "layer_change.sh")
DEFAULT_LOG_LEVEL = "info"

# Connection supervision
CONNECT_TIMEOUT = 5.0
RETRY_DELAY = 30.0

DEFAULT_CONFIG_TEMPLATE = """# Kanata observer configuration

# Port that kanata's TCP server is listening on
port: {port}

# Path to the script to execute on layer change
# The layer name will be passed as the first argument
script_path: "{script_path}"

# Log level: "info", "debug", or "trace"
log_level: "{log_level}"
"""


class ConfigError(Exception):
    """Raised when the configuration file can't be read, parsed or validated."""


class ConfigCreated(Exception):
    """Raised after a default configuration file was written.

    The caller is expected to exit cleanly and let the user edit the file.
    """

    def __init__(self, path: str):
        super().__init__(f"Created default config file at: {path}")
        self.path = path


@dataclass(frozen=True)
class ObserverConfig:
    port: int = DEFAULT_PORT
    script_path: str = DEFAULT_SCRIPT_PATH
    log_level: str = DEFAULT_LOG_LEVEL


class ConfigManager:
    """Manages YAML configuration file loading and default generation."""

    def __init__(self, config_path: str = CONFIG_PATH):
        """Initialize config manager.

        Args:
            config_path: Configuration file path, may use ~ shorthand
        """
        self.config_path = expand_path(config_path)
        self._config_cache: Optional[ObserverConfig] = None

    def load_config(self) -> ObserverConfig:
        """Load configuration from YAML file.

        Returns:
            ObserverConfig: Validated configuration

        Raises:
            ConfigCreated: The file was missing and a default was written
            ConfigError: The file couldn't be read, parsed or validated
        """
        if self._config_cache is not None:
            return self._config_cache

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                contents = f.read()
        except FileNotFoundError:
            self.create_default_config()
            raise ConfigCreated(self.config_path)
        except OSError as e:
            raise ConfigError(f"Failed to read config file {self.config_path}: {e}") from e

        try:
            raw = yaml.safe_load(contents)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse config file {self.config_path}: {e}") from e

        self._config_cache = self._validate(raw if raw is not None else {})
        return self._config_cache

    def create_default_config(self) -> ObserverConfig:
        """Write the default configuration template.

        Raises:
            ConfigError: The file or its directory couldn't be created
        """
        default_config = ObserverConfig()
        content = DEFAULT_CONFIG_TEMPLATE.format(
            port=default_config.port,
            script_path=default_config.script_path,
            log_level=default_config.log_level,
        )
        try:
            ensure_parent_dir(self.config_path)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise ConfigError(
                f"Failed to create default config file {self.config_path}: {e}"
            ) from e
        return default_config

    def _validate(self, raw: Any) -> ObserverConfig:
        if not isinstance(raw, dict):
            raise ConfigError(f"Failed to parse config file {self.config_path}: expected a mapping")

        port = raw.get('port')
        if port is None:
            raise ConfigError(f"Failed to parse config file {self.config_path}: missing field `port`")
        # bool is an int subclass, reject it explicitly
        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port <= 65535:
            raise ConfigError(
                f"Failed to parse config file {self.config_path}: invalid port {port!r}"
            )

        script_path = raw.get('script_path')
        if script_path is None:
            raise ConfigError(
                f"Failed to parse config file {self.config_path}: missing field `script_path`"
            )
        if not isinstance(script_path, str) or not script_path.strip():
            raise ConfigError(
                f"Failed to parse config file {self.config_path}: invalid script_path {script_path!r}"
            )

        log_level = raw.get('log_level', DEFAULT_LOG_LEVEL)
        if not isinstance(log_level, str):
            raise ConfigError(
                f"Failed to parse config file {self.config_path}: invalid log_level {log_level!r}"
            )

        return ObserverConfig(port=port, script_path=script_path, log_level=log_level)


# Global ConfigManager instance - module-level singleton
_config: Optional[ConfigManager] = None
_config_path: Optional[str] = None


def get_config(config_path: str = None) -> ConfigManager:
    """Get global config instance, creating it if necessary.

    Args:
        config_path: Configuration file path. If None, uses default CONFIG_PATH.
                     Only used when creating the instance for the first time.

    Returns:
        ConfigManager: Global ConfigManager instance
    """
    global _config, _config_path

    if _config is None:
        if config_path is None:
            config_path = CONFIG_PATH
        _config_path = config_path
        _config = ConfigManager(config_path)
    elif config_path is not None and config_path != _config_path:
        _config_path = config_path
        _config = ConfigManager(config_path)

    return _config


def reset_config():
    """Reset global config instance. Used for testing."""
    global _config, _config_path
    _config = None
    _config_path = None

