"""Layer change script execution."""

import subprocess

from ..utils.file_utils import expand_path
from ..utils import logger


class ScriptRunner:
    """Runs the user's layer change script, isolating the caller from its failures."""

    def __init__(self, script_path: str):
        """Initialize script runner.

        Args:
            script_path: Path to executable script, may use ~ shorthand
        """
        self.script_path = expand_path(script_path)

    def run(self, layer: str) -> bool:
        """Run the script synchronously with the layer name as its only argument.

        Blocks until the script exits. Failures are logged and never raised.

        Args:
            layer: New layer name

        Returns:
            bool: True if the script ran and exited with status 0
        """
        try:
            result = subprocess.run(
                [self.script_path, layer],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                errors='replace'
            )
        except (OSError, ValueError) as e:
            logger.error(f"Failed to execute script {self.script_path}: {e}")
            return False

        if result.returncode == 0:
            logger.debug(f"Script executed successfully for layer {layer}")
            return True

        logger.error(
            f"Script failed with exit code {result.returncode}: {result.stderr.strip()}"
        )
        return False
