"""File and path utilities."""

import os


def expand_path(path: str) -> str:
    """Expand home-directory shorthand (~, ~user) in a path.

    Args:
        path: Path that may start with ~

    Returns:
        str: Expanded path, unchanged if there is nothing to expand
    """
    return os.path.expanduser(path)


def ensure_parent_dir(path: str) -> None:
    """Create the parent directory of a file path if it doesn't exist."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
