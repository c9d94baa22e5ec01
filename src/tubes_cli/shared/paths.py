"""Path management for tubes-cli.

Manages the ~/.tubes/ directory and the per-environment state directories.
"""

from pathlib import Path

# Base directory for user-level tubes data
TUBES_DIR = Path.home() / ".tubes"

# CLI config file
CONFIG_FILE = TUBES_DIR / "config.yaml"

# Environments live under the working directory unless --state-dir is given
ENVIRONMENTS_DIRNAME = "environments"


def default_state_dir(name: str, working_dir: Path | None = None) -> Path:
    """Get the implicit state directory for an environment.

    Args:
        name: Environment name
        working_dir: Base directory (default: current working directory)

    Returns:
        Path to <working_dir>/environments/<name>
    """
    base = working_dir or Path.cwd()
    return base / ENVIRONMENTS_DIRNAME / name


def ensure_state_dir(name: str, working_dir: Path | None = None) -> Path:
    """Create the implicit state directory if missing.

    The directory is created with mode 0o700 since it holds private keys.

    Args:
        name: Environment name
        working_dir: Base directory (default: current working directory)

    Returns:
        Path to the state directory
    """
    state_dir = default_state_dir(name, working_dir)
    state_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    return state_dir


def resolve_state_dir(explicit: str | Path) -> Path:
    """Validate an explicitly supplied state directory.

    Args:
        explicit: Directory passed via --state-dir

    Returns:
        The directory as a Path

    Raises:
        FileNotFoundError: If the directory does not exist
        NotADirectoryError: If the path is not a directory
    """
    state_dir = Path(explicit)
    if not state_dir.exists():
        raise FileNotFoundError(f"state directory not found: {state_dir}")
    if not state_dir.is_dir():
        raise NotADirectoryError(f"state directory not a directory: {state_dir}")
    return state_dir
