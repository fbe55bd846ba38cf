from pathlib import Path
from typing import Optional


def get_project_root() -> Path:
    """
    Returns the project root directory.
    Assumes this file is at src/jaxspot/core/paths.py
    Project root is ../../../ relative to this file.
    """
    current_file = Path(__file__).resolve()
    # src/jaxspot/core/paths.py -> core -> jaxspot -> src -> root
    return current_file.parent.parent.parent.parent


def get_data_dir(override: Optional[str] = None) -> Path:
    """
    Returns the directory holding the persisted simulator records.
    Uses JAXSPOT_DATA_DIR when set, otherwise <project_root>/data.
    Creates it if it doesn't exist.
    """
    if override is None:
        from jaxspot.core.config import DATA_DIR
        override = DATA_DIR

    data_dir = Path(override) if override else get_project_root() / "data"
    if not data_dir.exists():
        data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_positions_path(data_dir: Path) -> Path:
    """e.g., data/positions.json"""
    return data_dir / "positions.json"


def get_policy_path(data_dir: Path) -> Path:
    """e.g., data/policy.json"""
    return data_dir / "policy.json"


def get_confidence_path(data_dir: Path) -> Path:
    """e.g., data/confidence.json"""
    return data_dir / "confidence.json"
