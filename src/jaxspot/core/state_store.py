"""
JaxSpot - Persistent State Store

Durable storage for the three simulator records: positions, policy and the
confidence scalar. Records are loaded once at startup and fully re-saved on
every mutation of the record.

Loading never raises: a missing or corrupt record falls back to its default
and a warning is logged.
"""

import json
import math
import os
from pathlib import Path
from typing import List, Optional, Any

from jaxspot.core import config
from jaxspot.core.logging_utils import get_logger
from jaxspot.core.models import Policy, Position
from jaxspot.core.paths import get_data_dir, get_positions_path, get_policy_path, get_confidence_path
from jaxspot.core.errors import StateStoreError, PolicyValidationError

logger = get_logger(__name__)


def _decode_confidence(data: Any) -> float:
    if isinstance(data, dict):
        data = data.get("confidence")
    if isinstance(data, bool):
        raise StateStoreError("confidence must be numeric")
    try:
        value = float(data)
    except (TypeError, ValueError) as e:
        raise StateStoreError(f"confidence must be numeric, got {data!r}") from e
    if not math.isfinite(value):
        raise StateStoreError(f"confidence must be finite, got {value}")
    return max(config.CONFIDENCE_MIN, min(config.CONFIDENCE_MAX, value))


def _decode_positions(data: Any) -> List[Position]:
    if not isinstance(data, list):
        raise StateStoreError("positions record must be a list")
    positions = []
    for item in data:
        try:
            positions.append(Position.from_dict(item))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping malformed position record: {e}")
    return positions


def _decode_policy(data: Any) -> Policy:
    if not isinstance(data, dict):
        raise StateStoreError("policy record must be an object")
    try:
        return Policy.from_dict(data)
    except PolicyValidationError as e:
        raise StateStoreError(str(e)) from e


class InMemoryStateStore:
    """
    Volatile store for tests and dry runs.
    Holds the serialized form so that round-trips behave like the JSON store.
    """

    def __init__(
        self,
        positions: Optional[List[Position]] = None,
        policy: Optional[Policy] = None,
        confidence: float = config.DEFAULT_CONFIDENCE,
    ) -> None:
        self._positions = [p.to_dict() for p in positions or []]
        self._policy = (policy or Policy()).to_dict()
        self._confidence = float(confidence)
        self.save_count = 0

    def load_positions(self) -> List[Position]:
        return _decode_positions(self._positions)

    def load_policy(self) -> Policy:
        return _decode_policy(self._policy)

    def load_confidence(self) -> float:
        return _decode_confidence(self._confidence)

    def save_positions(self, positions: List[Position]) -> None:
        self._positions = [p.to_dict() for p in positions]
        self.save_count += 1

    def save_policy(self, policy: Policy) -> None:
        self._policy = policy.to_dict()
        self.save_count += 1

    def save_confidence(self, confidence: float) -> None:
        self._confidence = float(confidence)
        self.save_count += 1


class JsonStateStore:
    """
    Stores each record as a JSON file under the data directory.
    Writes go to a temporary file first and are swapped in with os.replace.
    """

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        self.data_dir = Path(data_dir) if data_dir is not None else get_data_dir()
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.positions_path = get_positions_path(self.data_dir)
        self.policy_path = get_policy_path(self.data_dir)
        self.confidence_path = get_confidence_path(self.data_dir)

    # --- Loading ---

    def _read_json(self, path: Path) -> Any:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _load(self, path: Path, decode, default_factory, label: str):
        if not path.exists():
            logger.info(f"No stored {label} at {path}. Using defaults.")
            return default_factory()
        try:
            return decode(self._read_json(path))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError, StateStoreError) as e:
            logger.warning(f"Error loading {label} from {path}: {e}. Using defaults.")
            return default_factory()

    def load_positions(self) -> List[Position]:
        return self._load(self.positions_path, _decode_positions, list, "positions")

    def load_policy(self) -> Policy:
        return self._load(self.policy_path, _decode_policy, Policy, "policy")

    def load_confidence(self) -> float:
        return self._load(
            self.confidence_path, _decode_confidence, lambda: config.DEFAULT_CONFIDENCE, "confidence"
        )

    # --- Saving ---

    def _write_json(self, path: Path, payload: Any) -> None:
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except OSError as e:
            # in-memory record is kept; next save rewrites the whole file
            logger.error(f"Error saving {path.name}: {e}")

    def save_positions(self, positions: List[Position]) -> None:
        self._write_json(self.positions_path, [p.to_dict() for p in positions])

    def save_policy(self, policy: Policy) -> None:
        self._write_json(self.policy_path, policy.to_dict())

    def save_confidence(self, confidence: float) -> None:
        self._write_json(self.confidence_path, {"confidence": float(confidence)})
