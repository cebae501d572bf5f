"""
JSON snapshots of an observer collection.

A snapshot carries each observer's name, current value and content hash, so
a remote worker (or a later comparison) can rebuild the observers without
the memory they originally borrowed. Rebuilt observers are always owned.
Values must survive a JSON round trip with their content (and hash)
unchanged, so tuples and non-string dict keys are rejected at save time;
pickle the collection for anything else.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .config import DEFAULT_SNAPSHOT_DIR, SNAPSHOT_FORMAT_VERSION
from .errors import SnapshotFormatError
from .hashing import try_fixed_seed_hash
from .observers.collection import ObserverCollection

logger = logging.getLogger(__name__)


@dataclass
class SnapshotConfig:
    output_dir: Path = DEFAULT_SNAPSHOT_DIR
    run_id: Optional[str] = None
    indent: Optional[int] = 2

    def __post_init__(self):
        self.output_dir = Path(self.output_dir)
        if self.run_id is None:
            self.run_id = datetime.now().strftime("%Y%m%d_%H%M%S")

    @classmethod
    def from_args(cls, args):
        return cls(
            output_dir=Path(getattr(args, "snapshot_dir", None) or DEFAULT_SNAPSHOT_DIR),
            run_id=getattr(args, "snapshot_tag", None),
            indent=getattr(args, "snapshot_indent", 2),
        )

    @property
    def output_path(self) -> Path:
        return self.output_dir / f"{self.run_id}.json"


def snapshot_payload(collection: ObserverCollection, run_id: Optional[str] = None) -> Dict[str, Any]:
    payload = {
        "format_version": SNAPSHOT_FORMAT_VERSION,
        "run_id": run_id,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    payload.update(collection.to_dict())
    return payload


def _check_round_trip(payload: Dict[str, Any]) -> None:
    # JSON turns tuples into lists and int keys into strings; such values
    # would come back with different content and a different hash.
    for entry in payload.get("observers", []):
        if "value" not in entry or entry.get("hash") is None:
            continue
        if try_fixed_seed_hash(entry["value"]) != entry["hash"]:
            raise SnapshotFormatError(
                f"Observer '{entry.get('name')}' does not survive a JSON round trip "
                f"unchanged; pickle the collection instead"
            )


def save_snapshot(collection: ObserverCollection, config: SnapshotConfig) -> Path:
    payload = snapshot_payload(collection, config.run_id)
    try:
        text = json.dumps(payload, indent=config.indent)
    except (TypeError, ValueError) as exc:
        raise SnapshotFormatError(f"Observer values are not JSON-serialisable: {exc}") from exc
    _check_round_trip(json.loads(text))

    path = config.output_path
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        f.write(text)
    logger.debug("Saved %d observers to %s", len(collection), path)
    return path


def load_json(path: Path) -> Dict:
    if not path.exists():
        raise FileNotFoundError(f"Observer snapshot not found: {path}")
    with path.open("r") as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as exc:
            raise SnapshotFormatError(f"Snapshot is not valid JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise SnapshotFormatError(f"Snapshot root must be an object: {path}")
    version = payload.get("format_version")
    if version != SNAPSHOT_FORMAT_VERSION:
        raise SnapshotFormatError(
            f"Unsupported snapshot format_version {version!r} in {path} "
            f"(expected {SNAPSHOT_FORMAT_VERSION})"
        )
    return payload


def load_snapshot(path: Path) -> ObserverCollection:
    path = Path(path)
    collection = ObserverCollection.from_dict(load_json(path))
    logger.debug("Loaded %d observers from %s", len(collection), path)
    return collection
