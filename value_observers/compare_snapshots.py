#!/usr/bin/env python
"""
Compare observer snapshots between a parent (baseline) and child run by
content hash, then optionally record the summary in the child's experiment
log YAML.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from .snapshot import load_json

UNCHANGED = "unchanged"
CHANGED = "changed"
ADDED = "added"
REMOVED = "removed"


def _hash_map(payload: Dict) -> Dict[str, Optional[int]]:
    return {entry.get("name"): entry.get("hash") for entry in payload.get("observers", [])}


def compare_payloads(parent_payload: Dict, child_payload: Dict) -> Dict[str, str]:
    """Classify every observer name seen in either snapshot."""
    parent_hashes = _hash_map(parent_payload)
    child_hashes = _hash_map(child_payload)
    result = {}
    for name in sorted(set(parent_hashes) | set(child_hashes)):
        if name not in parent_hashes:
            result[name] = ADDED
        elif name not in child_hashes:
            result[name] = REMOVED
        elif parent_hashes[name] is None or parent_hashes[name] != child_hashes[name]:
            # an observer without a hash can't be proven unchanged
            result[name] = CHANGED
        else:
            result[name] = UNCHANGED
    return result


def summarize(comparison: Dict[str, str]) -> str:
    if not comparison:
        return "No observers captured."
    lines: List[str] = []
    for status in (CHANGED, ADDED, REMOVED, UNCHANGED):
        names = [name for name, s in comparison.items() if s == status]
        if names:
            lines.append(f"{status}: {', '.join(names)}")
    return "; ".join(lines)


def update_experiment_log(yaml_path: Path, comparison: Dict[str, str], summary: str) -> None:
    if not yaml_path.exists():
        raise FileNotFoundError(f"Experiment log not found: {yaml_path}")

    with yaml_path.open("r") as f:
        data = yaml.safe_load(f) or {}

    observers = data.setdefault("observers", {})
    block = observers.setdefault("comparison", {})
    block["summary"] = summary
    block["status"] = dict(comparison)

    with yaml_path.open("w") as f:
        yaml.safe_dump(data, f, sort_keys=False)


def build_argparser():
    parser = argparse.ArgumentParser(description="Compare observer snapshots by content hash.")
    parser.add_argument("--parent_json", required=True, help="Path to parent snapshot JSON.")
    parser.add_argument("--child_json", required=True, help="Path to child snapshot JSON.")
    parser.add_argument("--child_yaml", default=None, help="Experiment log YAML to update.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv=None):
    args = build_argparser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    parent_payload = load_json(Path(args.parent_json))
    child_payload = load_json(Path(args.child_json))

    comparison = compare_payloads(parent_payload, child_payload)
    summary = summarize(comparison)
    print("Observer comparison vs parent:", summary)

    if args.child_yaml:
        yaml_path = Path(args.child_yaml)
        update_experiment_log(yaml_path, comparison, summary)
        print("Updated observer summary in", yaml_path)

    return comparison


if __name__ == "__main__":
    main()
