"""Utilities for loading domain snapshots from YAML/JSON sources."""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml

from .config import SimulationConfig
from .errors import ConfigError
from .records import Snapshot

__all__ = ["load_snapshot", "load_config", "dump_snapshot"]

logger = logging.getLogger(__name__)


def load_snapshot(
    source: str | Path | dict[str, Any], *, format: str | None = None
) -> Snapshot:
    """Parse a snapshot from YAML/JSON/dict into immutable records."""

    mapping, label = _read_source(source, format=format)
    # A file may wrap the state under "state" next to run metadata
    state = mapping.get("state", mapping)
    if not isinstance(state, dict):
        raise ConfigError(f"{label}::state must be a mapping")
    snapshot = Snapshot.from_dict(state)
    logger.debug(
        "Loaded %s: %d entities, %d accounts, %d transactions",
        label,
        len(snapshot.entities),
        len(snapshot.accounts),
        len(snapshot.transactions),
    )
    return snapshot


def load_config(
    source: str | Path | dict[str, Any] | None, *, format: str | None = None
) -> SimulationConfig:
    """Read a ``SimulationConfig`` from the ``config`` section of a file or mapping."""

    if source is None:
        return SimulationConfig()
    mapping, label = _read_source(source, format=format)
    section = mapping.get("config", mapping)
    if not isinstance(section, dict):
        raise ConfigError(f"{label}::config must be a mapping")
    return SimulationConfig.from_dict(section)


def dump_snapshot(snapshot: Snapshot, path: str | Path) -> Path:
    """Write a snapshot as JSON or YAML depending on the file suffix."""

    path = Path(path)
    data = snapshot.to_dict()
    if path.suffix.lower() in {".yaml", ".yml"}:
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    else:
        text = json.dumps(data, indent=2, ensure_ascii=False)
    path.write_text(text, encoding="utf-8")
    return path


def _read_source(
    source: str | Path | dict[str, Any], *, format: str | None
) -> tuple[dict[str, Any], str]:
    if isinstance(source, dict):
        return deepcopy(source), "<mapping>"

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(path)

    fmt = (format or path.suffix.lstrip(".")).lower()
    text = path.read_text(encoding="utf-8")
    try:
        if fmt in {"yaml", "yml", ""}:
            data = yaml.safe_load(text)
        elif fmt == "json":
            data = json.loads(text)
        else:
            raise ConfigError(f"Unsupported snapshot format '{fmt}' for {path}")
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data, str(path)
