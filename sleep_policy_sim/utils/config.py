from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import yaml


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Read one simulation config file; an empty file is an empty mapping."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Simulation config not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Simulation config {path} is not valid YAML: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Simulation config {path} must hold a mapping at top level, got {type(data).__name__}")
    return data


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursive dict merge; values from override win."""
    out = dict(base)
    for k, v in override.items():
        if isinstance(out.get(k), dict) and isinstance(v, Mapping):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _parent_paths(path: Path, extends: Any) -> List[Path]:
    if isinstance(extends, (str, Path)):
        parents = [extends]
    elif isinstance(extends, list):
        parents = extends
    else:
        raise ValueError("Config key 'extends' must be a string or a list of strings.")

    out: List[Path] = []
    for parent in parents:
        p = Path(parent)
        out.append(p if p.is_absolute() else (path.parent / p).resolve())
    return out


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a simulation config. A config may inherit from others:
      extends: base.yaml
    or a list of files, resolved relative to the including file and
    merged in order, with the including file applied last.
    """
    path = Path(path)
    cfg = load_yaml(path)

    merged: Dict[str, Any] = {}
    extends = cfg.pop("extends", None)
    if extends:
        for parent_path in _parent_paths(path, extends):
            merged = _deep_merge(merged, load_config(parent_path))

    merged = _deep_merge(merged, cfg)
    merged.setdefault("_meta", {})
    merged["_meta"]["config_path"] = str(path.resolve())
    return merged


def ensure_dirs(cfg: Dict[str, Any]) -> Path:
    """
    Create the output directory named by:
      output:
        dir: out
    Returns it. Safe to call repeatedly.
    """
    output = cfg.get("output", {}) or {}
    out_dir = Path(output.get("dir", "out") if isinstance(output, dict) else "out")
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir
