# src/music_deconv/utils.py
from __future__ import annotations
from pathlib import Path
from datetime import datetime
from typing import Any, List, Optional

_TRUE = {"1", "t", "true", "yes", "y", "on"}
_FALSE = {"0", "f", "false", "no", "n", "off", ""}


def timestamped_run_root(root_name: str = "music_runs") -> str:
    """~/music_runs/2025-10-27_153012"""
    stamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
    root = Path.home() / root_name / stamp
    root.mkdir(parents=True, exist_ok=True)
    return str(root)


def str_to_bool(v: Any) -> bool:
    """CLI flags arrive as strings ("true", "0", "yes", ...); real bools pass through."""
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValueError(f"Cannot interpret {v!r} as a boolean flag.")


def split_list_arg(v: Any) -> Optional[List[str]]:
    """
    Normalize a list-valued option: None/"" -> None, "a,b" -> ["a", "b"],
    a list of strings (nargs="*") is split on commas as well.
    """
    if v is None:
        return None
    items = [v] if isinstance(v, str) else list(v)
    out = [part.strip() for item in items for part in str(item).split(",")]
    out = [x for x in out if x]
    return out or None


__all__ = ["timestamped_run_root", "str_to_bool", "split_list_arg"]
