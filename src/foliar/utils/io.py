"""Filesystem helpers for the result writers."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

StrPath = str | os.PathLike[str]


def ensure_parent(path: StrPath) -> Path:
    """Create the directory that will hold ``path``; return it as a :class:`Path`."""
    destination = Path(path).expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)
    return destination


def write_json(path: StrPath, payload: Mapping[str, Any]) -> Path:
    destination = ensure_parent(path)
    destination.write_text(json.dumps(dict(payload), indent=2) + "\n", encoding="utf-8")
    return destination
