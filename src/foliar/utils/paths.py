"""Helpers for resolving configuration-relative paths."""

from __future__ import annotations

from pathlib import Path

from foliar.utils.io import StrPath


def resolve_path(path: StrPath, base: StrPath | None = None) -> Path:
    """Resolve ``path`` relative to ``base`` (or the working directory)."""

    raw = Path(path).expanduser()
    if raw.is_absolute():
        return raw
    if base is not None:
        return Path(base).expanduser().resolve() / raw
    return Path.cwd() / raw
