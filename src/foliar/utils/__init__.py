from .io import ensure_parent, write_json
from .logging import get_logger, set_level
from .paths import resolve_path

__all__ = [
    "ensure_parent",
    "get_logger",
    "resolve_path",
    "set_level",
    "write_json",
]
