"""Script runtime: the shared symbol space and the loaded-unit registry."""

from hotload.runtime.loader import ScriptLoader, expand_path
from hotload.runtime.space import SymbolSpace

__all__ = [
    "ScriptLoader",
    "SymbolSpace",
    "expand_path",
]
