"""Shared symbol space that script units are executed into.

Every loaded script runs against the same globals mapping, so a class or
value defined at the top level of one script is visible to every script
loaded after it. The space can enumerate what is currently defined and
delete individual definitions by name, which is what the reload engine
needs to infer what a load introduced and to undo it.
"""

import builtins
from collections.abc import Iterator
from typing import Any

SEPARATOR = "."


class SymbolSpace:
    """Engine-owned namespace holding every top-level script definition.

    Symbols are named hierarchically: a top-level ``Router`` is ``"Router"``
    and a class ``Route`` defined inside it is ``"Router.Route"``.
    """

    def __init__(self, name: str = "__hotload__"):
        self._builtins: dict[str, Any] = dict(vars(builtins))
        self._globals: dict[str, Any] = {
            "__name__": name,
            "__builtins__": self._builtins,
        }

    @property
    def namespace(self) -> dict[str, Any]:
        """The globals mapping scripts are executed with."""
        return self._globals

    def add_builtin(self, name: str, value: Any) -> None:
        """Expose a helper to scripts without it becoming a symbol."""
        self._builtins[name] = value

    def __contains__(self, symbol: str) -> bool:
        try:
            self.resolve(symbol)
        except (KeyError, AttributeError):
            return False
        return True

    def __getitem__(self, symbol: str) -> Any:
        return self.resolve(symbol)

    def get(self, symbol: str, default: Any = None) -> Any:
        try:
            return self.resolve(symbol)
        except (KeyError, AttributeError):
            return default

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.snapshot()))

    def __len__(self) -> int:
        return len(self.snapshot())

    def resolve(self, symbol: str) -> Any:
        """Look up a dotted symbol name.

        Raises:
            KeyError: If the top-level name is not defined.
            AttributeError: If a nested part is missing.
        """
        head, *rest = symbol.split(SEPARATOR)
        if _is_dunder(head):
            raise KeyError(symbol)
        obj = self._globals[head]
        for part in rest:
            obj = getattr(obj, part)
        return obj

    def snapshot(self) -> set[str]:
        """Return the names of everything currently defined in the space."""
        symbols: set[str] = set()
        for name, value in list(self._globals.items()):
            if _is_dunder(name):
                continue
            symbols.add(name)
            if isinstance(value, type):
                _collect_nested(value, name, symbols)
        return symbols

    def remove(self, symbol: str) -> bool:
        """Delete a symbol from the space.

        Returns:
            True if something was removed, False if it no longer existed.
        """
        parts = symbol.split(SEPARATOR)
        if len(parts) == 1:
            if _is_dunder(symbol) or symbol not in self._globals:
                return False
            del self._globals[symbol]
            return True

        try:
            owner = self.resolve(SEPARATOR.join(parts[:-1]))
            delattr(owner, parts[-1])
        except (KeyError, AttributeError, TypeError):
            return False
        return True


def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


def _collect_nested(owner: type, prefix: str, symbols: set[str]) -> None:
    # Only follow classes that were defined inside the owner, not aliases.
    for attr, value in vars(owner).items():
        if not isinstance(value, type) or _is_dunder(attr):
            continue
        if value.__qualname__ != f"{owner.__qualname__}.{attr}":
            continue
        name = f"{prefix}{SEPARATOR}{attr}"
        symbols.add(name)
        _collect_nested(value, name, symbols)
