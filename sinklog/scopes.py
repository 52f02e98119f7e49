from __future__ import annotations
from contextvars import ContextVar
from typing import Any, Callable, Optional, Tuple, TypeVar

T = TypeVar("T")

# (owning ScopeProvider, entry id, state), outermost first
_Entry = Tuple["ScopeProvider", object, Any]

_SCOPES: ContextVar[Tuple[_Entry, ...]] = ContextVar("sinklog_scopes", default=())


class Scope:
    """Handle for one pushed scope; closing removes exactly that entry."""

    def __init__(self, provider: ScopeProvider, entry_id: object, state: Any):
        self._provider = provider
        self._entry_id = entry_id
        self.state = state

    def close(self) -> None:
        self._provider._remove(self._entry_id)

    def __enter__(self) -> Scope:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class ScopeProvider:
    """Stack of open scopes, local to the calling thread or asyncio task.

    All providers share one context variable; each only sees its own entries.
    """

    def push(self, state: Any) -> Scope:
        entry_id = object()
        _SCOPES.set(_SCOPES.get() + ((self, entry_id, state),))
        return Scope(self, entry_id, state)

    def _remove(self, entry_id: object) -> None:
        chain = _SCOPES.get()
        remaining = tuple(entry for entry in chain if entry[1] is not entry_id)
        if len(remaining) != len(chain):
            _SCOPES.set(remaining)

    def scopes(self) -> Tuple[Any, ...]:
        """Open scope states, outermost first."""

        return tuple(state for owner, _, state in _SCOPES.get() if owner is self)

    def for_each_scope(self, callback: Callable[[Any, T], Optional[Any]], state: T) -> None:
        for scope in self.scopes():
            callback(scope, state)
