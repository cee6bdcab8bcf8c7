from __future__ import annotations

import threading
from typing import Any, Callable, Mapping

Listener = Callable[[dict[str, Any]], None]


class StateContainer:
    """Observable key/value state; every write goes through ``set`` or ``update``."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._state: dict[str, Any] = dict(initial or {})
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._state.get(key, default)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._state)

    def set(self, **changes: Any) -> None:
        with self._lock:
            self._state.update(changes)
            snapshot = dict(self._state)
        self._notify(snapshot)

    def update(self, key: str, fn: Callable[[Any], Any]) -> Any:
        """Atomically replace ``key`` with ``fn(current)`` and return the new value."""
        with self._lock:
            value = fn(self._state.get(key))
            self._state[key] = value
            snapshot = dict(self._state)
        self._notify(snapshot)
        return value

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, snapshot: dict[str, Any]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(snapshot)
