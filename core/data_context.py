"""Data context: named datasets with change notification.

Handlers store results with put_data_set(); anything bound to a key
(template fields, dependent requests) subscribes with register_listener()
and is called back synchronously, in registration order, before
put_data_set() returns. Listeners on "*" see every change.

Values that are not available yet can be registered with
put_data_result(). The resolver runs on first read and may deliver its
value immediately or later; every delivery behaves like put_data_set().
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Union

from config import WILDCARD_KEY

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]
Deliver = Callable[[Any], None]
Resolver = Callable[[Deliver], None]


class _ResultProvider:
    """Placeholder for a dataset whose value is computed on demand."""

    __slots__ = ("resolver", "started")

    def __init__(self, resolver: Resolver):
        self.resolver = resolver
        self.started = False


class DataContext:
    """Key/value store of datasets with pub/sub on mutation."""

    def __init__(self):
        self._data: Dict[str, Any] = {}
        self._subscribers: Dict[str, List[Listener]] = {}

    # ------------------------------------------------------------------
    # Datasets
    # ------------------------------------------------------------------

    def put_data_set(self, key: str, value: Any):
        """Store a dataset and notify listeners.

        None never overwrites an existing value.
        """
        # NOTE: there is no way to remove a dataset; None writes are dropped
        # once a key holds data.
        if value is None and key in self._data:
            logger.debug("Ignoring empty write to dataset %s", key)
            return
        self._data[key] = value
        self._fire(key)

    def get_data_set(self, key: str) -> Any:
        """Return the dataset for key, or None if absent."""
        entry = self._data.get(key)
        if isinstance(entry, _ResultProvider):
            self._start(key, entry)
            entry = self._data.get(key)
            if isinstance(entry, _ResultProvider):
                return None
        return entry

    def put_data_result(self, key: str, resolver: Resolver):
        """Register a lazily computed dataset.

        The resolver is called once, on first read, with a deliver(value)
        callback. Each delivery stores the value and fires listeners.
        """
        self._data[key] = _ResultProvider(resolver)

    def _start(self, key: str, provider: _ResultProvider):
        if provider.started:
            return
        provider.started = True
        logger.debug("Resolving deferred dataset %s", key)
        provider.resolver(lambda value: self.put_data_set(key, value))

    def is_data_ready(self, keys: Iterable[str]) -> bool:
        """True when every key holds a non-None value."""
        return all(self.get_data_set(key) is not None for key in keys)

    def keys(self) -> List[str]:
        return list(self._data)

    def snapshot(self) -> Dict[str, Any]:
        """Return all datasets, resolving deferred ones."""
        return {key: self.get_data_set(key) for key in list(self._data)}

    def clear(self):
        """Drop every dataset and listener."""
        self._data.clear()
        self._subscribers.clear()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def register_listener(self, keys: Union[str, Iterable[str]], callback: Listener):
        """Call callback(key) whenever any of keys changes. "*" means all keys."""
        if isinstance(keys, str):
            keys = [keys]
        for key in dict.fromkeys(keys):
            if key not in self._subscribers:
                self._subscribers[key] = []
            self._subscribers[key].append(callback)

    def unregister_listener(self, keys: Union[str, Iterable[str]], callback: Listener):
        """Remove a callback."""
        if isinstance(keys, str):
            keys = [keys]
        for key in keys:
            if key in self._subscribers:
                self._subscribers[key] = [
                    cb for cb in self._subscribers[key] if cb is not callback
                ]

    def register_ready_listener(self, keys: Iterable[str], callback: Listener):
        """Call callback(key) once, when all keys first hold data.

        Fires immediately (with key None) if they already do.
        """
        keys = list(dict.fromkeys(keys))
        if self.is_data_ready(keys):
            callback(None)
            return

        def on_change(key: str):
            if self.is_data_ready(keys):
                self.unregister_listener(keys, on_change)
                callback(key)

        self.register_listener(keys, on_change)

    def _fire(self, key: str):
        callbacks = list(self._subscribers.get(key, []))
        if key != WILDCARD_KEY:
            callbacks += self._subscribers.get(WILDCARD_KEY, [])
        for cb in callbacks:
            try:
                cb(key)
            except Exception as exc:
                logger.error("DataContext listener error [%s]: %s", key, exc)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"<DataContext keys={sorted(self._data)}>"
