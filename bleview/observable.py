"""Current-value publisher used by the view-model.

Subscribers receive the current value immediately on subscribe and
then every subsequent change, in the same way transports push a state
snapshot to new subscribers.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Observable(Generic[T]):
    """Holds a value and notifies subscribers when it is assigned."""

    def __init__(self, initial: T, name: str = "value"):
        self._value = initial
        self._name = name
        self._callbacks: List[Callable[[T], None]] = []
        self._callback_lock = threading.Lock()

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self._value = new_value
        self._notify(new_value)

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Subscribe to value changes.

        Args:
            callback: Function called with the current value now and
                with every new value later

        Returns:
            Unsubscribe function
        """
        with self._callback_lock:
            self._callbacks.append(callback)

        try:
            callback(self._value)
        except Exception as e:
            logger.error(f"Error in {self._name} subscriber: {e}")

        def unsubscribe():
            with self._callback_lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unsubscribe

    def _notify(self, value: T) -> None:
        with self._callback_lock:
            callbacks = list(self._callbacks)

        for callback in callbacks:
            try:
                callback(value)
            except Exception as e:
                logger.error(f"Error in {self._name} subscriber: {e}")

    def __repr__(self) -> str:
        return f"Observable({self._name}={self._value!r})"
