"""
Observable Values

Holds a piece of state (remote availability, current user) and notifies
observers whenever it changes. Observers are called synchronously by the
setter; set values from the event loop thread.
"""

import logging
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ObservableValue(Generic[T]):
    """A value with change observers"""

    def __init__(self, initial: T, name: str = "value"):
        self._value = initial
        self._observers: List[Callable[[T], None]] = []
        self.name = name

    @property
    def value(self) -> T:
        return self._value

    def set(self, new_value: T) -> bool:
        """
        Update the value.

        Returns:
            True if observers were notified (the value changed)
        """
        if new_value == self._value:
            return False

        self._value = new_value
        for observer in list(self._observers):
            try:
                observer(new_value)
            except Exception as e:
                logger.error(f"Observer of {self.name} failed: {e}", exc_info=True)
        return True

    def observe(self, observer: Callable[[T], None]) -> Callable[[], None]:
        """
        Register an observer.

        Returns:
            Callable removing the observer
        """
        self._observers.append(observer)

        def _remove():
            if observer in self._observers:
                self._observers.remove(observer)

        return _remove

    def __repr__(self) -> str:
        return f"ObservableValue({self.name}={self._value!r})"
