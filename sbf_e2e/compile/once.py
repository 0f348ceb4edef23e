"""A thread-safe cell whose initializer runs at most once."""

from __future__ import annotations

import threading
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class BuildOnce(Generic[T]):
    """Run an initializer exactly once and share its outcome with every caller.

    The first call to :meth:`get` runs the initializer under a lock. Callers arriving while it runs
    block on the same lock, then read the cached result. If the initializer raised, the same
    exception is re-raised to every caller, now and later; it is never run a second time.
    """

    def __init__(self, initializer: Callable[[], T]) -> None:
        self._initializer = initializer
        self._lock = threading.Lock()
        self._done = False
        self._value: Optional[T] = None
        self._error: Optional[BaseException] = None

    @property
    def done(self) -> bool:
        return self._done

    def get(self) -> T:
        if not self._done:
            with self._lock:
                if not self._done:
                    try:
                        self._value = self._initializer()
                    except BaseException as e:
                        self._error = e
                        raise
                    finally:
                        self._done = True
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]
