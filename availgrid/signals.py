from __future__ import annotations

from typing import Callable, List

Listener = Callable[[], None]


class ReleaseSignal:
    """
    Broadcast for "the pointer was released somewhere".

    A drag session subscribes while it is open so that a release outside the
    grid surface still ends it, and unsubscribes when it commits.
    """

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, fn: Listener) -> None:
        if fn not in self._listeners:
            self._listeners.append(fn)

    def unsubscribe(self, fn: Listener) -> None:
        if fn in self._listeners:
            self._listeners.remove(fn)

    def emit(self) -> int:
        # listeners may unsubscribe themselves while we iterate
        fired = list(self._listeners)
        for fn in fired:
            fn()
        return len(fired)

    def __len__(self) -> int:
        return len(self._listeners)


# one per process; editors hand their own instance to the board
pointer_released = ReleaseSignal()
