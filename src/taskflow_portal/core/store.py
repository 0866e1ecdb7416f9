# src/taskflow_portal/core/store.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from .actions import Action, describe
from .reducer import reduce
from .state import AppState

logger = logging.getLogger(__name__)

Listener = Callable[[AppState, AppState], None]


class PortalStore:
    """
    Thread-confined owner of the live AppState.

    - dispatch() runs the reducer and then notifies listeners with (old, new)
    - the store is bound to the thread that created it; dispatching from any
      other thread is a programming error and raises RuntimeError
    - listener failures are logged and never undo a committed state
    """

    def __init__(self, state: AppState | None = None) -> None:
        self._state = state if state is not None else AppState()
        self._owner = threading.get_ident()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def dispatch(self, action: Action) -> AppState:
        if threading.get_ident() != self._owner:
            raise RuntimeError("PortalStore.dispatch called from a foreign thread")

        old = self._state
        new = reduce(old, action)
        self._state = new
        logger.debug("dispatch %s", describe(action))

        if new is not old:
            for listener in list(self._listeners):
                try:
                    listener(old, new)
                except Exception:
                    logger.exception("Store listener failed after %s", describe(action))
        return new
