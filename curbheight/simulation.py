"""Deferred work queued for the host's next simulation tick."""

import logging
from collections import deque
from typing import Callable, Deque, Iterable

logger = logging.getLogger(__name__)


class ActionQueue:
    """Enqueue-only from this package; the host drains it on its own tick."""

    def __init__(self):
        self._actions: Deque[Callable[[], None]] = deque()

    def add_action(self, action: Callable[[], None]) -> None:
        self._actions.append(action)

    @property
    def pending(self) -> int:
        return len(self._actions)

    def run_pending(self) -> int:
        """Run queued actions in order; returns how many ran.

        A failing action is logged and does not stop the rest.
        """
        count = 0
        while self._actions:
            action = self._actions.popleft()
            count += 1
            try:
                action()
            except Exception:
                logger.exception(f"deferred action {getattr(action, '__name__', action)} failed")
        return count


class HostHooks:
    """Host-side recomputation, only ever invoked from queued actions.

    Override these to rebuild placed segment lanes and bridge node pillars.
    """

    def update_lanes(self, networks: Iterable) -> None:
        logger.debug(f"lane update requested for {len(list(networks))} networks")

    def update_pillars(self, networks: Iterable) -> None:
        logger.debug(f"pillar update requested for {len(list(networks))} networks")
