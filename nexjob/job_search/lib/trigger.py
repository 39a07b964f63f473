"""
Incremental load trigger: fire `load()` when the sentinel under the result
list scrolls into view.

The caller feeds geometry (`ScrollObservation`) instead of a browser
observer. The sentinel counts as visible when at least `threshold` of its
height intersects the viewport extended by `root_margin` pixels at the
bottom, so loading starts a little before the user reaches the end.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

LOG = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.8
DEFAULT_ROOT_MARGIN = 200


@dataclass(frozen=True)
class ScrollObservation:
    """Vertical geometry in page coordinates (pixels)."""

    viewport_top: float
    viewport_height: float
    sentinel_top: float
    sentinel_height: float = 1.0

    def intersection_ratio(self, root_margin: float = 0) -> float:
        if self.sentinel_height <= 0:
            return 0.0
        root_top = self.viewport_top
        root_bottom = self.viewport_top + self.viewport_height + root_margin
        top = max(root_top, self.sentinel_top)
        bottom = min(root_bottom, self.sentinel_top + self.sentinel_height)
        return max(0.0, bottom - top) / self.sentinel_height


class TriggerState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


class IncrementalLoadTrigger:
    """
    IDLE -> PENDING when a qualifying observation fires `load()`;
    PENDING -> IDLE when `complete()` is called for the triggered fetch,
    or right away when `load()` returns False (nothing was started).

    Gates are callables so the trigger never holds a stale copy of the
    fetcher's flags:
      has_more()   more pages are available
      searching()  a page-1 search is in flight
    """

    def __init__(
        self,
        load: Callable[[], object],
        threshold: float = DEFAULT_THRESHOLD,
        root_margin: float = DEFAULT_ROOT_MARGIN,
        *,
        has_more: Callable[[], bool] = lambda: True,
        searching: Callable[[], bool] = lambda: False,
    ) -> None:
        if not 0.0 < threshold <= 1.0:
            raise ValueError("threshold must be within (0, 1]")
        if root_margin < 0:
            raise ValueError("root_margin must be >= 0")
        self._load = load
        self.threshold = float(threshold)
        self.root_margin = root_margin
        self._has_more = has_more
        self._searching = searching
        self._state = TriggerState.IDLE
        self._lock = threading.Lock()

    @property
    def state(self) -> TriggerState:
        return self._state

    def is_visible(self, observation: ScrollObservation) -> bool:
        return observation.intersection_ratio(self.root_margin) >= self.threshold

    def observe(self, observation: ScrollObservation) -> bool:
        """Returns True when this observation fired a load."""
        if not self.is_visible(observation):
            return False
        return self.request()

    def request(self) -> bool:
        """Fire `load()` if the gates allow it, regardless of geometry."""
        with self._lock:
            if self._state is not TriggerState.IDLE:
                return False
            if not self._has_more() or self._searching():
                return False
            self._state = TriggerState.PENDING

        LOG.debug("Sentinel visible; requesting next page")
        try:
            started = self._load()
        except Exception:
            # load() could not even be scheduled; allow the next observation to retry
            self.complete()
            raise
        if started is False:
            # load() re-checked its own gates and declined
            self.complete()
            return False
        return True

    def complete(self) -> None:
        """The triggered fetch finished (success or failure)."""
        with self._lock:
            self._state = TriggerState.IDLE
