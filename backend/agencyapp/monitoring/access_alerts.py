"""
Operational alerts raised by the access guard.

- Fetch failures: profile or subscription rows could not be read, so the
  agent was let through on the default 14-day trial. Logged at ERROR.
- Block storms: one agent collecting many 402 TRIAL_EXPIRED responses in a
  minute. Usually a screen that ignores redirect_to and keeps retrying.

Block events are counted in process memory; each worker counts its own.
"""

import logging
import time
from collections import deque
from typing import Deque, Dict, List, Optional

logger = logging.getLogger(__name__)

BLOCK_WINDOW_SECONDS = 60
BLOCK_THRESHOLD_PER_MIN = 10


def emit_record_fetch_failure(user_id: str, error: Exception) -> None:
    """Report that access records could not be read and the default trial was used."""
    logger.error(
        "Access record fetch failed; default trial applied",
        extra={
            "user_id": user_id,
            "error": str(error),
            "error_type": type(error).__name__,
            "fallback": "default_trial",
        },
    )


class BlockEventWindow:
    """
    Sliding window of block events per user.

    Users whose events have all aged out of the window are forgotten, so the
    map only holds agents blocked within the last window.
    """

    def __init__(self, window_seconds: float = BLOCK_WINDOW_SECONDS, threshold: int = BLOCK_THRESHOLD_PER_MIN):
        self.window_seconds = window_seconds
        self.threshold = threshold
        self._events: Dict[str, Deque[float]] = {}

    def prune(self, now: float) -> None:
        cutoff = now - self.window_seconds
        for user_id in list(self._events):
            events = self._events[user_id]
            while events and events[0] <= cutoff:
                events.popleft()
            if not events:
                del self._events[user_id]

    def record(self, user_id: str, now: float) -> int:
        """Record one block event and return the user's count inside the window."""
        self.prune(now)
        events = self._events.setdefault(user_id, deque())
        events.append(now)
        return len(events)

    def first_event_at(self, user_id: str) -> Optional[float]:
        events = self._events.get(user_id)
        return events[0] if events else None

    def tracked_users(self) -> List[str]:
        return sorted(self._events)

    def clear(self) -> None:
        self._events.clear()


_block_window = BlockEventWindow()


def record_block_and_alert(user_id: str, path: str, now: Optional[float] = None) -> int:
    """
    Record a 402 block for the user and alert when the count reaches the threshold.

    The alert fires once per storm: when the count in the window first hits
    the threshold, not on every block after it.

    Returns:
        Number of blocks for the user inside the current window.
    """
    current = now if now is not None else time.time()
    count = _block_window.record(user_id, current)
    if count == _block_window.threshold:
        emit_block_alert(
            user_id,
            path,
            count,
            first_seen_at=_block_window.first_event_at(user_id),
        )
    return count


def emit_block_alert(user_id: str, path: str, count: int, first_seen_at: Optional[float] = None) -> None:
    """Alert on repeated block events (>N/min), usually a client redirect loop."""
    logger.warning(
        "Repeated access block events",
        extra={
            "user_id": user_id,
            "path": path,
            "count_per_window": count,
            "window_seconds": _block_window.window_seconds,
            "first_seen_at": first_seen_at,
        },
    )


def get_block_window() -> BlockEventWindow:
    return _block_window


def reset_block_counts() -> None:
    """Forget all recorded block events (for tests)."""
    _block_window.clear()
