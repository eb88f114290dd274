"""
Inactivity logout using Redis last-activity timestamps.

Agents who make no request for INACTIVITY_TIMEOUT_SECONDS are signed out:
every authenticated request after that is rejected with 401 SESSION_EXPIRED
until the agent signs in again and presents a newly issued token.

Features:
- Per-user last-activity timestamp with TTL slightly beyond the timeout
- Per-user sign-out marker; tokens issued before it are refused
- A token's `iat` counts as activity, so a fresh sign-in is never idle
- Kill switch via INACTIVITY_LOGOUT_ENABLED
- Graceful degradation if Redis is unavailable (allow request, log warning)

Configuration (environment variables):
- INACTIVITY_TIMEOUT_SECONDS: Idle timeout in seconds (default: "300")
- INACTIVITY_LOGOUT_ENABLED:  Kill switch (default: "true")
- REDIS_URL:                  Redis connection URL (default: "redis://localhost:6379/0")
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional

import redis

from agencyapp.config.access import INACTIVITY_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

# Sign-out markers outlive any access token the auth service issues
SIGNED_OUT_MARKER_TTL_SECONDS = 24 * 60 * 60


@dataclass
class ActivityCheckResult:
    """
    Result of an inactivity check.

    Attributes:
        expired:      Whether the session is signed out for inactivity.
        idle_seconds: Seconds since the last known activity (0 if none).
    """

    expired: bool
    idle_seconds: float


class InactivityTracker:
    """
    Redis-backed last-activity tracker.

    Last activity is the later of the stored timestamp and the token's issue
    time. A session idle past the timeout is signed out: the activity key is
    dropped and a sign-out marker is written. While the marker exists, any
    token issued before it is refused, so retrying with the same token keeps
    failing. A token issued after the marker (a new sign-in) clears it.

    If Redis is unavailable the tracker degrades gracefully: the session is
    treated as active and a warning is logged.
    """

    def __init__(self, redis_url: str, timeout_seconds: int = 300):
        self.redis_url = redis_url
        self.timeout_seconds = timeout_seconds
        self._redis: Optional[redis.Redis] = None

    def _get_redis(self) -> redis.Redis:
        """Get or create a Redis connection lazily."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
        return self._redis

    @staticmethod
    def _activity_key(user_id: str) -> str:
        return f"session:last_activity:{user_id}"

    @staticmethod
    def _signed_out_key(user_id: str) -> str:
        return f"session:signed_out_at:{user_id}"

    def _mark_signed_out(self, r: redis.Redis, user_id: str, current: float) -> None:
        r.delete(self._activity_key(user_id))
        # Whole seconds, to compare against the integer `iat` claim
        r.setex(self._signed_out_key(user_id), SIGNED_OUT_MARKER_TTL_SECONDS, str(int(current)))

    def check_and_touch(
        self,
        user_id: str,
        issued_at: Optional[float] = None,
        now: Optional[float] = None,
    ) -> ActivityCheckResult:
        """
        Check whether the user's session is signed out and record activity.

        Args:
            user_id:   Authenticated user ID (from the session token).
            issued_at: The token's `iat` claim, if present.
            now:       Current unix time; defaults to time.time().

        Returns:
            :class:`ActivityCheckResult` describing the outcome.
        """
        current = now if now is not None else time.time()

        try:
            r = self._get_redis()

            signed_out_at = r.get(self._signed_out_key(user_id))
            if signed_out_at is not None:
                signed_out_at = float(signed_out_at)
                if issued_at is None or issued_at < signed_out_at:
                    return ActivityCheckResult(expired=True, idle_seconds=current - signed_out_at)
                r.delete(self._signed_out_key(user_id))

            previous = r.get(self._activity_key(user_id))
            seen = [float(previous)] if previous is not None else []
            if issued_at is not None:
                seen.append(issued_at)
            idle = max(current - max(seen), 0.0) if seen else 0.0

            if idle > self.timeout_seconds:
                self._mark_signed_out(r, user_id, current)
                return ActivityCheckResult(expired=True, idle_seconds=idle)

            r.setex(self._activity_key(user_id), self.timeout_seconds + 60, str(current))
            return ActivityCheckResult(expired=False, idle_seconds=idle)

        except (redis.ConnectionError, redis.TimeoutError, redis.RedisError) as exc:
            logger.warning(
                "Redis unavailable for inactivity tracking - allowing request (fail-open)",
                extra={
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                    "user_id": user_id,
                },
            )
            return ActivityCheckResult(expired=False, idle_seconds=0.0)

    def sign_out(self, user_id: str, now: Optional[float] = None) -> None:
        """Explicit sign-out: refuse the user's current tokens from now on."""
        current = now if now is not None else time.time()
        try:
            self._mark_signed_out(self._get_redis(), user_id, current)
        except redis.RedisError as exc:
            logger.warning(
                "Failed to record sign-out",
                extra={"error": str(exc), "user_id": user_id},
            )


_tracker_instance: Optional[InactivityTracker] = None


def get_inactivity_tracker() -> InactivityTracker:
    """
    Return the module-level :class:`InactivityTracker` singleton.

    Creates the instance on first call using ``REDIS_URL`` and
    ``INACTIVITY_TIMEOUT_SECONDS``.
    """
    global _tracker_instance
    if _tracker_instance is None:
        redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
        _tracker_instance = InactivityTracker(
            redis_url=redis_url,
            timeout_seconds=INACTIVITY_TIMEOUT_SECONDS,
        )
    return _tracker_instance


def reset_inactivity_tracker() -> None:
    """Reset the singleton (for tests)."""
    global _tracker_instance
    _tracker_instance = None
