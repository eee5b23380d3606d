"""In-memory sliding-window rate limiter and account lockout.

Usage as a FastAPI dependency:

    from app.core.rate_limit import RateLimiter

    @router.post("/login")
    async def login(
        request: Request,
        _rl: None = Depends(RateLimiter(max_calls=10, window_seconds=60, key="login")),
    ):
        ...
"""

import time
from collections import defaultdict
from collections.abc import Callable
from threading import Lock

from fastapi import HTTPException, Request, status

# Stale keys are swept at most this often
SWEEP_INTERVAL_SECONDS = 60


class _SlidingWindowCounter:
    """Thread-safe sliding window rate counter."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._windows: dict[str, list[float]] = defaultdict(list)
        self._lock = Lock()
        self._clock = clock
        self._retention = 0
        self._last_sweep = float("-inf")

    def retain(self, window_seconds: int) -> None:
        """Keep keys at least this long; the longest window wins."""
        with self._lock:
            self._retention = max(self._retention, window_seconds)

    def is_allowed(self, key: str, max_calls: int, window_seconds: int) -> bool:
        now = self._clock()
        cutoff = now - window_seconds
        with self._lock:
            self._windows[key] = [t for t in self._windows[key] if t > cutoff]
            if len(self._windows[key]) >= max_calls:
                return False
            self._windows[key].append(now)
            return True

    def record(self, key: str) -> None:
        """Record an event without checking limits (for lockout tracking)."""
        with self._lock:
            self._windows[key].append(self._clock())

    def count(self, key: str, window_seconds: int) -> int:
        """Count events within the window."""
        cutoff = self._clock() - window_seconds
        with self._lock:
            recent = [t for t in self._windows.get(key, []) if t > cutoff]
            if recent:
                self._windows[key] = recent
            else:
                self._windows.pop(key, None)
            return len(recent)

    def clear(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)

    def cleanup(self) -> None:
        """Evict keys with no event inside the retention horizon.

        Runs at most once per ``SWEEP_INTERVAL_SECONDS``.
        """
        now = self._clock()
        with self._lock:
            if now - self._last_sweep < SWEEP_INTERVAL_SECONDS:
                return
            self._last_sweep = now
            cutoff = now - self._retention
            stale_keys = [k for k, v in self._windows.items() if not v or v[-1] <= cutoff]
            for k in stale_keys:
                del self._windows[k]

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def reset(self) -> None:
        """Forget every key."""
        with self._lock:
            self._windows.clear()
            self._last_sweep = float("-inf")


# Module-level singleton
_counter = _SlidingWindowCounter()


# --- Account Lockout ---

LOGIN_LOCKOUT_MAX_ATTEMPTS = 5
LOGIN_LOCKOUT_WINDOW_SECONDS = 900  # 15 minutes

_counter.retain(LOGIN_LOCKOUT_WINDOW_SECONDS)


def _lockout_key(user_name: str) -> str:
    return f"login_fail:{user_name.lower()}"


def record_failed_login(user_name: str) -> None:
    _counter.cleanup()
    _counter.record(_lockout_key(user_name))


def clear_failed_logins(user_name: str) -> None:
    _counter.clear(_lockout_key(user_name))


def is_account_locked(user_name: str) -> bool:
    """Check if an account is locked out due to too many failed attempts."""
    return (
        _counter.count(_lockout_key(user_name), LOGIN_LOCKOUT_WINDOW_SECONDS)
        >= LOGIN_LOCKOUT_MAX_ATTEMPTS
    )


def reset_rate_limits() -> None:
    _counter.reset()


class RateLimiter:
    """FastAPI dependency that enforces per-client rate limits.

    Parameters:
        max_calls: Maximum number of calls within the window.
        window_seconds: Sliding window duration in seconds.
        key: A string prefix to namespace this limiter (e.g. "login").
    """

    def __init__(self, max_calls: int, window_seconds: int = 60, key: str = "default") -> None:
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self.key = key
        _counter.retain(window_seconds)

    async def __call__(self, request: Request) -> None:
        _counter.cleanup()
        rate_key = f"{self.key}:{self._get_ip(request)}"
        if not _counter.is_allowed(rate_key, self.max_calls, self.window_seconds):
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=(
                    f"Rate limit exceeded. Maximum {self.max_calls} requests "
                    f"per {self.window_seconds} seconds."
                ),
            )

    @staticmethod
    def _get_ip(request: Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            # Rightmost entry is the one appended by the trusted proxy
            return forwarded.split(",")[-1].strip()
        if request.client:
            return request.client.host
        return "unknown"
