from collections import deque
from datetime import datetime, timedelta
from threading import Lock
from typing import Protocol

from src.adapters.clock import SystemClock
from src.rules.models import RateLimitRules, RateLimitWindow


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...


class RateLimiter:
    """
    In-process sliding window limiter.

    Keys are ``"{purpose}:{client}"`` where client is an IP address or, for
    phone verification, the invite code. State is per process.
    """

    def __init__(self, rules: RateLimitRules, time_port: TimePort | None = None):
        self.rules = rules
        self._time = time_port if time_port is not None else SystemClock()
        self._hits: dict[str, deque[datetime]] = {}
        self._lock = Lock()

    def _prune(self, key: str, now: datetime, window: int) -> deque[datetime]:
        hits = self._hits.setdefault(key, deque())
        cutoff = now - timedelta(seconds=window)
        while hits and hits[0] <= cutoff:
            hits.popleft()
        return hits

    def allow_request(self, key: str, window: int, limit: int) -> bool:
        """Record an attempt for ``key`` and return False once ``limit`` is reached."""
        if limit <= 0:
            return False

        with self._lock:
            now = self._time.now_utc()
            hits = self._prune(key, now, window)
            if len(hits) >= limit:
                return False
            hits.append(now)
            return True

    def retry_after(self, key: str, window: int) -> int:
        """Seconds until the oldest attempt in the window expires."""
        with self._lock:
            now = self._time.now_utc()
            hits = self._prune(key, now, window)
            if not hits:
                return 0
            remaining = hits[0] + timedelta(seconds=window) - now
            return max(0, int(remaining.total_seconds()))

    def _check(self, name: str, cfg: RateLimitWindow, client: str, default_limit: int) -> bool:
        limit = cfg.max_attempts or cfg.max_requests or default_limit
        return self.allow_request(f"{name}:{client}", cfg.window_seconds, limit)

    def check_login(self, ip: str) -> bool:
        return self._check("login", self.rules.login, ip, 5)

    def check_newsletter(self, ip: str) -> bool:
        return self._check("newsletter", self.rules.newsletter, ip, 10)

    def check_affiliate_track(self, ip: str) -> bool:
        return self._check("affiliate_track", self.rules.affiliate_track, ip, 30)

    def check_phone_verification(self, invite_code: str) -> bool:
        return self._check("phone_verification", self.rules.phone_verification, invite_code, 3)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
