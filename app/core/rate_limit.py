"""Brute-force protection for the authentication endpoints.

Each client key owns a :class:`RateLimitEntry` holding per-minute attempt
buckets and a lockout deadline. Entries carry their own lock, so requests from
different clients never contend with each other; the key map itself is only
touched through atomic ``dict`` operations.

Once a client reaches ``max_attempts`` inside the trailing ``window`` it is
locked out for ``lockout``. The request that reaches the threshold is blocked
as well. When the lockout elapses the entry is reset and the client starts
again with a clean history.
"""

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from app.core.logging import get_logger

logger = get_logger(__name__)


class RateLimitAuditor(Protocol):
    def log_rate_limit_violation(self, client_key: str, path: str) -> None: ...

    def log_account_lockout(self, client_key: str, reason: str) -> None: ...


@dataclass(frozen=True, slots=True)
class RateLimitRule:
    max_attempts: int = 5
    window: timedelta = timedelta(minutes=15)
    lockout: timedelta = timedelta(minutes=30)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.window <= timedelta(0) or self.lockout <= timedelta(0):
            raise ValueError("window and lockout must be positive durations")

    @property
    def retry_after(self) -> str:
        minutes = int(self.lockout.total_seconds() // 60)
        return f"{minutes} minutes"

    @property
    def retry_after_seconds(self) -> int:
        return int(self.lockout.total_seconds())


def _minute_bucket(timestamp: datetime) -> datetime:
    return timestamp.replace(second=0, microsecond=0)


@dataclass(slots=True)
class RateLimitEntry:
    attempts: dict[datetime, int] = field(default_factory=dict)
    locked_out: bool = False
    lockout_until: datetime | None = None
    evicted: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_attempt(self, timestamp: datetime) -> None:
        bucket = _minute_bucket(timestamp)
        self.attempts[bucket] = self.attempts.get(bucket, 0) + 1

    @property
    def attempt_count(self) -> int:
        return sum(self.attempts.values())

    def cleanup_old_attempts(self, cutoff: datetime) -> None:
        for bucket in [bucket for bucket in self.attempts if bucket < cutoff]:
            del self.attempts[bucket]

    def lock_until(self, until: datetime) -> None:
        self.locked_out = True
        self.lockout_until = until

    def reset(self) -> None:
        self.locked_out = False
        self.lockout_until = None
        self.attempts.clear()

    def is_locked_out(self, now: datetime) -> bool:
        return (
            self.locked_out
            and self.lockout_until is not None
            and now < self.lockout_until
        )

    def lockout_expired(self, now: datetime) -> bool:
        return self.locked_out and not self.is_locked_out(now)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LoginRateLimiter:
    def __init__(
        self,
        rule: RateLimitRule | None = None,
        protected_paths: Iterable[str] = ("/api/auth/login", "/api/auth/register"),
        auditor: RateLimitAuditor | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.rule = rule or RateLimitRule()
        self.protected_paths = tuple(protected_paths)
        self._auditor = auditor
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def applies_to(self, request_path: str) -> bool:
        return any(request_path.startswith(path) for path in self.protected_paths)

    def record_attempt_and_check(self, client_key: str, request_path: str) -> bool:
        """Record an attempt for ``client_key`` and return whether it may proceed."""
        if not self.applies_to(request_path):
            return True

        while True:
            entry = self._entries.get(client_key)
            if entry is None:
                entry = self._entries.setdefault(client_key, RateLimitEntry())

            with entry.lock:
                if entry.evicted:
                    # Removed by evict_stale() between lookup and lock; retry
                    # against the fresh entry.
                    continue
                allowed, locked_now = self._decide(entry, self._clock())
            break

        if locked_now:
            self._audit_lockout(client_key)
        elif not allowed:
            self._audit_violation(client_key, request_path)
        return allowed

    def is_locked_out(self, client_key: str) -> bool:
        entry = self._entries.get(client_key)
        if entry is None:
            return False
        with entry.lock:
            return entry.is_locked_out(self._clock())

    def evict_stale(self) -> int:
        """Drop entries with no attempts in the window and no active lockout."""
        now = self._clock()
        cutoff = now - self.rule.window
        evicted = 0

        for client_key, entry in list(self._entries.items()):
            with entry.lock:
                if entry.evicted or entry.is_locked_out(now):
                    continue
                entry.cleanup_old_attempts(cutoff)
                if entry.attempts:
                    continue
                entry.evicted = True
                self._entries.pop(client_key, None)
                evicted += 1

        if evicted:
            logger.debug("rate_limit_entries_evicted", count=evicted, remaining=len(self._entries))
        return evicted

    def _decide(self, entry: RateLimitEntry, now: datetime) -> tuple[bool, bool]:
        if entry.is_locked_out(now):
            return False, False

        if entry.lockout_expired(now):
            entry.reset()

        entry.cleanup_old_attempts(now - self.rule.window)
        entry.add_attempt(now)

        if entry.attempt_count >= self.rule.max_attempts:
            entry.lock_until(now + self.rule.lockout)
            return False, True
        return True, False

    def _audit_violation(self, client_key: str, request_path: str) -> None:
        if self._auditor is None:
            return
        try:
            self._auditor.log_rate_limit_violation(client_key, request_path)
        except Exception:
            logger.debug("rate_limit_audit_failed", client_key=client_key, exc_info=True)

    def _audit_lockout(self, client_key: str) -> None:
        if self._auditor is None:
            return
        window_minutes = int(self.rule.window.total_seconds() // 60)
        reason = (
            f"Rate limit exceeded - {self.rule.max_attempts} attempts "
            f"in {window_minutes} minutes"
        )
        try:
            self._auditor.log_account_lockout(client_key, reason)
        except Exception:
            logger.debug("rate_limit_audit_failed", client_key=client_key, exc_info=True)
