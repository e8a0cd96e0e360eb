from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from app.core.rate_limit import LoginRateLimiter, RateLimitEntry, RateLimitRule
from tests.unit.fakes import FakeClock

LOGIN = "/api/auth/login"
REGISTER = "/api/auth/register"


class RecordingAuditor:
    def __init__(self) -> None:
        self.violations: list[tuple[str, str]] = []
        self.lockouts: list[tuple[str, str]] = []

    def log_rate_limit_violation(self, client_key: str, path: str) -> None:
        self.violations.append((client_key, path))

    def log_account_lockout(self, client_key: str, reason: str) -> None:
        self.lockouts.append((client_key, reason))


class BrokenAuditor:
    def log_rate_limit_violation(self, client_key: str, path: str) -> None:
        raise RuntimeError("audit sink unavailable")

    def log_account_lockout(self, client_key: str, reason: str) -> None:
        raise RuntimeError("audit sink unavailable")


def make_limiter(clock: FakeClock, **kwargs) -> LoginRateLimiter:
    return LoginRateLimiter(clock=clock, **kwargs)


def attempt(limiter: LoginRateLimiter, key: str, times: int, path: str = LOGIN) -> list[bool]:
    return [limiter.record_attempt_and_check(key, path) for _ in range(times)]


def test_fewer_than_max_attempts_are_allowed() -> None:
    limiter = make_limiter(FakeClock())

    assert attempt(limiter, "10.0.0.1", 4) == [True, True, True, True]
    assert not limiter.is_locked_out("10.0.0.1")


def test_fifth_attempt_locks_out_and_is_blocked() -> None:
    limiter = make_limiter(FakeClock())

    assert attempt(limiter, "10.0.0.1", 5) == [True, True, True, True, False]
    assert limiter.is_locked_out("10.0.0.1")


def test_documented_example_for_single_client() -> None:
    clock = FakeClock()
    limiter = make_limiter(clock)

    results = []
    for _ in range(5):
        results.append(limiter.record_attempt_and_check("1.2.3.4", LOGIN))
        clock.advance(seconds=10)
    assert results == [True, True, True, True, False]

    clock.advance(minutes=10)
    assert limiter.record_attempt_and_check("1.2.3.4", LOGIN) is False

    clock.advance(minutes=21)
    assert limiter.record_attempt_and_check("1.2.3.4", LOGIN) is True


def test_every_request_is_blocked_until_lockout_expires() -> None:
    clock = FakeClock()
    limiter = make_limiter(clock)
    attempt(limiter, "10.0.0.1", 5)

    for _ in range(5):
        clock.advance(minutes=5)
        assert limiter.record_attempt_and_check("10.0.0.1", LOGIN) is False

    clock.advance(minutes=4, seconds=59)
    assert limiter.record_attempt_and_check("10.0.0.1", LOGIN) is False


def test_history_is_cleared_after_lockout_expires() -> None:
    clock = FakeClock()
    limiter = make_limiter(clock)
    attempt(limiter, "10.0.0.1", 5)

    clock.advance(minutes=30)

    assert attempt(limiter, "10.0.0.1", 4) == [True, True, True, True]
    assert limiter.record_attempt_and_check("10.0.0.1", LOGIN) is False


def test_attempts_older_than_window_are_not_counted() -> None:
    clock = FakeClock()
    limiter = make_limiter(clock)

    assert attempt(limiter, "10.0.0.1", 4) == [True] * 4
    clock.advance(minutes=16)

    assert attempt(limiter, "10.0.0.1", 4) == [True] * 4
    assert not limiter.is_locked_out("10.0.0.1")


def test_attempts_inside_window_accumulate_across_minutes() -> None:
    clock = FakeClock()
    limiter = make_limiter(clock)

    for _ in range(4):
        assert limiter.record_attempt_and_check("10.0.0.1", LOGIN) is True
        clock.advance(minutes=3)

    assert limiter.record_attempt_and_check("10.0.0.1", LOGIN) is False


def test_distinct_keys_are_independent() -> None:
    limiter = make_limiter(FakeClock())

    attempt(limiter, "10.0.0.1", 5)

    assert limiter.is_locked_out("10.0.0.1")
    assert limiter.record_attempt_and_check("10.0.0.2", LOGIN) is True
    assert not limiter.is_locked_out("10.0.0.2")


def test_register_path_shares_the_client_allowance() -> None:
    limiter = make_limiter(FakeClock())

    attempt(limiter, "10.0.0.1", 3, path=LOGIN)

    assert attempt(limiter, "10.0.0.1", 2, path=REGISTER) == [True, False]


def test_unprotected_paths_are_never_recorded() -> None:
    limiter = make_limiter(FakeClock())

    assert attempt(limiter, "10.0.0.1", 20, path="/api/v1/projects") == [True] * 20
    assert len(limiter) == 0


def test_lockout_and_violations_are_audited() -> None:
    auditor = RecordingAuditor()
    limiter = make_limiter(FakeClock(), auditor=auditor)

    attempt(limiter, "10.0.0.1", 6)

    assert auditor.lockouts == [
        ("10.0.0.1", "Rate limit exceeded - 5 attempts in 15 minutes")
    ]
    assert auditor.violations == [("10.0.0.1", LOGIN)]


def test_audit_failures_do_not_change_decisions() -> None:
    limiter = make_limiter(FakeClock(), auditor=BrokenAuditor())

    assert attempt(limiter, "10.0.0.1", 6) == [True, True, True, True, False, False]


def test_evict_stale_drops_idle_entries_only() -> None:
    clock = FakeClock()
    limiter = make_limiter(clock)

    attempt(limiter, "idle", 1)
    attempt(limiter, "locked", 5)
    clock.advance(minutes=20)
    attempt(limiter, "recent", 1)

    assert limiter.evict_stale() == 1
    assert len(limiter) == 2
    assert limiter.is_locked_out("locked")


def test_evicted_key_starts_fresh() -> None:
    clock = FakeClock()
    limiter = make_limiter(clock)

    attempt(limiter, "10.0.0.1", 4)
    clock.advance(minutes=16)
    limiter.evict_stale()

    assert attempt(limiter, "10.0.0.1", 4) == [True] * 4


def test_concurrent_attempts_on_one_key_lose_no_updates() -> None:
    rule = RateLimitRule(max_attempts=100, window=timedelta(minutes=15))
    limiter = make_limiter(FakeClock(), rule=rule)

    with ThreadPoolExecutor(max_workers=16) as executor:
        results = list(
            executor.map(lambda _: limiter.record_attempt_and_check("10.0.0.1", LOGIN), range(99))
        )

    assert all(results)
    assert limiter.record_attempt_and_check("10.0.0.1", LOGIN) is False


def test_concurrent_attempts_on_distinct_keys() -> None:
    limiter = make_limiter(FakeClock())
    keys = [f"10.0.1.{index}" for index in range(40)] * 4

    with ThreadPoolExecutor(max_workers=16) as executor:
        results = list(executor.map(lambda key: limiter.record_attempt_and_check(key, LOGIN), keys))

    assert all(results)
    assert len(limiter) == 40


def test_rule_retry_after_values() -> None:
    rule = RateLimitRule()

    assert rule.retry_after == "30 minutes"
    assert rule.retry_after_seconds == 1800


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"window": timedelta(0)},
        {"lockout": timedelta(minutes=-1)},
    ],
)
def test_rule_rejects_invalid_values(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        RateLimitRule(**kwargs)


def test_entry_lockout_state_transitions() -> None:
    clock = FakeClock()
    entry = RateLimitEntry()

    entry.lock_until(clock() + timedelta(minutes=30))
    assert entry.is_locked_out(clock())
    assert not entry.lockout_expired(clock())

    clock.advance(minutes=30)
    assert not entry.is_locked_out(clock())
    assert entry.lockout_expired(clock())

    entry.reset()
    assert not entry.locked_out
    assert entry.lockout_until is None
    assert entry.attempt_count == 0
