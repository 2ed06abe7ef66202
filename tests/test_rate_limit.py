import asyncio

from faucet.rate_limit import (
    DenialReason,
    RateLimiter,
    build_rate_limiter,
)

WINDOW = 3_600_000
COOLDOWN = 300_000
T0 = 1_700_000_000_000


def make_limiter() -> RateLimiter:
    return RateLimiter(window_ms=WINDOW, max_per_window=3, cooldown_ms=COOLDOWN)


def test_fresh_user_is_allowed():
    rl = make_limiter()
    decision = rl.check_rate_limit(1, T0)
    assert decision.allowed
    assert decision.reason is None


def test_cooldown_denies_right_after_grant():
    rl = make_limiter()
    rl.record_grant(1, T0)
    decision = rl.check_rate_limit(1, T0 + 1)
    assert not decision.allowed
    assert decision.reason == DenialReason.COOLDOWN
    assert decision.retry_after_ms == COOLDOWN - 1
    assert decision.retry_after_minutes == 5
    assert "5 minutes" in decision.message


def test_cooldown_expires():
    rl = make_limiter()
    rl.record_grant(1, T0)
    assert rl.check_rate_limit(1, T0 + COOLDOWN).allowed
    assert rl.check_rate_limit(1, T0 + COOLDOWN + 1).allowed


def test_quota_denies_after_max_grants():
    rl = make_limiter()
    t = T0
    for _ in range(3):
        assert rl.check_rate_limit(1, t).allowed
        rl.record_grant(1, t)
        t += COOLDOWN + 1
    decision = rl.check_rate_limit(1, t)
    assert not decision.allowed
    assert decision.reason == DenialReason.QUOTA
    assert "hourly limit of 3" in decision.message
    # frees up once the first grant leaves the window
    assert decision.retry_after_ms == T0 + WINDOW - t


def test_cooldown_takes_precedence_over_quota():
    rl = make_limiter()
    t = T0
    for _ in range(3):
        rl.record_grant(1, t)
        t += COOLDOWN + 1
    last = t - (COOLDOWN + 1)
    decision = rl.check_rate_limit(1, last + 10)
    assert decision.reason == DenialReason.COOLDOWN


def test_grant_older_than_window_does_not_count():
    rl = RateLimiter(window_ms=WINDOW, max_per_window=1, cooldown_ms=COOLDOWN)
    rl.record_grant(1, T0)
    assert rl.check_rate_limit(1, T0 + COOLDOWN + 1).reason == DenialReason.QUOTA
    assert rl.check_rate_limit(1, T0 + WINDOW).allowed
    assert rl.check_rate_limit(1, T0 + WINDOW + 1).allowed


def test_check_is_idempotent_and_read_only():
    rl = make_limiter()
    rl.record_grant(1, T0)
    first = rl.check_rate_limit(1, T0 + 10)
    second = rl.check_rate_limit(1, T0 + 10)
    assert first == second
    assert rl.usage(1, T0 + 10).window_count == 1
    # checking an unknown user does not create state
    rl.check_rate_limit(2, T0)
    assert len(rl) == 1


def test_record_grant_prunes_stale_entries():
    rl = make_limiter()
    rl.record_grant(1, T0)
    rl.record_grant(1, T0 + WINDOW + 5)
    assert rl._records[1].recent_grants == [T0 + WINDOW + 5]
    assert rl._records[1].last_grant == T0 + WINDOW + 5


def test_users_are_independent():
    rl = make_limiter()
    rl.record_grant(1, T0)
    assert not rl.check_rate_limit(1, T0 + 1).allowed
    assert rl.check_rate_limit(2, T0 + 1).allowed


def test_usage_reports_next_available():
    rl = make_limiter()
    snapshot = rl.usage(1, T0)
    assert snapshot.window_count == 0
    assert snapshot.next_available_ms is None

    rl.record_grant(1, T0)
    snapshot = rl.usage(1, T0 + 1000)
    assert snapshot.window_count == 1
    assert snapshot.max_per_window == 3
    assert snapshot.next_available_ms == T0 + COOLDOWN


def test_sweep_drops_idle_users():
    rl = make_limiter()
    rl.record_grant(1, T0)
    rl.record_grant(2, T0 + WINDOW - 1)
    removed = rl.sweep(T0 + WINDOW)
    assert removed == 1
    assert len(rl) == 1
    assert rl.check_rate_limit(2, T0 + WINDOW).reason == DenialReason.COOLDOWN


async def test_sweep_keeps_users_with_held_lock():
    rl = make_limiter()
    rl.record_grant(1, T0)
    async with rl.lock_for(1):
        assert rl.sweep(T0 + WINDOW) == 0
    assert rl.sweep(T0 + WINDOW) == 1


def test_build_rate_limiter_converts_seconds():
    rl = build_rate_limiter(3600, 3, 300)
    assert rl.window_ms == WINDOW
    assert rl.cooldown_ms == COOLDOWN
    assert rl.max_per_window == 3


async def test_sweep_keeps_lock_for_woken_waiter():
    rl = make_limiter()
    active = []
    overlap = []

    async def critical():
        async with rl.lock_for(1):
            overlap.append(len(active))
            active.append(1)
            await asyncio.sleep(0.01)
            active.pop()

    first = rl.lock_for(1)
    await first.acquire()
    waiter = asyncio.create_task(critical())
    await asyncio.sleep(0)
    # waiter is woken here but has not resumed yet
    first.release()
    del first
    rl.sweep(T0)
    await asyncio.gather(waiter, critical())
    assert overlap == [0, 0]
