"""Per-user faucet rate limiting: sliding-window quota plus a fixed cooldown.

For every user id we keep the timestamps (ms since epoch) of grants that are
still inside the trailing window, and the timestamp of the latest grant.

 1. check_rate_limit() is read-only. Cooldown is evaluated first, then the
    number of grants inside the window.
 2. record_grant() is the only mutation and the only place where stale
    timestamps are pruned. Call it after the faucet actually paid out.

State is in-memory only and owned by the RateLimiter instance. If horizontal
scaling is introduced, replace with redis or shared store abstraction.
"""
from __future__ import annotations
import asyncio
import math
import time
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

DEFAULT_WINDOW_MS = 3_600_000
DEFAULT_MAX_PER_WINDOW = 3
DEFAULT_COOLDOWN_MS = 300_000


def now_ms() -> int:
    return int(time.time() * 1000)


class DenialReason(Enum):
    COOLDOWN = "cooldown"
    QUOTA = "quota"


@dataclass
class GrantRecord:
    recent_grants: List[int] = field(default_factory=list)
    last_grant: Optional[int] = None


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    reason: Optional[DenialReason] = None
    retry_after_ms: int = 0
    message: str = ""

    @classmethod
    def allow(cls) -> "RateLimitDecision":
        return cls(allowed=True)

    @property
    def retry_after_minutes(self) -> int:
        return math.ceil(self.retry_after_ms / 1000 / 60)


@dataclass(frozen=True)
class UsageSnapshot:
    """Read-only view used by the status command."""
    user_id: int
    window_count: int
    max_per_window: int
    decision: RateLimitDecision
    next_available_ms: Optional[int]


class RateLimiter:
    def __init__(
        self,
        window_ms: int = DEFAULT_WINDOW_MS,
        max_per_window: int = DEFAULT_MAX_PER_WINDOW,
        cooldown_ms: int = DEFAULT_COOLDOWN_MS,
    ):
        self.window_ms = window_ms
        self.max_per_window = max_per_window
        self.cooldown_ms = cooldown_ms
        self._records: Dict[int, GrantRecord] = {}
        # a lock lives as long as some coroutine holds or awaits it
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _record(self, user_id: int) -> GrantRecord:
        record = self._records.get(user_id)
        if record is None:
            record = GrantRecord()
            self._records[user_id] = record
        return record

    def _in_window(self, record: GrantRecord, now: int) -> List[int]:
        return [ts for ts in record.recent_grants if now - ts < self.window_ms]

    def check_rate_limit(self, user_id: int, now: Optional[int] = None) -> RateLimitDecision:
        if now is None:
            now = now_ms()
        record = self._records.get(user_id)
        if record is None:
            return RateLimitDecision.allow()

        if record.last_grant is not None:
            elapsed = now - record.last_grant
            if elapsed < self.cooldown_ms:
                remaining = self.cooldown_ms - elapsed
                minutes = math.ceil(remaining / 1000 / 60)
                return RateLimitDecision(
                    allowed=False,
                    reason=DenialReason.COOLDOWN,
                    retry_after_ms=remaining,
                    message=f"Please wait {minutes} minutes before requesting again.",
                )

        recent = self._in_window(record, now)
        if len(recent) >= self.max_per_window:
            # quota frees up when the oldest counted grant leaves the window
            retry_after = recent[0] + self.window_ms - now
            return RateLimitDecision(
                allowed=False,
                reason=DenialReason.QUOTA,
                retry_after_ms=retry_after,
                message=(
                    f"You've reached the hourly limit of {self.max_per_window} requests. "
                    "Please try again later."
                ),
            )
        return RateLimitDecision.allow()

    def record_grant(self, user_id: int, now: Optional[int] = None) -> None:
        if now is None:
            now = now_ms()
        record = self._record(user_id)
        record.recent_grants.append(now)
        record.recent_grants = self._in_window(record, now)
        record.last_grant = now

    def usage(self, user_id: int, now: Optional[int] = None) -> UsageSnapshot:
        if now is None:
            now = now_ms()
        record = self._records.get(user_id)
        count = len(self._in_window(record, now)) if record else 0
        decision = self.check_rate_limit(user_id, now)
        return UsageSnapshot(
            user_id=user_id,
            window_count=count,
            max_per_window=self.max_per_window,
            decision=decision,
            next_available_ms=None if decision.allowed else now + decision.retry_after_ms,
        )

    def lock_for(self, user_id: int) -> asyncio.Lock:
        """Per-user lock held across check -> faucet call -> record."""
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def sweep(self, now: Optional[int] = None) -> int:
        """Drop users whose last grant can no longer affect any decision.

        Returns the number of users removed.
        """
        if now is None:
            now = now_ms()
        horizon = max(self.window_ms, self.cooldown_ms)
        stale = [
            uid for uid, record in self._records.items()
            if record.last_grant is None or now - record.last_grant >= horizon
        ]
        removed = 0
        for uid in stale:
            lock = self._locks.get(uid)
            if lock is not None and lock.locked():
                continue
            del self._records[uid]
            removed += 1
        return removed

    def __len__(self) -> int:
        return len(self._records)


def build_rate_limiter(window_sec: int, max_requests: int, cooldown_sec: int) -> RateLimiter:
    return RateLimiter(
        window_ms=window_sec * 1000,
        max_per_window=max_requests,
        cooldown_ms=cooldown_sec * 1000,
    )
