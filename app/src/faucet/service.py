from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol
from faucet.address import is_valid_address
from faucet.faucet_api import FaucetOutcome
from faucet.rate_limit import RateLimiter, RateLimitDecision, UsageSnapshot, now_ms
from faucet.infra.logging import log_event


class GrantStatus(Enum):
    GRANTED = 0
    INVALID_ADDRESS = 1
    RATE_LIMITED = 2
    UPSTREAM_FAILURE = 3


@dataclass
class GrantResult:
    status: GrantStatus
    address: str
    decision: Optional[RateLimitDecision] = None
    outcome: Optional[FaucetOutcome] = None
    next_available_ms: Optional[int] = None


class TokenDispatcher(Protocol):
    async def request_tokens(self, address: str) -> FaucetOutcome: ...


class FaucetService:
    """validate -> rate limit -> faucet call -> record grant."""

    def __init__(self, rate_limiter: RateLimiter, dispatcher: TokenDispatcher, clock=now_ms):
        self.rate_limiter = rate_limiter
        self.dispatcher = dispatcher
        self.clock = clock

    async def request(self, user_id: int, address: str) -> GrantResult:
        if not is_valid_address(address):
            log_event("invalid_address", user_id=user_id, preview=str(address)[:20])
            return GrantResult(status=GrantStatus.INVALID_ADDRESS, address=address)

        # the lock spans the await on the faucet so two invocations from the
        # same user cannot both pass the check before either is recorded
        async with self.rate_limiter.lock_for(user_id):
            decision = self.rate_limiter.check_rate_limit(user_id, self.clock())
            if not decision.allowed:
                log_event(
                    "rate_limit_denied",
                    user_id=user_id,
                    reason=decision.reason.value,
                    retry_after_ms=decision.retry_after_ms,
                )
                return GrantResult(status=GrantStatus.RATE_LIMITED, address=address, decision=decision)

            outcome = await self.dispatcher.request_tokens(address)
            if not outcome.success:
                return GrantResult(status=GrantStatus.UPSTREAM_FAILURE, address=address, outcome=outcome)

            granted_at = self.clock()
            self.rate_limiter.record_grant(user_id, granted_at)
            log_event("grant_recorded", user_id=user_id, address=address)
            return GrantResult(
                status=GrantStatus.GRANTED,
                address=address,
                outcome=outcome,
                next_available_ms=granted_at + self.rate_limiter.cooldown_ms,
            )

    def status(self, user_id: int) -> UsageSnapshot:
        return self.rate_limiter.usage(user_id, self.clock())
