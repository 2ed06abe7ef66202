import aiohttp
import asyncio
import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple
from faucet.infra.logging import log_event


class FaucetResult(Enum):
    OK = 0
    UPSTREAM_REJECTED = 1
    TIMEOUT = 2
    NETWORK_UNREACHABLE = 3


@dataclass
class FaucetOutcome:
    status: FaucetResult
    payload: Optional[Any] = None
    error_message: Optional[str] = None
    http_status: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.status == FaucetResult.OK


class FaucetError(Exception):
    category = FaucetResult.NETWORK_UNREACHABLE

class FaucetRejectedError(FaucetError):
    """Raised when the faucet answers with a non-2xx status."""
    category = FaucetResult.UPSTREAM_REJECTED

    def __init__(self, message: str, http_status: int):
        super().__init__(message)
        self.http_status = http_status

class FaucetTimeoutError(FaucetError):
    """Raised when the faucet does not answer within the timeout."""
    category = FaucetResult.TIMEOUT

class FaucetUnreachableError(FaucetError):
    """Raised on DNS failures, refused or reset connections."""
    category = FaucetResult.NETWORK_UNREACHABLE


async def _read_body(resp: aiohttp.ClientResponse) -> Any:
    text = (await resp.read()).decode('utf-8', errors='replace')
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


class FaucetClient:
    """Single-attempt HTTP client for the faucet endpoint.

    Retries are intentionally left to the user re-issuing the command,
    which the rate limiter bounds.
    """

    def __init__(self, base_url: str, timeout_sec: float = 15.0, user_agent: str = "SupraFaucetBot/1.0"):
        self.base_url = base_url
        self.timeout_sec = timeout_sec
        self.user_agent = user_agent

    async def _get(self, address: str) -> Tuple[int, Any]:
        url = f"{self.base_url}{address}"
        headers = {'User-Agent': self.user_agent}
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout_sec)) as session:
                async with session.get(url, headers=headers) as resp:
                    body = await _read_body(resp)
                    if not 200 <= resp.status < 300:
                        detail = body.get('message') if isinstance(body, dict) else None
                        raise FaucetRejectedError(
                            f"API Error: {resp.status} - {detail or 'Unknown error'}",
                            http_status=resp.status,
                        )
                    return resp.status, body
        # ServerTimeoutError is also a ClientConnectionError, so timeouts go first
        except asyncio.TimeoutError as e:
            raise FaucetTimeoutError("Request timeout - the faucet service is not responding") from e
        except aiohttp.ClientError as e:
            raise FaucetUnreachableError("Network error - unable to reach faucet service") from e

    async def request_tokens(self, address: str) -> FaucetOutcome:
        start = time.perf_counter()
        try:
            http_status, payload = await self._get(address)
        except FaucetError as e:
            elapsed = (time.perf_counter() - start) * 1000
            cause = e.__cause__ if e.__cause__ is not None else e
            log_event(
                "faucet_call_failed",
                level=logging.WARNING,
                address=address,
                category=e.category.name,
                http_status=getattr(e, 'http_status', None),
                elapsed_ms=f"{elapsed:.1f}",
                error=str(e)[:300],
                cause=repr(cause)[:300],
            )
            return FaucetOutcome(
                status=e.category,
                error_message=str(e),
                http_status=getattr(e, 'http_status', None),
            )
        elapsed = (time.perf_counter() - start) * 1000
        log_event("faucet_call", address=address, elapsed_ms=f"{elapsed:.1f}")
        return FaucetOutcome(status=FaucetResult.OK, payload=payload, http_status=http_status)
