"""
Login attempt gate: throttles credential checks per email.

    OK(n) --success--> OK(0)
    OK(n) --failure, n < max-1--> OK(n+1)
    OK(max-1) --failure--> BLOCKED (fixed block window)
    BLOCKED --window elapsed--> OK(0)

State is the ``login:{email}`` Redis hash (``failures``, ``blocked_until``);
absence of the hash is OK(0).
"""
from dataclasses import dataclass

from redis.asyncio import Redis

from propfind.core.config import settings
from propfind.helpers.validators import normalize_email
from propfind.logging import get_logger
from propfind.services.verification_gate import Clock, utcnow

logger = get_logger(__name__)


@dataclass
class LoginStatus:
    blocked: bool
    attempts_left: int
    block_time_left_ms: int = 0


class LoginAttemptGate:
    KEY = "login:{email}"

    def __init__(
        self,
        redis: Redis,
        max_attempts: int = settings.LOGIN_MAX_ATTEMPTS,
        block_seconds: int = settings.LOGIN_BLOCK_SECONDS,
        clock: Clock = utcnow,
    ):
        self.redis = redis
        self.max_attempts = max_attempts
        self.block_seconds = block_seconds
        self._clock = clock

    def _key(self, email: str) -> str:
        return self.KEY.format(email=normalize_email(email))

    async def check_block_status(self, email: str) -> LoginStatus:
        """Current state, clearing a block whose window has elapsed."""
        key = self._key(email)
        data = await self.redis.hgetall(key)

        blocked_until = data.get("blocked_until")
        if blocked_until:
            remaining = float(blocked_until) - self._clock().timestamp()
            if remaining > 0:
                return LoginStatus(blocked=True, attempts_left=0, block_time_left_ms=int(remaining * 1000))
            await self.redis.delete(key)
            logger.info("Login block expired", email=normalize_email(email))
            return LoginStatus(blocked=False, attempts_left=self.max_attempts)

        failures = int(data.get("failures", 0))
        return LoginStatus(blocked=False, attempts_left=max(self.max_attempts - failures, 0))

    async def record_login_attempt(self, email: str, success: bool) -> LoginStatus:
        key = self._key(email)
        if success:
            await self.redis.delete(key)
            return LoginStatus(blocked=False, attempts_left=self.max_attempts)

        status = await self.check_block_status(email)
        if status.blocked:
            return status

        failures = await self.redis.hincrby(key, "failures", 1)
        if failures >= self.max_attempts:
            blocked_until = self._clock().timestamp() + self.block_seconds
            # First writer wins, concurrent failures cannot extend the window
            await self.redis.hsetnx(key, "blocked_until", repr(blocked_until))
            await self.redis.expire(key, self.block_seconds)
            logger.warning("Login blocked after repeated failures", email=normalize_email(email), failures=failures)
            return await self.check_block_status(email)

        return LoginStatus(blocked=False, attempts_left=self.max_attempts - failures)

    async def reset(self, email: str) -> None:
        await self.redis.delete(self._key(email))

    async def reset_all(self) -> int:
        keys = [key async for key in self.redis.scan_iter(match="login:*")]
        if not keys:
            return 0
        return await self.redis.delete(*keys)
