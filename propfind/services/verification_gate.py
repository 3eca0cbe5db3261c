"""
Verification gate: short-lived 6-digit codes bound to an email address, and
escalating blocks for subjects that keep asking for new codes.

State lives in Redis, keyed by the normalized subject email:

- ``verification:{email}`` hash with ``code_hash`` and ``issued_at``
- ``resend:{email}`` hash with ``count``, ``stage`` and ``started_at``

Counters use atomic Redis increments so concurrent requests cannot undercount,
and a code is consumed inside a WATCH/MULTI transaction so it succeeds at most
once.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from redis.asyncio import Redis
from redis.exceptions import WatchError

from propfind.core.config import settings
from propfind.core.security import generate_otp, hash_otp, verify_otp
from propfind.helpers.validators import normalize_email
from propfind.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BlockStage(str, Enum):
    NONE = "none"
    STAGE1 = "stage1"
    STAGE2 = "stage2"
    PERMANENT = "permanent"


NEXT_STAGE = {
    BlockStage.STAGE1: BlockStage.STAGE2,
    BlockStage.STAGE2: BlockStage.PERMANENT,
}


@dataclass
class AttemptCounter:
    subject_email: str
    resend_count: int
    block_stage: BlockStage
    block_started_at: Optional[datetime]


@dataclass
class BlockStatus:
    blocked: bool
    stage: BlockStage
    remaining_ms: int


class VerificationGate:
    CODE_KEY = "verification:{email}"
    RESEND_KEY = "resend:{email}"

    def __init__(
        self,
        redis: Redis,
        ttl_seconds: int = settings.VERIFICATION_CODE_TTL_SECONDS,
        max_resends: int = settings.VERIFICATION_MAX_RESENDS,
        stage1_seconds: int = settings.BLOCK_STAGE1_SECONDS,
        stage2_seconds: int = settings.BLOCK_STAGE2_SECONDS,
        clock: Clock = utcnow,
    ):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.max_resends = max_resends
        self.stage_seconds = {
            BlockStage.STAGE1: stage1_seconds,
            BlockStage.STAGE2: stage2_seconds,
        }
        self._clock = clock

    def _now(self) -> float:
        return self._clock().timestamp()

    def _code_key(self, email: str) -> str:
        return self.CODE_KEY.format(email=normalize_email(email))

    def _resend_key(self, email: str) -> str:
        return self.RESEND_KEY.format(email=normalize_email(email))

    # ==================== Codes ====================

    async def issue_code(self, email: str) -> str:
        """
        Generate a code for ``email``, replacing any previous one.

        Callers check ``is_blocked`` first; issuing itself never fails.
        """
        code = generate_otp()
        key = self._code_key(email)
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(key)
            pipe.hset(key, mapping={"code_hash": hash_otp(code), "issued_at": repr(self._now())})
            pipe.expire(key, self.ttl_seconds)
            await pipe.execute()
        logger.info("Verification code issued", email=normalize_email(email))
        return code

    def _matches(self, data: dict, candidate: str) -> bool:
        if not data or "code_hash" not in data or "issued_at" not in data:
            return False
        if self._now() - float(data["issued_at"]) > self.ttl_seconds:
            return False
        return verify_otp(candidate, data["code_hash"])

    async def check_code(self, email: str, candidate: str, consume: bool = True) -> bool:
        """
        True iff a live code exists for ``email`` and equals ``candidate``.

        Wrong, missing and expired codes all return False. With ``consume``
        a matching code is erased and the resend counter is reset.
        """
        key = self._code_key(email)
        if not consume:
            return self._matches(await self.redis.hgetall(key), candidate)

        async with self.redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                data = await pipe.hgetall(key)
                if not self._matches(data, candidate):
                    return False
                pipe.multi()
                pipe.delete(key)
                pipe.delete(self._resend_key(email))
                await pipe.execute()
            except WatchError:
                # Another check consumed or replaced the code first
                logger.warning("Verification code changed during check", email=normalize_email(email))
                return False

        logger.info("Verification code consumed", email=normalize_email(email))
        return True

    # ==================== Resend throttling ====================

    async def get_counter(self, email: str) -> AttemptCounter:
        data = await self.redis.hgetall(self._resend_key(email))
        started_at = data.get("started_at")
        return AttemptCounter(
            subject_email=normalize_email(email),
            resend_count=int(data.get("count", 0)),
            block_stage=BlockStage(data.get("stage", BlockStage.NONE.value)),
            block_started_at=datetime.fromtimestamp(float(started_at), tz=timezone.utc) if started_at else None,
        )

    async def record_resend_attempt(self, email: str) -> AttemptCounter:
        """Count a code issuance; the max-th one starts the first block stage."""
        key = self._resend_key(email)
        count = await self.redis.hincrby(key, "count", 1)
        if count >= self.max_resends:
            async with self.redis.pipeline(transaction=True) as pipe:
                # set-if-absent: never downgrades a later stage
                pipe.hsetnx(key, "stage", BlockStage.STAGE1.value)
                pipe.hsetnx(key, "started_at", repr(self._now()))
                await pipe.execute()
            logger.warning("Resend limit reached", email=normalize_email(email), resend_count=count)
        return await self.get_counter(email)

    async def is_blocked(self, email: str) -> BlockStatus:
        """
        Block status for ``email``.

        An elapsed stage escalates to the next one instead of clearing, so
        once a block starts it only lifts through ``reset``.
        """
        key = self._resend_key(email)
        async with self.redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                data = await pipe.hgetall(key)
                stage = BlockStage(data.get("stage", BlockStage.NONE.value))

                if stage == BlockStage.NONE:
                    return BlockStatus(blocked=False, stage=stage, remaining_ms=0)
                if stage == BlockStage.PERMANENT:
                    return BlockStatus(blocked=True, stage=stage, remaining_ms=0)

                now = self._now()
                duration = self.stage_seconds[stage]
                elapsed = now - float(data.get("started_at", now))
                if elapsed < duration:
                    return BlockStatus(blocked=True, stage=stage, remaining_ms=int((duration - elapsed) * 1000))

                next_stage = NEXT_STAGE[stage]
                pipe.multi()
                pipe.hset(key, mapping={"stage": next_stage.value, "started_at": repr(now)})
                await pipe.execute()
            except WatchError:
                # Escalated or reset concurrently, report the fresh state
                return await self.is_blocked(email)

        logger.warning("Block escalated", email=normalize_email(email), stage=next_stage.value)
        if next_stage == BlockStage.PERMANENT:
            return BlockStatus(blocked=True, stage=next_stage, remaining_ms=0)
        return BlockStatus(blocked=True, stage=next_stage, remaining_ms=self.stage_seconds[next_stage] * 1000)

    # ==================== Administration ====================

    async def reset(self, email: str) -> None:
        await self.redis.delete(self._code_key(email), self._resend_key(email))
        logger.info("Verification state reset", email=normalize_email(email))

    async def reset_all(self) -> int:
        """Clear codes and counters for every subject. Returns the number of keys removed."""
        removed = 0
        for pattern in ("verification:*", "resend:*"):
            keys = [key async for key in self.redis.scan_iter(match=pattern)]
            if keys:
                removed += await self.redis.delete(*keys)
        logger.warning("Verification state reset for all subjects", keys_removed=removed)
        return removed
