"""Per-subject mutex for expensive generations (Redis SET NX EX)."""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from redis.exceptions import RedisError

from pocketrot.errors import GenerationInProgress
from pocketrot.services.jobs import SubjectRef

logger = logging.getLogger(__name__)

# delete only while the key still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class SubjectLock:
    """Rejects a second concurrent job for the same subject.

    The TTL bounds how long a crashed worker can keep the lock. Each holder
    stores its own token, so a holder whose lock expired cannot release the
    lock of the next one.
    """

    def __init__(self, redis_client, ttl: int = 900, prefix: str = "generation_lock"):
        self.redis = redis_client
        self.ttl = ttl
        self.prefix = prefix

    def key(self, subject: SubjectRef, media: str) -> str:
        return f"{self.prefix}:{media}:{subject.label}"

    @asynccontextmanager
    async def hold(self, subject: SubjectRef, media: str) -> AsyncIterator[None]:
        key = self.key(subject, media)
        token = uuid.uuid4().hex
        try:
            acquired = await self.redis.set(key, token, ex=self.ttl, nx=True)
        except RedisError as e:
            # best effort: run unlocked when Redis is unreachable
            logger.warning("Subject lock unavailable for %s, continuing unlocked: %s", key, e)
            yield
            return

        if not acquired:
            logger.warning("Duplicate %s request blocked for %s", media, subject.label)
            raise GenerationInProgress(
                f"A {media} generation for {subject.label} is already running"
            )
        try:
            yield
        finally:
            try:
                released = await self.redis.eval(_RELEASE_SCRIPT, 1, key, token)
                if not released:
                    logger.warning("Subject lock %s expired before release", key)
            except RedisError as e:
                logger.warning("Could not release subject lock %s (expires in %ds): %s", key, self.ttl, e)
