"""
Redis lease for single-flight jobs.

The auto-clockout endpoint may be hit by overlapping scheduler invocations;
only the holder of ``lock:<name>`` runs the batch.  The lease expires on its
own, so a crashed run never blocks the next one for longer than the TTL.

Tokens carry ``host:pid`` so a skipped run can log who holds the lease.
"""

from __future__ import annotations

import os
import socket
import uuid
from typing import Optional

import redis.asyncio as aioredis

# Delete the key only while it still holds our token.
_RELEASE_IF_OWNER = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class LockNotAcquired(RuntimeError):
    pass


class DistributedLock:
    def __init__(self, client: aioredis.Redis, name: str, ttl_seconds: int = 30):
        self.redis = client
        self.key = f"lock:{name}"
        self.ttl = ttl_seconds
        self.token = f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex}"

    async def acquire(self) -> bool:
        return bool(await self.redis.set(self.key, self.token, nx=True, ex=self.ttl))

    async def owner(self) -> Optional[str]:
        """Token of the current holder, if any."""
        return await self.redis.get(self.key)

    async def release(self) -> bool:
        """Drop the lease.  False means it had already expired or changed hands."""
        return bool(await self.redis.eval(_RELEASE_IF_OWNER, 1, self.key, self.token))

    async def __aenter__(self) -> "DistributedLock":
        if not await self.acquire():
            raise LockNotAcquired(f"Could not acquire lock: {self.key}")
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.release()
