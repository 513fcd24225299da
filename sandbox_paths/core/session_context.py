"""
Per-session cache of sandbox workspace metadata.

Resolving a session's sandbox workspace goes through the sandbox lifecycle
layer (an async collaborator that may provision directories or inspect
containers), so the result is memoised per session key for a fixed TTL.

    cache = SandboxContextCache(resolver=ensure_sandbox_workspace_for_session)
    workspace = await cache.get_context("agent:main:abc", config)

Cached values are SandboxWorkspaceInfo or None ("session has no sandbox");
both are legitimate results and both are cached. Collaborator failures are
never cached.

Expiry is checked lazily against the insertion timestamp of each entry, so an
entry can only ever expire because of its own insertion. clear() bumps a
global generation counter and invalidate() a per-key one; resolutions that
were in flight when either ran do not write their result back.

Concurrent lookups for the same uncached key share a single in-flight
resolution unless single_flight=False is passed.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .workspace import SandboxWorkspaceInfo, WorkspaceResolver

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 5 * 60


@dataclass(frozen=True)
class CacheEntry:
    """A resolved session context. Replaced or deleted, never mutated."""
    workspace: Optional[SandboxWorkspaceInfo]
    created_at: float
    expires_at: float


@dataclass
class CacheStats:
    """Cache statistics."""
    entries: int
    hits: int
    misses: int
    resolutions: int
    failures: int


class SandboxContextCache:
    """
    Session key -> sandbox workspace cache with per-entry TTL.

    Thread Safety:
        Not thread-safe. Meant to be used from a single event loop; the only
        suspension point is the collaborator call.
    """

    def __init__(
        self,
        resolver: WorkspaceResolver,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        single_flight: bool = True,
    ):
        """
        Initialize the cache.

        Args:
            resolver: Async collaborator, called as
                      resolver(config=..., session_key=...)
            ttl_seconds: Lifetime of each entry, measured from insertion
            clock: Monotonic time source (injectable for tests)
            single_flight: Share one resolution between concurrent lookups
                           of the same key
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self._resolver = resolver
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._single_flight = single_flight

        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task] = {}
        self._generation = 0
        self._key_generations: dict[str, int] = {}

        self.hits = 0
        self.misses = 0
        self.resolutions = 0
        self.failures = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @property
    def single_flight(self) -> bool:
        return self._single_flight

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for entry in self._entries.values() if entry.expires_at > now)

    def __contains__(self, session_key: object) -> bool:
        if not isinstance(session_key, str):
            return False
        entry = self._entries.get(session_key)
        return entry is not None and entry.expires_at > self._clock()

    async def get_context(
        self,
        session_key: Optional[str],
        config: Any = None,
    ) -> Optional[SandboxWorkspaceInfo]:
        """
        Get the sandbox workspace for a session, resolving it on a miss.

        Args:
            session_key: Session identifier. None or "" means no session,
                         which never has a sandbox.
            config: Passed through to the resolver untouched. A caller that
                    joins an in-flight resolution gets the result resolved
                    with the first caller's config; its own is not used.

        Returns:
            SandboxWorkspaceInfo, or None when the session is not sandboxed

        Raises:
            Whatever the resolver raises. Failures are not cached.
        """
        if not session_key:
            return None

        entry = self._lookup(session_key)
        if entry is not None:
            self.hits += 1
            logger.debug(f"SANDBOX_CONTEXT: Cache hit for session {session_key}")
            return entry.workspace

        self.misses += 1

        if not self._single_flight:
            return await self._resolve_and_store(
                session_key, config, self._token(session_key)
            )

        task = self._in_flight.get(session_key)
        if task is None:
            task = asyncio.ensure_future(
                self._resolve_and_store(session_key, config, self._token(session_key))
            )
            self._in_flight[session_key] = task
            task.add_done_callback(
                lambda done, key=session_key: self._forget_in_flight(key, done)
            )
        else:
            logger.debug(
                f"SANDBOX_CONTEXT: Joining in-flight resolution for session {session_key}"
            )

        # A cancelled waiter must not cancel the resolution other callers share
        return await asyncio.shield(task)

    def invalidate(self, session_key: str) -> bool:
        """
        Drop the cached context of one session.

        A resolution already in flight for the key is detached: its result
        is not cached and later lookups start a new one.

        Returns:
            True if an entry was removed
        """
        removed = self._entries.pop(session_key, None) is not None
        self._in_flight.pop(session_key, None)
        self._key_generations[session_key] = self._key_generations.get(session_key, 0) + 1
        if removed:
            logger.debug(f"SANDBOX_CONTEXT: Invalidated session {session_key}")
        return removed

    def clear(self) -> None:
        """Drop every cached context (for testing or manual cleanup)."""
        self._entries.clear()
        self._in_flight.clear()
        self._key_generations.clear()
        self._generation += 1
        logger.debug("SANDBOX_CONTEXT: Cache cleared")

    def purge_expired(self) -> int:
        """
        Remove expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"SANDBOX_CONTEXT: Purged {len(expired)} expired entries")
        return len(expired)

    def stats(self) -> CacheStats:
        return CacheStats(
            entries=len(self),
            hits=self.hits,
            misses=self.misses,
            resolutions=self.resolutions,
            failures=self.failures,
        )

    def _token(self, session_key: str) -> tuple[int, int]:
        return self._generation, self._key_generations.get(session_key, 0)

    def _lookup(self, session_key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(session_key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[session_key]
            logger.debug(f"SANDBOX_CONTEXT: Entry expired for session {session_key}")
            return None
        return entry

    async def _resolve_and_store(
        self,
        session_key: str,
        config: Any,
        token: tuple[int, int],
    ) -> Optional[SandboxWorkspaceInfo]:
        self.resolutions += 1

        try:
            workspace = await self._resolver(config=config, session_key=session_key)
        except Exception as e:
            self.failures += 1
            logger.error(
                f"SANDBOX_CONTEXT: Failed to resolve sandbox workspace "
                f"for session {session_key}: {e}"
            )
            raise

        if token != self._token(session_key):
            logger.debug(
                f"SANDBOX_CONTEXT: Cache invalidated while resolving session "
                f"{session_key}, result not cached"
            )
            return workspace

        self.purge_expired()
        now = self._clock()
        self._entries[session_key] = CacheEntry(
            workspace=workspace,
            created_at=now,
            expires_at=now + self._ttl_seconds,
        )
        logger.debug(
            f"SANDBOX_CONTEXT: Cached session {session_key} "
            f"(sandboxed={workspace is not None}, ttl={self._ttl_seconds}s)"
        )
        return workspace

    def _forget_in_flight(self, session_key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(session_key) is task:
            del self._in_flight[session_key]
        # Mark the exception as retrieved when every waiter has gone away
        if not task.cancelled():
            task.exception()


# =============================================================================
# Process-wide default cache
# =============================================================================

_default_cache: Optional[SandboxContextCache] = None


def configure_sandbox_context_cache(
    resolver: WorkspaceResolver,
    ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
    clock: Callable[[], float] = time.monotonic,
    single_flight: bool = True,
) -> SandboxContextCache:
    """
    Create the process-wide cache used by the module-level helpers.

    Replaces any previously configured cache.
    """
    global _default_cache
    _default_cache = SandboxContextCache(
        resolver=resolver,
        ttl_seconds=ttl_seconds,
        clock=clock,
        single_flight=single_flight,
    )
    logger.info(
        f"SANDBOX_CONTEXT: Configured default cache, ttl={ttl_seconds}s, "
        f"single_flight={single_flight}"
    )
    return _default_cache


def get_sandbox_context_cache() -> SandboxContextCache:
    """
    Get the process-wide cache.

    Raises:
        RuntimeError: If configure_sandbox_context_cache() was not called
    """
    if _default_cache is None:
        raise RuntimeError(
            "SandboxContextCache not configured. "
            "Call configure_sandbox_context_cache() first."
        )
    return _default_cache


async def get_sandbox_context_for_session(
    config: Any,
    session_key: Optional[str] = None,
) -> Optional[SandboxWorkspaceInfo]:
    """Get the sandbox workspace for a session through the default cache."""
    if not session_key:
        return None
    return await get_sandbox_context_cache().get_context(session_key, config)


def clear_sandbox_context_cache() -> None:
    """Clear the default cache, if one is configured."""
    if _default_cache is not None:
        _default_cache.clear()


def reset_sandbox_context_cache() -> None:
    """Drop the default cache entirely (for testing)."""
    global _default_cache
    _default_cache = None
