"""
Session-aware path translation.

Ties the session context cache to the parameter rewriter: callers that hold a
session key hand over container paths or tool parameters and get host paths
back.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from ..config import PathResolverSettings
from ..core.sandbox_path_resolver import (
    DEFAULT_FILE_KEYS,
    resolve_file_paths_in_params,
    resolve_sandbox_file_path,
)
from ..core.session_context import SandboxContextCache
from ..core.workspace import ParameterBag, SandboxWorkspaceInfo, WorkspaceResolver

logger = logging.getLogger(__name__)


class SandboxPathService:
    """Resolves container paths for a session using cached workspace metadata."""

    def __init__(
        self,
        cache: SandboxContextCache,
        config: Any = None,
        file_keys: Iterable[str] = DEFAULT_FILE_KEYS,
    ):
        self._cache = cache
        self._config = config
        self._file_keys = tuple(file_keys)

    @classmethod
    def from_settings(
        cls,
        settings: PathResolverSettings,
        resolver: WorkspaceResolver,
        config: Any = None,
    ) -> "SandboxPathService":
        """Build the cache and the service from loaded settings."""
        cache = SandboxContextCache(
            resolver=resolver,
            ttl_seconds=settings.cache_ttl_seconds,
            single_flight=settings.single_flight,
        )
        return cls(cache, config=config, file_keys=settings.file_keys)

    @property
    def cache(self) -> SandboxContextCache:
        return self._cache

    @property
    def file_keys(self) -> tuple[str, ...]:
        return self._file_keys

    async def get_workspace(self, session_key: Optional[str]) -> Optional[SandboxWorkspaceInfo]:
        return await self._cache.get_context(session_key, self._config)

    async def resolve_path(self, session_key: Optional[str], file_path: str) -> str:
        """Convert one container path for the given session."""
        workspace = await self.get_workspace(session_key)
        return resolve_sandbox_file_path(file_path, workspace)

    async def resolve_params(
        self,
        session_key: Optional[str],
        params: ParameterBag,
        file_keys: Optional[Iterable[str]] = None,
    ) -> dict[str, Any]:
        """
        Convert the path parameters of a tool call for the given session.

        Args:
            session_key: Session identifier (None/"" for non-sandbox callers)
            params: Tool parameters (never mutated)
            file_keys: Overrides the service's parameter names for this call

        Returns:
            New dict with container paths replaced by host paths
        """
        workspace = await self.get_workspace(session_key)
        keys = self._file_keys if file_keys is None else tuple(file_keys)
        resolved = resolve_file_paths_in_params(params, workspace, keys)
        if workspace is not None:
            changed = [k for k in keys if k in params and resolved.get(k) != params[k]]
            if changed:
                logger.debug(
                    f"SANDBOX_PATH_RESOLVER: Session {session_key} "
                    f"translated params {changed}"
                )
        return resolved
