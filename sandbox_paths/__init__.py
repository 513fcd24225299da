"""
Sandbox path translation.

Maps paths as seen inside an agent sandbox (/workspace/...) to their location
on the host, with a per-session cache of sandbox workspace metadata.
"""
from .core.sandbox_path_resolver import (
    DEFAULT_FILE_KEYS,
    resolve_file_paths_in_params,
    resolve_sandbox_file_path,
)
from .core.session_context import (
    CacheStats,
    SandboxContextCache,
    clear_sandbox_context_cache,
    configure_sandbox_context_cache,
    get_sandbox_context_cache,
    get_sandbox_context_for_session,
)
from .core.workspace import SandboxWorkspaceInfo, WorkspaceAccess

__all__ = [
    # Translation
    "DEFAULT_FILE_KEYS",
    "resolve_sandbox_file_path",
    "resolve_file_paths_in_params",
    # Session cache
    "CacheStats",
    "SandboxContextCache",
    "configure_sandbox_context_cache",
    "get_sandbox_context_cache",
    "get_sandbox_context_for_session",
    "clear_sandbox_context_cache",
    # Models
    "SandboxWorkspaceInfo",
    "WorkspaceAccess",
]
