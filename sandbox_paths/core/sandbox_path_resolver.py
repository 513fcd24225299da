"""
Sandbox Path Resolver - container to host path translation.

Tools running on the host receive paths the way the sandboxed agent sees them:

    /workspace/file.txt
    /workspace/subdir/report.pdf

Storage and tooling on the host need the real location of those files:

    /opt/openclaw/sandboxes/agent-xxx/file.txt
    /opt/openclaw/sandboxes/agent-xxx/subdir/report.pdf

USAGE:
======

    workspace = await cache.get_context(session_key)

    # Single path
    host_path = resolve_sandbox_file_path("/workspace/file.txt", workspace)

    # Tool / message parameters
    params = resolve_file_paths_in_params(
        {"filePath": "/workspace/a.txt", "count": 3},
        workspace,
    )

A `None` workspace means the session is not sandboxed; every path is then
already a host path and is returned unchanged.

Both functions are pure and never raise. They do not check that the result
exists, do not enforce workspace_access and do not collapse `..` components.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Iterable, Optional

from .workspace import ParameterBag, SandboxWorkspaceInfo

logger = logging.getLogger(__name__)

# Parameter names that carry file paths unless the caller overrides them
DEFAULT_FILE_KEYS: tuple[str, ...] = ("filePath", "path", "media")


def resolve_sandbox_file_path(
    file_path: str,
    sandbox_workspace: Optional[SandboxWorkspaceInfo],
) -> str:
    """
    Convert a container path to the matching host path.

    Args:
        file_path: Original path (container path or host path)
        sandbox_workspace: Workspace mapping, None for non-sandbox sessions

    Returns:
        Host path if file_path lies under the container workdir, otherwise
        file_path unchanged
    """
    if sandbox_workspace is None:
        return file_path

    container_workdir = sandbox_workspace.container_workdir
    if not file_path.startswith(container_workdir):
        # Already a host path, or outside the workspace
        return file_path

    suffix = file_path[len(container_workdir):]
    if not suffix:
        return sandbox_workspace.workspace_dir

    # The suffix keeps its leading "/"; os.path.join would treat it as a new
    # root and drop workspace_dir. A bare "/" joins to workspace_dir + "/".
    host_path = os.path.join(sandbox_workspace.workspace_dir, suffix.lstrip("/"))
    logger.debug(f"SANDBOX_PATH_RESOLVER: {file_path} -> {host_path}")
    return host_path


def resolve_file_paths_in_params(
    params: ParameterBag,
    sandbox_workspace: Optional[SandboxWorkspaceInfo],
    file_keys: Iterable[str] = DEFAULT_FILE_KEYS,
) -> dict[str, Any]:
    """
    Translate the path-bearing entries of a parameter mapping.

    Only keys listed in file_keys are considered, and only when their value
    is an absolute path string. Numbers, flags, URLs under other keys and
    relative paths are passed through untouched.

    Args:
        params: Original parameters (never mutated)
        sandbox_workspace: Workspace mapping, None for non-sandbox sessions
        file_keys: Parameter names to convert

    Returns:
        New dict with the eligible paths converted to host paths
    """
    resolved = dict(params)

    if sandbox_workspace is None:
        return resolved

    for key in file_keys:
        value = resolved.get(key)
        if isinstance(value, str) and value.startswith("/"):
            resolved[key] = resolve_sandbox_file_path(value, sandbox_workspace)

    return resolved
