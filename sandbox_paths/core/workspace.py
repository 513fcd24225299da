"""
Sandbox workspace metadata.

A SandboxWorkspaceInfo describes how one sandboxed session maps its container
view (e.g. /workspace) onto a directory on the host
(e.g. /opt/openclaw/sandboxes/agent-<id>). It is produced by the sandbox
lifecycle layer; this package only reads and caches it.

`None` is used throughout as the "no sandbox" marker: paths are already host
paths and no translation applies.
"""
from __future__ import annotations

import os
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WorkspaceAccess(str, Enum):
    """Access mode of the sandbox workspace mount."""
    READ_ONLY = "ro"
    READ_WRITE = "rw"


_ACCESS_ALIASES = {
    "ro": WorkspaceAccess.READ_ONLY,
    "read-only": WorkspaceAccess.READ_ONLY,
    "readonly": WorkspaceAccess.READ_ONLY,
    "rw": WorkspaceAccess.READ_WRITE,
    "read-write": WorkspaceAccess.READ_WRITE,
    "readwrite": WorkspaceAccess.READ_WRITE,
}


class SandboxWorkspaceInfo(BaseModel):
    """Mapping rule between a session's container paths and host paths."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    workspace_dir: str = Field(
        alias="workspaceDir",
        description="Host-side workspace root (absolute)",
    )
    container_workdir: str = Field(
        alias="containerWorkdir",
        description="Workspace root as seen inside the container",
    )
    workspace_access: WorkspaceAccess = Field(
        default=WorkspaceAccess.READ_WRITE,
        alias="workspaceAccess",
        description="Mount mode: ro or rw",
    )

    @field_validator("workspace_dir")
    @classmethod
    def validate_workspace_dir(cls, value: str) -> str:
        if not value or not os.path.isabs(value):
            raise ValueError(f"workspace_dir must be an absolute host path: {value!r}")
        return value

    @field_validator("container_workdir")
    @classmethod
    def validate_container_workdir(cls, value: str) -> str:
        # Container paths are always POSIX, whatever the host platform is.
        if not value or not value.startswith("/"):
            raise ValueError(f"container_workdir must be an absolute path: {value!r}")
        return value

    @field_validator("workspace_access", mode="before")
    @classmethod
    def validate_access(cls, value: Any) -> WorkspaceAccess:
        if isinstance(value, WorkspaceAccess):
            return value
        normalized = str(value or "rw").strip().lower()
        if normalized not in _ACCESS_ALIASES:
            raise ValueError("Workspace access must be 'ro' or 'rw'")
        return _ACCESS_ALIASES[normalized]

    @property
    def is_writable(self) -> bool:
        return self.workspace_access == WorkspaceAccess.READ_WRITE


ParameterBag = Mapping[str, Any]

# Collaborator that provisions/looks up the sandbox workspace for a session.
# Called as: await resolver(config=config, session_key=session_key)
WorkspaceResolver = Callable[..., Awaitable[Optional[SandboxWorkspaceInfo]]]
