"""
Services package for sandbox path translation.
"""
from .path_translation_service import SandboxPathService

__all__ = [
    "SandboxPathService",
]
