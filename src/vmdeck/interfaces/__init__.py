"""Abstract collaborator interfaces consumed by the vmdeck core."""

from .disk import DiskAllocator, SeedBuilder
from .process import LaunchHandle, LaunchSpec, ProcessInspector, ProcessLauncher, ProcessResult, ProcessRunner

__all__ = [
    "DiskAllocator",
    "SeedBuilder",
    "LaunchHandle",
    "LaunchSpec",
    "ProcessInspector",
    "ProcessLauncher",
    "ProcessResult",
    "ProcessRunner",
]
