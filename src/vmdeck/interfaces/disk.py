"""Interfaces for vmdeck disk and seed provisioning."""

from abc import ABC, abstractmethod
from pathlib import Path

from vmdeck.models import VMConfig


class DiskAllocator(ABC):
    """Abstract interface for disk image creation."""

    @abstractmethod
    def create_disk(self, path: Path, size: str, format: str = "qcow2") -> Path:
        """Create a disk image of *size* (e.g. ``20G``)."""
        pass


class SeedBuilder(ABC):
    """Abstract interface for cloud-init seed creation."""

    @abstractmethod
    def build(self, path: Path, config: VMConfig) -> Path:
        """Write a NoCloud seed for *config* to *path*."""
        pass
