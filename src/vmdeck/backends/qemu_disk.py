"""QEMU disk allocator implementation."""

import subprocess
from pathlib import Path
from typing import Optional

import structlog

from ..interfaces.disk import DiskAllocator
from ..interfaces.process import ProcessRunner
from .subprocess_runner import SubprocessRunner

log = structlog.get_logger(__name__)


class QemuDiskAllocator(DiskAllocator):
    """Create VM disks using qemu-img."""

    def __init__(self, runner: Optional[ProcessRunner] = None, qemu_img: str = "qemu-img"):
        self.runner = runner or SubprocessRunner()
        self.qemu_img = qemu_img

    def create_disk(self, path: Path, size: str, format: str = "qcow2") -> Path:
        """Create a disk image."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        cmd = [self.qemu_img, "create", "-f", format, str(path), size]

        result = self.runner.run(cmd, timeout=120)
        if not result.success:
            raise subprocess.CalledProcessError(
                result.returncode, cmd, output=result.stdout, stderr=result.stderr
            )

        log.info("disk.created", path=str(path), size=size, format=format)
        return path
