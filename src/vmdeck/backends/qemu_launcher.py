"""Launch QEMU as a detached child process."""

import subprocess
from typing import List

import structlog

from ..exceptions import LaunchFailure
from ..interfaces.process import LaunchHandle, LaunchSpec, ProcessLauncher

log = structlog.get_logger(__name__)


def build_qemu_command(spec: LaunchSpec, qemu_binary: str = "qemu-system-x86_64") -> List[str]:
    """Hypervisor argv for *spec*: user-mode networking with SSH forwarded."""
    cmd = [
        qemu_binary,
        "-name", spec.vm_name,
        "-m", str(spec.memory_mb),
        "-smp", str(spec.cpu_count),
        "-drive", f"file={spec.img_file_path},format=qcow2",
        "-drive", f"file={spec.seed_file_path},format=raw",
        "-netdev", f"user,id=n1,hostfwd=tcp::{spec.ssh_port}-:22",
        "-device", "virtio-net-pci,netdev=n1",
    ]
    if not spec.gui_mode:
        cmd.append("-nographic")
    return cmd


class QemuProcessLauncher(ProcessLauncher):
    """Start qemu-system with the profile's sizing and port forward."""

    def __init__(self, qemu_binary: str = "qemu-system-x86_64", startup_grace: float = 0.5):
        self.qemu_binary = qemu_binary
        self.startup_grace = startup_grace

    def launch(self, spec: LaunchSpec) -> LaunchHandle:
        cmd = build_qemu_command(spec, self.qemu_binary)
        try:
            process = subprocess.Popen(cmd)
        except OSError as e:
            raise LaunchFailure(spec.vm_name, str(e)) from e

        # An exit within the grace period (bad flags, busy forwarded port) is a launch failure.
        try:
            returncode = process.wait(timeout=self.startup_grace)
        except subprocess.TimeoutExpired:
            returncode = None
        if returncode is not None:
            raise LaunchFailure(
                spec.vm_name, f"{self.qemu_binary} exited with code {returncode} during startup"
            )

        log.info("launcher.started", vm_name=spec.vm_name, pid=process.pid, ssh_port=spec.ssh_port)
        return LaunchHandle(vm_name=spec.vm_name, pid=process.pid, command=cmd, process=process)
