"""Abstract interfaces for process execution, inspection and launch."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional


@dataclass
class ProcessResult:
    """Result of a short-lived helper command."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class ProcessRunner(ABC):
    """Run short-lived helper tools (qemu-img, cloud-localds)."""

    @abstractmethod
    def run(
        self,
        command: List[str],
        timeout: Optional[int] = None,
        cwd: Optional[Path] = None,
    ) -> ProcessResult:
        """Run a command and capture its output. Never raises on non-zero exit."""
        pass


class ProcessInspector(ABC):
    """Answer questions about external processes holding VM resources."""

    @abstractmethod
    def holders(self, resource_path: Path) -> List[int]:
        """Pids of hypervisor processes with *resource_path* open.

        Empty if none, or if the path does not exist.
        """
        pass

    @abstractmethod
    def command_line_matches(self, pid: int, needle: str) -> bool:
        """True if the process arguments contain *needle*.

        False if the process has gone away.
        """
        pass

    @abstractmethod
    def terminate(self, pid: int) -> None:
        """Forcefully kill *pid*. Raises TerminationFailure on failure."""
        pass


@dataclass(frozen=True)
class LaunchSpec:
    """Everything the core hands to a launcher."""

    vm_name: str
    memory_mb: int
    cpu_count: int
    img_file_path: Path
    seed_file_path: Path
    ssh_port: int
    gui_mode: bool = False


@dataclass
class LaunchHandle:
    """A started hypervisor process."""

    vm_name: str
    pid: int
    command: List[str] = field(default_factory=list)
    process: Any = field(default=None, repr=False)

    def is_running(self) -> bool:
        if self.process is None:
            return False
        return self.process.poll() is None

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """Block until the hypervisor exits and return its exit code."""
        if self.process is None:
            return None
        return self.process.wait(timeout=timeout)


class ProcessLauncher(ABC):
    """Start the hypervisor for a VM."""

    @abstractmethod
    def launch(self, spec: LaunchSpec) -> LaunchHandle:
        """Spawn the hypervisor and return immediately.

        Raises LaunchFailure if the process could not be started.
        """
        pass
