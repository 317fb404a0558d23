"""psutil-based process inspector."""

import os
from pathlib import Path
from typing import List

import psutil
import structlog

from ..exceptions import TerminationFailure
from ..interfaces.process import ProcessInspector

log = structlog.get_logger(__name__)

HYPERVISOR_PROCESS_PREFIX = "qemu-system"


class PsutilProcessInspector(ProcessInspector):
    """Find hypervisor processes holding a file open via psutil."""

    def __init__(self, process_prefix: str = HYPERVISOR_PROCESS_PREFIX):
        self.process_prefix = process_prefix

    def _is_hypervisor(self, name: str) -> bool:
        return (name or "").startswith(self.process_prefix)

    def holders(self, resource_path: Path) -> List[int]:
        path = Path(resource_path)
        if not path.exists():
            return []
        target = os.path.realpath(path)

        pids = []
        for proc in psutil.process_iter(["pid", "name"]):
            try:
                info = proc.info
                if not self._is_hypervisor(info["name"]):
                    continue
                for open_file in proc.open_files():
                    if os.path.realpath(open_file.path) == target:
                        pids.append(info["pid"])
                        break
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

        log.debug("inspector.holders", path=str(path), pids=pids)
        return pids

    def command_line_matches(self, pid: int, needle: str) -> bool:
        try:
            cmdline = " ".join(psutil.Process(pid).cmdline())
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            return False
        return needle in cmdline

    def terminate(self, pid: int) -> None:
        try:
            psutil.Process(pid).kill()
        except psutil.NoSuchProcess as e:
            raise TerminationFailure(pid, "process no longer exists") from e
        except psutil.AccessDenied as e:
            raise TerminationFailure(pid, "permission denied") from e
        log.warning("inspector.killed", pid=pid)
