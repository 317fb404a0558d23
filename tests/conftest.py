"""
Pytest fixtures and configuration for vmdeck tests.
"""
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from vmdeck.exceptions import TerminationFailure
from vmdeck.interfaces.disk import DiskAllocator, SeedBuilder
from vmdeck.interfaces.process import LaunchHandle, LaunchSpec, ProcessInspector, ProcessLauncher
from vmdeck.lifecycle import VMLifecycleController
from vmdeck.models import VMConfig, VMDraft
from vmdeck.store import ConfigStore


class FakeInspector(ProcessInspector):
    """In-memory process table: path -> holders, pid -> command line."""

    def __init__(self):
        self.open_files: Dict[str, List[int]] = {}
        self.cmdlines: Dict[int, str] = {}
        self.terminated: List[int] = []
        self.terminate_error: Optional[str] = None
        self.holder_queries: List[Path] = []

    def hold(self, path: Path, pid: int, cmdline: str) -> None:
        self.open_files.setdefault(str(path), []).append(pid)
        self.cmdlines[pid] = cmdline

    def holders(self, resource_path: Path) -> List[int]:
        self.holder_queries.append(Path(resource_path))
        return list(self.open_files.get(str(resource_path), []))

    def command_line_matches(self, pid: int, needle: str) -> bool:
        return needle in self.cmdlines.get(pid, "")

    def terminate(self, pid: int) -> None:
        if self.terminate_error:
            raise TerminationFailure(pid, self.terminate_error)
        self.terminated.append(pid)
        for pids in self.open_files.values():
            if pid in pids:
                pids.remove(pid)


class FakeLauncher(ProcessLauncher):
    def __init__(self):
        self.specs: List[LaunchSpec] = []
        self.next_pid = 4242

    def launch(self, spec: LaunchSpec) -> LaunchHandle:
        self.specs.append(spec)
        return LaunchHandle(vm_name=spec.vm_name, pid=self.next_pid, command=["qemu-system-x86_64"])


class FakeDiskAllocator(DiskAllocator):
    def __init__(self):
        self.created: List[tuple] = []
        self.error: Optional[Exception] = None

    def create_disk(self, path: Path, size: str, format: str = "qcow2") -> Path:
        if self.error:
            raise self.error
        self.created.append((Path(path), size))
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        Path(path).write_bytes(b"")
        return path


class FakeSeedBuilder(SeedBuilder):
    def __init__(self):
        self.built: List[tuple] = []
        self.error: Optional[Exception] = None

    def build(self, path: Path, config: VMConfig) -> Path:
        if self.error:
            raise self.error
        self.built.append((Path(path), config))
        return path


@pytest.fixture
def store_root(tmp_path):
    """Directory used as the VM store root."""
    root = tmp_path / "vms"
    root.mkdir()
    return root


@pytest.fixture
def store(store_root):
    return ConfigStore(store_root)


@pytest.fixture
def inspector():
    return FakeInspector()


@pytest.fixture
def launcher():
    return FakeLauncher()


@pytest.fixture
def disk_allocator():
    return FakeDiskAllocator()


@pytest.fixture
def seed_builder():
    return FakeSeedBuilder()


@pytest.fixture
def controller(store, inspector, launcher, disk_allocator, seed_builder):
    return VMLifecycleController(
        store=store,
        inspector=inspector,
        launcher=launcher,
        disk_allocator=disk_allocator,
        seed_builder=seed_builder,
    )


@pytest.fixture
def sample_draft():
    return VMDraft(name="dev-vm_1", username="ubuntu", password="s3cret")


@pytest.fixture
def sample_config(store_root):
    """A fully populated profile with non-default values."""
    return VMConfig(
        name="sample-vm",
        os_type="debian",
        hostname="sample-host",
        username="alice",
        password="p@ss: word",
        disk_size="40g",
        memory=4096,
        cpus=4,
        ssh_port=2201,
        gui_mode=True,
        img_file_path=store_root / "sample-vm.img",
        seed_file_path=store_root / "sample-vm-seed.iso",
    )


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "integration: Tests that need qemu tooling on the host")
