"""
VM lifecycle operations: create, start, list, describe.
"""

import subprocess
from pathlib import Path
from typing import List, Optional

import structlog

from vmdeck.exceptions import AlreadyExists, Busy, ProvisioningError, ValidationError
from vmdeck.interfaces.disk import DiskAllocator, SeedBuilder
from vmdeck.interfaces.process import LaunchHandle, LaunchSpec, ProcessInspector, ProcessLauncher
from vmdeck.lock_guard import ConfirmCallback, LockGuard, never_confirm
from vmdeck.logging import log_operation
from vmdeck.models import VMConfig, VMDraft
from vmdeck.settings import Settings
from vmdeck.store import ConfigStore
from vmdeck.validation import first_invalid_field

log = structlog.get_logger(__name__)


class VMLifecycleController:
    """Compose the store, lock guard and external collaborators."""

    def __init__(
        self,
        store: ConfigStore,
        inspector: ProcessInspector,
        launcher: ProcessLauncher,
        disk_allocator: DiskAllocator,
        seed_builder: SeedBuilder,
    ):
        self.store = store
        self.inspector = inspector
        self.launcher = launcher
        self.disk_allocator = disk_allocator
        self.seed_builder = seed_builder

    def _validate_draft(self, draft: VMDraft) -> None:
        fields = draft.model_dump()
        invalid = first_invalid_field(fields)
        if invalid:
            raise ValidationError(invalid, fields[invalid], vm_name=draft.name)
        for field in ("username", "password"):
            if not fields[field]:
                raise ValidationError(field, fields[field], vm_name=draft.name)

    def create_vm(self, draft: VMDraft, replace: bool = False) -> VMConfig:
        """Validate *draft*, provision its disk and seed, and save the profile.

        Raises:
            ValidationError: first invalid field
            AlreadyExists: a profile with the name exists and *replace* is False
            ProvisioningError: disk or seed creation failed; nothing is saved
        """
        self._validate_draft(draft)
        if self.store.exists(draft.name) and not replace:
            raise AlreadyExists(draft.name)

        config = VMConfig(
            name=draft.name,
            os_type=draft.os_type,
            hostname=draft.hostname or draft.name,
            username=draft.username,
            password=draft.password,
            disk_size=draft.disk_size,
            memory=int(draft.memory),
            cpus=int(draft.cpus),
            ssh_port=int(draft.ssh_port),
            gui_mode=draft.gui_mode,
            img_file_path=self.store.image_path(draft.name),
            seed_file_path=self.store.seed_path(draft.name),
        )

        with log_operation(log, "create_vm", vm_name=config.name, replace=replace):
            try:
                self.disk_allocator.create_disk(config.img_file_path, config.disk_size)
            except (subprocess.SubprocessError, OSError) as e:
                raise ProvisioningError(config.name, "disk", _describe(e)) from e

            try:
                self.seed_builder.build(config.seed_file_path, config)
            except (subprocess.SubprocessError, OSError) as e:
                # A replaced VM keeps its record, so its image stays too.
                if not replace:
                    config.img_file_path.unlink(missing_ok=True)
                raise ProvisioningError(config.name, "seed", _describe(e)) from e

            self.store.save(config)
        return config

    def start_vm(self, name: str, confirm: Optional[ConfirmCallback] = None) -> LaunchHandle:
        """Start the hypervisor for *name* once its image is free.

        Returns as soon as the process is spawned; the guest may still be
        booting.

        Raises:
            NotFound, CorruptRecord: from the store, before any lock check
            Busy: the image is still held after the lock check
            TerminationFailure: the holder could not be killed
            LaunchFailure: the hypervisor did not start
        """
        config = self.store.load(name)

        with log_operation(log, "start_vm", vm_name=name):
            guard = LockGuard(self.inspector)
            result = guard.check_and_resolve(config.img_file_path, name, confirm or never_confirm)
            if not result.is_free:
                raise Busy(name, result)

            spec = LaunchSpec(
                vm_name=config.name,
                memory_mb=config.memory,
                cpu_count=config.cpus,
                img_file_path=config.img_file_path,
                seed_file_path=config.seed_file_path,
                ssh_port=config.ssh_port,
                gui_mode=config.gui_mode,
            )
            return self.launcher.launch(spec)

    def list_vms(self) -> List[str]:
        return self.store.list()

    def describe_vm(self, name: str) -> VMConfig:
        return self.store.load(name)


def _describe(error: Exception) -> str:
    stderr = getattr(error, "stderr", None)
    if stderr:
        return stderr.strip()
    return str(error)


def create_default_controller(
    root: Optional[Path] = None, settings: Optional[Settings] = None
) -> VMLifecycleController:
    """Controller wired to qemu, psutil and cloud-init tooling."""
    from vmdeck.backends.psutil_inspector import PsutilProcessInspector
    from vmdeck.backends.qemu_disk import QemuDiskAllocator
    from vmdeck.backends.qemu_launcher import QemuProcessLauncher
    from vmdeck.backends.subprocess_runner import SubprocessRunner
    from vmdeck.cloud_init import CloudInitSeedBuilder

    settings = settings or Settings.from_env(root=root)
    runner = SubprocessRunner()
    return VMLifecycleController(
        store=ConfigStore(root if root is not None else settings.root),
        inspector=PsutilProcessInspector(),
        launcher=QemuProcessLauncher(settings.qemu_binary),
        disk_allocator=QemuDiskAllocator(runner, settings.qemu_img_binary),
        seed_builder=CloudInitSeedBuilder(runner),
    )
