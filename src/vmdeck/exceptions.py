"""Exception classes raised by the vmdeck core."""

from typing import Any, Optional


class VMDeckError(Exception):
    """Base exception for vmdeck operations."""

    vm_name: Optional[str] = None


class ValidationError(VMDeckError, ValueError):
    """A VM field failed validation."""

    def __init__(self, field: str, value: Any, vm_name: Optional[str] = None):
        self.field = field
        self.value = value
        self.vm_name = vm_name
        target = f" for VM '{vm_name}'" if vm_name else ""
        super().__init__(f"Invalid value for field '{field}'{target}: {value!r}")


class NotFound(VMDeckError):
    """No record exists for the VM."""

    def __init__(self, vm_name: str):
        self.vm_name = vm_name
        super().__init__(f"VM not found: {vm_name}")


class CorruptRecord(VMDeckError):
    """A VM record exists but cannot be parsed."""

    def __init__(self, vm_name: str, path: Any, reason: str):
        self.vm_name = vm_name
        self.path = path
        self.reason = reason
        super().__init__(f"Corrupt record for VM '{vm_name}' ({path}): {reason}")


class AlreadyExists(VMDeckError):
    """A VM with the same name is already defined."""

    def __init__(self, vm_name: str):
        self.vm_name = vm_name
        super().__init__(f"VM already exists: {vm_name}")


class Busy(VMDeckError):
    """The VM disk image is held by another process."""

    def __init__(self, vm_name: str, result: Any):
        self.vm_name = vm_name
        self.result = result
        pid = getattr(result, "holding_pid", None)
        state = getattr(getattr(result, "state", None), "value", None)
        super().__init__(f"VM '{vm_name}' image is in use by pid {pid} ({state})")


class TerminationFailure(VMDeckError):
    """Killing the process holding a VM image failed."""

    def __init__(self, pid: int, reason: str, vm_name: Optional[str] = None, result: Any = None):
        self.pid = pid
        self.reason = reason
        self.vm_name = vm_name
        self.result = result
        target = f" holding image of VM '{vm_name}'" if vm_name else ""
        super().__init__(f"Failed to terminate pid {pid}{target}: {reason}")


class LaunchFailure(VMDeckError):
    """The hypervisor process could not be started."""

    def __init__(self, vm_name: str, reason: str):
        self.vm_name = vm_name
        self.reason = reason
        super().__init__(f"Failed to launch VM '{vm_name}': {reason}")


class ProvisioningError(VMDeckError):
    """Disk image or cloud-init seed creation failed."""

    def __init__(self, vm_name: str, step: str, reason: str):
        self.vm_name = vm_name
        self.step = step
        self.reason = reason
        super().__init__(f"Provisioning VM '{vm_name}' failed at {step}: {reason}")
