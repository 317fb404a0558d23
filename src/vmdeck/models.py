#!/usr/bin/env python3
"""
Pydantic models for vmdeck VM profiles and lock check results.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vmdeck.validation import MAX_SSH_PORT, MIN_SSH_PORT, is_name, is_size

DEFAULT_OS_TYPE = "ubuntu"
DEFAULT_DISK_SIZE = "20G"
DEFAULT_MEMORY_MB = 2048
DEFAULT_CPUS = 2
DEFAULT_SSH_PORT = 2222

# Keys written to every record, in the order they appear on disk.
RECORD_FIELDS = (
    "name",
    "os_type",
    "hostname",
    "username",
    "password",
    "disk_size",
    "memory",
    "cpus",
    "ssh_port",
    "gui_mode",
    "img_file_path",
    "seed_file_path",
)


class VMDraft(BaseModel):
    """Operator input for a new VM, before paths are derived.

    Numeric fields accept their textual form so that malformed input can be
    reported per field by the lifecycle controller instead of failing here.
    """

    name: str = Field(description="VM name")
    username: str = Field(description="Guest login user")
    password: str = Field(repr=False, description="Guest login password")
    os_type: str = Field(default=DEFAULT_OS_TYPE, description="Free-form OS tag")
    hostname: Optional[str] = Field(default=None, description="Guest hostname (defaults to name)")
    disk_size: str = Field(default=DEFAULT_DISK_SIZE, description="Disk size, e.g. 20G or 512M")
    memory: Union[int, str] = Field(default=DEFAULT_MEMORY_MB, description="RAM in MB")
    cpus: Union[int, str] = Field(default=DEFAULT_CPUS, description="Number of vCPUs")
    ssh_port: Union[int, str] = Field(default=DEFAULT_SSH_PORT, description="Host port forwarded to guest :22")
    gui_mode: bool = Field(default=False, description="Open a display window")


class VMConfig(BaseModel):
    """A persisted VM profile. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    name: str
    os_type: str
    hostname: str
    username: str = Field(min_length=1)
    password: str = Field(min_length=1, repr=False)
    disk_size: str
    memory: int = Field(gt=0)
    cpus: int = Field(gt=0)
    ssh_port: int = Field(ge=MIN_SSH_PORT, le=MAX_SSH_PORT)
    gui_mode: bool = False
    img_file_path: Path
    seed_file_path: Path

    @field_validator("name")
    @classmethod
    def name_must_be_valid(cls, v: str) -> str:
        if not is_name(v):
            raise ValueError("VM name may only contain letters, digits, '_' and '-'")
        return v

    @field_validator("disk_size")
    @classmethod
    def disk_size_must_be_valid(cls, v: str) -> str:
        if not is_size(v):
            raise ValueError("disk size must be digits followed by G or M")
        return v

    def to_record(self) -> Dict[str, str]:
        """Flatten to the string key/value pairs stored on disk."""
        data = self.model_dump()
        record = {}
        for key in RECORD_FIELDS:
            value = data[key]
            if isinstance(value, bool):
                record[key] = "true" if value else "false"
            else:
                record[key] = str(value)
        return record

    @classmethod
    def from_record(cls, record: Dict[str, str]) -> "VMConfig":
        """Rebuild a profile from a record. Raises pydantic errors on bad data."""
        missing = [key for key in RECORD_FIELDS if key not in record]
        if missing:
            raise ValueError(f"missing fields: {', '.join(missing)}")
        return cls.model_validate({key: record[key] for key in RECORD_FIELDS})

    def redacted(self) -> Dict[str, str]:
        """Record form with the password masked, for display."""
        record = self.to_record()
        record["password"] = "***"
        return record


class LockState(str, Enum):
    """Outcome of a disk image lock check."""

    FREE = "free"
    HELD_BY_SELF = "held_by_self"
    HELD_BY_OTHER = "held_by_other"


@dataclass(frozen=True)
class LockCheckResult:
    """Result of a single pre-start lock check. Never cached."""

    state: LockState
    vm_name: str
    holding_pid: Optional[int] = None
    all_holders: Tuple[int, ...] = field(default_factory=tuple)
    guard_state: Optional[str] = None

    @property
    def is_free(self) -> bool:
        return self.state == LockState.FREE
