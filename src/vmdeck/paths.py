"""
Canonical path helpers for the vmdeck store directory.

Every module that needs to locate VM artifacts (records, disk images,
cloud-init seeds) should import from here instead of computing paths
inline.
"""

import os
from pathlib import Path

RECORD_SUFFIX = ".conf"
IMAGE_SUFFIX = ".img"
SEED_SUFFIX = "-seed.iso"


# ── store root ───────────────────────────────────────────────────────────────

def default_root() -> Path:
    """~/vms unless overridden by VMDECK_HOME."""
    return Path(os.getenv("VMDECK_HOME", str(Path.home() / "vms"))).expanduser()


# ── per-VM artefacts ─────────────────────────────────────────────────────────

def record_path(root: Path, vm_name: str) -> Path:
    """Path of the definition record for *vm_name*."""
    return Path(root) / f"{vm_name}{RECORD_SUFFIX}"


def image_path(root: Path, vm_name: str) -> Path:
    """Backing qcow2 disk image for *vm_name*."""
    return Path(root) / f"{vm_name}{IMAGE_SUFFIX}"


def seed_path(root: Path, vm_name: str) -> Path:
    """Cloud-init NoCloud seed ISO for *vm_name*."""
    return Path(root) / f"{vm_name}{SEED_SUFFIX}"
