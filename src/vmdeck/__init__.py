"""
vmdeck - Define, persist and launch lightweight QEMU virtual machines.

VM profiles are stored as flat records in a single directory and every
start is preceded by a disk-image lock check.
"""

__version__ = "0.1.0"
__author__ = "vmdeck Team"

from vmdeck.lifecycle import VMLifecycleController, create_default_controller
from vmdeck.models import VMConfig, VMDraft

__all__ = [
    "VMLifecycleController",
    "VMConfig",
    "VMDraft",
    "create_default_controller",
    "__version__",
]
