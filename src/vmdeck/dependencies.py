"""Host tool checks run before the CLI does anything."""

import shutil
from typing import List, Sequence, Tuple

# Each entry is satisfied if any one of its alternatives is on PATH.
REQUIRED_TOOLS: Tuple[Tuple[str, ...], ...] = (
    ("qemu-system-x86_64",),
    ("qemu-img",),
    ("cloud-localds", "genisoimage", "mkisofs"),
)

INSTALL_HINT = "Install qemu-system-x86, qemu-utils and cloud-image-utils (or genisoimage)"


def check_dependencies(required: Sequence[Tuple[str, ...]] = REQUIRED_TOOLS) -> List[str]:
    """Return a description of every missing requirement; empty when all present."""
    missing = []
    for alternatives in required:
        if not any(shutil.which(tool) for tool in alternatives):
            missing.append(" or ".join(alternatives))
    return missing
