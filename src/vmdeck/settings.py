"""
Runtime settings for vmdeck, read from the environment.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from vmdeck.paths import default_root

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseModel):
    """Process-level settings. Passed explicitly, never stored globally."""

    root: Path = Field(default_factory=default_root, description="Store directory")
    log_level: str = Field(default="WARNING", description="Log level")
    json_logs: bool = Field(default=False, description="Emit JSON log lines")
    log_file: Optional[Path] = Field(default=None, description="Also write JSON logs here")
    qemu_binary: str = Field(default="qemu-system-x86_64", description="Hypervisor executable")
    qemu_img_binary: str = Field(default="qemu-img", description="Disk image tool")

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        v = v.upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(LOG_LEVELS)}")
        return v

    @classmethod
    def from_env(
        cls,
        root: Optional[Path] = None,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
    ) -> "Settings":
        """Build settings from VMDECK_* variables; explicit arguments win."""
        data = {}
        if root is not None:
            data["root"] = Path(root).expanduser()
        if log_level or os.getenv("VMDECK_LOG_LEVEL"):
            data["log_level"] = log_level or os.getenv("VMDECK_LOG_LEVEL")
        if log_file or os.getenv("VMDECK_LOG_FILE"):
            data["log_file"] = Path(log_file or os.getenv("VMDECK_LOG_FILE")).expanduser()
        if os.getenv("VMDECK_JSON_LOGS"):
            data["json_logs"] = os.getenv("VMDECK_JSON_LOGS", "").lower() in ("1", "true", "yes")
        if os.getenv("VMDECK_QEMU_BINARY"):
            data["qemu_binary"] = os.getenv("VMDECK_QEMU_BINARY")
        if os.getenv("VMDECK_QEMU_IMG_BINARY"):
            data["qemu_img_binary"] = os.getenv("VMDECK_QEMU_IMG_BINARY")
        return cls(**data)
