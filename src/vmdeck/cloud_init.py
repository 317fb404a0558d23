#!/usr/bin/env python3
"""
Cloud-init seed generation for vmdeck VMs.
"""

import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple

import structlog
import yaml

from vmdeck.backends.subprocess_runner import SubprocessRunner
from vmdeck.interfaces.disk import SeedBuilder
from vmdeck.interfaces.process import ProcessRunner
from vmdeck.models import VMConfig

log = structlog.get_logger(__name__)

ISO_TOOLS = ("genisoimage", "mkisofs")


def generate_user_data(config: VMConfig) -> str:
    """Render the #cloud-config user-data for *config*."""
    user_data = {
        "hostname": config.hostname,
        "users": [
            {
                "name": config.username,
                "plain_text_passwd": config.password,
                "lock_passwd": False,
                "shell": "/bin/bash",
                "sudo": "ALL=(ALL) NOPASSWD:ALL",
                "groups": "sudo",
            }
        ],
        "password": config.password,
        "chpasswd": {"expire": False},
        "ssh_pwauth": True,
    }
    return "#cloud-config\n" + yaml.safe_dump(user_data, default_flow_style=False, sort_keys=False)


def generate_meta_data(config: VMConfig) -> str:
    """Render NoCloud meta-data."""
    return yaml.safe_dump(
        {"instance-id": f"{config.name}-01", "local-hostname": config.hostname},
        default_flow_style=False,
        sort_keys=False,
    )


def generate_cloud_init_config(config: VMConfig) -> Tuple[str, str]:
    """Return (user_data, meta_data) for *config*."""
    return generate_user_data(config), generate_meta_data(config)


class CloudInitSeedBuilder(SeedBuilder):
    """Build NoCloud seed ISOs with cloud-localds, or genisoimage/mkisofs."""

    def __init__(self, runner: Optional[ProcessRunner] = None):
        self.runner = runner or SubprocessRunner()

    def _seed_command(self, iso_path: Path, user_data: Path, meta_data: Path) -> List[str]:
        if shutil.which("cloud-localds"):
            return ["cloud-localds", str(iso_path), str(user_data), str(meta_data)]
        for tool in ISO_TOOLS:
            if shutil.which(tool):
                return [
                    tool,
                    "-output", str(iso_path),
                    "-volid", "cidata",
                    "-joliet", "-rock",
                    str(user_data), str(meta_data),
                ]
        raise FileNotFoundError("No seed creation tool found (cloud-localds, genisoimage or mkisofs)")

    def build(self, path: Path, config: VMConfig) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        user_data, meta_data = generate_cloud_init_config(config)

        with tempfile.TemporaryDirectory() as tmpdir:
            user_data_path = Path(tmpdir) / "user-data"
            user_data_path.write_text(user_data)
            meta_data_path = Path(tmpdir) / "meta-data"
            meta_data_path.write_text(meta_data)

            cmd = self._seed_command(path, user_data_path, meta_data_path)
            result = self.runner.run(cmd, timeout=60, cwd=Path(tmpdir))
            if not result.success:
                raise subprocess.CalledProcessError(
                    result.returncode, cmd, output=result.stdout, stderr=result.stderr
                )

        log.info("seed.created", vm_name=config.name, path=str(path), tool=cmd[0])
        return path
