"""Subprocess process runner implementation."""

import subprocess
from pathlib import Path
from typing import List, Optional

import structlog

from ..interfaces.process import ProcessResult, ProcessRunner

log = structlog.get_logger(__name__)


class SubprocessRunner(ProcessRunner):
    """Run helper tools using the subprocess module."""

    def run(
        self,
        command: List[str],
        timeout: Optional[int] = None,
        cwd: Optional[Path] = None,
    ) -> ProcessResult:
        """Run a command."""
        log.debug("process.run", command=command)
        result = subprocess.run(
            command,
            capture_output=True,
            timeout=timeout,
            check=False,
            cwd=str(cwd) if cwd else None,
            text=True,
        )
        return ProcessResult(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
