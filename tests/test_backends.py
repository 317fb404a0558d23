#!/usr/bin/env python3
"""Tests for the psutil inspector, qemu launcher and qemu-img allocator."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import psutil
import pytest

from vmdeck.backends.psutil_inspector import PsutilProcessInspector
from vmdeck.backends.qemu_disk import QemuDiskAllocator
from vmdeck.backends.qemu_launcher import QemuProcessLauncher, build_qemu_command
from vmdeck.backends.subprocess_runner import SubprocessRunner
from vmdeck.exceptions import LaunchFailure, TerminationFailure
from vmdeck.interfaces.process import LaunchSpec, ProcessResult


def _proc(pid, name, files=(), open_files_error=None):
    proc = MagicMock()
    proc.info = {"pid": pid, "name": name}
    if open_files_error:
        proc.open_files.side_effect = open_files_error
    else:
        proc.open_files.return_value = [MagicMock(path=str(f)) for f in files]
    return proc


class TestPsutilProcessInspector:
    def test_missing_path_has_no_holders(self, tmp_path):
        with patch("vmdeck.backends.psutil_inspector.psutil.process_iter") as mock_iter:
            assert PsutilProcessInspector().holders(tmp_path / "missing.img") == []
        mock_iter.assert_not_called()

    @patch("vmdeck.backends.psutil_inspector.psutil.process_iter")
    def test_only_hypervisor_holders_reported(self, mock_iter, tmp_path):
        img = tmp_path / "dev.img"
        img.write_bytes(b"")
        mock_iter.return_value = [
            _proc(10, "bash", [img]),
            _proc(11, "qemu-system-x86_64", [tmp_path / "other.img"]),
            _proc(12, "qemu-system-x86_64", [img]),
            _proc(13, "qemu-system-aarch64", ["/dev/null", img]),
        ]

        assert PsutilProcessInspector().holders(img) == [12, 13]

    @patch("vmdeck.backends.psutil_inspector.psutil.process_iter")
    def test_skips_inaccessible_processes(self, mock_iter, tmp_path):
        img = tmp_path / "dev.img"
        img.write_bytes(b"")
        mock_iter.return_value = [
            _proc(20, "qemu-system-x86_64", open_files_error=psutil.AccessDenied(20)),
            _proc(21, "qemu-system-x86_64", open_files_error=psutil.NoSuchProcess(21)),
            _proc(22, "qemu-system-x86_64", [img]),
        ]

        assert PsutilProcessInspector().holders(img) == [22]

    @patch("vmdeck.backends.psutil_inspector.psutil.Process")
    def test_command_line_matches(self, mock_process):
        mock_process.return_value.cmdline.return_value = ["qemu-system-x86_64", "-name", "dev-vm"]
        inspector = PsutilProcessInspector()
        assert inspector.command_line_matches(5, "dev-vm") is True
        assert inspector.command_line_matches(5, "prod") is False

    @patch("vmdeck.backends.psutil_inspector.psutil.Process")
    def test_vanished_process_does_not_match(self, mock_process):
        mock_process.side_effect = psutil.NoSuchProcess(5)
        assert PsutilProcessInspector().command_line_matches(5, "dev-vm") is False

    @patch("vmdeck.backends.psutil_inspector.psutil.Process")
    def test_terminate_kills(self, mock_process):
        PsutilProcessInspector().terminate(5)
        mock_process.assert_called_once_with(5)
        mock_process.return_value.kill.assert_called_once()

    @pytest.mark.parametrize("error,reason", [
        (psutil.NoSuchProcess(5), "process no longer exists"),
        (psutil.AccessDenied(5), "permission denied"),
    ])
    @patch("vmdeck.backends.psutil_inspector.psutil.Process")
    def test_terminate_failure(self, mock_process, error, reason):
        mock_process.return_value.kill.side_effect = error
        with pytest.raises(TerminationFailure) as exc:
            PsutilProcessInspector().terminate(5)
        assert exc.value.reason == reason
        assert exc.value.pid == 5


@pytest.fixture
def spec(tmp_path):
    return LaunchSpec(
        vm_name="dev",
        memory_mb=2048,
        cpu_count=2,
        img_file_path=tmp_path / "dev.img",
        seed_file_path=tmp_path / "dev-seed.iso",
        ssh_port=2222,
    )


class TestQemuLauncher:
    def test_command_line(self, spec, tmp_path):
        cmd = build_qemu_command(spec)
        assert cmd[0] == "qemu-system-x86_64"
        assert cmd[cmd.index("-m") + 1] == "2048"
        assert cmd[cmd.index("-smp") + 1] == "2"
        assert cmd[cmd.index("-name") + 1] == "dev"
        assert f"file={tmp_path / 'dev.img'},format=qcow2" in cmd
        assert f"file={tmp_path / 'dev-seed.iso'},format=raw" in cmd
        assert "user,id=n1,hostfwd=tcp::2222-:22" in cmd
        assert cmd[-1] == "-nographic"

    def test_gui_mode_keeps_display(self, spec):
        gui_spec = LaunchSpec(**{**spec.__dict__, "gui_mode": True})
        assert "-nographic" not in build_qemu_command(gui_spec)

    @patch("vmdeck.backends.qemu_launcher.subprocess.Popen")
    def test_launch_returns_handle(self, mock_popen, spec):
        mock_popen.return_value.pid = 999
        mock_popen.return_value.wait.side_effect = subprocess.TimeoutExpired("qemu-custom", 0.5)
        mock_popen.return_value.poll.return_value = None

        handle = QemuProcessLauncher("qemu-custom").launch(spec)

        mock_popen.return_value.wait.assert_called_once_with(timeout=0.5)

        assert handle.pid == 999
        assert handle.vm_name == "dev"
        assert handle.command[0] == "qemu-custom"
        assert handle.is_running()

    @patch("vmdeck.backends.qemu_launcher.subprocess.Popen")
    def test_missing_binary(self, mock_popen, spec):
        mock_popen.side_effect = FileNotFoundError("qemu-system-x86_64")
        with pytest.raises(LaunchFailure) as exc:
            QemuProcessLauncher().launch(spec)
        assert exc.value.vm_name == "dev"

    @patch("vmdeck.backends.qemu_launcher.subprocess.Popen")
    @pytest.mark.parametrize("returncode", [1, 0])
    def test_exit_during_startup_is_failure(self, mock_popen, spec, returncode):
        mock_popen.return_value.wait.return_value = returncode
        with pytest.raises(LaunchFailure, match=f"exited with code {returncode} during startup"):
            QemuProcessLauncher(startup_grace=0.1).launch(spec)
        mock_popen.return_value.wait.assert_called_once_with(timeout=0.1)


class TestQemuDiskAllocator:
    def test_create_disk(self, tmp_path):
        runner = MagicMock()
        runner.run.return_value = ProcessResult(returncode=0, stdout="", stderr="")
        path = tmp_path / "sub" / "dev.img"

        assert QemuDiskAllocator(runner).create_disk(path, "20G") == path

        runner.run.assert_called_once_with(
            ["qemu-img", "create", "-f", "qcow2", str(path), "20G"], timeout=120
        )
        assert path.parent.is_dir()

    def test_create_disk_failure(self, tmp_path):
        runner = MagicMock()
        runner.run.return_value = ProcessResult(returncode=1, stdout="", stderr="no space")
        with pytest.raises(subprocess.CalledProcessError) as exc:
            QemuDiskAllocator(runner).create_disk(tmp_path / "dev.img", "20G")
        assert exc.value.stderr == "no space"


class TestSubprocessRunner:
    @patch("vmdeck.backends.subprocess_runner.subprocess.run")
    def test_run(self, mock_run):
        mock_run.return_value = MagicMock(returncode=3, stdout="out", stderr="err")

        result = SubprocessRunner().run(["tool", "arg"], timeout=5, cwd=Path("/tmp"))

        assert result == ProcessResult(returncode=3, stdout="out", stderr="err")
        assert not result.success
        _, kwargs = mock_run.call_args
        assert kwargs["cwd"] == "/tmp"
        assert kwargs["check"] is False
