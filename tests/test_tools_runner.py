"""Tests for tools/runner.py - subprocess helpers."""

import subprocess
from unittest.mock import patch

import pytest

from winusb_maker.tools.runner import (
    CommandError,
    MissingToolError,
    refresh_sudo,
    require_tools,
    run_command,
    tool_available,
)


class TestRunCommand:
    """Tests for run_command."""

    def test_success_returns_output(self):
        """Captured output is returned as bytes."""
        with patch("winusb_maker.tools.runner.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(
                ["diskutil", "list"], 0, stdout=b"<plist/>", stderr=b""
            )
            result = run_command(["diskutil", "list"])

            assert result.stdout == b"<plist/>"
            mock_run.assert_called_once_with(
                ["diskutil", "list"], capture_output=True, check=False
            )

    def test_sudo_prefix(self):
        """sudo=True prefixes the command."""
        with patch("winusb_maker.tools.runner.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess([], 0, b"", b"")
            run_command(["diskutil", "eject", "/dev/disk4"], sudo=True)

            argv = mock_run.call_args[0][0]
            assert argv == ["sudo", "diskutil", "eject", "/dev/disk4"]

    def test_streaming_mode(self):
        """capture=False lets the tool write to the inherited streams."""
        with patch("winusb_maker.tools.runner.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess([], 0, None, None)
            run_command(["rsync", "-a", "a/", "b/"], capture=False)

            assert mock_run.call_args[1]["capture_output"] is False

    def test_failure_raises_with_stderr(self):
        """Non-zero exit raises CommandError carrying stderr and exit code."""
        with patch("winusb_maker.tools.runner.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(
                [], 1, stdout=b"", stderr=b"Could not find disk: disk99\n"
            )
            with pytest.raises(CommandError) as exc_info:
                run_command(["diskutil", "info", "disk99"])

            assert exc_info.value.exit_code == 1
            assert "Could not find disk: disk99" in exc_info.value.message
            assert "diskutil info disk99" in exc_info.value.message

    def test_failure_without_check(self):
        """check=False returns the failed process."""
        with patch("winusb_maker.tools.runner.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess([], 3, b"", b"")
            result = run_command(["brew", "list", "--versions", "wimlib"], check=False)
            assert result.returncode == 3

    def test_missing_executable(self):
        """OSError while starting the tool becomes CommandError."""
        with patch(
            "winusb_maker.tools.runner.subprocess.run",
            side_effect=FileNotFoundError("No such file or directory: 'hdiutil'"),
        ):
            with pytest.raises(CommandError) as exc_info:
                run_command(["hdiutil", "attach", "x.iso"])

            assert exc_info.value.error_code == "execution_error"
            assert exc_info.value.exit_code is None


class TestRequireTools:
    """Tests for tool_available and require_tools."""

    def test_tool_available(self):
        """tool_available consults PATH."""
        with patch("winusb_maker.tools.runner.shutil.which", return_value="/usr/bin/x"):
            assert tool_available("x") is True
        with patch("winusb_maker.tools.runner.shutil.which", return_value=None):
            assert tool_available("x") is False

    def test_all_present(self):
        """No error when every tool is on PATH."""
        with patch("winusb_maker.tools.runner.shutil.which", return_value="/usr/bin/x"):
            require_tools(["diskutil", "hdiutil", "rsync"])

    def test_names_missing_tool(self):
        """The first missing tool is named."""

        def which(tool):
            return None if tool == "hdiutil" else f"/usr/sbin/{tool}"

        with patch("winusb_maker.tools.runner.shutil.which", side_effect=which):
            with pytest.raises(MissingToolError) as exc_info:
                require_tools(["diskutil", "hdiutil", "rsync"])

        assert exc_info.value.tool == "hdiutil"
        assert "hdiutil" in exc_info.value.message


class TestRefreshSudo:
    """Tests for refresh_sudo."""

    def test_runs_sudo_v(self):
        """sudo -v is run without capturing so the password prompt shows."""
        with patch("winusb_maker.tools.runner.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess([], 0, None, None)
            refresh_sudo()

            mock_run.assert_called_once_with(
                ["sudo", "-v"], capture_output=False, check=False
            )
