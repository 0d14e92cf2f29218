"""Tests for the external-process helpers."""

import subprocess

import pytest

from story_launcher.install import platform_ops
from story_launcher.install.platform_ops import (
    check_returncode,
    clear_quarantine,
    open_command,
    run_command,
    spawn_detached,
)
from tests.launcher_test_utils import FakeRunner

pytestmark = [pytest.mark.unit]


class TestRunCommand:
    def test_does_not_raise_on_failure_status(self, mocker):
        completed = subprocess.CompletedProcess(["false"], 1, "", "")
        mock_run = mocker.patch("subprocess.run", return_value=completed)

        assert run_command(["false"]) is completed
        mock_run.assert_called_once_with(
            ["false"], capture_output=True, text=True, check=False
        )

    def test_missing_executable_raises_oserror(self, mocker):
        mocker.patch("subprocess.run", side_effect=FileNotFoundError("hdiutil"))

        with pytest.raises(OSError):
            run_command(["hdiutil", "info"])


class TestSpawnDetached:
    def test_discards_output(self, mocker):
        mock_popen = mocker.patch("subprocess.Popen")

        spawn_detached(["open", "/x.app"])

        args, kwargs = mock_popen.call_args
        assert args == (["open", "/x.app"],)
        assert kwargs["stdout"] is subprocess.DEVNULL
        assert kwargs["stderr"] is subprocess.DEVNULL


class TestCheckReturncode:
    def test_zero(self):
        check_returncode(subprocess.CompletedProcess(["x"], 0))

    def test_non_zero(self):
        with pytest.raises(subprocess.CalledProcessError):
            check_returncode(subprocess.CompletedProcess(["x"], 2))


class TestClearQuarantine:
    def test_runs_xattr(self, tmp_path):
        runner = FakeRunner()

        assert clear_quarantine(tmp_path / "Tool.app", runner=runner) is True
        assert runner.calls == [["xattr", "-cr", str(tmp_path / "Tool.app")]]

    def test_failure_returns_false(self, tmp_path):
        runner = FakeRunner(returncodes={"xattr": 1})

        assert clear_quarantine(tmp_path / "Tool.app", runner=runner) is False

    def test_missing_xattr_returns_false(self, tmp_path):
        def runner(args):
            raise FileNotFoundError("xattr")

        assert clear_quarantine(tmp_path / "Tool.app", runner=runner) is False


class TestOpenCommand:
    @pytest.mark.parametrize(
        "system, expected",
        [
            ("Darwin", ["open", "/apps/Tool.app"]),
            ("Linux", ["xdg-open", "/apps/Tool.app"]),
            ("Windows", ["cmd", "/c", "start", "", "/apps/Tool.app"]),
        ],
    )
    def test_per_platform(self, mocker, system, expected):
        mocker.patch.object(platform_ops.platform, "system", return_value=system)

        assert open_command("/apps/Tool.app") == expected

    def test_is_macos(self, mocker):
        mocker.patch.object(platform_ops.platform, "system", return_value="Darwin")

        assert platform_ops.is_macos() is True
