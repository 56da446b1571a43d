from __future__ import annotations

import subprocess
import sys
from datetime import timedelta

import psutil
import pytest

from screen_time import probes
from screen_time.errors import ProbeUnavailable
from screen_time.probes import (
    LinuxIdleProbe,
    LockScreenProbe,
    MacIdleProbe,
    WindowsIdleProbe,
    create_activity_probe,
)


def fake_run(stdout: str = "", error: Exception | None = None):
    def _run(args, **kwargs):
        if error is not None:
            raise error
        return subprocess.CompletedProcess(args, 0, stdout=stdout, stderr="")

    return _run


class FakeProcess:
    def __init__(self, name):
        self.info = {"name": name}


class TestLinuxIdleProbe:
    def test_parses_milliseconds(self, monkeypatch):
        monkeypatch.setattr(probes.subprocess, "run", fake_run("1500\n"))
        assert LinuxIdleProbe().idle_seconds() == 1.5

    def test_recent_input_is_active(self, monkeypatch):
        monkeypatch.setattr(probes.subprocess, "run", fake_run("59000\n"))
        assert LinuxIdleProbe().is_user_active() is True

    def test_minute_without_input_is_inactive(self, monkeypatch):
        monkeypatch.setattr(probes.subprocess, "run", fake_run("60000\n"))
        assert LinuxIdleProbe().is_user_active() is False

    def test_custom_active_window(self, monkeypatch):
        monkeypatch.setattr(probes.subprocess, "run", fake_run("60000\n"))
        probe = LinuxIdleProbe(active_window=timedelta(minutes=2))
        assert probe.is_user_active() is True

    def test_missing_command_is_unavailable(self, monkeypatch):
        monkeypatch.setattr(
            probes.subprocess, "run", fake_run(error=FileNotFoundError("xprintidle"))
        )
        with pytest.raises(ProbeUnavailable):
            LinuxIdleProbe().is_user_active()

    def test_failed_command_is_unavailable(self, monkeypatch):
        error = subprocess.CalledProcessError(1, ["xprintidle"])
        monkeypatch.setattr(probes.subprocess, "run", fake_run(error=error))
        with pytest.raises(ProbeUnavailable):
            LinuxIdleProbe().idle_seconds()

    def test_garbage_output_is_unavailable(self, monkeypatch):
        monkeypatch.setattr(probes.subprocess, "run", fake_run("couldn't open display\n"))
        with pytest.raises(ProbeUnavailable):
            LinuxIdleProbe().idle_seconds()


class TestMacIdleProbe:
    IOREG_OUTPUT = (
        '+-o IOHIDSystem  <class IOHIDSystem>\n'
        '    | {\n'
        '    |   "HIDIdleTime" = 2500000000\n'
        '    | }\n'
    )

    def test_parses_nanoseconds(self, monkeypatch):
        monkeypatch.setattr(probes.subprocess, "run", fake_run(self.IOREG_OUTPUT))
        assert MacIdleProbe().idle_seconds() == 2.5

    def test_missing_field_is_unavailable(self, monkeypatch):
        monkeypatch.setattr(probes.subprocess, "run", fake_run("+-o IOHIDSystem\n"))
        with pytest.raises(ProbeUnavailable):
            MacIdleProbe().idle_seconds()


class TestCreateActivityProbe:
    def test_linux(self):
        assert isinstance(create_activity_probe("linux"), LinuxIdleProbe)

    def test_mac(self):
        assert isinstance(create_activity_probe("darwin"), MacIdleProbe)

    def test_active_window_is_forwarded(self):
        probe = create_activity_probe("linux", active_window=timedelta(seconds=30))
        assert probe.active_window == timedelta(seconds=30)

    @pytest.mark.skipif(sys.platform.startswith("win"), reason="Win32 APIs present")
    def test_windows_probe_unavailable_elsewhere(self):
        with pytest.raises(ProbeUnavailable):
            WindowsIdleProbe()


class TestLockScreenProbe:
    def test_detects_lock_process(self, monkeypatch):
        procs = [FakeProcess("python"), FakeProcess("LogonUI.exe")]
        monkeypatch.setattr(probes.psutil, "process_iter", lambda attrs: iter(procs))
        assert LockScreenProbe(platform="win32").is_locked() is True

    def test_unlocked_without_lock_process(self, monkeypatch):
        procs = [FakeProcess("bash"), FakeProcess(None)]
        monkeypatch.setattr(probes.psutil, "process_iter", lambda attrs: iter(procs))
        assert LockScreenProbe(platform="linux").is_locked() is False

    def test_process_table_error_is_unknown(self, monkeypatch):
        def broken(attrs):
            raise psutil.AccessDenied()

        monkeypatch.setattr(probes.psutil, "process_iter", broken)
        assert LockScreenProbe(platform="darwin").is_locked() is None

    def test_custom_process_names(self, monkeypatch):
        procs = [FakeProcess("MyLocker")]
        monkeypatch.setattr(probes.psutil, "process_iter", lambda attrs: iter(procs))
        assert LockScreenProbe(process_names=["mylocker"]).is_locked() is True
