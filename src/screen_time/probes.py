"""Platform activity probes used to decide whether the user is present."""

from __future__ import annotations

import ctypes
import logging
import subprocess
import sys
from datetime import timedelta
from typing import Iterable, Optional, Protocol

import psutil

from .errors import ProbeUnavailable

logger = logging.getLogger(__name__)

DEFAULT_ACTIVE_WINDOW = timedelta(minutes=1)
_COMMAND_TIMEOUT_SECONDS = 2.0


class ActivityProbe(Protocol):
    def is_user_active(self) -> bool:
        ...


class IdleTimeProbe:
    """Treats the user as active while input happened within ``active_window``."""

    def __init__(self, active_window: timedelta = DEFAULT_ACTIVE_WINDOW) -> None:
        self.active_window = active_window

    def idle_seconds(self) -> float:
        raise NotImplementedError

    def is_user_active(self) -> bool:
        return self.idle_seconds() < self.active_window.total_seconds()


class WindowsIdleProbe(IdleTimeProbe):
    """Detects idle time using Win32 APIs."""

    class LASTINPUTINFO(ctypes.Structure):
        _fields_ = [("cbSize", ctypes.c_uint), ("dwTime", ctypes.c_uint)]

    def __init__(self, active_window: timedelta = DEFAULT_ACTIVE_WINDOW) -> None:
        super().__init__(active_window)
        try:
            self._user32 = ctypes.windll.user32  # type: ignore[attr-defined]
            self._kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]
        except AttributeError as exc:
            raise ProbeUnavailable("Win32 APIs are not available on this platform") from exc

    def milliseconds_since_input(self) -> int:
        last_input = self.LASTINPUTINFO()
        last_input.cbSize = ctypes.sizeof(last_input)
        if not self._user32.GetLastInputInfo(ctypes.byref(last_input)):
            raise ctypes.WinError()  # type: ignore[attr-defined]
        # dwTime wraps with the 32-bit tick counter.
        now = self._kernel32.GetTickCount64() & 0xFFFFFFFF
        return int((now - last_input.dwTime) & 0xFFFFFFFF)

    def idle_seconds(self) -> float:
        try:
            return self.milliseconds_since_input() / 1000.0
        except OSError as exc:
            raise ProbeUnavailable(f"GetLastInputInfo failed: {exc}") from exc


class CommandIdleProbe(IdleTimeProbe):
    """Runs an external command and parses an idle duration from its output."""

    command: tuple[str, ...] = ()

    def idle_seconds(self) -> float:
        try:
            result = subprocess.run(
                list(self.command),
                capture_output=True,
                text=True,
                timeout=_COMMAND_TIMEOUT_SECONDS,
                check=True,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise ProbeUnavailable(f"{self.command[0]} failed: {exc}") from exc
        try:
            return self.parse(result.stdout)
        except ValueError as exc:
            raise ProbeUnavailable(
                f"Unexpected output from {self.command[0]}: {result.stdout!r}"
            ) from exc

    def parse(self, output: str) -> float:
        raise NotImplementedError


class LinuxIdleProbe(CommandIdleProbe):
    """X11 idle time through ``xprintidle`` (milliseconds)."""

    command = ("xprintidle",)

    def parse(self, output: str) -> float:
        return int(output.strip()) / 1000.0


class MacIdleProbe(CommandIdleProbe):
    """HID idle time reported by ``ioreg`` (nanoseconds)."""

    command = ("ioreg", "-c", "IOHIDSystem")

    def parse(self, output: str) -> float:
        for line in output.splitlines():
            if "HIDIdleTime" in line:
                return int(line.rsplit("=", 1)[-1].strip()) / 1_000_000_000
        raise ValueError("HIDIdleTime not found")


def create_activity_probe(
    platform: Optional[str] = None,
    active_window: timedelta = DEFAULT_ACTIVE_WINDOW,
) -> IdleTimeProbe:
    """Return the idle probe for ``platform`` (defaults to ``sys.platform``)."""
    platform = platform or sys.platform
    if platform.startswith("win"):
        return WindowsIdleProbe(active_window)
    if platform == "darwin":
        return MacIdleProbe(active_window)
    return LinuxIdleProbe(active_window)


_LOCK_SCREEN_PROCESSES: dict[str, tuple[str, ...]] = {
    "win": ("logonui.exe",),
    "darwin": ("screensaverengine",),
    "linux": (
        "i3lock",
        "swaylock",
        "slock",
        "xsecurelock",
        "gnome-screensaver-dialog",
        "kscreenlocker_greet",
    ),
}


class LockScreenProbe:
    """Reports whether a known lock-screen process is running."""

    def __init__(
        self,
        platform: Optional[str] = None,
        process_names: Optional[Iterable[str]] = None,
    ) -> None:
        if process_names is None:
            process_names = _lock_processes_for(platform or sys.platform)
        self.process_names = frozenset(name.lower() for name in process_names)

    def is_locked(self) -> Optional[bool]:
        """Return ``None`` when the process table cannot be read."""
        if not self.process_names:
            return None
        try:
            for proc in psutil.process_iter(["name"]):
                name = proc.info.get("name")
                if name and name.lower() in self.process_names:
                    return True
        except psutil.Error:
            logger.exception("Failed to enumerate processes for lock detection.")
            return None
        return False


def _lock_processes_for(platform: str) -> tuple[str, ...]:
    if platform.startswith("win"):
        return _LOCK_SCREEN_PROCESSES["win"]
    if platform == "darwin":
        return _LOCK_SCREEN_PROCESSES["darwin"]
    return _LOCK_SCREEN_PROCESSES["linux"]
