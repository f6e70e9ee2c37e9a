import subprocess
import sys
from typing import Any, cast

import psutil

from focusbuddy.watchers.logger import logger

if sys.platform == "win32":
    import pywintypes  # pyright: ignore[reportMissingImports]
    import win32gui  # pyright: ignore[reportMissingImports]
    import win32process  # pyright: ignore[reportMissingImports]
else:  # pragma: no cover
    pywintypes = cast("Any", None)
    win32gui = cast("Any", None)
    win32process = cast("Any", None)

OSASCRIPT = "/usr/bin/osascript"
_MAC_APP_SCRIPT = (
    'tell application "System Events" to get name of first application process '
    "whose frontmost is true"
)
_MAC_TITLE_SCRIPT = (
    'tell application "System Events" to get name of window 1 of first '
    "application process whose frontmost is true"
)

EMPTY_WINDOW: dict[str, str | None] = {"active_app": None, "title": None}


def _get_active_app_windows() -> dict[str, str | None]:
    hwnd = win32gui.GetForegroundWindow()
    if not hwnd:
        return dict(EMPTY_WINDOW)

    try:
        title = win32gui.GetWindowText(hwnd)
        _, pid = win32process.GetWindowThreadProcessId(hwnd)
    except pywintypes.error:
        return dict(EMPTY_WINDOW)

    try:
        process = psutil.Process(pid)
        process_name = process.name()
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return dict(EMPTY_WINDOW)
    return {"active_app": process_name, "title": title}


def _run_osascript(script: str) -> str | None:
    try:
        result = subprocess.run(  # noqa: S603
            [OSASCRIPT, "-e", script],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.warning("osascript failed: %s", exc)
        return None
    if result.returncode != 0 or result.stderr.strip():
        return None
    return result.stdout.strip() or None


def _get_active_app_macos() -> dict[str, str | None]:
    return {
        "active_app": _run_osascript(_MAC_APP_SCRIPT),
        "title": _run_osascript(_MAC_TITLE_SCRIPT),
    }


def get_active_app() -> dict[str, str | None]:
    """Return the foreground application and window title.

    Supported on Windows (pywin32) and macOS (osascript); other platforms
    report nothing.
    """
    if sys.platform == "win32":
        return _get_active_app_windows()
    if sys.platform == "darwin":
        return _get_active_app_macos()
    return dict(EMPTY_WINDOW)
