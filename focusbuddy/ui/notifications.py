import platform
import sys
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from focusbuddy.model.config import MonitoringConfig
from focusbuddy.model.models import FinalJudgment, FocusState
from focusbuddy.watchers.logger import logger

if sys.platform == "win32":
    from win10toast import ToastNotifier  # type: ignore[import-untyped, unused-ignore]

APP_TITLE = "FocusBuddy"


class NotificationLevel(Enum):
    """Notification severity levels used by the service."""

    INFO = "info"
    WARNING = "warning"


@dataclass
class NotificationConfig:
    """Configuration for :class:`NotificationService`."""

    enable_toast: bool = False
    toast_duration: int = 5


class NotificationService:
    """Desktop notifications with history tracking.

    Toasts are only shown on Windows; elsewhere the notification is recorded
    and reported as not delivered.
    """

    def __init__(self, config: NotificationConfig | None = None) -> None:
        self.platform = platform.system()
        self.config = config or NotificationConfig()
        self._history: list[dict[str, Any]] = []

    def notify(
        self,
        title: str,
        message: str,
        level: NotificationLevel = NotificationLevel.INFO,
    ) -> bool:
        delivered = False
        if self.config.enable_toast and self.platform == "Windows":
            notifier = ToastNotifier()
            notifier.show_toast(  # pyright: ignore[reportUnknownMemberType]
                title, message, duration=self.config.toast_duration, threaded=True
            )
            delivered = True
        self._history.append(
            {
                "title": title,
                "message": message,
                "level": level.value,
                "timestamp": time.time(),
                "delivered": delivered,
            },
        )
        return delivered

    def get_notification_history(self) -> list[dict[str, Any]]:
        """Return a copy of the notification history."""
        return list(self._history)


class Alerter(Protocol):
    def notify(self, judgment: FinalJudgment) -> None: ...


_STATE_ICONS = {
    FocusState.FOCUSED: "✓",
    FocusState.DISTRACTED: "⚠",
    FocusState.AWAY: "⏸",
}

_STATE_LEVELS = {
    FocusState.FOCUSED: NotificationLevel.INFO,
    FocusState.DISTRACTED: NotificationLevel.WARNING,
    FocusState.AWAY: NotificationLevel.INFO,
}


def format_judgment_line(judgment: FinalJudgment) -> str:
    """One-line entry for the focus-session log file."""
    stamp = datetime.fromtimestamp(judgment.timestamp).strftime("%Y-%m-%d %H:%M:%S")
    reason = judgment.reason.replace("\n", " | ")
    return (
        f"[{stamp}] {judgment.state.value.capitalize()} - {reason} "
        f"(Confidence: {judgment.confidence:.0%})\n"
    )


class AlertService:
    """Routes published judgments to the terminal, toasts and a session log."""

    def __init__(
        self,
        config: MonitoringConfig,
        notifications: NotificationService | None = None,
    ) -> None:
        self.config = config
        self.notifications = notifications or NotificationService(
            NotificationConfig(enable_toast=config.enable_system_notifications)
        )
        self.log_file: Path | None = None
        if config.enable_logging:
            config.log_path.mkdir(parents=True, exist_ok=True)
            self.log_file = (
                config.log_path / f"focus-session-{datetime.now():%Y-%m-%d}.log"
            )

    def notify(self, judgment: FinalJudgment) -> None:
        if self.config.enable_terminal_alerts:
            self._show_terminal(judgment)
        if self.config.enable_system_notifications:
            title = (
                f"{APP_TITLE} - Focus!"
                if judgment.state is FocusState.DISTRACTED
                else APP_TITLE
            )
            self.notifications.notify(
                title, judgment.reason, _STATE_LEVELS[judgment.state]
            )
        if self.log_file is not None:
            with self.log_file.open("a", encoding="utf-8") as f:
                f.write(format_judgment_line(judgment))

    def _show_terminal(self, judgment: FinalJudgment) -> None:
        icon = _STATE_ICONS.get(judgment.state, "?")
        logger.info(
            "[%s] %s %s (%.0f%%)",
            judgment.state.value.upper(),
            icon,
            judgment.reason,
            judgment.confidence * 100,
        )
