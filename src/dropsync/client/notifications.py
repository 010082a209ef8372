"""Cross-platform system notifications for dropsync.

This module provides:
- Native OS notifications (Windows toast, macOS notification center, Linux notify-send)
- A response hook: on Linux the notification carries a "Download" action and
  the caller is told when the user picks it
- SystemNotifier: the default Notifier used by the status watcher
"""

from __future__ import annotations

import logging
import platform
import shutil
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

logger = logging.getLogger(__name__)

APP_NAME = "DropSync"

# Action key reported by notify-send when the user clicks "Download"
DOWNLOAD_ACTION = "download"

# Seconds an actionable notification stays open before it is closed unanswered
RESPONSE_TIMEOUT = 30

ResponseCallback = Callable[[], None]


class NotificationType(Enum):
    """Type of notification."""

    INFO = auto()
    FILE_RECEIVED = auto()


@dataclass
class Notification:
    """Represents a notification to display."""

    title: str
    message: str
    type: NotificationType = NotificationType.INFO


class Notifier(Protocol):
    """Delivers notifications to the user."""

    def notify(
        self,
        notification: Notification,
        on_response: ResponseCallback | None = None,
    ) -> bool:
        """Deliver a notification.

        Args:
            notification: The notification to show.
            on_response: Called if the user acts on the notification.

        Returns:
            True if the notification was delivered.
        """
        ...


def _notify_windows(notification: Notification) -> bool:
    """Send notification on Windows using PowerShell toast.

    Args:
        notification: The notification to send.

    Returns:
        True if notification was sent successfully.
    """
    try:
        ps_script = f'''
        [Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, ContentType = WindowsRuntime] | Out-Null
        [Windows.Data.Xml.Dom.XmlDocument, Windows.Data.Xml.Dom.XmlDocument, ContentType = WindowsRuntime] | Out-Null

        $template = @"
        <toast>
            <visual>
                <binding template="ToastText02">
                    <text id="1">{notification.title}</text>
                    <text id="2">{notification.message}</text>
                </binding>
            </visual>
        </toast>
"@

        $xml = New-Object Windows.Data.Xml.Dom.XmlDocument
        $xml.LoadXml($template)
        $toast = New-Object Windows.UI.Notifications.ToastNotification $xml
        [Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier("{APP_NAME}").Show($toast)
        '''

        subprocess.run(
            ["powershell", "-ExecutionPolicy", "Bypass", "-Command", ps_script],
            capture_output=True,
            check=False,
            creationflags=subprocess.CREATE_NO_WINDOW if hasattr(subprocess, "CREATE_NO_WINDOW") else 0,
        )
        return True
    except Exception as e:
        logger.debug(f"Windows notification failed: {e}")
        return False


def _notify_macos(notification: Notification) -> bool:
    """Send notification on macOS using osascript.

    Args:
        notification: The notification to send.

    Returns:
        True if notification was sent successfully.
    """
    try:
        title = notification.title.replace('"', '\\"')
        message = notification.message.replace('"', '\\"')

        script = f'display notification "{message}" with title "{title}" sound name "default"'
        subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            check=True,
        )
        return True
    except Exception as e:
        logger.debug(f"macOS notification failed: {e}")
        return False


def _notify_linux(
    notification: Notification,
    on_response: ResponseCallback | None = None,
) -> bool:
    """Send notification on Linux using notify-send.

    When ``on_response`` is given the notification offers a "Download"
    action and this call blocks until the notification is closed, for at
    most RESPONSE_TIMEOUT seconds.

    Args:
        notification: The notification to send.
        on_response: Called if the user picks the action.

    Returns:
        True if notification was sent successfully.
    """
    command = [
        "notify-send",
        "--urgency", "normal",
        "--app-name", APP_NAME,
    ]
    if on_response is not None:
        command += [
            f"--action={DOWNLOAD_ACTION}=Download",
            "--wait",
            f"--expire-time={RESPONSE_TIMEOUT * 1000}",
        ]
    command += [notification.title, notification.message]

    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            check=True,
            timeout=RESPONSE_TIMEOUT + 5 if on_response is not None else None,
        )
    except subprocess.TimeoutExpired:
        # Some notification servers ignore the expire time
        logger.debug("Notification closed without a response")
        return True
    except FileNotFoundError:
        logger.debug("notify-send not found")
        return False
    except Exception as e:
        logger.debug(f"Linux notification failed: {e}")
        return False

    if on_response is not None and result.stdout.strip() == DOWNLOAD_ACTION:
        on_response()
    return True


def send_notification(
    notification: Notification,
    on_response: ResponseCallback | None = None,
) -> bool:
    """Send a system notification.

    Uses native OS notification system:
    - Windows: Toast notification via PowerShell
    - macOS: Notification Center via osascript
    - Linux: notify-send (the only backend reporting responses)

    Args:
        notification: The notification to send.
        on_response: Called if the user acts on the notification.

    Returns:
        True if notification was sent, False if failed or unavailable.
    """
    system = platform.system()

    if system == "Windows":
        return _notify_windows(notification)
    elif system == "Darwin":
        return _notify_macos(notification)
    elif system == "Linux":
        return _notify_linux(notification, on_response)
    else:
        logger.warning(f"Notifications not supported on {system}")
        return False


def notifications_available() -> bool:
    """Check whether the platform notification tool is installed."""
    system = platform.system()
    if system == "Windows":
        return shutil.which("powershell") is not None
    if system == "Darwin":
        return shutil.which("osascript") is not None
    if system == "Linux":
        return shutil.which("notify-send") is not None
    return False


def file_received_notification(file_name: str) -> Notification:
    """Build the notification shown when a new file arrives."""
    return Notification(
        title="New file received",
        message=f"Tap to download: {file_name}",
        type=NotificationType.FILE_RECEIVED,
    )


class SystemNotifier:
    """Notifier backed by the native OS notification system."""

    def __init__(self) -> None:
        self._permitted: bool | None = None

    def request_permission(self) -> bool:
        """Check once whether notifications can be delivered.

        Returns:
            True if the platform notification tool is available.
        """
        if self._permitted is None:
            self._permitted = notifications_available()
            if self._permitted:
                logger.info("Notifications enabled")
            else:
                logger.warning("Notifications unavailable on this system")
        return self._permitted

    def notify(
        self,
        notification: Notification,
        on_response: ResponseCallback | None = None,
    ) -> bool:
        """Deliver a notification if permitted."""
        if not self.request_permission():
            logger.debug(f"Skipping notification: {notification.title}")
            return False
        return send_notification(notification, on_response)
