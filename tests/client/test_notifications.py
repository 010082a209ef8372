"""Tests for notification system."""

import subprocess
from unittest.mock import MagicMock, patch

from dropsync.client.notifications import (
    DOWNLOAD_ACTION,
    Notification,
    NotificationType,
    RESPONSE_TIMEOUT,
    SystemNotifier,
    file_received_notification,
    send_notification,
)


class TestNotification:
    """Tests for Notification dataclass."""

    def test_notification_default_type(self) -> None:
        """Should default to INFO type."""
        notif = Notification(title="Title", message="Message")
        assert notif.type == NotificationType.INFO

    def test_file_received_notification(self) -> None:
        """Should carry the file name in the message."""
        notif = file_received_notification("report.pdf")

        assert notif.title == "New file received"
        assert "report.pdf" in notif.message
        assert notif.type == NotificationType.FILE_RECEIVED


class TestSendNotification:
    """Tests for platform dispatch."""

    @patch("dropsync.client.notifications.platform.system", return_value="Linux")
    @patch("dropsync.client.notifications.subprocess.run")
    def test_linux_uses_notify_send(self, mock_run: MagicMock, _: MagicMock) -> None:
        """Should call notify-send with title and message."""
        mock_run.return_value = subprocess.CompletedProcess([], 0, stdout="", stderr="")

        result = send_notification(Notification(title="Title", message="Body"))

        assert result is True
        command = mock_run.call_args[0][0]
        assert command[0] == "notify-send"
        assert command[-2:] == ["Title", "Body"]
        assert "--wait" not in command

    @patch("dropsync.client.notifications.platform.system", return_value="Linux")
    @patch("dropsync.client.notifications.subprocess.run")
    def test_linux_action_reports_response(self, mock_run: MagicMock, _: MagicMock) -> None:
        """Should call on_response when the download action is picked."""
        mock_run.return_value = subprocess.CompletedProcess(
            [], 0, stdout=f"{DOWNLOAD_ACTION}\n", stderr=""
        )
        on_response = MagicMock()

        send_notification(file_received_notification("a.txt"), on_response)

        command = mock_run.call_args[0][0]
        assert f"--action={DOWNLOAD_ACTION}=Download" in command
        assert "--wait" in command
        on_response.assert_called_once_with()

    @patch("dropsync.client.notifications.platform.system", return_value="Linux")
    @patch("dropsync.client.notifications.subprocess.run")
    def test_linux_dismissed(self, mock_run: MagicMock, _: MagicMock) -> None:
        """Should not report a response when the notification is dismissed."""
        mock_run.return_value = subprocess.CompletedProcess([], 0, stdout="", stderr="")
        on_response = MagicMock()

        send_notification(file_received_notification("a.txt"), on_response)

        on_response.assert_not_called()

    @patch("dropsync.client.notifications.platform.system", return_value="Linux")
    @patch("dropsync.client.notifications.subprocess.run")
    def test_linux_action_is_time_limited(self, mock_run: MagicMock, _: MagicMock) -> None:
        """Should stop waiting for a response after the timeout."""
        mock_run.side_effect = subprocess.TimeoutExpired(["notify-send"], RESPONSE_TIMEOUT)
        on_response = MagicMock()

        assert send_notification(file_received_notification("a.txt"), on_response) is True

        command = mock_run.call_args[0][0]
        assert f"--expire-time={RESPONSE_TIMEOUT * 1000}" in command
        assert mock_run.call_args.kwargs["timeout"] > RESPONSE_TIMEOUT
        on_response.assert_not_called()

    @patch("dropsync.client.notifications.platform.system", return_value="Linux")
    @patch("dropsync.client.notifications.subprocess.run", side_effect=FileNotFoundError)
    def test_linux_missing_tool(self, _run: MagicMock, _system: MagicMock) -> None:
        """Should return False when notify-send is missing."""
        assert send_notification(Notification(title="T", message="M")) is False

    @patch("dropsync.client.notifications.platform.system", return_value="Darwin")
    @patch("dropsync.client.notifications.subprocess.run")
    def test_macos_uses_osascript(self, mock_run: MagicMock, _: MagicMock) -> None:
        """Should escape quotes for osascript."""
        send_notification(Notification(title='Say "hi"', message="Body"))

        command = mock_run.call_args[0][0]
        assert command[0] == "osascript"
        assert '\\"hi\\"' in command[2]

    @patch("dropsync.client.notifications.platform.system", return_value="Plan9")
    def test_unsupported_platform(self, _: MagicMock) -> None:
        """Should return False on unknown systems."""
        assert send_notification(Notification(title="T", message="M")) is False


class TestSystemNotifier:
    """Tests for SystemNotifier permission handling."""

    @patch("dropsync.client.notifications.send_notification")
    @patch("dropsync.client.notifications.notifications_available", return_value=False)
    def test_denied_permission_skips_delivery(
        self, mock_available: MagicMock, mock_send: MagicMock
    ) -> None:
        """Should skip delivery and check availability only once."""
        notifier = SystemNotifier()

        assert notifier.notify(Notification(title="T", message="M")) is False
        assert notifier.notify(Notification(title="T", message="M")) is False

        mock_send.assert_not_called()
        mock_available.assert_called_once()

    @patch("dropsync.client.notifications.send_notification", return_value=True)
    @patch("dropsync.client.notifications.notifications_available", return_value=True)
    def test_granted_permission_delivers(
        self, _available: MagicMock, mock_send: MagicMock
    ) -> None:
        """Should forward the response callback."""
        on_response = MagicMock()
        notification = Notification(title="T", message="M")

        assert SystemNotifier().notify(notification, on_response) is True

        mock_send.assert_called_once_with(notification, on_response)
