"""Status watcher for files arriving through the file drop.

This module provides:
- StatusWatcher: polls GET /status on a fixed interval, tracks connectivity
  and the last known file, and raises a notification when a new file shows up
- Auto-download hand-off: acting on a notification sets a flag that a
  consumer reads and clears exactly once

Architecture:
    timer tick ──► poll task ──► HTTPClient.get_status() ──► WatcherState
                                                      └──► Notifier (executor)

Ticks never wait for the previous request; polls may overlap. Each poll
carries a sequence number and completions older than the newest applied one
are dropped, so a slow response cannot overwrite fresher state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from dropsync.client.api import WAITING_SENTINEL, APIError, StatusSnapshot, WaitingFile
from dropsync.client.notifications import file_received_notification
from dropsync.client.state import WatcherState

if TYPE_CHECKING:
    from dropsync.client.api import HTTPClient
    from dropsync.client.notifications import Notifier

logger = logging.getLogger(__name__)


@dataclass
class WatcherConfig:
    """Configuration for StatusWatcher.

    Attributes:
        poll_interval: Seconds between status polls.
        track_waiting_files: Also refresh the drop inbox (GET /files) after
            every successful status poll.
    """

    poll_interval: float = 3.0
    track_waiting_files: bool = False


class StatusWatcher:
    """Polls the server status and turns new arrivals into notifications.

    Must be started from a running event loop; all state changes happen on
    that loop.

    Usage:
        watcher = StatusWatcher(client, notifier=SystemNotifier())
        watcher.state.subscribe(render)
        watcher.start()

        # ... later, after the user tapped a notification ...
        if watcher.consume_auto_download_request():
            await downloader.save_download()

        await watcher.stop()
    """

    def __init__(
        self,
        client: HTTPClient,
        notifier: Notifier | None = None,
        state: WatcherState | None = None,
        config: WatcherConfig | None = None,
    ) -> None:
        """Initialize the watcher.

        Args:
            client: HTTP client for the drop server.
            notifier: Delivers arrival notifications (None disables them).
            state: State object to mutate (a fresh one by default).
            config: Polling configuration.
        """
        self._client = client
        self._notifier = notifier
        self._state = state or WatcherState()
        self._config = config or WatcherConfig()

        self._ticker: asyncio.Task[None] | None = None
        self._polls: set[asyncio.Task[None]] = set()
        self._notifications: set[asyncio.Future[bool]] = set()

        # Sequence of the last issued poll and of the last applied completion
        self._issued_seq = 0
        self._applied_seq = 0
        self._had_contact = False

        self._on_file_received: Callable[[str], None] | None = None

    @property
    def state(self) -> WatcherState:
        """Get the watcher state."""
        return self._state

    @property
    def running(self) -> bool:
        """Check if the polling loop is active."""
        return self._ticker is not None and not self._ticker.done()

    def set_on_file_received(self, callback: Callable[[str], None] | None) -> None:
        """Set a callback invoked with the file name on every new arrival."""
        self._on_file_received = callback

    def start(self, server_url: str | None = None) -> None:
        """Start polling.

        Args:
            server_url: Optional server to watch; rebinds the HTTP client.
        """
        if self.running:
            logger.warning("StatusWatcher already running")
            return

        if server_url:
            self._client.server_url = server_url

        self._ticker = asyncio.create_task(self._run(), name="StatusWatcher")
        logger.info(
            f"StatusWatcher started ({self._client.server_url}, "
            f"every {self._config.poll_interval:g}s)"
        )

    async def stop(self) -> None:
        """Stop polling and cancel outstanding polls."""
        tasks: list[asyncio.Task[None]] = list(self._polls)
        if self._ticker is not None:
            tasks.append(self._ticker)
            self._ticker = None

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("StatusWatcher stopped")

    async def flush(self) -> None:
        """Wait for in-flight polls and notification deliveries."""
        pending: list[asyncio.Future[Any]] = [*self._polls, *self._notifications]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        # Let callbacks marshalled from executor threads run
        await asyncio.sleep(0)

    async def _run(self) -> None:
        """Issue one poll per interval until cancelled."""
        while True:
            self._spawn(self.poll_once())
            await asyncio.sleep(self._config.poll_interval)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.create_task(coro)
        self._polls.add(task)
        task.add_done_callback(self._polls.discard)
        return task

    async def poll_once(self) -> None:
        """Fetch the status once and apply the outcome."""
        self._issued_seq += 1
        seq = self._issued_seq

        try:
            snapshot = await self._client.get_status()
        except APIError as e:
            self._apply_failure(seq, e)
            return

        waiting: list[WaitingFile] | None = None
        if self._config.track_waiting_files:
            try:
                waiting = await self._client.list_waiting_files()
            except APIError as e:
                logger.debug(f"Inbox refresh failed: {e}")

        self._apply_status(seq, snapshot, waiting)

    def _is_stale(self, seq: int) -> bool:
        if seq < self._applied_seq:
            logger.debug(f"Discarding stale status poll #{seq} (applied #{self._applied_seq})")
            return True
        self._applied_seq = seq
        return False

    def _apply_status(
        self,
        seq: int,
        snapshot: StatusSnapshot,
        waiting: list[WaitingFile] | None = None,
    ) -> None:
        """Apply a successful poll to the state."""
        if self._is_stale(seq):
            return

        previous = self._state.last_file_name
        name = snapshot.file_name

        # No notification on first contact or when the server forgot its file
        if self._had_contact and name != previous and name != WAITING_SENTINEL:
            logger.info(f"New file available: {name}")
            self._emit_notification(name)
            if self._on_file_received:
                self._on_file_received(name)
        self._had_contact = True

        changes: dict[str, Any] = {
            "last_file_name": name,
            "is_connected": True,
            "status_message": "Connected to server",
            "last_sent": snapshot.last_sent,
        }
        if snapshot.server_cwd is not None:
            changes["server_cwd"] = snapshot.server_cwd
        if waiting is not None:
            changes["waiting_files"] = waiting
        self._state.update(**changes)

    def _apply_failure(self, seq: int, error: Exception) -> None:
        """Apply a failed poll; previous file state is kept."""
        if self._is_stale(seq):
            return
        if self._state.is_connected:
            logger.warning(f"Lost connection to server: {error}")
        else:
            logger.debug(f"Status poll failed: {error}")
        self._state.update(is_connected=False, status_message=str(error))

    def _emit_notification(self, file_name: str) -> None:
        """Deliver an arrival notification without blocking the loop."""
        if self._notifier is None:
            return

        loop = asyncio.get_running_loop()

        def on_response() -> None:
            loop.call_soon_threadsafe(self.handle_notification_response)

        future = loop.run_in_executor(
            None,
            self._notifier.notify,
            file_received_notification(file_name),
            on_response,
        )
        self._notifications.add(future)
        future.add_done_callback(self._on_notification_done)

    def _on_notification_done(self, future: asyncio.Future[bool]) -> None:
        self._notifications.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning(f"Notification failed: {error}")
        elif not future.result():
            logger.debug("Notification was not delivered")

    def handle_notification_response(self) -> None:
        """Record that the user acted on an arrival notification."""
        logger.info("Notification response received, auto-download requested")
        self._state.update(auto_download_requested=True)

    def consume_auto_download_request(self) -> bool:
        """Read and clear the auto-download flag.

        Returns:
            True exactly once per pending request.
        """
        if not self._state.auto_download_requested:
            return False
        self._state.update(auto_download_requested=False)
        return True
