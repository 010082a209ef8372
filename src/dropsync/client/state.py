"""Observable in-memory state for the status watcher and the sync coordinator.

This module provides:
- WatcherState: connectivity and "last known file" state of the status watcher
- ProjectState: outdated files and syncing flag of the sync coordinator

State objects are owned by a single engine and mutated only on the event-loop
thread. Presentation layers observe changes through ``subscribe`` instead of
polling the fields.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, fields
from typing import Any, TypeVar

from dropsync.client.api import WAITING_SENTINEL, RemoteFile, SentFileInfo, WaitingFile

logger = logging.getLogger(__name__)

S = TypeVar("S", bound="ObservableState")

StateCallback = Callable[[Any], None]


@dataclass
class ObservableState:
    """Base class for state objects that notify subscribers on change."""

    _subscribers: list[StateCallback] = field(
        default_factory=list, init=False, repr=False, compare=False
    )

    def subscribe(self, callback: StateCallback) -> Callable[[], None]:
        """Register a callback invoked with the state after every change.

        Args:
            callback: Function receiving this state object.

        Returns:
            A function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def update(self: S, **changes: Any) -> S:
        """Apply field changes and notify subscribers once.

        Raises:
            AttributeError: If a name is not a public field.
        """
        names = {f.name for f in fields(self) if not f.name.startswith("_")}
        for key, value in changes.items():
            if key not in names:
                raise AttributeError(f"{type(self).__name__} has no field {key!r}")
            setattr(self, key, value)
        self._notify()
        return self

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self)
            except Exception:
                logger.exception("State subscriber failed")


@dataclass
class WatcherState(ObservableState):
    """State of the status watcher.

    Attributes:
        last_file_name: Most recent file reported by the server.
        is_connected: Whether the last poll succeeded.
        status_message: Human-readable connectivity description.
        auto_download_requested: Set when the user acts on a notification;
            cleared by the consumer after acting on it.
        last_sent: Details of the last file the server sent, if any.
        waiting_files: Files waiting in the server's drop inbox.
        server_cwd: Directory the server is sharing, if reported.
    """

    last_file_name: str = WAITING_SENTINEL
    is_connected: bool = False
    status_message: str = "Connecting..."
    auto_download_requested: bool = False
    last_sent: SentFileInfo | None = None
    waiting_files: list[WaitingFile] = field(default_factory=list)
    server_cwd: str | None = None


@dataclass
class ProjectState(ObservableState):
    """State of the project sync coordinator.

    Attributes:
        outdated_files: Remote files missing locally or newer than the local
            copy. Replaced wholesale on every check.
        is_syncing: True only while a manifest check is outstanding.
        status_message: Outcome of the last operation, for display.
    """

    outdated_files: list[RemoteFile] = field(default_factory=list)
    is_syncing: bool = False
    status_message: str | None = None
