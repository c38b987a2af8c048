"""
Background sync with the remote host.

The scheduler owns one daemon worker thread. The terminal publishes an
immutable StoreSnapshot after each settlement and before a requested push.
On each interval tick the worker first asks the snapshot provider, if one is
registered, for a fresh snapshot built from the collaborators' copies, so
tick pushes never resend stale data. It never touches the session registry.
Requests are enqueued only while the worker runs and are never waited on.
A failed push is logged and recorded in the status; nothing on the terminal
side is undone.

Pulls are not scheduled. They run synchronously at startup or when staff ask
for one, and a received snapshot replaces local state wholesale.
"""
from __future__ import annotations

import queue
import threading
import time
from typing import Callable, Literal, Optional

from pydantic import BaseModel

from ..data.interface import SyncCollaborator
from ..data.models import StoreSnapshot
from ..logging import get_logger

logger = get_logger(__name__)

SyncState = Literal["idle", "syncing", "synced", "error", "offline"]

_PUSH = "push"
_STOP = "stop"


class SyncStatus(BaseModel):
    state: SyncState = "idle"
    last_sync_time: Optional[int] = None
    message: Optional[str] = None


class SyncScheduler:
    """Periodic, cancellable, fire-and-forget snapshot push."""

    def __init__(
        self,
        collaborator: SyncCollaborator,
        interval_seconds: float = 300.0,
        snapshot_provider: Optional[Callable[[], StoreSnapshot]] = None,
    ) -> None:
        self.collaborator = collaborator
        self.interval_seconds = interval_seconds
        self.status = SyncStatus()
        self._latest: Optional[StoreSnapshot] = None
        self._snapshot_provider = snapshot_provider
        self._requests: "queue.Queue[str]" = queue.Queue()
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ---------- terminal side (never blocks) ----------

    def publish(self, snapshot: StoreSnapshot) -> None:
        """Make `snapshot` the one the next push sends."""
        self._latest = snapshot

    def set_snapshot_provider(self, provider: Optional[Callable[[], StoreSnapshot]]) -> None:
        self._snapshot_provider = provider

    def request_sync(self) -> bool:
        """Queue a push for the worker. Returns False, queueing nothing, when the worker is not running."""
        if not self.running:
            logger.debug("Sync requested while the scheduler is stopped, ignoring")
            return False
        self._requests.put_nowait(_PUSH)
        return True

    # ---------- lifecycle ----------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stopped.clear()
        # A stop sentinel left over from the previous run would end the new worker at once
        while not self._requests.empty():
            self._requests.get_nowait()
        self._thread = threading.Thread(target=self._run, name="pos-sync", daemon=True)
        self._thread.start()
        logger.info(f"Sync scheduler started (every {self.interval_seconds:g}s)")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stopped.set()
        self._requests.put_nowait(_STOP)
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Sync scheduler stopped")

    # ---------- worker ----------

    def _run(self) -> None:
        next_tick = time.monotonic() + self.interval_seconds
        while not self._stopped.is_set():
            timeout = max(0.0, next_tick - time.monotonic())
            try:
                request = self._requests.get(timeout=timeout)
            except queue.Empty:
                request = _PUSH
                next_tick = time.monotonic() + self.interval_seconds
                if not self._stopped.is_set():
                    self._refresh()
            if request == _STOP or self._stopped.is_set():
                break
            self.push_now()

    def _refresh(self) -> None:
        if self._snapshot_provider is None:
            return
        try:
            self._latest = self._snapshot_provider()
        except Exception as e:
            logger.warning(f"Could not build a fresh snapshot, pushing the last published one: {e}")

    def push_now(self) -> bool:
        """Push the latest published snapshot. Safe to call from the worker or a test."""
        snapshot = self._latest
        if snapshot is None:
            return False

        self.status = SyncStatus(state="syncing", last_sync_time=self.status.last_sync_time)
        try:
            ok = self.collaborator.push_snapshot(snapshot)
        except Exception as e:
            logger.warning(f"Snapshot push failed: {e}")
            self.status = SyncStatus(state="error", last_sync_time=self.status.last_sync_time, message=str(e))
            return False

        if not ok:
            logger.warning("Snapshot push rejected by host")
            self.status = SyncStatus(
                state="error", last_sync_time=self.status.last_sync_time, message="Push rejected"
            )
            return False

        self.status = SyncStatus(state="synced", last_sync_time=int(time.time() * 1000), message="Synced")
        logger.debug(f"Pushed snapshot from {snapshot.terminal_id} ({len(snapshot.transactions)} transactions)")
        return True


def pull_and_apply(
    collaborator: SyncCollaborator,
    apply: Callable[[StoreSnapshot], None],
) -> bool:
    """Fetch the host snapshot and hand it to `apply`; keep local state on any failure."""
    try:
        snapshot = collaborator.pull_snapshot()
    except Exception as e:
        logger.warning(f"Snapshot pull failed, staying on local data: {e}")
        return False

    if snapshot is None:
        logger.info("Sync host has no snapshot yet, staying on local data")
        return False

    apply(snapshot)
    return True
