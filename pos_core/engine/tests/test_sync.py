import threading

import pytest

from pos_core.data.backends.memory_backend import InMemorySyncHost
from pos_core.data.models import StoreSnapshot
from pos_core.engine.sync import SyncScheduler, pull_and_apply


def _snapshot(terminal_id="POS-TEST", next_order_number=1001):
    return StoreSnapshot(terminal_id=terminal_id, timestamp=1, next_order_number=next_order_number)


class RecordingHost(InMemorySyncHost):
    """Sync host that signals every push."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.pushed = threading.Event()

    def push_snapshot(self, snapshot):
        ok = super().push_snapshot(snapshot)
        self.pushed.set()
        return ok


def test_push_now_without_snapshot_does_nothing():
    host = InMemorySyncHost()
    scheduler = SyncScheduler(host)
    assert scheduler.push_now() is False
    assert host.push_count == 0
    assert scheduler.status.state == "idle"


def test_push_now_sends_latest_published_snapshot():
    host = InMemorySyncHost()
    scheduler = SyncScheduler(host)
    scheduler.publish(_snapshot(next_order_number=1001))
    scheduler.publish(_snapshot(next_order_number=1002))
    assert scheduler.push_now() is True
    assert host.snapshot.next_order_number == 1002
    assert scheduler.status.state == "synced"
    assert scheduler.status.last_sync_time is not None


def test_failed_push_is_recorded_not_raised():
    host = InMemorySyncHost(online=False)
    scheduler = SyncScheduler(host)
    scheduler.publish(_snapshot())
    assert scheduler.push_now() is False
    assert scheduler.status.state == "error"
    assert "unreachable" in scheduler.status.message


def test_requested_sync_runs_on_worker_thread():
    host = RecordingHost()
    scheduler = SyncScheduler(host, interval_seconds=3600)
    scheduler.publish(_snapshot())
    scheduler.start()
    try:
        assert scheduler.running
        scheduler.request_sync()
        assert host.pushed.wait(timeout=5)
    finally:
        scheduler.stop()
    assert not scheduler.running
    assert host.push_count == 1


def test_interval_triggers_push():
    host = RecordingHost()
    scheduler = SyncScheduler(host, interval_seconds=0.05)
    scheduler.publish(_snapshot())
    scheduler.start()
    try:
        assert host.pushed.wait(timeout=5)
    finally:
        scheduler.stop()


def test_request_while_stopped_queues_nothing():
    host = InMemorySyncHost()
    scheduler = SyncScheduler(host)
    scheduler.publish(_snapshot())
    for _ in range(3):
        assert scheduler.request_sync() is False
    assert scheduler._requests.qsize() == 0
    assert host.push_count == 0


def test_interval_push_uses_fresh_snapshot():
    host = RecordingHost()
    counter = iter(range(42, 1000))
    scheduler = SyncScheduler(
        host, interval_seconds=0.05, snapshot_provider=lambda: _snapshot(next_order_number=next(counter))
    )
    scheduler.publish(_snapshot(next_order_number=1))
    scheduler.start()
    try:
        assert host.pushed.wait(timeout=5)
    finally:
        scheduler.stop()
    assert host.snapshot.next_order_number >= 42


def test_broken_snapshot_provider_falls_back_to_published():
    host = RecordingHost()

    def broken_provider():
        raise RuntimeError("catalog busy")

    scheduler = SyncScheduler(host, interval_seconds=0.05, snapshot_provider=broken_provider)
    scheduler.publish(_snapshot(next_order_number=7))
    scheduler.start()
    try:
        assert host.pushed.wait(timeout=5)
    finally:
        scheduler.stop()
    assert host.snapshot.next_order_number == 7


def test_scheduler_restarts_after_stop():
    host = RecordingHost()
    scheduler = SyncScheduler(host, interval_seconds=3600)
    scheduler.publish(_snapshot())
    scheduler.start()
    scheduler.stop()
    scheduler.start()
    try:
        assert scheduler.request_sync() is True
        assert host.pushed.wait(timeout=5)
    finally:
        scheduler.stop()


def test_pull_and_apply():
    applied = []
    host = InMemorySyncHost(snapshot=_snapshot(terminal_id="POS-02"))
    assert pull_and_apply(host, applied.append) is True
    assert applied[0].terminal_id == "POS-02"

    assert pull_and_apply(InMemorySyncHost(), applied.append) is False
    assert pull_and_apply(InMemorySyncHost(online=False), applied.append) is False
    assert len(applied) == 1


def test_pull_does_not_swallow_apply_errors():
    host = InMemorySyncHost(snapshot=_snapshot())

    def broken_apply(snapshot):
        raise RuntimeError("disk full")

    with pytest.raises(RuntimeError):
        pull_and_apply(host, broken_apply)
