from __future__ import annotations

from typing import Literal, Optional

from .sync import SyncScheduler
from .terminal import Terminal
from ..config import get_config
from ..data.interface import SyncCollaborator
from ..data.util import get_store
from ..logging import get_logger

logger = get_logger(__name__)


def get_terminal(
    kind: Literal["memory", "demo"] = "demo",
    sync_host: Optional[SyncCollaborator] = None,
    session_dump=None,
) -> Terminal:
    """Bring up a terminal: build the store, pull from the host, start the periodic push."""
    config = get_config()
    store = get_store(kind)

    scheduler = None
    if sync_host is not None and config.sync_enabled:
        scheduler = SyncScheduler(sync_host, interval_seconds=config.sync_interval_seconds)

    terminal = Terminal.from_store(store, sync=scheduler, session_dump=session_dump)
    if scheduler is not None:
        if not terminal.pull():
            logger.info("Starting from local data")
        scheduler.publish(terminal.snapshot())
        scheduler.start()
    return terminal
