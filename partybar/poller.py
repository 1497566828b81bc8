"""Sync poller.

Terminals see each other's writes by re-reading the store on a fixed interval
and publishing whatever changed. The first read always publishes.
"""

import asyncio
import contextlib
import logging
import operator
import threading
from typing import Any, Callable, List, Optional

from partybar import config

logger = logging.getLogger(__name__)

_UNSET = object()


class Poller:
    def __init__(
        self,
        read: Callable[[], Any],
        interval: float = config.POLL_INTERVAL_SECONDS,
        equals: Callable[[Any, Any], bool] = operator.eq,
        name: str = "poller",
    ) -> None:
        self._read = read
        self.interval = interval
        self._equals = equals
        self.name = name
        self._subscribers: List[Callable[[Any], None]] = []
        self._last: Any = _UNSET
        self._task: Optional[asyncio.Task] = None
        # poll_once is called from the polling thread and from request handlers
        self._lock = threading.RLock()

    def subscribe(self, callback: Callable[[Any], None]) -> None:
        self._subscribers.append(callback)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def observed(self) -> Any:
        """Last published state, or None before the first read."""
        return None if self._last is _UNSET else self._last

    def poll_once(self) -> bool:
        """Read, compare with the last observed state and publish if different."""
        with self._lock:
            current = self._read()
            if self._last is not _UNSET and self._equals(current, self._last):
                return False
            self._last = current
            for callback in self._subscribers:
                try:
                    callback(current)
                except Exception:
                    logger.exception("%s: subscriber %r failed", self.name, callback)
        logger.info("%s: published new state", self.name)
        return True

    async def _run(self) -> None:
        while True:
            try:
                await asyncio.to_thread(self.poll_once)
            except Exception:
                logger.exception("%s: read failed, will retry", self.name)
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Start polling on the running event loop. A second start is a no-op."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logger.info("%s: started (every %.1fs)", self.name, self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("%s: stopped", self.name)
