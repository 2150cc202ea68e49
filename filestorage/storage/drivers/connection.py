"""
Connection reuse for drivers backed by a stateful network client.

A connection is opened on demand, used for one operation and closed once
it stayed idle for a short grace period. A call arriving within the grace
period cancels the pending close and reuses the open connection.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class IdleConnection:
    """
    Lease-aware holder of a single client connection.

    Operations are serialized on the connection: the blocking clients this
    wraps (e.g. ``ftplib.FTP``) cannot run two commands at once. The idle
    close never fires while a lease is held.
    """

    def __init__(self,
                 connect: Callable[[], Any],
                 disconnect: Callable[[Any], None],
                 idle_timeout: float = 0.5,
                 label: str = "connection"):
        """
        Args:
            connect: Blocking callable returning a connected client
            disconnect: Blocking callable closing a client
            idle_timeout: Seconds to keep an idle connection open
            label: Name used in log messages
        """
        self._connect = connect
        self._disconnect = disconnect
        self.idle_timeout = idle_timeout
        self.label = label
        self._client = None
        self._lock = asyncio.Lock()
        self._leases = 0
        self._close_handle: Optional[asyncio.TimerHandle] = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    @asynccontextmanager
    async def session(self):
        """Lease the connection for one operation."""
        self._cancel_close()
        self._leases += 1
        try:
            async with self._lock:
                if self._client is None:
                    logger.debug(f"Opening {self.label}")
                    self._client = await asyncio.to_thread(self._connect)
                try:
                    yield self._client
                except (OSError, EOFError):
                    # Broken transport, the next lease reconnects.
                    self._drop()
                    raise
        finally:
            self._leases -= 1
            if self._leases == 0:
                self._schedule_close()

    def _cancel_close(self):
        if self._close_handle is not None:
            self._close_handle.cancel()
            self._close_handle = None

    def _schedule_close(self):
        self._cancel_close()
        if self._client is None:
            return
        loop = asyncio.get_running_loop()
        self._close_handle = loop.call_later(self.idle_timeout, self._close_idle)

    def _close_idle(self):
        self._close_handle = None
        if self._leases or self._client is None:
            return
        logger.debug(f"Closing idle {self.label}")
        self._drop()

    def _drop(self):
        client, self._client = self._client, None
        if client is None:
            return
        try:
            self._disconnect(client)
        except Exception as e:
            logger.warning(f"Error closing {self.label}: {e}")

    async def close(self):
        """Close the connection now."""
        self._cancel_close()
        async with self._lock:
            if self._client is None:
                return
            client, self._client = self._client, None
            await asyncio.to_thread(self._disconnect, client)
