"""Periodic token expiry sweep"""

import asyncio
import logging
import time
from typing import Callable, Optional

from hrms_portal.core.notifications import Notifier
from hrms_portal.core.session import SessionController
from hrms_portal.core.state import StorageRegistry, TOKEN_KEY
from hrms_portal.utils.token import TOKEN_EXPIRY_BUFFER_MS

logger = logging.getLogger(__name__)

class TokenExpiryWatcher:
    """
    Re-validates every stored token on a fixed interval.

    Started from the application lifespan and cancelled on shutdown.
    Browsers whose token expired are logged out and get the expiry toast
    on their next page.
    """

    def __init__(
        self,
        registry: StorageRegistry,
        interval: float = 60,
        clock: Callable[[], float] = time.time,
        buffer_ms: int = TOKEN_EXPIRY_BUFFER_MS
    ):
        self.registry = registry
        self.interval = interval
        self.clock = clock
        self.buffer_ms = buffer_ms
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self) -> int:
        """
        Check every browser holding a token once.

        Returns:
            Number of sessions logged out
        """
        expired = 0
        for browser_id in self.registry.browsers_with_item(TOKEN_KEY):
            storage = self.registry.for_browser(browser_id)
            controller = SessionController(
                storage,
                Notifier(storage),
                clock=self.clock,
                buffer_ms=self.buffer_ms
            )
            if controller.check_expiry():
                expired += 1

        if expired:
            logger.info(f"Token sweep logged out {expired} expired session(s)")
        return expired

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                await asyncio.to_thread(self.sweep)
            except Exception as e:
                logger.error(f"Token sweep failed: {str(e)}")

    def start(self):
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Token expiry watcher started (every {self.interval}s)")

    async def stop(self):
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Token expiry watcher stopped")
