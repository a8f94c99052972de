# app/services/live_state.py
"""
Shared plumbing for the in-memory mirrors kept in sync with the backend
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional

from app.config import settings
from app.errors import HubError, TransientIOError
from app.services.gateway import GatewayResult

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[], Awaitable[None]]


class LiveState:
    """Loading flag, last error and change callbacks for a synced view"""

    def __init__(self, loading_timeout: Optional[float] = None):
        self.is_loading = False
        self.error: Optional[str] = None
        self.loading_timeout = loading_timeout or settings.LOADING_TIMEOUT_SECONDS
        self._disposed = False
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._callbacks: List[ChangeCallback] = []

    @property
    def is_alive(self) -> bool:
        return not self._disposed

    @property
    def is_subscribed(self) -> bool:
        return self._unsubscribe is not None

    def on_change(self, callback: ChangeCallback) -> None:
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    async def _emit(self) -> None:
        if self._disposed:
            return
        for callback in list(self._callbacks):
            try:
                await callback()
            except Exception as e:
                logger.error(f"Change callback failed on {self.__class__.__name__}: {e}")

    def _check(self, result: GatewayResult) -> Any:
        """Unwrap a gateway result, recording the error for display"""
        if result.error is not None:
            self.error = result.error.message
            logger.error(f"{self.__class__.__name__}: {result.error.message}")
            raise result.error
        self.error = None
        return result.data

    async def _load(self, coro: Awaitable[Any]) -> Any:
        """
        Run a fetch that backs a loading indicator.

        The loading flag is cleared when the fetch settles or after the
        loading timeout, whichever comes first.
        """
        self.is_loading = True
        try:
            return await asyncio.wait_for(coro, timeout=self.loading_timeout)
        except asyncio.TimeoutError:
            self.error = "Loading timed out"
            logger.warning(f"{self.__class__.__name__} fetch exceeded {self.loading_timeout}s")
            raise TransientIOError("Loading timed out")
        except HubError as e:
            self.error = e.message
            raise
        finally:
            self.is_loading = False

    def dispose(self) -> None:
        """Tear down the live feed; later events are ignored"""
        self._disposed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._callbacks.clear()
