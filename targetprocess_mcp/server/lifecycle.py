"""Lifecycle management: shutdown callbacks, signals and background warm-up.

This module provides:
- ``LifecycleManager``: shutdown callbacks run once, in reverse registration
  order, triggered by SIGINT/SIGTERM or an explicit ``shutdown()``
- ``CacheWarmup``: a supervised fire-and-forget task whose outcome is
  observable (``status``, ``error``) and awaitable (``wait()``)

Usage:
    lifecycle = LifecycleManager()
    lifecycle.register_shutdown(service.close)
    lifecycle.install_signal_handlers()

    warmup = CacheWarmup(service.initialize_entity_type_cache)
    warmup.start()

    await lifecycle.shutdown_event.wait()
"""

import asyncio
import contextlib
import logging
import signal
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)

ShutdownCallback = Callable[[], Awaitable[Any] | Any]


class LifecycleManager:
    """Coordinates graceful shutdown for the server process.

    Attributes:
        shutdown_event: Set once shutdown has completed
        is_shutting_down: True from the first shutdown request onwards
        received_signal: The signal that started shutdown, if any
    """

    def __init__(self) -> None:
        self.shutdown_callbacks: list[ShutdownCallback] = []
        self.shutdown_event = asyncio.Event()
        self.is_shutting_down = False
        self._installed_signals: list[signal.Signals] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._shutdown_task: asyncio.Task | None = None
        self.received_signal: signal.Signals | None = None

    def register_shutdown(self, callback: ShutdownCallback) -> None:
        """Register a callback to run during shutdown (LIFO order)."""
        self.shutdown_callbacks.append(callback)
        logger.debug("Registered shutdown callback: %s", _callback_name(callback))

    def install_signal_handlers(self) -> None:
        """Route SIGINT/SIGTERM to ``shutdown()`` on the running loop."""
        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._handle_signal, sig)
            except (NotImplementedError, RuntimeError):
                # Windows event loops have no add_signal_handler
                logger.debug("Signal handler for %s not supported on this loop", sig.name)
                continue
            self._installed_signals.append(sig)
        self._loop = loop

    def remove_signal_handlers(self) -> None:
        if self._loop is None:
            return
        for sig in self._installed_signals:
            self._loop.remove_signal_handler(sig)
        self._installed_signals.clear()
        self._loop = None

    def _handle_signal(self, sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down", sig.name)
        if self.received_signal is None:
            self.received_signal = sig
        # A second signal gets the default disposition
        self.remove_signal_handlers()
        if self._shutdown_task is None:
            self._shutdown_task = asyncio.get_running_loop().create_task(self.shutdown())

    async def shutdown(self) -> None:
        """Run shutdown callbacks once and set ``shutdown_event``."""
        if self.is_shutting_down:
            await self.shutdown_event.wait()
            return
        self.is_shutting_down = True

        for callback in reversed(self.shutdown_callbacks):
            name = _callback_name(callback)
            try:
                result = callback()
                if asyncio.iscoroutine(result):
                    await result
                logger.debug("Shutdown callback %s completed", name)
            except Exception:
                logger.exception("Shutdown callback %s failed", name)

        self.shutdown_event.set()


class WarmupStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class CacheWarmup:
    """Supervised background warm-up.

    Failures are logged and recorded, never raised to callers.
    """

    def __init__(self, warm: Callable[[], Awaitable[Any]], name: str = "cache-warmup") -> None:
        self._warm = warm
        self.name = name
        self.status = WarmupStatus.PENDING
        self.error: BaseException | None = None
        self._done = asyncio.Event()
        self._task: asyncio.Task | None = None

    def start(self) -> asyncio.Task:
        """Launch the warm-up on the running loop and return immediately."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        return self._task

    async def _run(self) -> None:
        self.status = WarmupStatus.RUNNING
        try:
            await self._warm()
        except asyncio.CancelledError:
            self.status = WarmupStatus.CANCELLED
            raise
        except Exception as e:
            self.status = WarmupStatus.FAILED
            self.error = e
            logger.error("Cache initialization error: %s", e, exc_info=True)
        else:
            self.status = WarmupStatus.SUCCEEDED
            logger.debug("%s completed", self.name)
        finally:
            self._done.set()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    async def wait(self) -> WarmupStatus:
        """Wait for the warm-up to finish and return its final status."""
        await self._done.wait()
        return self.status

    async def cancel(self) -> None:
        if self._task is None or self._task.done():
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        # Cancelled before its first step
        if not self._done.is_set():
            self.status = WarmupStatus.CANCELLED
            self._done.set()


def _callback_name(callback: Callable[..., Any]) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


__all__ = [
    "CacheWarmup",
    "LifecycleManager",
    "WarmupStatus",
]
