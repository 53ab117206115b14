"""
Sites API — One-Shot Store Initialization
===========================================

What:  Runs the store initializer at most once per application instance,
       sharing the outcome with every concurrent caller.
Why:   Requests can arrive before the store connection is ready (serverless
       cold starts, or a startup initialization that failed). The first
       request must trigger initialization; concurrent ones must wait for
       that same attempt instead of starting their own.

State machine:
    UNINITIALIZED ──ensure()──▶ INITIALIZING ──success──▶ READY
          ▲                          │
          └────────── failure ───────┘

    - INITIALIZING: one shared asyncio task; every caller awaits it
    - failure: all waiters get the same exception, the guard resets, and
      the next ensure() starts a fresh attempt
    - READY: ensure() returns immediately
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class InitializationGuard:
    """
    At-most-once async initializer with a shared outcome.

    Usage:
        guard = InitializationGuard(initialize_schema)
        await guard.ensure()   # safe to call from any number of requests
    """

    def __init__(self, initializer: Callable[[], Awaitable[None]]):
        self._initializer = initializer
        self._task: Optional[asyncio.Task] = None
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    async def ensure(self) -> None:
        """
        Wait until the store is initialized, starting initialization if needed.

        Raises whatever the initializer raised. Every caller that was
        waiting on the same attempt sees the same exception.
        """
        if self._ready:
            return

        if self._task is None:
            logger.info("Initializing store connection...")
            self._task = asyncio.ensure_future(self._initializer())

        task = self._task
        try:
            # shield: a cancelled request must not cancel the shared attempt
            await asyncio.shield(task)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._task is task:
                logger.error("Store initialization failed: %s", str(e))
                self._task = None
            raise

        if not self._ready:
            self._ready = True
            self._task = None
            logger.info("Store connection ready")

    def reset(self) -> None:
        """Forget a completed initialization (used on shutdown)."""
        self._ready = False
        self._task = None
