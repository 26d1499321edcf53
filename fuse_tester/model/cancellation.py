"""Cooperative cancellation for sequence runs."""

import asyncio
import logging
import threading

logger = logging.getLogger(__name__)

# Longest time a delay sleeps before re-checking for cancellation
POLL_INTERVAL_S = 0.02


class SequenceCancelled(Exception):
    """Raised at a suspension point once cancellation has been requested."""


class CancellationToken:
    """
    Cancellation signal shared between the control surface and a run.

    cancel() may be called from any thread. The running sequence checks the
    token before and after every instrument call and inside every delay.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise SequenceCancelled("Sequence cancelled")

    async def sleep(self, duration: float) -> None:
        """
        Sleep that ends early when cancellation is requested.

        Raises:
            SequenceCancelled: If cancelled before or during the delay
        """
        self.raise_if_cancelled()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + duration

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(POLL_INTERVAL_S, remaining))
            self.raise_if_cancelled()
