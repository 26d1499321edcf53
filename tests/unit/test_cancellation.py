"""Tests for cooperative cancellation."""

import asyncio
import threading
import time

import pytest

from fuse_tester.model.cancellation import CancellationToken, SequenceCancelled


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_not_cancelled_initially(self) -> None:
        assert CancellationToken().is_cancelled is False

    def test_cancel_sets_flag(self) -> None:
        token = CancellationToken()
        token.cancel()
        assert token.is_cancelled is True

    def test_cancel_is_idempotent(self) -> None:
        """Cancelling twice has no further effect."""
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.is_cancelled is True

    def test_raise_if_cancelled(self) -> None:
        """raise_if_cancelled raises only after cancel()."""
        token = CancellationToken()
        token.raise_if_cancelled()
        token.cancel()
        with pytest.raises(SequenceCancelled, match="Sequence cancelled"):
            token.raise_if_cancelled()

    def test_cancel_from_other_thread(self) -> None:
        """cancel() may be called from any thread."""
        token = CancellationToken()
        thread = threading.Thread(target=token.cancel)
        thread.start()
        thread.join()
        assert token.is_cancelled is True


class TestInterruptibleSleep:
    """Tests for CancellationToken.sleep."""

    def test_sleep_completes(self) -> None:
        """Uncancelled sleep returns normally."""
        asyncio.run(CancellationToken().sleep(0.01))

    def test_zero_duration_returns_immediately(self) -> None:
        asyncio.run(CancellationToken().sleep(0))

    def test_sleep_raises_if_already_cancelled(self) -> None:
        """A cancelled token fails fast even for a zero delay."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(SequenceCancelled):
            asyncio.run(token.sleep(0))

    def test_sleep_ends_early_on_cancel(self) -> None:
        """Cancel during a long sleep interrupts it promptly."""
        token = CancellationToken()

        async def scenario() -> None:
            loop = asyncio.get_running_loop()
            loop.call_later(0.05, token.cancel)
            await token.sleep(10.0)

        start = time.monotonic()
        with pytest.raises(SequenceCancelled):
            asyncio.run(scenario())
        assert time.monotonic() - start < 2.0
