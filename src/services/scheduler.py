# src/services/scheduler.py

"""Recurring timer that drives price check cycles."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from src.config.settings import Settings
from src.models.check_result import CheckResult
from src.services.tracking_coordinator import TrackingCoordinator

logger = logging.getLogger("pricewatch.scheduler")

FireCallback = Callable[[], Awaitable[Any]]


class PeriodicScheduler(Protocol):
    """Named recurring timers."""

    def register(
        self, name: str, period_minutes: float, on_fire: FireCallback,
    ) -> None:
        """Create (or replace) the timer called ``name``."""
        ...

    def cancel(self, name: str) -> bool:
        """Remove the timer called ``name``. Returns True if one existed."""
        ...


class AsyncioPeriodicScheduler:
    """Timers backed by one asyncio task each.

    The first fire happens one full period after registration. An
    exception raised by the callback is logged and the timer keeps
    running.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def register(
        self, name: str, period_minutes: float, on_fire: FireCallback,
    ) -> None:
        """Create the timer, clearing any existing timer of the same name.

        Must be called from inside a running event loop.
        """
        if period_minutes <= 0:
            raise ValueError(
                f"period_minutes must be > 0, got {period_minutes}"
            )
        self.cancel(name)
        self._tasks[name] = asyncio.get_running_loop().create_task(
            self._run(name, period_minutes * 60, on_fire),
            name=f"timer:{name}",
        )
        logger.info(
            "Timer '%s' registered every %.1f minutes", name, period_minutes,
        )

    def cancel(self, name: str) -> bool:
        """Cancel the timer called ``name``."""
        task = self._tasks.pop(name, None)
        if task is None:
            return False
        task.cancel()
        logger.info("Timer '%s' cancelled", name)
        return True

    def is_active(self, name: str) -> bool:
        """Whether a timer called ``name`` is registered and alive."""
        task = self._tasks.get(name)
        return task is not None and not task.done()

    async def shutdown(self) -> None:
        """Cancel every timer and wait for the tasks to finish."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    @staticmethod
    async def _run(
        name: str, period_seconds: float, on_fire: FireCallback,
    ) -> None:
        while True:
            await asyncio.sleep(period_seconds)
            logger.info("Timer '%s' fired", name)
            try:
                await on_fire()
            except Exception as exc:
                logger.error(
                    "Timer '%s' callback failed: %s",
                    name,
                    exc,
                    exc_info=True,
                )


class PriceCheckScheduler:
    """Owns the single named price-check timer and the manual trigger.

    Cycles are single-flight: a request arriving while a cycle runs is
    dropped, so two cycles never work on the tracking map at once.
    """

    def __init__(
        self,
        coordinator: TrackingCoordinator,
        timer: PeriodicScheduler | None = None,
        alarm_name: str | None = None,
    ) -> None:
        self.coordinator = coordinator
        self.timer: PeriodicScheduler = timer or AsyncioPeriodicScheduler()
        self.alarm_name = alarm_name or Settings.ALARM_NAME
        self._running = False
        self._cycle_lock = asyncio.Lock()
        self._cycle_tasks: set[asyncio.Task[None]] = set()

    @property
    def is_running(self) -> bool:
        """Whether the recurring timer is registered."""
        return self._running

    @property
    def cycle_in_flight(self) -> bool:
        """Whether a check cycle is executing right now."""
        return self._cycle_lock.locked()

    def start(self, period_minutes: float | None = None) -> None:
        """(Re)create the recurring timer.

        Raises:
            ValueError: ``period_minutes`` is not positive.
        """
        period = (
            Settings.CHECK_INTERVAL_MINUTES
            if period_minutes is None
            else period_minutes
        )
        if period <= 0:
            raise ValueError(f"period_minutes must be > 0, got {period}")
        self.timer.cancel(self.alarm_name)
        self.timer.register(self.alarm_name, period, self._on_fire)
        self._running = True
        logger.info(
            "Price check scheduler started (every %.0f minutes)", period,
        )

    def stop(self) -> None:
        """Cancel the recurring timer.

        A cycle the timer already started keeps running to completion;
        use :meth:`wait_idle` to wait for it.
        """
        self.timer.cancel(self.alarm_name)
        self._running = False
        logger.info("Price check scheduler stopped")

    async def trigger_now(self) -> list[CheckResult] | None:
        """Run a cycle on demand.

        Returns the cycle's results, or ``None`` when a cycle was
        already running and this request was dropped.
        """
        logger.info("Manual price check triggered")
        return await self._run_single_flight("manual")

    async def wait_idle(self) -> None:
        """Wait for timer-started cycles that are still running."""
        if self._cycle_tasks:
            await asyncio.gather(*self._cycle_tasks, return_exceptions=True)

    async def _on_fire(self) -> None:
        # Cancelling the timer ends its sleep loop only; the cycle
        # task runs on.
        task = asyncio.get_running_loop().create_task(
            self._timer_cycle(), name="price-check-cycle",
        )
        self._cycle_tasks.add(task)
        task.add_done_callback(self._cycle_tasks.discard)
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.done():
                logger.info("Timer cancelled, letting running cycle finish")
            raise

    async def _timer_cycle(self) -> None:
        try:
            await self._run_single_flight("timer")
        except Exception as exc:
            logger.error(
                "Timer-started price check failed: %s", exc, exc_info=True,
            )

    async def _run_single_flight(
        self, origin: str,
    ) -> list[CheckResult] | None:
        if self._cycle_lock.locked():
            logger.info(
                "Price check already in progress, dropping %s request",
                origin,
            )
            return None
        async with self._cycle_lock:
            return await self.coordinator.run_cycle()
