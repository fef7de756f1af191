from enum import Enum
from typing import Optional
import asyncio
import logging

from elevator_interface import CarStatus, ElevatorCarControl, RequestOutcome, wait
from elevator_config import get_config

CONFIG = get_config()

logger = logging.getLogger("ElevatorRunner")


class RunnerStatus(Enum):
    """
    Represents whether the runner is currently ticking its car.

    Attributes:
        Idle: No stops pending, no ticks scheduled
        Running: Ticks are being issued on a timer
    """
    Idle = 'Idle'
    Running = 'Running'


class CarRunner:
    """
    Drives one car on the asyncio event loop.

    Every access to the car goes through a single lock so requests arriving
    while the car is moving are applied strictly in call order between ticks.
    The runner ticks the car every tick_interval seconds while stops are
    pending and goes idle when they are all served.
    """

    def __init__(self, car: ElevatorCarControl, tick_interval: Optional[float] = None) -> None:
        """
        Initialize the runner.

        Args:
            car: The car to drive
            tick_interval: Seconds between ticks (defaults to the configured interval)
        """
        self.car = car
        self.tick_interval = CONFIG["timing"]["tick_interval"] if tick_interval is None else tick_interval
        self.run_status = RunnerStatus.Idle
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    def get_current_status(self) -> RunnerStatus:
        return self.run_status

    async def submit(self, floor: int) -> RequestOutcome:
        """
        Submit a stop request and make sure the car is being ticked.

        Args:
            floor: Requested floor

        Returns:
            The outcome reported by the car
        """
        async with self._lock:
            outcome = self.car.submit_request(floor)
        if outcome == RequestOutcome.OK:
            self._start()
        return outcome

    async def status(self) -> CarStatus:
        async with self._lock:
            return self.car.status()

    async def wait_until_idle(self) -> None:
        """Wait until every pending stop has been served."""
        if self._task is None or self._task.cancelled():
            return
        await self._task

    async def stop(self) -> None:
        """Cancel the current run, leaving the car where it is."""
        if self._task is None or self._task.done():
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            logger.info("Runner stopped")
        self._task = None

    def _start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        self.run_status = RunnerStatus.Running
        logger.info("Runner started", extra={"action": "start"})
        try:
            while self.car.has_pending_stops():
                # Simulate the time it takes to travel one floor
                await wait(1, self.tick_interval)
                async with self._lock:
                    self.car.advance()
        finally:
            self.run_status = RunnerStatus.Idle
            logger.info("Runner idle", extra={"action": "idle"})
