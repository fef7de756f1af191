"""
Elevator Realistic Scenario Test

This script drives a car through a short working day on the event loop,
sending requests in chronological order while the car is moving, and checks
that the car stops in the order its scheduling policy promises:
- Elevator is idle at F1, User A calls from F5 => car goes up and stops at F5
- Car is idle at F5, User B selects F3 and User C calls from F8
  => car goes down to F3 first (nearer), then reverses up to F8
- While the car heads to F8, User D calls from F2 => served after F8
"""
import asyncio
import logging
from typing import List

from elevator_config import get_config
from elevator_controller import ElevatorCar
from elevator_interface import CarEvent, Direction, EventKind
from elevator_runner import CarRunner

CONFIG = get_config()

# Configure logging
logging.basicConfig(level=CONFIG["logging"]["level"],
                    format=CONFIG["logging"]["format"])
logger = logging.getLogger("RealisticTest")


class StopRecorder:
    """Listener recording every stop and direction change of a car"""

    def __init__(self) -> None:
        self.stops: List[int] = []
        self.direction_changes: List[Direction] = []

    def on_car_event(self, event: CarEvent) -> None:
        if event.kind == EventKind.ARRIVED:
            self.stops.append(event.floor)
            logger.info(f"Elevator stopped: Floor {event.floor}, Current stop sequence: {self.stops}")
        elif event.kind == EventKind.DIRECTION_CHANGED:
            self.direction_changes.append(event.direction)


class RealisticScenario:
    """Realistic scenario test class"""

    def __init__(self, tick_interval: float = 0.05) -> None:
        self.recorder = StopRecorder()
        self.car = ElevatorCar(CONFIG["elevator"]["max_floor"], listeners=[self.recorder])
        self.runner = CarRunner(self.car, tick_interval=tick_interval)
        self.button_presses: List[int] = []
        self.expected_stops = [5, 3, 8, 2]

    async def press_button(self, floor: int) -> None:
        """Press a button and record the press"""
        self.button_presses.append(floor)
        logger.info(f"Button pressed: Floor {floor}")
        await self.runner.submit(floor)

    async def wait_until_heading_up_past(self, floor: int) -> None:
        """Wait until the car is moving up at or above a floor"""
        while True:
            status = await self.runner.status()
            if status.direction == Direction.UP and status.current_floor >= floor:
                return
            await asyncio.sleep(self.runner.tick_interval / 2)

    async def run_scenario(self) -> bool:
        """Run the scenario and return whether the car behaved as expected"""
        logger.info("=== Starting Realistic Elevator Scenario Test ===")

        logger.info("Scenario 1: User A calls from Floor 5")
        await self.press_button(5)
        await self.runner.wait_until_idle()

        logger.info("Scenario 2: User B selects Floor 3, User C calls from Floor 8")
        await self.press_button(3)
        await self.press_button(8)

        # Car has served F3 and is heading up
        await self.wait_until_heading_up_past(4)

        logger.info("Scenario 3: User D calls from Floor 2 while the car heads up")
        await self.press_button(2)
        await self.runner.wait_until_idle()

        logger.info("=== Realistic Elevator Scenario Test Completed ===")
        return self.verify_results()

    def verify_results(self) -> bool:
        """Verify test results"""
        logger.info("===== Test Result Analysis =====")
        logger.info(f"Button press sequence: {self.button_presses}")
        logger.info(f"Elevator stop sequence: {self.recorder.stops}")
        logger.info(f"Direction changes: {[d.value for d in self.recorder.direction_changes]}")

        if self.recorder.stops == self.expected_stops:
            logger.info("✅ Stop order matches the scheduling policy")
            return True
        logger.warning(f"❌ Expected stops {self.expected_stops}, got {self.recorder.stops}")
        return False


async def main() -> None:
    """Main function"""
    scenario = RealisticScenario()
    try:
        await asyncio.wait_for(scenario.run_scenario(), timeout=30)
    except asyncio.TimeoutError:
        logger.error("Scenario timed out after 30 seconds!")
        await scenario.runner.stop()


if __name__ == "__main__":
    asyncio.run(main())
