from dataclasses import dataclass
from enum import Enum
from typing import List, Protocol
import asyncio

from pydantic import BaseModel, ConfigDict


class Direction(Enum):
    """
    Represents the committed travel direction of the car.

    Attributes:
        UP: The car is serving stops above it
        DOWN: The car is serving stops below it
        IDLE: No committed direction; one is picked when requests exist
    """
    UP = 'UP'
    DOWN = 'DOWN'
    IDLE = 'IDLE'


class DoorState(Enum):
    """Door position as reported in a status snapshot"""
    OPEN = 'OPEN'
    CLOSED = 'CLOSED'


class RequestOutcome(Enum):
    """
    Result of submitting a stop request.

    Attributes:
        OK: The request was queued or served on the spot
        OUT_OF_RANGE: The floor lies outside the car's range; nothing changed
    """
    OK = 'ok'
    OUT_OF_RANGE = 'out_of_range'


class FloorOutOfRangeError(ValueError):
    """Raised when a requested floor lies outside [min_floor, max_floor]."""

    def __init__(self, floor: int, min_floor: int, max_floor: int) -> None:
        self.floor = floor
        self.min_floor = min_floor
        self.max_floor = max_floor
        super().__init__(f"Floor {floor} out of range [{min_floor}..{max_floor}].")


class EventKind(Enum):
    """Kinds of things that can happen to the car during one operation"""
    QUEUED = 'queued'
    SERVED_HERE = 'served_here'
    STANDING_BY = 'standing_by'
    DIRECTION_PICKED = 'direction_picked'
    MOVED = 'moved'
    ARRIVED = 'arrived'
    DOORS_OPENED = 'doors_opened'
    DOORS_CLOSED = 'doors_closed'
    DIRECTION_CHANGED = 'direction_changed'
    WENT_IDLE = 'went_idle'


@dataclass(frozen=True)
class CarEvent:
    """
    A single observable step of a car transition.

    Attributes:
        kind: What happened
        floor: The car's floor when it happened (or the queued floor for QUEUED)
        direction: The car's direction after it happened
    """
    kind: EventKind
    floor: int
    direction: Direction

    def describe(self) -> str:
        """Human readable narration of the event"""
        if self.kind == EventKind.QUEUED:
            return f"Request for floor {self.floor} queued."
        if self.kind == EventKind.SERVED_HERE:
            return f"Serving floor {self.floor} now (already here)."
        if self.kind == EventKind.STANDING_BY:
            return "No requests. Standing by."
        if self.kind == EventKind.DIRECTION_PICKED:
            return f"Picking direction: {self.direction.value}"
        if self.kind == EventKind.MOVED:
            return f"Moving {self.direction.value} to {self.floor}"
        if self.kind == EventKind.ARRIVED:
            return f"Arrived at floor {self.floor}."
        if self.kind == EventKind.DOORS_OPENED:
            return "Doors opening..."
        if self.kind == EventKind.DOORS_CLOSED:
            return "Doors closing."
        if self.kind == EventKind.DIRECTION_CHANGED:
            return f"Switching direction to {self.direction.value}."
        return "All requests done. Going IDLE."


class CarStatus(BaseModel):
    """
    Read-only snapshot of a car, used for display.

    Attributes:
        current_floor: Floor the car is at
        direction: Committed direction
        doors: Door position
        above_queue: Pending stops classified as above, ascending
        below_queue: Pending stops classified as below, ascending
    """
    model_config = ConfigDict(frozen=True)

    current_floor: int
    direction: Direction
    doors: DoorState
    above_queue: List[int]
    below_queue: List[int]

    def describe(self) -> str:
        return (f"[Status] Floor={self.current_floor}, Dir={self.direction.value}, "
                f"Doors={self.doors.value}, UpQueue={self.above_queue}, DownQueue={self.below_queue}")


class CarEventListener(Protocol):
    """
    Protocol for objects that want to observe car events.

    Listeners are notified in the order events happen, after the car state
    has been updated.
    """
    def on_car_event(self, event: CarEvent) -> None:
        ...


class ElevatorCarControl(Protocol):
    """
    Protocol defining the operations a driver (console, runner, test) uses.
    """
    def submit_request(self, floor: int) -> RequestOutcome:
        """Request a stop at a floor"""
        ...

    def advance(self, ticks: int = 1) -> None:
        """Advance the simulation by one or more ticks"""
        ...

    def status(self) -> CarStatus:
        """Get a snapshot of the car"""
        ...

    def has_pending_stops(self) -> bool:
        """Whether any stop is still waiting to be served"""
        ...


async def wait(rounds: int, interval: float) -> None:
    """
    Helper function to let simulated time pass between ticks.

    Args:
        rounds: Number of tick intervals to wait
        interval: Length of one interval in seconds
    """
    await asyncio.sleep(rounds * interval)
