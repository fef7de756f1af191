from bisect import bisect_left, bisect_right
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple
import logging
import math

from pydantic import BaseModel, field_validator

# Import shared types and interfaces
from elevator_interface import (
    CarEvent,
    CarEventListener,
    CarStatus,
    Direction,
    DoorState,
    EventKind,
    FloorOutOfRangeError,
    RequestOutcome,
)

# Import configuration and constants
from elevator_config import get_config

# Get system configuration
CONFIG = get_config()

logger = logging.getLogger("ElevatorSystem")


class RequestSource(Enum):
    """
    Enum for where a stop request came from.

    Both sources are served identically; the source is kept for logging only.

    Attributes:
        CALL: Hall call pressed on a landing
        SELECT: Floor chosen on the panel inside the car
    """
    CALL = 'call'
    SELECT = 'select'


class FloorRequest(BaseModel):
    """
    Model representing a stop request.

    Attributes:
        floor: The requested floor
        source: Where the request came from (default: SELECT)
    """
    floor: int
    source: RequestSource = RequestSource.SELECT

    @field_validator('floor', mode='before')
    @classmethod
    def validate_floor(cls, v: Any) -> Any:
        """
        Reject booleans and trim text before integer coercion.

        Raises:
            ValueError: If floor is a boolean
        """
        if isinstance(v, bool):
            raise ValueError("Floor must be an integer")
        if isinstance(v, str):
            return v.strip()
        return v


@dataclass(frozen=True)
class CarState:
    """
    Immutable state of one car.

    Attributes:
        current_floor: Floor the car is at
        direction: Committed direction
        doors_open: Door flag; only true in the middle of a door cycle
        above: Stops requested while above the car, ascending
        below: Stops requested while below the car, ascending
    """
    current_floor: int
    direction: Direction = Direction.IDLE
    doors_open: bool = False
    above: Tuple[int, ...] = ()
    below: Tuple[int, ...] = ()

    def has_pending_stops(self) -> bool:
        return bool(self.above or self.below)


@dataclass(frozen=True)
class Transition:
    """The state produced by one operation and the events it went through"""
    state: CarState
    events: Tuple[CarEvent, ...] = ()


def _with_stop(stops: Tuple[int, ...], floor: int) -> Tuple[int, ...]:
    index = bisect_left(stops, floor)
    if index < len(stops) and stops[index] == floor:
        return stops
    return stops[:index] + (floor,) + stops[index:]


def _without_stop(stops: Tuple[int, ...], floor: int) -> Tuple[Tuple[int, ...], bool]:
    index = bisect_left(stops, floor)
    if index < len(stops) and stops[index] == floor:
        return stops[:index] + stops[index + 1:], True
    return stops, False


def _ceiling(stops: Tuple[int, ...], floor: int) -> Optional[int]:
    index = bisect_left(stops, floor)
    return stops[index] if index < len(stops) else None


def _floor(stops: Tuple[int, ...], floor: int) -> Optional[int]:
    index = bisect_right(stops, floor)
    return stops[index - 1] if index else None


def pick_direction(state: CarState) -> Direction:
    """
    Choose a direction toward the nearest pending stop.

    Only the above stops at or over the car and the below stops at or under
    it are candidates. A missing candidate counts as infinitely far away and
    ties go UP.

    Args:
        state: Car state with at least one pending stop

    Returns:
        Direction.UP or Direction.DOWN
    """
    up_nearest = _ceiling(state.above, state.current_floor)
    down_nearest = _floor(state.below, state.current_floor)

    up_distance = math.inf if up_nearest is None else abs(up_nearest - state.current_floor)
    down_distance = math.inf if down_nearest is None else abs(state.current_floor - down_nearest)

    return Direction.UP if up_distance <= down_distance else Direction.DOWN


def request_stop(state: CarState, floor: int, min_floor: int, max_floor: int) -> Transition:
    """
    Register a stop request.

    A request for the current floor is served on the spot with a door cycle
    and leaves direction and queues alone. Any other floor joins the above or
    below stops, and an idle car commits to the direction of that floor.

    Args:
        state: Current car state
        floor: Requested floor
        min_floor: Lowest floor served
        max_floor: Highest floor served

    Returns:
        The resulting transition

    Raises:
        FloorOutOfRangeError: If floor is outside [min_floor, max_floor]
    """
    if not (min_floor <= floor <= max_floor):
        raise FloorOutOfRangeError(floor, min_floor, max_floor)

    here = state.current_floor
    if floor == here:
        events = (
            CarEvent(EventKind.SERVED_HERE, here, state.direction),
            CarEvent(EventKind.DOORS_OPENED, here, state.direction),
            CarEvent(EventKind.DOORS_CLOSED, here, state.direction),
        )
        return Transition(replace(state, doors_open=False), events)

    above, below = state.above, state.below
    if floor > here:
        above = _with_stop(above, floor)
    else:
        below = _with_stop(below, floor)

    direction = state.direction
    if direction == Direction.IDLE:
        direction = Direction.UP if floor > here else Direction.DOWN

    new_state = replace(state, direction=direction, above=above, below=below)
    return Transition(new_state, (CarEvent(EventKind.QUEUED, floor, direction),))


def advance_state(state: CarState, min_floor: int, max_floor: int) -> Transition:
    """
    Run one tick of the scheduling policy.

    Order of work:
    1. With nothing pending, go idle and stand by without moving
    2. Give up a direction whose stops are exhausted
    3. Pick a direction toward the nearest stop if still idle
    4. Move one floor, never leaving the range
    5. Serve the floor if it is a pending stop (instant door cycle)
    6. Reverse or go idle once the current direction has nothing left

    Args:
        state: Current car state
        min_floor: Lowest floor served
        max_floor: Highest floor served

    Returns:
        The resulting transition; the input state is never modified
    """
    if not state.has_pending_stops():
        idle_state = replace(state, direction=Direction.IDLE, doors_open=False)
        return Transition(idle_state, (CarEvent(EventKind.STANDING_BY, state.current_floor, Direction.IDLE),))

    events: List[CarEvent] = []
    above, below = state.above, state.below
    direction = state.direction

    if direction == Direction.UP and not above:
        direction = Direction.DOWN if below else Direction.IDLE
    if direction == Direction.DOWN and not below:
        direction = Direction.UP if above else Direction.IDLE

    if direction == Direction.IDLE:
        direction = pick_direction(state)
        events.append(CarEvent(EventKind.DIRECTION_PICKED, state.current_floor, direction))

    if direction == Direction.UP:
        floor = min(state.current_floor + 1, max_floor)
    else:
        floor = max(state.current_floor - 1, min_floor)
    events.append(CarEvent(EventKind.MOVED, floor, direction))

    above, served_above = _without_stop(above, floor)
    below, served_below = _without_stop(below, floor)
    if served_above or served_below:
        events.append(CarEvent(EventKind.ARRIVED, floor, direction))
        events.append(CarEvent(EventKind.DOORS_OPENED, floor, direction))
        events.append(CarEvent(EventKind.DOORS_CLOSED, floor, direction))

    if direction == Direction.UP and not above and below:
        direction = Direction.DOWN
        events.append(CarEvent(EventKind.DIRECTION_CHANGED, floor, direction))
    elif direction == Direction.DOWN and not below and above:
        direction = Direction.UP
        events.append(CarEvent(EventKind.DIRECTION_CHANGED, floor, direction))
    elif not above and not below:
        direction = Direction.IDLE
        events.append(CarEvent(EventKind.WENT_IDLE, floor, direction))

    new_state = CarState(current_floor=floor, direction=direction, doors_open=False,
                         above=above, below=below)
    return Transition(new_state, tuple(events))


class ElevatorCar:
    """
    A single elevator car and its request queues.

    The car owns its state and applies the pure transitions above to it,
    logging every event and forwarding it to subscribed listeners. All
    operations complete immediately; callers needing concurrent access must
    serialise them (see CarRunner).
    """

    def __init__(self, max_floor: int = CONFIG["elevator"]["max_floor"],
                 listeners: Optional[Iterable[CarEventListener]] = None) -> None:
        """
        Initialize the car at the lowest floor, idle, with no pending stops.

        Args:
            max_floor: Highest floor served; raised to the configured minimum if lower
            listeners: Objects notified of every car event
        """
        self.min_floor = CONFIG["elevator"]["min_floor"]
        self.max_floor = max(CONFIG["elevator"]["min_max_floor"], max_floor)
        self._state = CarState(current_floor=self.min_floor)
        self._subscribers: List[CarEventListener] = list(listeners or [])
        self._tick_prefix = CONFIG["logging"]["tick_prefix"]

        logger.info(f"ElevatorCar initialized with min_floor={self.min_floor}, max_floor={self.max_floor}")

    @property
    def current_floor(self) -> int:
        return self._state.current_floor

    @property
    def direction(self) -> Direction:
        return self._state.direction

    @property
    def doors_open(self) -> bool:
        return self._state.doors_open

    @property
    def above_stops(self) -> Tuple[int, ...]:
        return self._state.above

    @property
    def below_stops(self) -> Tuple[int, ...]:
        return self._state.below

    def subscribe(self, listener: CarEventListener) -> None:
        self._subscribers.append(listener)

    def has_pending_stops(self) -> bool:
        return self._state.has_pending_stops()

    def on_button_press(self, request: FloorRequest) -> RequestOutcome:
        """
        Handle a hall call or a car panel selection.

        Args:
            request: The validated request

        Returns:
            The outcome of submit_request
        """
        logger.debug(f"Button press event: floor={request.floor}, source={request.source.value}",
                    extra={"floor": request.floor, "action": request.source.value})
        return self.submit_request(request.floor)

    def submit_request(self, floor: int) -> RequestOutcome:
        """
        Request a stop at a floor.

        Args:
            floor: Requested floor

        Returns:
            RequestOutcome.OK, or RequestOutcome.OUT_OF_RANGE with state untouched
        """
        try:
            transition = request_stop(self._state, floor, self.min_floor, self.max_floor)
        except FloorOutOfRangeError as e:
            logger.warning(str(e), extra={"floor": floor, "action": "rejected"})
            return RequestOutcome.OUT_OF_RANGE

        self._apply(transition)
        return RequestOutcome.OK

    def step(self) -> None:
        """Advance exactly one tick."""
        self._apply(advance_state(self._state, self.min_floor, self.max_floor), self._tick_prefix)

    def advance(self, ticks: int = 1) -> None:
        """
        Advance the simulation.

        Args:
            ticks: Number of ticks to run, at least 1

        Raises:
            ValueError: If ticks is less than 1
        """
        if ticks < 1:
            raise ValueError(f"ticks must be at least 1, got {ticks}")
        for _ in range(ticks):
            self.step()

    def status(self) -> CarStatus:
        state = self._state
        return CarStatus(
            current_floor=state.current_floor,
            direction=state.direction,
            doors=DoorState.OPEN if state.doors_open else DoorState.CLOSED,
            above_queue=list(state.above),
            below_queue=list(state.below),
        )

    def _apply(self, transition: Transition, prefix: str = "") -> None:
        self._state = transition.state
        for event in transition.events:
            logger.info(f"{prefix}{event.describe()}",
                        extra={"floor": event.floor, "direction": event.direction.value,
                               "action": event.kind.value})
            for subscriber in self._subscribers:
                subscriber.on_car_event(event)
