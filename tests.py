import asyncio
import io
import random
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from pydantic import ValidationError

from elevator_cli import HELP_TEXT, ElevatorConsole, StepRequest, main
from elevator_config import get_config
from elevator_controller import (
    CarState,
    ElevatorCar,
    FloorRequest,
    RequestSource,
    advance_state,
    pick_direction,
    request_stop,
)
from elevator_interface import (
    CarStatus,
    Direction,
    DoorState,
    EventKind,
    FloorOutOfRangeError,
    RequestOutcome,
    wait,
)
from elevator_runner import CarRunner, RunnerStatus


def event_kinds(listener):
    return [c.args[0].kind for c in listener.on_car_event.call_args_list]


def arrivals(listener):
    return [c.args[0].floor for c in listener.on_car_event.call_args_list
            if c.args[0].kind == EventKind.ARRIVED]


class TestElevatorCar(unittest.TestCase):
    """Unit test class for the elevator car"""

    def setUp(self):
        """Setup before test execution"""
        self.listener = MagicMock()
        self.car = ElevatorCar(10, listeners=[self.listener])

    def test_initial_status(self):
        """Test a new car is idle at floor 1 with closed doors and no stops"""
        expected = CarStatus(current_floor=1, direction=Direction.IDLE, doors=DoorState.CLOSED,
                             above_queue=[], below_queue=[])
        self.assertEqual(self.car.status(), expected)
        self.assertEqual(self.car.min_floor, 1)
        self.assertEqual(self.car.max_floor, 10)

    def test_default_max_floor(self):
        self.assertEqual(ElevatorCar().max_floor, 10)

    def test_max_floor_is_clamped(self):
        """Test a car always serves at least two floors"""
        self.assertEqual(ElevatorCar(1).max_floor, 2)
        self.assertEqual(ElevatorCar(-5).max_floor, 2)

    def test_request_above_commits_up(self):
        self.assertEqual(self.car.submit_request(5), RequestOutcome.OK)
        self.assertEqual(self.car.above_stops, (5,))
        self.assertEqual(self.car.below_stops, ())
        self.assertEqual(self.car.direction, Direction.UP)

    def test_request_below_while_committed_keeps_direction(self):
        """Test only an idle car takes its direction from a new request"""
        self.car.submit_request(5)
        self.car.advance(4)
        self.car.submit_request(2)
        self.assertEqual(self.car.direction, Direction.DOWN)

        self.car.submit_request(7)
        self.assertEqual(self.car.direction, Direction.DOWN)
        self.assertEqual(self.car.above_stops, (7,))
        self.assertEqual(self.car.below_stops, (2,))

    def test_duplicate_request_is_noop(self):
        self.car.submit_request(5)
        self.car.submit_request(9)
        self.car.submit_request(5)
        self.assertEqual(self.car.above_stops, (5, 9))

    def test_same_floor_request_cycles_doors(self):
        """Test a request for the current floor is served on the spot"""
        self.assertEqual(self.car.submit_request(1), RequestOutcome.OK)
        self.assertEqual(self.car.above_stops, ())
        self.assertEqual(self.car.below_stops, ())
        self.assertEqual(self.car.direction, Direction.IDLE)
        self.assertFalse(self.car.doors_open)
        self.assertEqual(event_kinds(self.listener),
                         [EventKind.SERVED_HERE, EventKind.DOORS_OPENED, EventKind.DOORS_CLOSED])

    def test_same_floor_request_leaves_direction(self):
        self.car.submit_request(5)
        self.car.submit_request(1)
        self.assertEqual(self.car.direction, Direction.UP)
        self.assertEqual(self.car.above_stops, (5,))

    def test_out_of_range_request_is_rejected(self):
        """Test out of range floors are reported and change nothing"""
        self.car.submit_request(4)
        before = self.car.status()
        self.listener.reset_mock()

        with self.assertLogs("ElevatorSystem", level="WARNING") as logs:
            self.assertEqual(self.car.submit_request(0), RequestOutcome.OUT_OF_RANGE)
            self.assertEqual(self.car.submit_request(11), RequestOutcome.OUT_OF_RANGE)

        self.assertEqual(self.car.status(), before)
        self.listener.on_car_event.assert_not_called()
        self.assertIn("Floor 11 out of range [1..10].", logs.output[-1])

    def test_on_button_press(self):
        """Test hall calls and panel selections are served the same way"""
        self.car.on_button_press(FloorRequest(floor=4, source=RequestSource.CALL))
        self.car.on_button_press(FloorRequest(floor=6, source=RequestSource.SELECT))
        self.assertEqual(self.car.above_stops, (4, 6))

    def test_button_press_is_logged_at_debug(self):
        """Test button presses stay out of the INFO narration"""
        with self.assertLogs("ElevatorSystem", level="DEBUG") as logs:
            self.car.on_button_press(FloorRequest(floor=0, source=RequestSource.SELECT))
        self.assertIn("DEBUG:ElevatorSystem:Button press event: floor=0, source=select", logs.output)

        with self.assertLogs("ElevatorSystem", level="INFO") as logs:
            self.car.on_button_press(FloorRequest(floor=0, source=RequestSource.SELECT))
        self.assertEqual(logs.output, ["WARNING:ElevatorSystem:Floor 0 out of range [1..10]."])

    def test_idle_car_stands_by(self):
        """Test ticks without requests never move the car"""
        self.car.advance(5)
        self.assertEqual(self.car.current_floor, 1)
        self.assertEqual(self.car.direction, Direction.IDLE)
        self.assertEqual(event_kinds(self.listener), [EventKind.STANDING_BY] * 5)

    def test_tick_narration_is_logged(self):
        with self.assertLogs("ElevatorSystem", level="INFO") as logs:
            self.car.advance()
        self.assertTrue(logs.output[-1].endswith("[Tick] No requests. Standing by."))

    def test_arrival_events(self):
        """Test the event sequence of a tick that serves a stop"""
        self.car.submit_request(2)
        self.listener.reset_mock()
        self.car.advance()
        self.assertEqual(event_kinds(self.listener), [
            EventKind.MOVED,
            EventKind.ARRIVED,
            EventKind.DOORS_OPENED,
            EventKind.DOORS_CLOSED,
            EventKind.WENT_IDLE,
        ])
        self.assertFalse(self.car.doors_open)

    def test_every_floor_is_eventually_served(self):
        """Test a single request is served within the floor span"""
        for target in range(2, 11):
            listener = MagicMock()
            car = ElevatorCar(10, listeners=[listener])
            car.submit_request(target)
            ticks = 0
            while car.has_pending_stops():
                car.advance()
                ticks += 1
            self.assertLessEqual(ticks, car.max_floor - car.min_floor)
            self.assertEqual(car.current_floor, target)
            self.assertEqual(arrivals(listener), [target])
            kinds = event_kinds(listener)
            arrived = kinds.index(EventKind.ARRIVED)
            self.assertEqual(kinds[arrived + 1:arrived + 3],
                             [EventKind.DOORS_OPENED, EventKind.DOORS_CLOSED])

    def test_advance_rejects_non_positive_ticks(self):
        self.car.submit_request(3)
        with self.assertRaises(ValueError):
            self.car.advance(0)
        self.assertEqual(self.car.current_floor, 1)

    def test_random_operations_keep_invariants(self):
        """Test range and no-self-queueing hold after every operation"""
        rng = random.Random(7)
        for _ in range(1000):
            if rng.random() < 0.4:
                self.car.submit_request(rng.randint(-1, 12))
            else:
                self.car.advance()
            floor = self.car.current_floor
            self.assertTrue(self.car.min_floor <= floor <= self.car.max_floor)
            self.assertNotIn(floor, self.car.above_stops)
            self.assertNotIn(floor, self.car.below_stops)
            self.assertFalse(self.car.doors_open)
            if self.car.direction == Direction.IDLE:
                self.assertFalse(self.car.has_pending_stops())


class TestElevatorScenario(unittest.TestCase):
    """Integration test class for the reference scenario"""

    def test_scenario(self):
        listener = MagicMock()
        car = ElevatorCar(10, listeners=[listener])
        self.assertEqual(car.status().model_dump(), {
            "current_floor": 1,
            "direction": Direction.IDLE,
            "doors": DoorState.CLOSED,
            "above_queue": [],
            "below_queue": [],
        })

        car.submit_request(5)
        self.assertEqual(car.status().above_queue, [5])
        self.assertEqual(car.direction, Direction.UP)

        car.advance(4)
        status = car.status()
        self.assertEqual(status.current_floor, 5)
        self.assertEqual(status.direction, Direction.IDLE)
        self.assertEqual(status.above_queue, [])
        self.assertEqual(arrivals(listener), [5])

        car.submit_request(3)
        car.submit_request(8)
        status = car.status()
        self.assertEqual(status.below_queue, [3])
        self.assertEqual(status.above_queue, [8])
        self.assertEqual(status.direction, Direction.DOWN)

        car.advance(2)
        status = car.status()
        self.assertEqual(status.current_floor, 3)
        self.assertEqual(status.below_queue, [])
        self.assertEqual(status.direction, Direction.UP)

        car.advance(5)
        status = car.status()
        self.assertEqual(status.current_floor, 8)
        self.assertEqual(status.above_queue, [])
        self.assertEqual(status.direction, Direction.IDLE)
        self.assertEqual(arrivals(listener), [5, 3, 8])

    def test_status_line(self):
        car = ElevatorCar(10)
        car.submit_request(6)
        self.assertEqual(car.status().describe(),
                         "[Status] Floor=1, Dir=UP, Doors=CLOSED, UpQueue=[6], DownQueue=[]")


class TestTransitions(unittest.TestCase):
    """Unit test class for the pure transition functions"""

    def test_advance_state_returns_new_state(self):
        state = CarState(current_floor=3, direction=Direction.UP, above=(5,), below=(1,))
        result = advance_state(state, 1, 10)
        self.assertEqual(state.current_floor, 3)
        self.assertEqual(result.state.current_floor, 4)
        self.assertEqual(result.state.above, (5,))

    def test_request_stop_returns_new_state(self):
        state = CarState(current_floor=3)
        result = request_stop(state, 7, 1, 10)
        self.assertEqual(state.above, ())
        self.assertEqual(result.state.above, (7,))
        self.assertEqual(result.state.direction, Direction.UP)
        self.assertEqual(result.events[0].kind, EventKind.QUEUED)

    def test_request_stop_raises_out_of_range(self):
        with self.assertRaises(FloorOutOfRangeError) as ctx:
            request_stop(CarState(current_floor=1), 12, 1, 10)
        self.assertEqual(ctx.exception.floor, 12)
        self.assertEqual(ctx.exception.min_floor, 1)
        self.assertEqual(ctx.exception.max_floor, 10)

    def test_pick_direction_prefers_nearer_stop(self):
        state = CarState(current_floor=5, above=(8,), below=(3,))
        self.assertEqual(pick_direction(state), Direction.DOWN)

    def test_pick_direction_tie_goes_up(self):
        state = CarState(current_floor=5, above=(7,), below=(3,))
        self.assertEqual(pick_direction(state), Direction.UP)

    def test_pick_direction_missing_candidate_is_infinitely_far(self):
        """Test an above stop lower than the car is not a candidate"""
        state = CarState(current_floor=5, above=(2,), below=(4,))
        self.assertEqual(pick_direction(state), Direction.DOWN)

    def test_idle_car_with_stops_picks_then_moves(self):
        state = CarState(current_floor=5, direction=Direction.IDLE, above=(8,), below=(3,))
        result = advance_state(state, 1, 10)
        self.assertEqual(result.events[0].kind, EventKind.DIRECTION_PICKED)
        self.assertEqual(result.events[0].direction, Direction.DOWN)
        self.assertEqual(result.state.current_floor, 4)
        self.assertEqual(result.state.direction, Direction.DOWN)

    def test_exhausted_direction_reverses_before_moving(self):
        state = CarState(current_floor=6, direction=Direction.UP, above=(), below=(2,))
        result = advance_state(state, 1, 10)
        self.assertEqual(result.events[0].kind, EventKind.MOVED)
        self.assertEqual(result.state.current_floor, 5)
        self.assertEqual(result.state.direction, Direction.DOWN)

    def test_empty_queues_stand_by(self):
        state = CarState(current_floor=4, direction=Direction.UP, doors_open=True)
        result = advance_state(state, 1, 10)
        self.assertEqual(result.state.current_floor, 4)
        self.assertEqual(result.state.direction, Direction.IDLE)
        self.assertFalse(result.state.doors_open)

    def test_movement_is_clamped_to_range(self):
        state = CarState(current_floor=10, direction=Direction.UP, above=(3,))
        result = advance_state(state, 1, 10)
        self.assertEqual(result.state.current_floor, 10)

    def test_stops_are_not_repartitioned(self):
        """Test a stop keeps its original classification after the car passes it"""
        state = CarState(current_floor=5, direction=Direction.DOWN, above=(3,), below=(4,))
        state = advance_state(state, 1, 10).state
        self.assertEqual(state.current_floor, 4)
        self.assertEqual(state.direction, Direction.UP)
        state = advance_state(state, 1, 10).state
        self.assertEqual(state.current_floor, 5)
        self.assertEqual(state.above, (3,))


class TestRequestModels(unittest.TestCase):
    """Unit test class for request validation"""

    def test_floor_request_coerces_text(self):
        request = FloorRequest(floor=" 7 ")
        self.assertEqual(request.floor, 7)
        self.assertEqual(request.source, RequestSource.SELECT)

    def test_floor_request_rejects_invalid(self):
        with self.assertRaises(ValidationError):
            FloorRequest(floor="seven")
        with self.assertRaises(ValidationError):
            FloorRequest(floor=True)

    def test_step_request(self):
        self.assertEqual(StepRequest().ticks, 1)
        self.assertEqual(StepRequest(ticks="3").ticks, 3)
        self.assertEqual(StepRequest(ticks="0").ticks, 1)
        self.assertEqual(StepRequest(ticks=-4).ticks, 1)
        with self.assertRaises(ValidationError):
            StepRequest(ticks="x")

    def test_config_copies_are_independent(self):
        config = get_config()
        config["elevator"]["max_floor"] = 99
        self.assertEqual(get_config()["elevator"]["max_floor"], 10)


class TestElevatorConsole(unittest.TestCase):
    """Unit test class for the command console"""

    def setUp(self):
        self.out = io.StringIO()
        self.car = ElevatorCar(10)
        self.console = ElevatorConsole(self.car, self.out)

    def test_session(self):
        lines = iter(["call 5\n", "step 4\n", "status\n", "quit\n", "status\n"])
        self.console.run(lines)
        output = self.out.getvalue().splitlines()
        self.assertEqual(output[0], "Elevator sim started. Type 'help' for commands.")
        self.assertEqual(output[1], "[Status] Floor=1, Dir=IDLE, Doors=CLOSED, UpQueue=[], DownQueue=[]")
        self.assertEqual(output[2], "[Status] Floor=1, Dir=UP, Doors=CLOSED, UpQueue=[5], DownQueue=[]")
        self.assertEqual(output[3], "[Status] Floor=5, Dir=IDLE, Doors=CLOSED, UpQueue=[], DownQueue=[]")
        self.assertEqual(output[4], "Goodbye!")
        self.assertEqual(len(output), 5)

    def test_quit_stops_console(self):
        self.assertFalse(self.console.handle_line("quit"))
        self.assertTrue(self.console.handle_line("status"))

    def test_missing_floor(self):
        self.console.handle_line("select")
        self.assertEqual(self.out.getvalue(), "Need a floor number.\n")

    def test_invalid_numbers(self):
        self.console.handle_line("call abc")
        self.console.handle_line("step x")
        self.assertEqual(self.out.getvalue(), "Invalid number.\nInvalid number.\n")
        self.assertFalse(self.car.has_pending_stops())

    def test_unknown_command(self):
        self.console.handle_line("fly 3")
        self.assertEqual(self.out.getvalue(), "Unknown command. Type 'help'.\n")

    def test_help(self):
        self.console.handle_line("help")
        self.assertEqual(self.out.getvalue(), HELP_TEXT + "\n")

    def test_blank_line(self):
        self.assertTrue(self.console.handle_line("   \n"))
        self.assertEqual(self.out.getvalue(), "")

    def test_commands_are_case_insensitive(self):
        self.console.handle_line("CALL 3")
        self.assertEqual(self.car.above_stops, (3,))

    def test_out_of_range_prints_no_status(self):
        with self.assertLogs("ElevatorSystem", level="WARNING"):
            self.console.handle_line("select 42")
        self.assertEqual(self.out.getvalue(), "")

    def test_step_is_at_least_one_tick(self):
        self.console.handle_line("call 3")
        self.console.handle_line("step 0")
        self.assertEqual(self.car.current_floor, 2)

    def test_main_rejects_unknown_log_level(self):
        """Test an invalid --log-level is an argument error, not a traceback"""
        stderr = io.StringIO()
        with patch("sys.stderr", stderr), self.assertRaises(SystemExit) as ctx:
            main(["--log-level", "foo"])
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("invalid choice", stderr.getvalue())

    def test_main_accepts_lowercase_log_level(self):
        out = io.StringIO()
        with patch("elevator_cli.logging.basicConfig") as basic_config, \
                patch("sys.stdin", io.StringIO("quit\n")), patch("sys.stdout", out):
            self.assertEqual(main(["--log-level", "debug", "--max-floor", "5"]), 0)
        self.assertEqual(basic_config.call_args.kwargs["level"], "DEBUG")
        self.assertIn("Goodbye!", out.getvalue())


class TestCarRunner(unittest.IsolatedAsyncioTestCase):
    """Unit test class for the event loop runner"""

    async def asyncSetUp(self):
        self.listener = MagicMock()
        self.car = ElevatorCar(10, listeners=[self.listener])
        self.runner = CarRunner(self.car, tick_interval=0)

    async def test_runner_serves_request(self):
        self.assertEqual(await self.runner.submit(4), RequestOutcome.OK)
        await self.runner.wait_until_idle()
        self.assertEqual(self.car.current_floor, 4)
        self.assertEqual(self.car.direction, Direction.IDLE)
        self.assertEqual(self.runner.get_current_status(), RunnerStatus.Idle)

    async def test_runner_rejects_out_of_range(self):
        self.assertEqual(await self.runner.submit(0), RequestOutcome.OUT_OF_RANGE)
        await self.runner.wait_until_idle()
        self.assertEqual(self.car.current_floor, 1)

    async def test_requests_are_applied_in_order(self):
        await self.runner.submit(6)
        await self.runner.submit(3)
        await self.runner.wait_until_idle()
        self.assertEqual(arrivals(self.listener), [3, 6])

    async def test_status_snapshot(self):
        await self.runner.submit(2)
        await self.runner.wait_until_idle()
        self.assertEqual(await self.runner.status(), self.car.status())

    async def test_stop_cancels_run(self):
        runner = CarRunner(self.car, tick_interval=10)
        await runner.submit(5)
        await asyncio.sleep(0)
        await runner.stop()
        self.assertEqual(self.car.current_floor, 1)
        self.assertEqual(runner.get_current_status(), RunnerStatus.Idle)

        # Waiting on a stopped runner returns at once
        await runner.wait_until_idle()
        await runner.stop()
        self.assertEqual(self.car.above_stops, (5,))

    async def test_wait_scales_by_interval(self):
        with patch("elevator_interface.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await wait(3, 0.25)
        sleep.assert_awaited_once_with(0.75)


if __name__ == "__main__":
    unittest.main()
