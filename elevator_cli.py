"""
Elevator Simulator Console

Reads commands line by line and drives a single car:
  call <floor>      hall call from a floor
  select <floor>    passenger presses a floor inside the car
  step [n]          advance time by 1 (or n) ticks
  status            show car state
  help              show commands
  quit              exit
"""
import argparse
import logging
import sys
from typing import Any, Iterator, List, Optional, TextIO

from pydantic import BaseModel, ValidationError, field_validator

from elevator_config import get_config
from elevator_controller import ElevatorCar, FloorRequest, RequestSource
from elevator_interface import RequestOutcome

CONFIG = get_config()

HELP_TEXT = """Commands:
  call <floor>       - hall call at floor
  select <floor>     - choose floor inside car
  step [n]           - advance time by 1 (or n) ticks
  status             - show state
  quit               - exit"""

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class StepRequest(BaseModel):
    """
    Model representing a step command.

    Attributes:
        ticks: Number of ticks to advance; values below 1 are raised to 1
    """
    ticks: int = CONFIG["console"]["default_step"]

    @field_validator('ticks', mode='before')
    @classmethod
    def reject_bool(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("Ticks must be an integer")
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('ticks')
    @classmethod
    def at_least_one(cls, v: int) -> int:
        return max(1, v)


class ElevatorConsole:
    """Command dispatcher between a text stream and an ElevatorCar."""

    def __init__(self, car: ElevatorCar, out: Optional[TextIO] = None) -> None:
        self.car = car
        self.out = out if out is not None else sys.stdout
        self.prompt = CONFIG["console"]["prompt"]

    def _print(self, text: str) -> None:
        print(text, file=self.out)

    def show_status(self) -> None:
        self._print(self.car.status().describe())

    def handle_line(self, line: str) -> bool:
        """
        Execute one command line.

        Args:
            line: Raw input line

        Returns:
            False when the console should exit, True otherwise
        """
        parts = line.split()
        if not parts:
            return True
        command = parts[0].lower()

        try:
            if command == "help":
                self._print(HELP_TEXT)
            elif command in ("call", "select"):
                if len(parts) < 2:
                    self._print("Need a floor number.")
                    return True
                request = FloorRequest(floor=parts[1], source=RequestSource(command))
                if self.car.on_button_press(request) == RequestOutcome.OK:
                    self.show_status()
            elif command == "step":
                request = StepRequest(ticks=parts[1]) if len(parts) >= 2 else StepRequest()
                self.car.advance(request.ticks)
            elif command == "status":
                self.show_status()
            elif command == "quit":
                self._print("Goodbye!")
                return False
            else:
                self._print("Unknown command. Type 'help'.")
        except ValidationError:
            self._print("Invalid number.")
        return True

    def run(self, lines: Iterator[str]) -> None:
        """Print the banner and process lines until quit or end of input."""
        self._print("Elevator sim started. Type 'help' for commands.")
        self.show_status()
        for line in lines:
            if not self.handle_line(line):
                return


def read_lines(prompt: str, stream: TextIO, out: TextIO) -> Iterator[str]:
    """Prompt for and yield input lines until end of input."""
    while True:
        print(prompt, end="", file=out, flush=True)
        line = stream.readline()
        if not line:
            return
        yield line


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Interactive single-car elevator simulator")
    parser.add_argument("--max-floor", type=int, default=CONFIG["elevator"]["max_floor"],
                        help="Highest floor served (at least 2)")
    parser.add_argument("--log-level", type=str.upper, default=CONFIG["logging"]["level"],
                        choices=LOG_LEVELS, help="Logging level for car narration")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level,
                        format=CONFIG["logging"]["console_format"],
                        stream=sys.stdout)

    console = ElevatorConsole(ElevatorCar(args.max_floor))
    console.run(read_lines(console.prompt, sys.stdin, sys.stdout))
    return 0


if __name__ == "__main__":
    sys.exit(main())
