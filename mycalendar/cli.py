"""
CLI (Command Line Interface).

Two ways to drive the calendar:

    mycalendar --mode interactive
    mycalendar --mode headless commands.txt

Interactive mode reads one command per prompt until 'exit' (or end of input).
Headless mode runs every command in the file; the file must end with 'exit'.
Both keep going after a failed command and print the error.

Optional flags:
    --calendar NAME     create and use a calendar before the first command
    --timezone TZ       timezone label for --calendar (default: UTC)
    -v / --verbose      debug logging on stderr
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterator, Optional

from rich.console import Console

from mycalendar.calendars import CalendarSystem
from mycalendar.commands import CommandInterpreter
from mycalendar.errors import CalendarError
from mycalendar.view import CalendarView

logger = logging.getLogger(__name__)

PROMPT = "> "


def _prompt_lines(console: Console) -> Iterator[str]:
    """
    Yield lines typed at the prompt until end of input or Ctrl-C.
    """
    while True:
        try:
            yield console.input(PROMPT)
        except (EOFError, KeyboardInterrupt):
            console.print()
            return


def _read_commands(path: str) -> list[str]:
    """
    Read the commands of a headless script. Raises OSError if it cannot be read.
    """
    return Path(path).read_text(encoding="utf-8").splitlines()


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser.
    """
    parser = argparse.ArgumentParser(prog="mycalendar", description="MyCalendar command interpreter")
    parser.add_argument("--mode", choices=("interactive", "headless"), required=True, help="Run mode")
    parser.add_argument("file", nargs="?", help="Command file (headless mode)")
    parser.add_argument("--calendar", type=str, default=None, help="Create and use this calendar at startup")
    parser.add_argument("--timezone", type=str, default="UTC", help="Timezone label for --calendar")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _bootstrap(system: CalendarSystem, view: CalendarView, args: argparse.Namespace) -> bool:
    if not args.calendar:
        return True
    try:
        system.create_calendar(args.calendar, args.timezone)
        system.use_calendar(args.calendar)
    except CalendarError as exc:
        view.error(str(exc))
        return False
    return True


def main(argv: Optional[list[str]] = None, console: Optional[Console] = None) -> None:
    """
    CLI entry point. Parses args, runs the interpreter,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.mode == "headless" and not args.file:
        parser.error("headless mode needs a command file")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    console = console if console is not None else Console(highlight=False)
    view = CalendarView(console)
    system = CalendarSystem()
    if not _bootstrap(system, view, args):
        raise SystemExit(1)
    interpreter = CommandInterpreter(system, view)

    if args.mode == "interactive":
        view.write("Welcome to MyCalendar. Type 'exit' to quit.")
        interpreter.run(_prompt_lines(console))
        view.write("Goodbye.")
        raise SystemExit(0)

    try:
        lines = _read_commands(args.file)
    except OSError as exc:
        view.error(f"Cannot read command file {args.file}: {exc}")
        raise SystemExit(1)

    if not interpreter.run(lines):
        view.error("Command file must end with 'exit'.")
        raise SystemExit(1)
    raise SystemExit(0)
