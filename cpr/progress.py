"""
Clone progress model.

git reports three independent phases while cloning: receiving objects,
resolving deltas and checking out files. Each phase has its own
current/total pair, so the display range is reset once when a phase starts.
"""
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
)

from .config import console

RECEIVING = "Receiving objects"
RESOLVING = "Resolving deltas"
CHECKOUT = "Checking out files"

_PHASES = {
    "Receiving objects": RECEIVING,
    "Resolving deltas": RESOLVING,
    "Updating files": CHECKOUT,
    "Checking out files": CHECKOUT,
}

_PROGRESS_RE = re.compile(
    r"^(?P<phase>Receiving objects|Resolving deltas|Updating files|Checking out files):"
    r"\s+\d+%\s+\((?P<current>\d+)/(?P<total>\d+)\)"
)


def parse_progress_line(line: str) -> Optional[Tuple[str, int, int]]:
    """
    Parse one line of ``git clone --progress`` output.

    Returns:
        tuple: (phase, current, total), or None for lines that carry no counters.
    """
    match = _PROGRESS_RE.match(line.strip())
    if not match:
        return None
    return _PHASES[match.group("phase")], int(match.group("current")), int(match.group("total"))


class RichProgressDisplay:
    """Single rich progress bar whose range is reset between phases."""

    def __init__(self):
        self._progress = None
        self._task = None

    def start(self, description, total):
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
            transient=True,
        )
        self._progress.start()
        self._task = self._progress.add_task(description, total=total)

    def reset(self, description, total):
        if self._progress is None:
            self.start(description, total)
            return
        self._progress.reset(self._task, total=total, completed=0, description=description)

    def update(self, completed, total):
        if self._progress is not None:
            self._progress.update(self._task, completed=completed, total=total)

    def finish(self):
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task = None


class NullProgressDisplay:
    def start(self, description, total):
        pass

    def reset(self, description, total):
        pass

    def update(self, completed, total):
        pass

    def finish(self):
        pass


@dataclass
class CloneProgress:
    """
    Counters for a single clone call.

    Totals of zero are valid (empty repositories) and are passed through to
    the display unchanged.
    """

    total_objects: int = 0
    received_objects: int = 0
    total_deltas: int = 0
    indexed_deltas: int = 0
    checkout_current: int = 0
    checkout_total: int = 0
    checkout_path: Optional[str] = None
    resolving_deltas: bool = False
    checking_out: bool = False
    display: Any = field(default_factory=NullProgressDisplay, repr=False)
    _started: bool = field(default=False, repr=False)

    def on_objects(self, received: int, total: int):
        self.received_objects = received
        self.total_objects = total
        if self.resolving_deltas or self.checking_out:
            return
        if not self._started:
            self._started = True
            self.display.start(RECEIVING, total)
        self.display.update(received, total)

    def on_deltas(self, indexed: int, total: int):
        self.indexed_deltas = indexed
        self.total_deltas = total
        if self.checking_out:
            return
        if not self.resolving_deltas:
            if self.received_objects != self.total_objects:
                return
            self.resolving_deltas = True
            self._reset(RESOLVING, total)
        self.display.update(indexed, total)

    def on_checkout(self, path: Optional[str], current: int, total: int):
        self.checkout_path = path
        self.checkout_current = current
        self.checkout_total = total
        if not self.checking_out:
            self.checking_out = True
            self._reset(CHECKOUT, total)
        self.display.update(current, total)

    def feed(self, line: str):
        """
        Apply one line of git progress output.

        Returns:
            bool: True if the line carried progress counters.
        """
        parsed = parse_progress_line(line)
        if parsed is None:
            return False
        phase, current, total = parsed
        if phase == RECEIVING:
            self.on_objects(current, total)
        elif phase == RESOLVING:
            self.on_deltas(current, total)
        else:
            self.on_checkout(None, current, total)
        return True

    def finish(self):
        self.display.finish()

    def _reset(self, description, total):
        if self._started:
            self.display.reset(description, total)
        else:
            self._started = True
            self.display.start(description, total)
