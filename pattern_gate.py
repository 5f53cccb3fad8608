"""
Pattern-lock gate shown before the dashboard.

The user is shown a random color sequence for a few seconds and must click it
back in order. This is a UX novelty, not access control: success only flips a
locally persisted boolean.

The gate is a timer-bound state machine. Each state owns at most one pending
timer; every transition cancels it first, so a delayed transition scheduled in
an earlier state can never fire into a later one.
"""
from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

PATTERN_MIN_LENGTH = 4
PATTERN_MAX_LENGTH = 6
PATTERN_DISPLAY_SECONDS = 3.0
GRANT_DELAY_SECONDS = 1.0
FAILURE_RESET_SECONDS = 1.5
WRONG_PATTERN_MESSAGE = "Wrong pattern! Try again."


class Color(str, Enum):
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    PURPLE = "purple"
    ORANGE = "orange"


COLORS: List[Color] = list(Color)

COLOR_HEX = {
    Color.RED: "#ff4757",
    Color.BLUE: "#3742fa",
    Color.GREEN: "#2ed573",
    Color.YELLOW: "#ffa502",
    Color.PURPLE: "#a55eea",
    Color.ORANGE: "#ff6348",
}


class GateState(str, Enum):
    WELCOME = "welcome"
    PATTERN = "pattern"
    INPUT = "input"
    AUTHENTICATING = "authenticating"
    FAILED = "failed"
    AUTHENTICATED = "authenticated"


INPUT_STATES = {GateState.INPUT, GateState.AUTHENTICATING, GateState.FAILED}


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


class Scheduler(Protocol):
    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Schedules callbacks on the running event loop."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


def generate_pattern(rng: random.Random | None = None) -> Tuple[Color, ...]:
    rng = rng or random.Random()
    length = rng.randint(PATTERN_MIN_LENGTH, PATTERN_MAX_LENGTH)
    return tuple(rng.choice(COLORS) for _ in range(length))


@dataclass(frozen=True)
class GateSnapshot:
    state: GateState
    visible_pattern: Tuple[Color, ...]
    pattern_length: int
    entered: Tuple[Color, ...]
    error: str
    failures: int

    @property
    def step(self) -> str:
        """The screen to show; the transient sub-states render as ``input``."""
        if self.state in INPUT_STATES:
            return GateState.INPUT.value
        return self.state.value

    @property
    def accepts_selection(self) -> bool:
        return self.state is GateState.INPUT

    @property
    def is_authenticating(self) -> bool:
        return self.state is GateState.AUTHENTICATING

    @property
    def progress_percent(self) -> int:
        if not self.pattern_length:
            return 0
        return int(round(100 * len(self.entered) / self.pattern_length))


class PatternGate:
    def __init__(
        self,
        on_success: Callable[[], None],
        scheduler: Scheduler | None = None,
        on_change: Callable[[GateSnapshot], None] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.on_success = on_success
        self.on_change = on_change
        self.scheduler = scheduler or AsyncioScheduler()
        self.rng = rng or random.Random()
        self.state = GateState.WELCOME
        self.pattern: Tuple[Color, ...] = generate_pattern(self.rng)
        self.entered: List[Color] = []
        self.error = ""
        self.failures = 0
        self._pending: Optional[TimerHandle] = None

    def snapshot(self) -> GateSnapshot:
        return GateSnapshot(
            state=self.state,
            visible_pattern=self.pattern if self.state is GateState.PATTERN else (),
            pattern_length=len(self.pattern),
            entered=tuple(self.entered),
            error=self.error,
            failures=self.failures,
        )

    @property
    def has_pending_timer(self) -> bool:
        return self._pending is not None

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _enter(self, state: GateState, delay: float | None = None, then: Callable[[], None] | None = None) -> None:
        self._cancel_pending()
        self.state = state
        if delay is not None and then is not None:
            self._pending = self.scheduler.schedule(delay, self._fire(then))
        if self.on_change is not None:
            self.on_change(self.snapshot())

    def _fire(self, transition: Callable[[], None]) -> Callable[[], None]:
        def run() -> None:
            self._pending = None
            transition()

        return run

    def start(self) -> None:
        if self.state is not GateState.WELCOME:
            return
        self._enter(GateState.PATTERN, PATTERN_DISPLAY_SECONDS, self._hide_pattern)

    def _hide_pattern(self) -> None:
        self._enter(GateState.INPUT)

    def select(self, color: Color | str) -> None:
        if self.state is not GateState.INPUT:
            return
        try:
            color = Color(color)
        except ValueError:
            logger.warning("Ignoring unknown color %r", color)
            return

        expected = self.pattern[len(self.entered)]
        if color is not expected:
            self.failures += 1
            self.error = WRONG_PATTERN_MESSAGE
            logger.info("Pattern attempt failed (%d so far)", self.failures)
            self._enter(GateState.FAILED, FAILURE_RESET_SECONDS, self._new_challenge)
            return

        self.entered.append(color)
        if len(self.entered) == len(self.pattern):
            self._enter(GateState.AUTHENTICATING, GRANT_DELAY_SECONDS, self._grant)
        elif self.on_change is not None:
            self.on_change(self.snapshot())

    def reset(self) -> None:
        """Throw away the current attempt and start over with a new pattern."""
        if self.state not in {GateState.INPUT, GateState.FAILED}:
            return
        self._new_challenge()

    def _new_challenge(self) -> None:
        self.pattern = generate_pattern(self.rng)
        self.entered = []
        self.error = ""
        self._enter(GateState.WELCOME)

    def _grant(self) -> None:
        self._enter(GateState.AUTHENTICATED)
        logger.info("Pattern gate passed")
        self.on_success()

    def dispose(self) -> None:
        self._cancel_pending()
