from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable, Literal

from telegraph_core.animation_driver import AnimationDriver


LOGGER = logging.getLogger(__name__)

OpModeState = Literal["STOPPED", "INIT", "RUNNING"]
STOP_OP_MODE_TAG = "$Stop$Robot$"


@dataclass(frozen=True)
class LifecycleTransition:
    last_state: OpModeState
    new_state: OpModeState
    last_op_mode: str
    new_op_mode: str


TransitionListener = Callable[[LifecycleTransition], None]


@dataclass
class StateListeners:
    on_enter: list[TransitionListener] = field(default_factory=list)
    on_exit: list[TransitionListener] = field(default_factory=list)


class OpModeLifecycle:
    """Tracks the robot op mode as STOPPED / INIT / RUNNING and notifies listeners.

    A status update that repeats the previous ``(active_op_mode, status)`` pair is
    ignored, so listeners fire only when the reported status changes. Moving between
    op modes while ``INIT`` or ``RUNNING`` re-enters the state. Updates that report no
    active op mode while already ``STOPPED`` are ignored.
    """

    def __init__(self) -> None:
        self._state: OpModeState = "STOPPED"
        self._op_mode = ""
        self._last_update: tuple[str, str] | None = None
        self._listeners: dict[OpModeState, StateListeners] = {
            "STOPPED": StateListeners(),
            "INIT": StateListeners(),
            "RUNNING": StateListeners(),
        }

    @property
    def state(self) -> OpModeState:
        return self._state

    @property
    def op_mode(self) -> str:
        return self._op_mode

    def on_enter(self, state: OpModeState, listener: TransitionListener) -> None:
        self._listeners[state].on_enter.append(listener)

    def on_exit(self, state: OpModeState, listener: TransitionListener) -> None:
        self._listeners[state].on_exit.append(listener)

    def update(self, active_op_mode: str, status: str) -> OpModeState:
        if (active_op_mode, status) == self._last_update:
            return self._state
        self._last_update = (active_op_mode, status)
        stopping = active_op_mode in ("", STOP_OP_MODE_TAG) or status == "STOPPED"
        if self._state == "STOPPED":
            if stopping:
                return self._state
            if status in ("INIT", "RUNNING"):
                self._transition(status, active_op_mode)  # type: ignore[arg-type]
            return self._state

        if stopping:
            self._transition("STOPPED", "")
        elif status in ("INIT", "RUNNING"):
            self._transition(status, active_op_mode)  # type: ignore[arg-type]
        else:
            LOGGER.debug("ignoring unknown op mode status %r", status)
        return self._state

    def _transition(self, new_state: OpModeState, new_op_mode: str) -> None:
        event = LifecycleTransition(
            last_state=self._state,
            new_state=new_state,
            last_op_mode=self._op_mode,
            new_op_mode=new_op_mode,
        )
        for listener in self._listeners[self._state].on_exit:
            listener(event)
        for listener in self._listeners[new_state].on_enter:
            listener(event)
        self._state = new_state
        self._op_mode = new_op_mode


def bind_driver(lifecycle: OpModeLifecycle, driver: AnimationDriver, *, clear_on_start: bool = False) -> None:
    """INIT/RUNNING resume a live graph; STOPPED freezes it in place."""

    def _resume(event: LifecycleTransition) -> None:
        if clear_on_start and event.last_state == "STOPPED":
            driver.reset()
        driver.play()

    def _freeze(event: LifecycleTransition) -> None:
        driver.stop()

    lifecycle.on_enter("INIT", _resume)
    lifecycle.on_enter("RUNNING", _resume)
    lifecycle.on_enter("STOPPED", _freeze)

