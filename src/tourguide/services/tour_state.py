"""Tour state machine (pure transition core).

The coordinator is modelled as explicit transition functions: each command or
host signal is an event, and ``transition(state, event, definition)`` returns
the next immutable ``TourState`` plus the side effects the caller must run
(persist the completion flag, schedule a delayed advance, reset host UI). No
Qt, no timers, no I/O here, so every rule is testable as plain data.

States
------
INACTIVE      overlay hidden (before start, after completion or skip)
ACTIVE(i)     step ``i`` of the definition is shown
TERMINATED    transient; ``transition`` collapses it into INACTIVE in the same
              call after emitting ``PersistCompletion``

Rules
-----
* ``Start``: INACTIVE -> ACTIVE(0), only while the completion flag is false.
* ``Restart``: any -> ACTIVE(0) regardless of the flag; ``ResetHost`` comes
  first so the host can close dialogs and navigate back before step 0 shows.
* ``AdvanceManual``: ACTIVE(i) -> ACTIVE(i+1) or TERMINATED after the last
  step; a no-op on action-gated steps.
* ``Signal``: advances an action-gated step when the signal is the one the
  current step waits for and the reported index equals the current index.
  Signals with a delay produce ``ScheduleAdvance`` tagged with the step index
  and session generation instead of advancing.
* ``DelayedAdvance``: applies only if the tour is still active, in the same
  generation and still on the tagged step. Anything else is stale.
* ``Skip``: ACTIVE(any) -> TERMINATED.

The step index never decreases and never moves by more than one. Every start,
restart and termination bumps ``generation`` so delayed work scheduled in an
earlier session can be recognised and discarded.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple, Union

from ..design.onboarding_tour import TourDefinition

__all__ = [
    "NOT_STARTED",
    "TourPhase",
    "TourState",
    "Start",
    "Restart",
    "AdvanceManual",
    "Skip",
    "Signal",
    "DelayedAdvance",
    "TourCommand",
    "PersistCompletion",
    "ScheduleAdvance",
    "ResetHost",
    "Effect",
    "Outcome",
    "Transition",
    "initial_state",
    "transition",
]

NOT_STARTED = -1


class TourPhase(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class TourState:
    phase: TourPhase = TourPhase.INACTIVE
    step_index: int = NOT_STARTED
    generation: int = 0
    completed: bool = False  # persisted flag as last read or written
    pending_advance: Optional[int] = None  # step index awaiting a delayed advance

    @property
    def active(self) -> bool:
        return self.phase is TourPhase.ACTIVE


# Events -------------------------------------------------------------------
@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Restart:
    pass


@dataclass(frozen=True)
class AdvanceManual:
    pass


@dataclass(frozen=True)
class Skip:
    pass


@dataclass(frozen=True)
class Signal:
    name: str
    expected_step_index: Optional[int] = None  # None: index the catalog registers


@dataclass(frozen=True)
class DelayedAdvance:
    step_index: int
    generation: int


TourCommand = Union[Start, Restart, AdvanceManual, Skip, Signal, DelayedAdvance]


# Effects ------------------------------------------------------------------
@dataclass(frozen=True)
class PersistCompletion:
    completed: bool = True


@dataclass(frozen=True)
class ScheduleAdvance:
    delay_ms: int
    step_index: int
    generation: int


@dataclass(frozen=True)
class ResetHost:
    pass


Effect = Union[PersistCompletion, ScheduleAdvance, ResetHost]


class Outcome(str, Enum):
    STARTED = "started"
    RESTARTED = "restarted"
    ADVANCED = "advanced"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    # ignored outcomes
    INACTIVE = "inactive"
    ALREADY_ACTIVE = "already_active"
    ALREADY_COMPLETED = "already_completed"
    ACTION_REQUIRED = "action_required"
    UNKNOWN_SIGNAL = "unknown_signal"
    STALE_SIGNAL = "stale_signal"
    DUPLICATE_SIGNAL = "duplicate_signal"
    STALE_DELAYED_ADVANCE = "stale_delayed_advance"


_APPLIED = {
    Outcome.STARTED,
    Outcome.RESTARTED,
    Outcome.ADVANCED,
    Outcome.SCHEDULED,
    Outcome.COMPLETED,
    Outcome.SKIPPED,
}


@dataclass(frozen=True)
class Transition:
    state: TourState
    outcome: Outcome
    effects: Tuple[Effect, ...] = field(default_factory=tuple)

    @property
    def ignored(self) -> bool:
        return self.outcome not in _APPLIED

    @property
    def terminated(self) -> bool:
        return self.outcome in (Outcome.COMPLETED, Outcome.SKIPPED)


def initial_state(completed: bool) -> TourState:
    return TourState(completed=bool(completed))


def _ignore(state: TourState, outcome: Outcome) -> Transition:
    return Transition(state=state, outcome=outcome)


def _terminate(state: TourState, outcome: Outcome) -> Transition:
    # TERMINATED is transient: persist, then collapse to INACTIVE
    return Transition(
        state=TourState(
            phase=TourPhase.INACTIVE,
            step_index=NOT_STARTED,
            generation=state.generation + 1,
            completed=True,
        ),
        outcome=outcome,
        effects=(PersistCompletion(True),),
    )


def _advance(state: TourState, definition: TourDefinition) -> Transition:
    nxt = state.step_index + 1
    if nxt >= definition.step_count:
        return _terminate(state, Outcome.COMPLETED)
    return Transition(
        state=replace(state, step_index=nxt, pending_advance=None),
        outcome=Outcome.ADVANCED,
    )


def _begin(state: TourState, outcome: Outcome, effects: Tuple[Effect, ...] = ()) -> Transition:
    return Transition(
        state=TourState(
            phase=TourPhase.ACTIVE,
            step_index=0,
            generation=state.generation + 1,
            completed=state.completed,
        ),
        outcome=outcome,
        effects=effects,
    )


def transition(state: TourState, event: TourCommand, definition: TourDefinition) -> Transition:
    """Apply ``event`` to ``state``; never raises for invalid commands."""
    if isinstance(event, Restart):
        return _begin(state, Outcome.RESTARTED, (ResetHost(),))

    if isinstance(event, Start):
        if state.active:
            return _ignore(state, Outcome.ALREADY_ACTIVE)
        if state.completed:
            return _ignore(state, Outcome.ALREADY_COMPLETED)
        if definition.step_count == 0:
            return _ignore(state, Outcome.INACTIVE)
        return _begin(state, Outcome.STARTED)

    if not state.active:
        return _ignore(state, Outcome.INACTIVE)

    step = definition.step_at(state.step_index)

    if isinstance(event, Skip):
        return _terminate(state, Outcome.SKIPPED)

    if isinstance(event, AdvanceManual):
        if step is None or step.action_required:
            return _ignore(state, Outcome.ACTION_REQUIRED)
        return _advance(state, definition)

    if isinstance(event, Signal):
        rule = definition.signal_rules().get(event.name)
        if rule is None:
            return _ignore(state, Outcome.UNKNOWN_SIGNAL)
        expected = rule.step_index if event.expected_step_index is None else event.expected_step_index
        if expected != state.step_index:
            return _ignore(state, Outcome.STALE_SIGNAL)
        if step is None or not step.action_required or step.advance_signal != event.name:
            return _ignore(state, Outcome.STALE_SIGNAL)
        if state.pending_advance == state.step_index:
            return _ignore(state, Outcome.DUPLICATE_SIGNAL)
        if rule.delay_ms <= 0:
            return _advance(state, definition)
        return Transition(
            state=replace(state, pending_advance=state.step_index),
            outcome=Outcome.SCHEDULED,
            effects=(
                ScheduleAdvance(
                    delay_ms=rule.delay_ms,
                    step_index=state.step_index,
                    generation=state.generation,
                ),
            ),
        )

    if isinstance(event, DelayedAdvance):
        if (
            event.generation != state.generation
            or event.step_index != state.step_index
            or state.pending_advance != event.step_index
        ):
            return _ignore(state, Outcome.STALE_DELAYED_ADVANCE)
        return _advance(state, definition)

    return _ignore(state, Outcome.UNKNOWN_SIGNAL)
