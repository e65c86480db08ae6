"""Tour controller: the host-facing bridge around the tour state machine.

``TourController`` owns the only mutable copy of the tour session state. The
host drives it with commands (``start``, ``skip``, ``advance_manual``,
``restart``) and reports opaque signals (``report_signal``,
``report_screen_active``); it renders from the queries (``is_visible``,
``current_step``, ``current_step_index``) and the Qt signals.

Every command goes through ``tour_state.transition``; this class only runs
the returned effects:

* ``ResetHost``          call the host reset hook, emit ``hostResetRequested``
                         (before the new state is applied)
* ``PersistCompletion``  write the completion flag
* ``ScheduleAdvance``    re-enter as ``DelayedAdvance`` after the delay; the
                         state machine drops it if the session moved on

Ignored commands and stale signals are logged at DEBUG and published as
``TourEvent.TOUR_SIGNAL_IGNORED``; nothing here raises into the host.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from ..app.completion_store import CompletionStore, MemoryCompletionStore
from ..design.onboarding_tour import TourDefinition, TourStep, describe_steps, screen_signal
from .event_bus import EventBus, TourEvent
from .scheduler import QtScheduler, Scheduler
from .tour_state import (
    AdvanceManual,
    DelayedAdvance,
    Outcome,
    PersistCompletion,
    ResetHost,
    Restart,
    ScheduleAdvance,
    Signal,
    Skip,
    Start,
    TourCommand,
    TourState,
    Transition,
    initial_state,
    transition,
)

__all__ = ["TourController"]

_log = logging.getLogger(__name__)


class TourController(QObject):
    stepChanged = pyqtSignal(int)
    visibilityChanged = pyqtSignal(bool)
    tourFinished = pyqtSignal(bool)  # True when skipped
    hostResetRequested = pyqtSignal()

    def __init__(
        self,
        definition: TourDefinition,
        store: Optional[CompletionStore] = None,
        *,
        scheduler: Optional[Scheduler] = None,
        event_bus: Optional[EventBus] = None,
        host_reset: Optional[Callable[[], None]] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._definition = definition
        if store is None:
            _log.debug("No completion store supplied; tour completion will not persist")
            store = MemoryCompletionStore()
        self._store = store
        self._scheduler: Scheduler = scheduler if scheduler is not None else QtScheduler(self)
        self._bus = event_bus
        self._host_reset = host_reset
        self._state = initial_state(self._load_completed())
        _log.debug("Tour %s loaded: %s", definition.id, describe_steps(definition))

    def _load_completed(self) -> bool:
        try:
            return bool(self._store.load())
        except Exception as exc:  # noqa: BLE001 - storage disabled or broken
            _log.warning("Completion flag unavailable (%s); treating tour as not completed", exc)
            return False

    # Queries ------------------------------------------------------------
    @property
    def definition(self) -> TourDefinition:
        return self._definition

    @property
    def state(self) -> TourState:
        return self._state

    @property
    def event_bus(self) -> Optional[EventBus]:
        return self._bus

    @property
    def is_visible(self) -> bool:
        return self._state.active

    @property
    def current_step_index(self) -> int:
        return self._state.step_index

    @property
    def current_step(self) -> Optional[TourStep]:
        if not self._state.active:
            return None
        return self._definition.step_at(self._state.step_index)

    @property
    def step_count(self) -> int:
        return self._definition.step_count

    @property
    def is_last_step(self) -> bool:
        return self._state.active and self._state.step_index == self.step_count - 1

    @property
    def completed(self) -> bool:
        return self._state.completed

    def snapshot(self) -> Dict[str, Any]:
        step = self.current_step
        return {
            "tour": self._definition.id,
            "visible": self.is_visible,
            "stepIndex": self._state.step_index,
            "step": step.id if step else None,
            "stepCount": self.step_count,
            "actionRequired": bool(step and step.action_required),
            "completed": self._state.completed,
            "generation": self._state.generation,
        }

    # Commands -----------------------------------------------------------
    def start(self) -> bool:
        return not self._dispatch(Start()).ignored

    def restart(self) -> bool:
        return not self._dispatch(Restart()).ignored

    def skip(self) -> bool:
        return not self._dispatch(Skip()).ignored

    def advance_manual(self) -> bool:
        return not self._dispatch(AdvanceManual()).ignored

    def report_signal(self, name: str, expected_step_index: Optional[int] = None) -> bool:
        return not self._dispatch(Signal(name, expected_step_index)).ignored

    def report_screen_active(self, screen: str, expected_step_index: Optional[int] = None) -> bool:
        return self.report_signal(screen_signal(screen), expected_step_index)

    def shutdown(self) -> None:
        self._scheduler.cancel_all()

    # Internal -----------------------------------------------------------
    def _dispatch(self, event: TourCommand) -> Transition:
        previous = self._state
        result = transition(previous, event, self._definition)
        if result.ignored:
            self._on_ignored(event, result)
            return result

        for effect in result.effects:
            if isinstance(effect, ResetHost):
                self._run_host_reset()
        self._state = result.state
        for effect in result.effects:
            if isinstance(effect, PersistCompletion):
                self._persist(effect.completed)
            elif isinstance(effect, ScheduleAdvance):
                self._schedule(effect)

        self._notify(previous, result)
        return result

    def _log_context(self, step_index: int, **fields: Any) -> Dict[str, Any]:
        step = self._definition.step_at(step_index)
        return {
            "tour": self._definition.id,
            "step_index": step_index,
            "step": step.id if step else None,
            **fields,
        }

    def _on_ignored(self, event: TourCommand, result: Transition) -> None:
        index = self._state.step_index
        signal = None
        if isinstance(event, (Signal, DelayedAdvance)):
            signal = getattr(event, "name", "delayed_advance")
        _log.debug(
            "Tour ignored %s at step %d: %s",
            event,
            index,
            result.outcome.value,
            extra=self._log_context(index, signal=signal, outcome=result.outcome.value),
        )
        if self._bus is not None and signal is not None:
            self._bus.publish(
                TourEvent.TOUR_SIGNAL_IGNORED,
                {
                    "tour": self._definition.id,
                    "signal": signal,
                    "stepIndex": index,
                    "reason": result.outcome.value,
                },
            )

    def _run_host_reset(self) -> None:
        if self._host_reset is not None:
            try:
                self._host_reset()
            except Exception:  # noqa: BLE001
                _log.exception("Host reset hook failed during tour restart")
        self.hostResetRequested.emit()

    def _persist(self, completed: bool) -> None:
        try:
            self._store.save(completed)
        except Exception as exc:  # noqa: BLE001 - PersistenceUnavailable
            _log.warning("Completion flag not saved: %s", exc)

    def _schedule(self, effect: ScheduleAdvance) -> None:
        _log.debug(
            "Advance from step %d scheduled in %d ms (generation %d)",
            effect.step_index,
            effect.delay_ms,
            effect.generation,
        )
        self._scheduler.call_later(
            effect.delay_ms,
            lambda: self._dispatch(DelayedAdvance(effect.step_index, effect.generation)),
        )

    def _notify(self, previous: TourState, result: Transition) -> None:
        state = result.state
        if previous.active != state.active:
            self.visibilityChanged.emit(state.active)
        if state.active and (
            state.step_index != previous.step_index or state.generation != previous.generation
        ):
            _log.debug(
                "Tour %s on step %d",
                self._definition.id,
                state.step_index,
                extra=self._log_context(state.step_index, outcome=result.outcome.value),
            )
            self.stepChanged.emit(state.step_index)
            self._publish(TourEvent.TOUR_STEP_CHANGED, stepIndex=state.step_index)
        if result.outcome in (Outcome.STARTED, Outcome.RESTARTED):
            self._publish(TourEvent.TOUR_STARTED, restarted=result.outcome is Outcome.RESTARTED)
        elif result.terminated:
            skipped = result.outcome is Outcome.SKIPPED
            _log.info(
                "Tour %s %s",
                self._definition.id,
                result.outcome.value,
                extra=self._log_context(previous.step_index, outcome=result.outcome.value),
            )
            self.tourFinished.emit(skipped)
            self._publish(
                TourEvent.TOUR_SKIPPED if skipped else TourEvent.TOUR_COMPLETED,
                lastStepIndex=previous.step_index,
            )

    def _publish(self, name: TourEvent, **payload: Any) -> None:
        if self._bus is None:
            return
        self._bus.publish(name, {"tour": self._definition.id, **payload})
