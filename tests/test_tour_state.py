"""Transition rules of the tour state machine (no Qt involved)."""

import pytest

from tourguide.design.onboarding_tour import TourDefinition, TourStep
from tourguide.design.tour_presets import FIRST_CONSULTATION as TOUR
from tourguide.services.tour_state import (
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
    TourPhase,
    initial_state,
    transition,
)


def _run(state, *events):
    result = None
    for event in events:
        result = transition(state, event, TOUR)
        state = result.state
    return result


def _at(index):
    """Active state sitting on ``index`` reached through the normal path."""
    state = transition(initial_state(False), Start(), TOUR).state
    path = [
        Signal("screen:patient_details"),
        AdvanceManual(),
        Signal("screen:consultation"),
        Signal("demo_loaded"),
        Signal("soap_generated"),
    ]
    for event in path[:index]:
        state = transition(state, event, TOUR).state
        if state.pending_advance is not None:
            state = transition(state, DelayedAdvance(state.pending_advance, state.generation), TOUR).state
    assert state.step_index == index
    return state


def test_start_shows_first_step():
    result = transition(initial_state(False), Start(), TOUR)
    assert result.outcome is Outcome.STARTED
    assert result.state.phase is TourPhase.ACTIVE
    assert result.state.step_index == 0
    assert result.effects == ()


def test_start_blocked_when_completed():
    state = initial_state(True)
    result = transition(state, Start(), TOUR)
    assert result.ignored
    assert result.outcome is Outcome.ALREADY_COMPLETED
    assert result.state == state


def test_start_while_active_is_ignored():
    result = transition(_at(0), Start(), TOUR)
    assert result.outcome is Outcome.ALREADY_ACTIVE


def test_commands_ignored_while_inactive():
    state = initial_state(False)
    for event in (AdvanceManual(), Skip(), Signal("demo_loaded"), DelayedAdvance(0, 0)):
        result = transition(state, event, TOUR)
        assert result.outcome is Outcome.INACTIVE
        assert result.state == state


def test_manual_advance_ignored_on_gated_step():
    state = _at(0)
    result = transition(state, AdvanceManual(), TOUR)
    assert result.outcome is Outcome.ACTION_REQUIRED
    assert result.state == state


@pytest.mark.parametrize("index", [0, 2, 3, 4])
def test_manual_advance_ignored_on_every_gated_step(index):
    assert TOUR.steps[index].action_required
    state = _at(index)
    result = transition(state, AdvanceManual(), TOUR)
    assert result.outcome is Outcome.ACTION_REQUIRED
    assert result.state == state
    assert result.effects == ()


def test_manual_advance_moves_by_one():
    result = transition(_at(1), AdvanceManual(), TOUR)
    assert result.outcome is Outcome.ADVANCED
    assert result.state.step_index == 2


def test_screen_signal_advances_immediately():
    result = transition(_at(0), Signal("screen:patient_details"), TOUR)
    assert result.outcome is Outcome.ADVANCED
    assert result.state.step_index == 1


def test_signal_for_other_step_is_stale():
    # dialog reported open again while the tour already moved on
    state = _at(2)
    result = transition(state, Signal("screen:patient_details"), TOUR)
    assert result.outcome is Outcome.STALE_SIGNAL
    assert result.state == state


def test_signal_with_explicit_expected_index():
    state = _at(0)
    assert transition(state, Signal("screen:patient_details", 0), TOUR).outcome is Outcome.ADVANCED
    assert transition(state, Signal("screen:patient_details", 1), TOUR).outcome is Outcome.STALE_SIGNAL


def test_unknown_signal_ignored():
    result = transition(_at(0), Signal("nope"), TOUR)
    assert result.outcome is Outcome.UNKNOWN_SIGNAL


def test_delayed_signal_schedules_then_advances():
    state = _at(3)
    scheduled = transition(state, Signal("demo_loaded"), TOUR)
    assert scheduled.outcome is Outcome.SCHEDULED
    assert scheduled.state.step_index == 3
    assert scheduled.state.pending_advance == 3
    (effect,) = scheduled.effects
    assert effect == ScheduleAdvance(delay_ms=500, step_index=3, generation=state.generation)

    fired = transition(scheduled.state, DelayedAdvance(3, state.generation), TOUR)
    assert fired.outcome is Outcome.ADVANCED
    assert fired.state.step_index == 4
    assert fired.state.pending_advance is None


def test_duplicate_signal_while_pending():
    scheduled = transition(_at(3), Signal("demo_loaded"), TOUR)
    again = transition(scheduled.state, Signal("demo_loaded"), TOUR)
    assert again.outcome is Outcome.DUPLICATE_SIGNAL
    assert again.effects == ()


def test_delayed_advance_after_skip_is_stale():
    state = _at(3)
    scheduled = transition(state, Signal("demo_loaded"), TOUR)
    skipped = transition(scheduled.state, Skip(), TOUR)
    late = transition(skipped.state, DelayedAdvance(3, state.generation), TOUR)
    assert late.ignored
    assert late.state == skipped.state


def test_delayed_advance_from_previous_generation_is_stale():
    state = _at(3)
    scheduled = transition(state, Signal("demo_loaded"), TOUR)
    restarted = _run(scheduled.state, Restart(), Signal("screen:patient_details"), AdvanceManual())
    # walk the new session back to step 3 without a pending advance
    at3 = transition(restarted.state, Signal("screen:consultation"), TOUR).state
    assert at3.step_index == 3
    late = transition(at3, DelayedAdvance(3, state.generation), TOUR)
    assert late.outcome is Outcome.STALE_DELAYED_ADVANCE
    assert late.state == at3


def test_skip_terminates_and_persists():
    result = transition(_at(2), Skip(), TOUR)
    assert result.outcome is Outcome.SKIPPED
    assert result.terminated
    assert result.state.phase is TourPhase.INACTIVE
    assert result.state.completed
    assert result.effects == (PersistCompletion(True),)


def test_skip_on_last_step_terminates():
    state = _at(TOUR.step_count - 1)
    assert state.step_index == 5
    result = transition(state, Skip(), TOUR)
    assert result.outcome is Outcome.SKIPPED
    assert result.effects == (PersistCompletion(True),)
    assert not result.state.active
    assert result.state.completed


def test_finishing_last_step_completes():
    state = transition(_at(3), Signal("demo_loaded"), TOUR).state
    state = transition(state, DelayedAdvance(3, state.generation), TOUR).state
    state = transition(state, Signal("soap_generated"), TOUR).state
    state = transition(state, DelayedAdvance(4, state.generation), TOUR).state
    assert state.step_index == 5
    done = transition(state, AdvanceManual(), TOUR)
    assert done.outcome is Outcome.COMPLETED
    assert done.effects == (PersistCompletion(True),)
    assert not done.state.active


def test_restart_ignores_completion_flag_and_resets_host():
    state = initial_state(True)
    result = transition(state, Restart(), TOUR)
    assert result.outcome is Outcome.RESTARTED
    assert result.state.step_index == 0
    assert result.effects == (ResetHost(),)


def test_restart_mid_tour_bumps_generation():
    state = _at(2)
    result = transition(state, Restart(), TOUR)
    assert result.state.step_index == 0
    assert result.state.generation == state.generation + 1


def test_step_index_never_decreases_or_jumps():
    state = initial_state(False)
    events = [
        Start(),
        AdvanceManual(),
        Signal("screen:consultation"),
        Signal("screen:patient_details"),
        AdvanceManual(),
        AdvanceManual(),
        Signal("screen:consultation"),
        Signal("demo_loaded"),
        Signal("soap_generated"),
    ]
    previous = state.step_index
    for event in events:
        state = transition(state, event, TOUR).state
        assert previous <= state.step_index <= previous + 1
        previous = state.step_index


def test_ungated_definition_ignores_signals():
    tour = TourDefinition(
        id="plain",
        steps=(TourStep(id="a", target_id="x", title="A", body="a"),),
    )
    state = transition(initial_state(False), Start(), tour).state
    assert transition(state, Signal("anything"), tour).outcome is Outcome.UNKNOWN_SIGNAL
    assert transition(state, AdvanceManual(), tour).outcome is Outcome.COMPLETED
