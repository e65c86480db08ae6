"""Onboarding tour step catalog.

A tour is an ordered, immutable list of steps. Each step names the UI element
it anchors to (resolved later, at render time), its display text, a preferred
tooltip placement, and whether the host must report a qualifying signal before
the tour may move on.

Action-gated steps carry the name of the signal that satisfies them plus an
optional delay; the delay belongs to the signal/step pair so the host can let a
visual transition start before the highlight jumps. Screen or dialog
activations use the ``screen:<name>`` signal namespace (see
``screen_signal``).

The registry mirrors the other design registries: module-level dict, explicit
validation on register, ``clear_tours`` for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

__all__ = [
    "Placement",
    "TourStep",
    "TourDefinition",
    "TourDefinitionError",
    "SignalRule",
    "SCREEN_SIGNAL_PREFIX",
    "screen_signal",
    "register_tour",
    "get_tour",
    "list_tours",
    "clear_tours",
    "describe_steps",
]

SCREEN_SIGNAL_PREFIX = "screen:"


def screen_signal(screen: str) -> str:
    return f"{SCREEN_SIGNAL_PREFIX}{screen}"


class Placement(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"  # no anchor; tooltip centered in viewport


class TourDefinitionError(ValueError):
    """Raised when a tour definition fails validation at registration."""


@dataclass(frozen=True)
class TourStep:
    id: str
    target_id: str
    title: str
    body: str
    placement: Placement = Placement.BOTTOM
    action_required: bool = False
    advance_signal: Optional[str] = None
    advance_delay_ms: int = 0

    @property
    def is_anchored(self) -> bool:
        return self.placement is not Placement.CENTER


@dataclass(frozen=True)
class SignalRule:
    """Which step a signal satisfies and how long to wait before advancing."""

    signal: str
    step_index: int
    delay_ms: int


@dataclass(frozen=True)
class TourDefinition:
    id: str
    steps: Sequence[TourStep] = field(default_factory=tuple)
    version: int = 1
    description: str = ""
    completion_key: str = "tour_completed"

    def __post_init__(self) -> None:
        # freeze the step sequence so index i is stable for the session
        object.__setattr__(self, "steps", tuple(self.steps))

    @property
    def step_count(self) -> int:
        return len(self.steps)

    def step_ids(self) -> List[str]:  # convenience
        return [s.id for s in self.steps]

    def step_at(self, index: int) -> Optional[TourStep]:
        if 0 <= index < len(self.steps):
            return self.steps[index]
        return None

    def signal_rules(self) -> Dict[str, SignalRule]:
        rules: Dict[str, SignalRule] = {}
        for idx, step in enumerate(self.steps):
            if step.action_required and step.advance_signal:
                rules[step.advance_signal] = SignalRule(
                    signal=step.advance_signal,
                    step_index=idx,
                    delay_ms=max(0, step.advance_delay_ms),
                )
        return rules

    def validate(self) -> None:
        if not self.steps:
            raise TourDefinitionError(f"Tour {self.id} has no steps")
        ids = set()
        signals: Dict[str, str] = {}
        for step in self.steps:
            if step.id in ids:
                raise TourDefinitionError(f"Duplicate step id {step.id} in tour {self.id}")
            ids.add(step.id)
            if step.action_required and not step.advance_signal:
                raise TourDefinitionError(
                    f"Step {step.id} in tour {self.id} requires an action but names no signal"
                )
            if step.advance_signal:
                owner = signals.get(step.advance_signal)
                if owner is not None:
                    raise TourDefinitionError(
                        f"Signal {step.advance_signal!r} used by both {owner} and {step.id}"
                    )
                signals[step.advance_signal] = step.id
            if step.advance_delay_ms < 0:
                raise TourDefinitionError(f"Negative advance delay on step {step.id}")


_registry: Dict[str, TourDefinition] = {}


def register_tour(defn: TourDefinition) -> None:
    if defn.id in _registry:
        raise TourDefinitionError(f"Tour already registered: {defn.id}")
    defn.validate()
    _registry[defn.id] = defn


def get_tour(tour_id: str) -> TourDefinition:
    return _registry[tour_id]


def list_tours() -> List[TourDefinition]:
    return list(_registry.values())


def clear_tours() -> None:
    _registry.clear()


def describe_steps(defn: TourDefinition) -> List[Tuple[int, str, bool]]:
    """(index, step id, action_required) rows for debug panels and logs."""
    return [(i, s.id, s.action_required) for i, s in enumerate(defn.steps)]
