"""Built-in tour definitions.

``FIRST_CONSULTATION`` walks a new user from the dashboard through the patient
details dialog into a demo consultation and the generated note. Target ids are
the ``objectName`` values the host gives its widgets.
"""

from __future__ import annotations

from .onboarding_tour import (
    Placement,
    TourDefinition,
    TourStep,
    get_tour,
    register_tour,
    screen_signal,
)

__all__ = [
    "FIRST_CONSULTATION_ID",
    "FIRST_CONSULTATION",
    "SIGNAL_DEMO_LOADED",
    "SIGNAL_SOAP_GENERATED",
    "SCREEN_PATIENT_DETAILS",
    "SCREEN_CONSULTATION",
    "ensure_default_tours",
]

FIRST_CONSULTATION_ID = "first_consultation"
COMPLETION_KEY = "scribe_tour_completed"

SCREEN_PATIENT_DETAILS = "patient_details"
SCREEN_CONSULTATION = "consultation"
SIGNAL_DEMO_LOADED = "demo_loaded"
SIGNAL_SOAP_GENERATED = "soap_generated"

FIRST_CONSULTATION = TourDefinition(
    id=FIRST_CONSULTATION_ID,
    description="Guided first consultation: dashboard to finished note",
    completion_key=COMPLETION_KEY,
    steps=(
        TourStep(
            id="welcome",
            target_id="tour-start-consult-card",
            title="Start Here",
            body=(
                "Welcome! Click here to launch your first AI-assisted consultation. "
                "We will handle the documentation for you."
            ),
            placement=Placement.RIGHT,
            action_required=True,
            advance_signal=screen_signal(SCREEN_PATIENT_DETAILS),
        ),
        TourStep(
            id="modal-inputs",
            target_id="tour-patient-form",
            title="Context Matters",
            body=(
                "Enter basic details here. The AI adapts its medical terminology based "
                "on the Patient Age and Specialty you select."
            ),
            placement=Placement.RIGHT,
        ),
        TourStep(
            id="modal-start",
            target_id="tour-start-recording-btn",
            title="Begin Session",
            body='Once details are set, click "Start Recording" to enter the secure listening room.',
            placement=Placement.TOP,
            action_required=True,
            advance_signal=screen_signal(SCREEN_CONSULTATION),
        ),
        TourStep(
            id="consult-demo",
            target_id="tour-load-demo",
            title="See the Magic",
            body=(
                'No microphone right now? No problem! Click "Load Demo" to simulate a '
                "real-time patient conversation instantly."
            ),
            placement=Placement.BOTTOM,
            action_required=True,
            advance_signal=SIGNAL_DEMO_LOADED,
            advance_delay_ms=500,
        ),
        TourStep(
            id="consult-generate",
            target_id="tour-generate-soap",
            title="AI Extraction",
            body=(
                'The Transcript is ready. Now click "Generate SOAP" to watch the AI '
                "organize clinical facts into a structured note."
            ),
            placement=Placement.BOTTOM,
            action_required=True,
            advance_signal=SIGNAL_SOAP_GENERATED,
            advance_delay_ms=1000,  # generation animation starts first
        ),
        TourStep(
            id="consult-edit",
            target_id="tour-assessment-plan",
            title="Your Expertise",
            body=(
                "The AI drafts the Subjective & Objective. You provide the final Diagnosis "
                "(Assessment) and Treatment (Plan) to verify the note."
            ),
            placement=Placement.LEFT,
        ),
    ),
)


def ensure_default_tours() -> TourDefinition:
    """Register the built-in tour once and return it."""
    try:
        return get_tour(FIRST_CONSULTATION_ID)
    except KeyError:
        register_tour(FIRST_CONSULTATION)
        return FIRST_CONSULTATION
