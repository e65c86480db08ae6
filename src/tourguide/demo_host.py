"""Demo host window for the first-consultation tour.

A stand-in for the real application: a dashboard with a "Start Consult" card,
an in-window patient details panel, and a consultation view with demo and
SOAP generation buttons. Widgets carry the object names the built-in tour
targets, and the host reports screen activations and completed actions to the
controller exactly as a production host would.

Run with ``python -m tourguide``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PyQt6.QtWidgets import (
    QFormLayout,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from .app.bootstrap import TourSession, attach_tour
from .app.settings import TourSettings
from .design.tour_presets import (
    SCREEN_CONSULTATION,
    SCREEN_PATIENT_DETAILS,
    SIGNAL_DEMO_LOADED,
    SIGNAL_SOAP_GENERATED,
)

__all__ = ["DemoHostWindow", "DIAGNOSTICS_FILENAME"]

_log = logging.getLogger(__name__)

DIAGNOSTICS_FILENAME = "tour-diagnostics.jsonl"

_DEMO_TRANSCRIPT = (
    "Doctor: What brings you in today?\n"
    "Patient: A dry cough for about two weeks, worse at night.\n"
    "Doctor: Any fever or shortness of breath?\n"
    "Patient: No fever. A little breathless on stairs."
)


class DemoHostWindow(QWidget):
    """Three-screen host exercising every tour hook."""

    def __init__(self, settings: Optional[TourSettings] = None, **tour_kwargs) -> None:
        super().__init__()
        self.setWindowTitle("Scribe onboarding demo")
        self.resize(1000, 700)
        self._settings = settings or TourSettings.instance
        root = QHBoxLayout(self)

        sidebar = QVBoxLayout()
        self.btn_restart_tour = QPushButton("Restart tour")
        sidebar.addWidget(self.btn_restart_tour)
        self.btn_save_tour_log = QPushButton("Save tour log")
        sidebar.addWidget(self.btn_save_tour_log)
        sidebar.addStretch(1)
        root.addLayout(sidebar)

        self.stack = QStackedWidget()
        root.addWidget(self.stack, 1)
        self.dashboard = self._build_dashboard()
        self.consultation = self._build_consultation()
        self.stack.addWidget(self.dashboard)
        self.stack.addWidget(self.consultation)

        self.patient_panel = self._build_patient_panel()
        self.patient_panel.hide()

        self.session: TourSession = attach_tour(
            self, settings=settings, host_reset=self.reset_to_dashboard, **tour_kwargs
        )
        self.btn_restart_tour.clicked.connect(lambda: self.session.controller.restart())
        self.btn_save_tour_log.setEnabled(self.session.logs is not None)
        self.btn_save_tour_log.clicked.connect(lambda: self.save_tour_log())

    # Screens ----------------------------------------------------------------
    def _build_dashboard(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.addWidget(QLabel("Dashboard"))
        card = QPushButton("Start Consult")
        card.setObjectName("tour-start-consult-card")
        card.setMinimumSize(220, 120)
        card.clicked.connect(self.open_patient_panel)
        layout.addWidget(card)
        layout.addStretch(1)
        return page

    def _build_patient_panel(self) -> QFrame:
        panel = QFrame(self)
        panel.setObjectName("patientDetailsPanel")
        panel.setFrameShape(QFrame.Shape.StyledPanel)
        panel.setGeometry(300, 150, 420, 300)
        layout = QVBoxLayout(panel)
        form_host = QWidget()
        form_host.setObjectName("tour-patient-form")
        form = QFormLayout(form_host)
        self.patient_name = QLineEdit()
        self.patient_age = QLineEdit()
        form.addRow("Name", self.patient_name)
        form.addRow("Age", self.patient_age)
        layout.addWidget(form_host)
        start = QPushButton("Start Recording")
        start.setObjectName("tour-start-recording-btn")
        start.clicked.connect(self.enter_consultation)
        layout.addWidget(start)
        return panel

    def _build_consultation(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        buttons = QHBoxLayout()
        load_demo = QPushButton("Load Demo")
        load_demo.setObjectName("tour-load-demo")
        load_demo.clicked.connect(self.load_demo)
        generate = QPushButton("Generate SOAP")
        generate.setObjectName("tour-generate-soap")
        generate.clicked.connect(self.generate_soap)
        buttons.addWidget(load_demo)
        buttons.addWidget(generate)
        buttons.addStretch(1)
        layout.addLayout(buttons)
        self.transcript = QPlainTextEdit()
        layout.addWidget(self.transcript, 1)
        self.assessment_plan = QPlainTextEdit()
        self.assessment_plan.setObjectName("tour-assessment-plan")
        self.assessment_plan.setPlaceholderText("Assessment & Plan")
        layout.addWidget(self.assessment_plan, 1)
        return page

    # Host actions -----------------------------------------------------------
    def open_patient_panel(self) -> None:
        self.patient_panel.show()
        self.patient_panel.raise_()
        self.session.controller.report_screen_active(SCREEN_PATIENT_DETAILS)

    def enter_consultation(self) -> None:
        self.patient_panel.hide()
        self.stack.setCurrentWidget(self.consultation)
        self.session.controller.report_screen_active(SCREEN_CONSULTATION)

    def load_demo(self) -> None:
        self.transcript.setPlainText(_DEMO_TRANSCRIPT)
        self.session.controller.report_signal(SIGNAL_DEMO_LOADED)

    def generate_soap(self) -> None:
        self.assessment_plan.setPlainText("Assessment: \nPlan: ")
        self.session.controller.report_signal(SIGNAL_SOAP_GENERATED)

    def reset_to_dashboard(self) -> None:
        self.patient_panel.hide()
        self.stack.setCurrentWidget(self.dashboard)

    def save_tour_log(self) -> Path:
        path = Path(self._settings.storage_dir or ".") / DIAGNOSTICS_FILENAME
        count = self.session.export_diagnostics(path)
        _log.info("Tour diagnostics written to %s (%d records)", path, count)
        return path


def main() -> int:  # pragma: no cover - interactive
    import sys

    from PyQt6.QtWidgets import QApplication

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = QApplication.instance() or QApplication(sys.argv)
    window = DemoHostWindow(settings=TourSettings.from_env(), log_capacity=200)
    window.show()
    return app.exec()
