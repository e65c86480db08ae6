import json
import logging

import pytest

from tourguide.services.event_bus import TourEvent
from tourguide.services.logging_service import TourLogCapture


@pytest.fixture()
def capture(bus):
    logs = TourLogCapture(capacity=50, event_bus=bus)
    logs.attach()
    yield logs
    logs.detach()


def _walk_to_demo_step(ctrl):
    ctrl.start()
    ctrl.report_screen_active("patient_details")
    ctrl.advance_manual()
    ctrl.report_screen_active("consultation")
    assert ctrl.current_step_index == 3


def test_ignored_signal_carries_tour_context(capture, make_controller, definition):
    ctrl = make_controller()
    ctrl.start()
    ctrl.report_signal("demo_loaded")
    ctrl.advance_manual()  # gated step; not a signal
    (entry,) = capture.ignored_signals()
    assert entry.tour == definition.id
    assert entry.step_index == 0
    assert entry.step == "welcome"
    assert entry.signal == "demo_loaded"
    assert entry.outcome == "stale_signal"
    assert entry.levelno == logging.DEBUG
    assert [e.outcome for e in capture.entries(step_index=0) if e.signal is None][-1] == "action_required"


def test_late_delayed_advance_is_recorded(capture, make_controller, scheduler):
    ctrl = make_controller()
    _walk_to_demo_step(ctrl)
    ctrl.report_signal("demo_loaded")
    ctrl.restart()
    scheduler.advance(500)
    late = capture.ignored_signals()[-1]
    assert late.signal == "delayed_advance"
    assert late.outcome == "stale_delayed_advance"
    assert late.step_index == 0


def test_entries_filter_by_step_and_level(capture, make_controller, definition):
    ctrl = make_controller()
    ctrl.start()
    ctrl.report_screen_active("patient_details")
    ctrl.skip()
    on_step_one = capture.entries(step_index=1)
    assert on_step_one and all(e.step == "modal-inputs" for e in on_step_one)
    (info,) = capture.entries(min_level=logging.INFO)
    assert info.outcome == "skipped"
    assert info.step_index == 1
    assert capture.entries(tour="another_tour") == []
    assert capture.entries(tour=definition.id)


def test_foreign_loggers_not_captured(capture):
    logging.getLogger("elsewhere").warning("not ours")
    assert capture.entries() == []


def test_capacity_eviction():
    logs = TourLogCapture(capacity=3)
    logs.attach()
    try:
        for i in range(5):
            logging.getLogger("tourguide.services").info("M%d", i)
    finally:
        logs.detach()
    assert [e.message for e in logs.entries()] == ["M2", "M3", "M4"]


def test_records_republished_on_bus(capture, bus, make_controller):
    payloads = []
    bus.subscribe(TourEvent.LOG_RECORD_ADDED, lambda evt: payloads.append(evt.payload))
    ctrl = make_controller()
    ctrl.start()
    ctrl.report_signal("soap_generated")
    ignored = [p for p in payloads if p.get("signal") == "soap_generated"]
    assert ignored and ignored[-1]["outcome"] == "stale_signal"
    assert ignored[-1]["level"] == "DEBUG"
    assert "levelno" not in ignored[-1]


def test_export_writes_snapshot_then_records(capture, make_controller, tmp_path):
    ctrl = make_controller()
    ctrl.start()
    ctrl.report_signal("demo_loaded")
    out = tmp_path / "diag" / "tour.jsonl"
    written = capture.export_jsonl(out, snapshot=ctrl.snapshot())
    lines = [json.loads(line) for line in out.read_text(encoding="utf-8").splitlines()]
    assert written == len(lines) - 1
    assert lines[0]["kind"] == "snapshot"
    assert lines[0]["stepIndex"] == 0
    assert all(line["kind"] == "log" for line in lines[1:])
    assert any(line.get("outcome") == "stale_signal" for line in lines[1:])


def test_detach_restores_logger_level():
    logger = logging.getLogger("tourguide")
    before = logger.level
    logs = TourLogCapture()
    logs.attach()
    assert logs.attached
    assert logger.getEffectiveLevel() == logging.DEBUG
    logs.detach()
    assert not logs.attached
    assert logger.level == before
    logs.clear()
    assert logs.entries() == []
