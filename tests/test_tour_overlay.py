from PyQt6.QtWidgets import QWidget

from tourguide.app.settings import TourSettings
from tourguide.design.onboarding_tour import Placement, TourDefinition, TourStep
from tourguide.design.placement import Rect
from tourguide.services.event_bus import TourEvent
from tourguide.services.target_resolver import StaticLookup, TargetResolver
from tourguide.views.tour_overlay import TourOverlay, action_hint

SETTINGS = TourSettings(resolve_delay_ms=0, retry_interval_ms=100, max_resolve_attempts=3)
ANCHOR = Rect(top=100, left=100, width=50, height=50)

TOUR = TourDefinition(
    id="overlay_test",
    steps=(
        TourStep(id="intro", target_id="anchor", title="Intro", body="Hello", placement=Placement.RIGHT),
        TourStep(
            id="gated",
            target_id="button",
            title="Press",
            body='Click "Go" to continue.',
            placement=Placement.BOTTOM,
            action_required=True,
            advance_signal="go_pressed",
        ),
        TourStep(id="outro", target_id="", title="Done", body="Bye", placement=Placement.CENTER),
    ),
)


def _build(qtbot, make_controller, scheduler, lookup):
    host = QWidget()
    host.resize(1000, 800)
    qtbot.addWidget(host)
    ctrl = make_controller(definition=TOUR, parent=host)
    resolver = TargetResolver(lookup, scheduler, settings=SETTINGS)
    overlay = TourOverlay(host, ctrl, resolver, settings=SETTINGS)
    return host, ctrl, overlay


def test_tooltip_positioned_right_of_anchor(qtbot, make_controller, scheduler):
    lookup = StaticLookup({"anchor": ANCHOR, "button": Rect(300, 400, 80, 30)})
    _, ctrl, overlay = _build(qtbot, make_controller, scheduler, lookup)
    ctrl.start()
    assert not overlay.is_showing()  # first lookup not run yet
    scheduler.advance(0)
    assert overlay.is_showing()
    assert overlay.tooltip_pos == (170, 25)
    assert overlay.layer.hole == Rect(top=96, left=96, width=58, height=58)
    assert overlay.layer.arrow[0] == 170  # left edge, facing the anchor
    assert overlay.card.lbl_progress.text() == "Step 1 of 3"
    assert overlay.card.lbl_title.text() == "Intro"


def test_next_button_advances_and_gated_step_hides_it(qtbot, make_controller, scheduler):
    lookup = StaticLookup({"anchor": ANCHOR, "button": Rect(300, 400, 80, 30)})
    _, ctrl, overlay = _build(qtbot, make_controller, scheduler, lookup)
    ctrl.start()
    scheduler.advance(0)
    overlay.card.btn_next.click()
    scheduler.advance(0)
    assert ctrl.current_step_index == 1
    assert overlay.card.btn_next.isHidden()
    assert not overlay.card.lbl_action.isHidden()
    assert overlay.card.lbl_action.text() == "Interact with element to continue"
    assert overlay.tooltip_pos == (280, 350)
    assert overlay.layer.arrow[1] == 350

    ctrl.report_signal("go_pressed")
    scheduler.advance(0)
    assert ctrl.is_last_step
    assert overlay.card.btn_next.text() == "Finish"
    assert overlay.layer.hole is None
    assert overlay.tooltip_pos == (340, 300)
    assert overlay.layer.arrow is None


def test_gated_card_flips_above_anchor_near_bottom(qtbot, make_controller, scheduler):
    button = Rect(top=760, left=400, width=80, height=30)
    lookup = StaticLookup({"anchor": ANCHOR, "button": button})
    _, ctrl, overlay = _build(qtbot, make_controller, scheduler, lookup)
    ctrl.start()
    scheduler.advance(0)
    overlay.card.btn_next.click()
    scheduler.advance(0)
    assert ctrl.current_step_index == 1
    assert overlay.tooltip_pos == (280, 760 - 200 - 20)
    arrow_x, arrow_y = overlay.layer.arrow
    assert arrow_y == overlay.card.y() + overlay.card.height()
    assert arrow_x == button.center_x


def test_skip_button_hides_everything(qtbot, make_controller, scheduler, store):
    lookup = StaticLookup({"anchor": ANCHOR})
    _, ctrl, overlay = _build(qtbot, make_controller, scheduler, lookup)
    ctrl.start()
    scheduler.advance(0)
    overlay.card.btn_skip.click()
    assert not ctrl.is_visible
    assert not overlay.is_showing()
    assert overlay.layer.isHidden()
    assert store.completed


def test_missing_anchor_renders_nothing_until_mounted(qtbot, make_controller, scheduler, bus):
    lookup = StaticLookup()
    resolved = []
    bus.subscribe(TourEvent.TOUR_TARGET_RESOLVED, lambda e: resolved.append(e.payload))
    _, ctrl, overlay = _build(qtbot, make_controller, scheduler, lookup)
    ctrl.start()
    scheduler.advance(0)
    assert not overlay.is_showing()
    lookup.set("anchor", ANCHOR)
    scheduler.advance(100)
    assert overlay.is_showing()
    assert resolved[-1] == {"step": "intro", "attempts": 2, "awaiting": False}


def test_host_resize_repositions(qtbot, make_controller, scheduler):
    lookup = StaticLookup({"anchor": Rect(top=100, left=700, width=50, height=50)})
    host, ctrl, overlay = _build(qtbot, make_controller, scheduler, lookup)
    host.show()
    qtbot.waitExposed(host)
    ctrl.start()
    scheduler.advance(0)
    assert overlay.tooltip_pos[0] == 770 - 100  # clamped: 1000 - 320 - 10
    host.resize(1200, 800)
    qtbot.waitUntil(lambda: overlay.tooltip_pos[0] == 770)


def test_detach_stops_rendering(qtbot, make_controller, scheduler):
    lookup = StaticLookup({"anchor": ANCHOR})
    _, ctrl, overlay = _build(qtbot, make_controller, scheduler, lookup)
    ctrl.start()
    overlay.detach()
    scheduler.run_all()
    assert not overlay.is_showing()


def test_action_hint_wording():
    gated = TOUR.steps[1]
    assert action_hint(gated) == "Interact with element to continue"
    plain = TourStep(id="x", target_id="y", title="t", body="Type a name", action_required=True, advance_signal="s")
    assert action_hint(plain) == "Action Required"
