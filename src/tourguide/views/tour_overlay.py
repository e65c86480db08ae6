"""Tour overlay widgets.

Renders the current tour step on top of a host window:

* ``_HighlightLayer`` dims the window and cuts a ringed hole around the
  resolved anchor. It is transparent for mouse events so the user can still
  click the highlighted control (action-gated steps depend on it).
* ``TourTooltipCard`` shows "Step i of n", title, body, a Skip button and
  either Next/Finish or an action hint. The layer paints the card's pointer
  square under the card edge that faces the anchor.

``TourOverlay`` wires controller, target resolver and placement math
together. It draws nothing while the controller is hidden or the anchor is
still being resolved.
"""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import QRectF, QSize, Qt
from PyQt6.QtGui import QBrush, QColor, QPainter, QPainterPath, QPen
from PyQt6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..app.settings import TourSettings
from ..design.onboarding_tour import TourStep
from ..design.placement import (
    ARROW_SIZE,
    Rect,
    Size,
    arrow_point,
    compute_tooltip_position,
    highlight_rect,
)
from ..services.event_bus import TourEvent
from ..services.target_resolver import ResolvedTarget, TargetResolver, ViewportWatcher
from ..services.tour_controller import TourController

__all__ = ["TourOverlay", "TourTooltipCard", "action_hint"]

_log = logging.getLogger(__name__)

_DIM = QColor(17, 24, 39, 153)
_RING = QColor(211, 47, 47)
_CARD_BORDER = QColor(243, 244, 246)


def action_hint(step: TourStep) -> str:
    return "Interact with element to continue" if "Click" in step.body else "Action Required"


class _HighlightLayer(QWidget):
    def __init__(self, parent: QWidget) -> None:
        super().__init__(parent)
        self.setObjectName("tourHighlightLayer")
        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents, True)
        self.setAttribute(Qt.WidgetAttribute.WA_NoSystemBackground, True)
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground, True)
        self._hole: Optional[Rect] = None
        self._arrow: Optional[tuple[float, float]] = None

    @property
    def hole(self) -> Optional[Rect]:
        return self._hole

    @property
    def arrow(self) -> Optional[tuple[float, float]]:
        return self._arrow

    def set_hole(self, hole: Optional[Rect], arrow: Optional[tuple[float, float]] = None) -> None:
        self._hole = hole
        self._arrow = arrow
        self.update()

    def paintEvent(self, event):  # type: ignore[override]
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        path = QPainterPath()
        path.addRect(QRectF(self.rect()))
        ring: Optional[QRectF] = None
        if self._hole is not None:
            ring = QRectF(self._hole.left, self._hole.top, self._hole.width, self._hole.height)
            path.addRoundedRect(ring, 12, 12)
            path.setFillRule(Qt.FillRule.OddEvenFill)
        painter.fillPath(path, QBrush(_DIM))
        if ring is not None:
            painter.setPen(QPen(_RING, 4))
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawRoundedRect(ring, 12, 12)
        if self._arrow is not None:
            # half of the square sits under the card, the rest reads as a pointer
            x, y = self._arrow
            painter.save()
            painter.translate(x, y)
            painter.rotate(45)
            painter.setPen(QPen(_CARD_BORDER, 1))
            painter.setBrush(QBrush(Qt.GlobalColor.white))
            half = ARROW_SIZE / 2
            painter.drawRect(QRectF(-half, -half, ARROW_SIZE, ARROW_SIZE))
            painter.restore()


class TourTooltipCard(QFrame):
    """Tooltip card for one step; buttons call straight into the controller."""

    def __init__(self, controller: TourController, parent: QWidget, width: int) -> None:
        super().__init__(parent)
        self._controller = controller
        self.setObjectName("tourTooltipCard")
        self.setFixedWidth(width)
        self.setStyleSheet(
            "#tourTooltipCard { background: white; border: 1px solid #f3f4f6; border-radius: 16px; }"
        )
        layout = QVBoxLayout(self)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.setSpacing(12)

        header = QHBoxLayout()
        self.lbl_progress = QLabel()
        self.btn_skip = QPushButton("Skip Tour")
        self.btn_skip.setObjectName("tourSkipButton")
        self.btn_skip.clicked.connect(lambda: controller.skip())  # type: ignore[attr-defined]
        header.addWidget(self.lbl_progress)
        header.addStretch(1)
        header.addWidget(self.btn_skip)
        layout.addLayout(header)

        self.lbl_title = QLabel()
        self.lbl_title.setObjectName("tourTitle")
        self.lbl_title.setWordWrap(True)
        layout.addWidget(self.lbl_title)

        self.lbl_body = QLabel()
        self.lbl_body.setWordWrap(True)
        layout.addWidget(self.lbl_body)

        footer = QHBoxLayout()
        footer.addStretch(1)
        self.lbl_action = QLabel()
        self.lbl_action.setObjectName("tourActionHint")
        self.btn_next = QPushButton("Next")
        self.btn_next.setObjectName("tourNextButton")
        self.btn_next.clicked.connect(lambda: controller.advance_manual())  # type: ignore[attr-defined]
        footer.addWidget(self.lbl_action)
        footer.addWidget(self.btn_next)
        layout.addLayout(footer)

    def show_step(self, step: TourStep, index: int, count: int) -> None:
        self.lbl_progress.setText(f"Step {index + 1} of {count}")
        self.lbl_title.setText(step.title)
        self.lbl_body.setText(step.body)
        # the Next control is suppressed on gated steps; the state machine ignores it anyway
        self.btn_next.setVisible(not step.action_required)
        self.btn_next.setText("Finish" if index == count - 1 else "Next")
        self.lbl_action.setVisible(step.action_required)
        self.lbl_action.setText(action_hint(step) if step.action_required else "")
        self.adjustSize()


class TourOverlay:
    """Attach a tour to a host window."""

    def __init__(
        self,
        host: QWidget,
        controller: TourController,
        resolver: TargetResolver,
        *,
        settings: Optional[TourSettings] = None,
    ) -> None:
        self._host = host
        self._controller = controller
        self._resolver = resolver
        self._settings = settings or TourSettings.instance
        self.layer = _HighlightLayer(host)
        self.card = TourTooltipCard(controller, host, self._settings.tooltip_width)
        self._hide_visuals()
        self._watcher = ViewportWatcher(host, self._on_viewport_resized)
        resolver.set_listener(self._on_target)
        controller.stepChanged.connect(self._on_step_changed)  # type: ignore[attr-defined]
        controller.visibilityChanged.connect(self._on_visibility_changed)  # type: ignore[attr-defined]
        if controller.is_visible:
            self._on_step_changed(controller.current_step_index)

    # Introspection ------------------------------------------------------
    def is_showing(self) -> bool:
        return not self.card.isHidden()

    @property
    def tooltip_pos(self) -> tuple[int, int]:
        return self.card.x(), self.card.y()

    def detach(self) -> None:
        self._watcher.detach()
        self._resolver.cancel()
        self._resolver.set_listener(None)
        self._hide_visuals()

    # Slots ----------------------------------------------------------------
    def _on_step_changed(self, index: int) -> None:
        step = self._controller.current_step
        self._hide_visuals()
        if step is None:
            return
        self.card.show_step(step, index, self._controller.step_count)
        self._resolver.watch(step)

    def _on_visibility_changed(self, visible: bool) -> None:
        if not visible:
            self._resolver.cancel()
            self._hide_visuals()

    def _on_viewport_resized(self, size: QSize) -> None:
        self.layer.setGeometry(0, 0, size.width(), size.height())
        if self._controller.is_visible:
            self._resolver.on_viewport_resized()

    def _on_target(self, target: ResolvedTarget) -> None:
        bus = self._controller.event_bus
        if bus is not None:
            bus.publish(
                TourEvent.TOUR_TARGET_RESOLVED,
                {"step": target.step_id, "attempts": target.attempts, "awaiting": target.awaiting},
            )
        step = self._controller.current_step
        if step is None or step.id != target.step_id or target.awaiting:
            self._hide_visuals()
            return
        viewport = Size(self._host.width(), self._host.height())
        pos = compute_tooltip_position(
            target.rect,
            step.placement,
            viewport,
            footprint=self._settings.footprint,
            gap=self._settings.gap,
            margin=self._settings.edge_margin,
            clamp_vertical=self._settings.clamp_vertical,
        )
        hole = (
            highlight_rect(target.rect, self._settings.highlight_padding)
            if target.rect is not None
            else None
        )
        self.card.move(int(pos.left), int(pos.top))
        card_rect = Rect(
            top=self.card.y(), left=self.card.x(), width=self.card.width(), height=self.card.height()
        )
        self.layer.setGeometry(0, 0, self._host.width(), self._host.height())
        self.layer.set_hole(hole, arrow_point(card_rect, pos.side, target.rect))
        self.layer.show()
        self.layer.raise_()
        self.card.show()
        self.card.raise_()
        _log.debug(
            "Step %s rendered %s of anchor at (%d, %d)",
            step.id,
            pos.side.value,
            int(pos.left),
            int(pos.top),
            extra={"tour": self._controller.definition.id, "step_index": self._controller.current_step_index},
        )

    def _hide_visuals(self) -> None:
        self.layer.hide()
        self.card.hide()
