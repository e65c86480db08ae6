"""Tooltip placement math for the tour overlay.

Pure functions, no Qt dependency, so the geometry can be tested headless and
reused by any host toolkit. Coordinates are viewport pixels with the origin at
the top-left corner.

Algorithm
---------
right   vertically centered on the anchor, ``gap`` px past its right edge
left    vertically centered on the anchor, ``gap`` px before its left edge
bottom  horizontally centered on the anchor, ``gap`` px below it
top     horizontally centered on the anchor, tooltip height + ``gap`` above it
center  centered in the viewport; the anchor is ignored

Clamping
--------
Horizontal: ``left`` is pushed to ``EDGE_MARGIN`` when it falls off the left
edge, then pulled back to ``viewport.width - width - EDGE_MARGIN`` when the
card would cross the right edge. The right-edge rule wins on viewports
narrower than the card.

Vertical: the same rule against the viewport height, enabled by default so
Skip and Next stay on screen. A ``top``/``bottom`` card that the clamp would
push back over its anchor is flipped to the other side of the anchor first and
clamped after the flip; ``TooltipPosition.side`` reports the side used. Pass
``clamp_vertical=False`` for the raw position.

Arrow
-----
``arrow_point`` gives the centre of the pointer square drawn on the card edge
that faces the anchor, aligned with the anchor centre but kept
``ARROW_SIZE`` px away from the card corners. ``center`` cards have none.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .onboarding_tour import Placement

__all__ = [
    "Rect",
    "Size",
    "TooltipFootprint",
    "TooltipPosition",
    "GAP",
    "EDGE_MARGIN",
    "ARROW_SIZE",
    "DEFAULT_FOOTPRINT",
    "compute_tooltip_position",
    "highlight_rect",
    "arrow_point",
]

GAP = 20
EDGE_MARGIN = 10
ARROW_SIZE = 16


@dataclass(frozen=True)
class Rect:
    top: float
    left: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center_x(self) -> float:
        return self.left + self.width / 2

    @property
    def center_y(self) -> float:
        return self.top + self.height / 2

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class TooltipFootprint:
    """Fixed card size used for placement (height is approximate)."""

    width: float = 320
    height: float = 200


@dataclass(frozen=True)
class TooltipPosition:
    top: float
    left: float
    side: Placement = Placement.CENTER  # side of the anchor actually used


DEFAULT_FOOTPRINT = TooltipFootprint()


def _clamp(value: float, extent: float, limit: float, margin: float) -> float:
    if value < margin:
        value = margin
    if value + extent > limit:
        value = limit - extent - margin
    return value


def _covers(top: float, height: float, anchor: Rect) -> bool:
    return top < anchor.bottom and top + height > anchor.top


def _vertical(anchor: Rect, side: Placement, h: float, gap: float) -> float:
    if side is Placement.BOTTOM:
        return anchor.bottom + gap
    return anchor.top - h - gap


def compute_tooltip_position(
    anchor: Optional[Rect],
    placement: Placement | str,
    viewport: Size,
    *,
    footprint: TooltipFootprint = DEFAULT_FOOTPRINT,
    gap: float = GAP,
    margin: float = EDGE_MARGIN,
    clamp_vertical: bool = True,
) -> TooltipPosition:
    side = Placement(placement)
    w, h = footprint.width, footprint.height
    if anchor is None or side is Placement.CENTER:
        side = Placement.CENTER
        top = viewport.height / 2 - h / 2
        left = viewport.width / 2 - w / 2
    elif side in (Placement.RIGHT, Placement.LEFT):
        top = anchor.center_y - h / 2
        left = anchor.right + gap if side is Placement.RIGHT else anchor.left - w - gap
    else:
        top = _vertical(anchor, side, h, gap)
        left = anchor.center_x - w / 2
        if clamp_vertical and _covers(_clamp(top, h, viewport.height, margin), h, anchor):
            side = Placement.TOP if side is Placement.BOTTOM else Placement.BOTTOM
            top = _vertical(anchor, side, h, gap)

    left = _clamp(left, w, viewport.width, margin)
    if clamp_vertical:
        top = _clamp(top, h, viewport.height, margin)
    return TooltipPosition(top=top, left=left, side=side)


def highlight_rect(anchor: Rect, padding: float = 4) -> Rect:
    """Frame drawn around the anchor, ``padding`` px outside on each side."""
    return Rect(
        top=anchor.top - padding,
        left=anchor.left - padding,
        width=anchor.width + 2 * padding,
        height=anchor.height + 2 * padding,
    )


def arrow_point(
    card: Rect, side: Placement, anchor: Optional[Rect], size: float = ARROW_SIZE
) -> Optional[Tuple[float, float]]:
    """Centre of the pointer square on the card edge facing ``anchor``."""
    if anchor is None or side is Placement.CENTER:
        return None

    def _along(value: float, low: float, high: float) -> float:
        if high < low:  # card too small for the corner inset
            return (low + high) / 2
        return min(max(value, low), high)

    if side in (Placement.RIGHT, Placement.LEFT):
        x = card.left if side is Placement.RIGHT else card.right
        return x, _along(anchor.center_y, card.top + size, card.bottom - size)
    y = card.top if side is Placement.BOTTOM else card.bottom
    return _along(anchor.center_x, card.left + size, card.right - size), y
