"""Tour design layer: step catalog, built-in tours and placement math."""

from .onboarding_tour import (  # noqa: F401
    Placement,
    TourStep,
    TourDefinition,
    TourDefinitionError,
    register_tour,
    get_tour,
    list_tours,
    clear_tours,
    screen_signal,
)
from .placement import (  # noqa: F401
    Rect,
    Size,
    TooltipFootprint,
    TooltipPosition,
    compute_tooltip_position,
    highlight_rect,
    arrow_point,
)
