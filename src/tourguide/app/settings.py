"""Runtime settings for the tour engine.

Centralizes timing, geometry and persistence knobs used by the resolver,
placement calculator, overlay and completion store. Accessed through the
``TourSettings.instance`` singleton; tests and the application bootstrap may
replace it with a tuned copy.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import ClassVar, Mapping, Optional

from ..design.placement import TooltipFootprint

__all__ = ["TourSettings"]

_ENV_PREFIX = "TOURGUIDE_"


@dataclass
class TourSettings:
    """Tour engine configuration.

    Attributes:
        resolve_delay_ms: Wait after a step change before the first target
            lookup, letting dialogs and view switches finish animating.
        retry_interval_ms: Wait between subsequent lookups of a missing target.
        max_resolve_attempts: Lookups per step before the resolver settles on
            "awaiting target".
        tooltip_width / tooltip_height: Card footprint used for placement.
        gap: Distance between anchor edge and card.
        edge_margin: Minimum distance between card and viewport edge.
        highlight_padding: Highlight ring offset around the anchor.
        clamp_vertical: Apply the edge clamp to the vertical axis as well.
        storage_dir: Directory holding the completion file (None = CWD).
    """

    instance: ClassVar["TourSettings"]

    resolve_delay_ms: int = 500
    retry_interval_ms: int = 250
    max_resolve_attempts: int = 8
    tooltip_width: int = 320
    tooltip_height: int = 200
    gap: int = 20
    edge_margin: int = 10
    highlight_padding: int = 4
    clamp_vertical: bool = True
    storage_dir: Optional[str] = None

    @property
    def footprint(self) -> TooltipFootprint:
        return TooltipFootprint(width=self.tooltip_width, height=self.tooltip_height)

    def with_overrides(self, **changes) -> "TourSettings":
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TourSettings":
        """Build settings from ``TOURGUIDE_*`` environment variables.

        Unknown or malformed values are ignored and the default is kept.
        """
        env = os.environ if environ is None else environ
        base = cls()
        changes = {}
        for name, default in (
            ("resolve_delay_ms", base.resolve_delay_ms),
            ("retry_interval_ms", base.retry_interval_ms),
            ("max_resolve_attempts", base.max_resolve_attempts),
            ("tooltip_width", base.tooltip_width),
            ("tooltip_height", base.tooltip_height),
            ("gap", base.gap),
            ("edge_margin", base.edge_margin),
            ("highlight_padding", base.highlight_padding),
        ):
            raw = env.get(_ENV_PREFIX + name.upper())
            if raw is None:
                continue
            try:
                changes[name] = int(raw)
            except ValueError:
                continue
        raw_clamp = env.get(_ENV_PREFIX + "CLAMP_VERTICAL")
        if raw_clamp is not None:
            changes["clamp_vertical"] = raw_clamp.strip().lower() in ("1", "true", "yes", "on")
        if env.get(_ENV_PREFIX + "STORAGE_DIR"):
            changes["storage_dir"] = env[_ENV_PREFIX + "STORAGE_DIR"]
        return replace(base, **changes)


TourSettings.instance = TourSettings()
