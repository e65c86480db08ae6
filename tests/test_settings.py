from tourguide.app.settings import TourSettings
from tourguide.design.placement import TooltipFootprint


def test_defaults():
    s = TourSettings()
    assert s.resolve_delay_ms == 500
    assert s.footprint == TooltipFootprint(320, 200)
    assert s.clamp_vertical is True
    assert s.storage_dir is None


def test_singleton_present():
    assert isinstance(TourSettings.instance, TourSettings)


def test_with_overrides_leaves_original():
    s = TourSettings()
    tuned = s.with_overrides(tooltip_height=100, gap=8)
    assert tuned.footprint.height == 100
    assert tuned.gap == 8
    assert s.gap == 20


def test_from_env_reads_prefixed_values(tmp_path):
    env = {
        "TOURGUIDE_RESOLVE_DELAY_MS": "0",
        "TOURGUIDE_MAX_RESOLVE_ATTEMPTS": "3",
        "TOURGUIDE_CLAMP_VERTICAL": "off",
        "TOURGUIDE_STORAGE_DIR": str(tmp_path),
    }
    s = TourSettings.from_env(env)
    assert s.resolve_delay_ms == 0
    assert s.max_resolve_attempts == 3
    assert s.clamp_vertical is False
    assert s.storage_dir == str(tmp_path)


def test_from_env_ignores_malformed_numbers():
    s = TourSettings.from_env({"TOURGUIDE_GAP": "wide", "TOURGUIDE_EDGE_MARGIN": "12"})
    assert s.gap == 20
    assert s.edge_margin == 12
