# Shared fixtures for the tour engine tests.
# Qt runs on the offscreen platform; the variable must be set before pytest-qt
# creates the QApplication.

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from tourguide.app.completion_store import MemoryCompletionStore
from tourguide.app.settings import TourSettings
from tourguide.design.onboarding_tour import clear_tours
from tourguide.design.tour_presets import FIRST_CONSULTATION
from tourguide.services.event_bus import EventBus
from tourguide.services.scheduler import ManualScheduler
from tourguide.services.tour_controller import TourController


@pytest.fixture(autouse=True)
def _reset_registries():
    clear_tours()
    original = TourSettings.instance
    yield
    clear_tours()
    TourSettings.instance = original


@pytest.fixture
def definition():
    return FIRST_CONSULTATION


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def store():
    return MemoryCompletionStore()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def make_controller(qapp, definition, scheduler, store, bus):
    created = []

    def _make(**overrides):
        kwargs = dict(store=store, scheduler=scheduler, event_bus=bus)
        kwargs.update(overrides)
        defn = kwargs.pop("definition", definition)
        ctrl = TourController(defn, **kwargs)
        created.append(ctrl)
        return ctrl

    yield _make
    for ctrl in created:
        ctrl.shutdown()
