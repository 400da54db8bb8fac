import sys, os

import pytest

# Ensure src is on path for test imports
ROOT = os.path.dirname(os.path.dirname(__file__))
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from match3.events.bus import EventBus
from match3.systems.effects import InstantEffects
from tests.helpers import make_catalog


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def effects():
    return InstantEffects()


@pytest.fixture
def catalog():
    return make_catalog()
