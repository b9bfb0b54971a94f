"""
Engine fixtures shared by the test modules.
"""

import pytest

from bondex.engine import ConstantPriceCurve

from engine_world import UNIT_PRICE, World


@pytest.fixture
def world():
    """Engine priced by a constant curve at UNIT_PRICE."""
    return World(oracle=ConstantPriceCurve(UNIT_PRICE))


@pytest.fixture
def curve_world():
    """Engine priced by the reference piecewise curve over CURVE."""
    return World()


@pytest.fixture
def registered(world):
    world.register()
    return world
