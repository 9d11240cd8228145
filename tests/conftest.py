"""Shared fixtures for the protosim test suite.

- sim: empty simulator with default configuration
- divider: 10 V source feeding a 1 kOhm / 2 kOhm divider to ground
- make_stamp_data: empty StampData for driving a single stamp by hand
"""

import sys
from pathlib import Path

import numpy as np
import pytest

project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from protosim import Node, Simulator
from protosim.components import Resistor, VoltageSource
from protosim.components.base import StampData


@pytest.fixture
def sim():
    return Simulator()


@pytest.fixture
def divider(sim):
    """Voltage divider: V1 (10 V) -> R1 (1k) -> mid -> R2 (2k) -> ground."""
    vin, mid = Node("vin"), Node("mid")
    sim.add_component(VoltageSource("V1", [vin, sim.ground], vdc=10.0))
    sim.add_component(Resistor("R1", [vin, mid], resistance=1e3))
    sim.add_component(Resistor("R2", [mid, sim.ground], resistance=2e3))
    return sim, {"vin": vin, "mid": mid}


def make_stamp_data(nodes, size=None, dt=1e-3, t=1e-3):
    """Empty system whose unknowns are `nodes` in order (plus `size` extra rows)."""
    size = len(nodes) if size is None else size
    return StampData(
        M=np.zeros((size, size)),
        b=np.zeros(size),
        node_index={n: i for i, n in enumerate(nodes)},
        dt=dt,
        t=t,
    )
