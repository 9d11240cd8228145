"""
Top-level namespace for protosim, a transient circuit engine for breadboard
style circuits based on Modified Nodal Analysis.

Typical use:
    from protosim import Simulator, Node
    from protosim.components import VoltageSource, Resistor

    sim = Simulator()
    vin, vout = Node("vin"), Node("vout")
    sim.add_component(VoltageSource("V1", [vin, sim.ground], vdc=10.0))
    sim.add_component(Resistor("R1", [vin, vout], resistance=1e3))
    sim.add_component(Resistor("R2", [vout, sim.ground], resistance=2e3))
    result = sim.run_transient(dt=1e-3, steps=10)
"""

from .config import SimulatorConfig  # noqa: F401
from .errors import (  # noqa: F401
    ConfigurationError,
    MergeCycleError,
    ProtosimError,
    SingularMatrixError,
)
from .network import Node, Protoboard  # noqa: F401
from .simulator import Simulator, StepRecord, TransientResult  # noqa: F401
from . import components  # noqa: F401

__all__ = [
    "ConfigurationError",
    "MergeCycleError",
    "Node",
    "Protoboard",
    "ProtosimError",
    "Simulator",
    "SimulatorConfig",
    "SingularMatrixError",
    "StepRecord",
    "TransientResult",
    "components",
]
