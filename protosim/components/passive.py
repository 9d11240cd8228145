from __future__ import annotations
from dataclasses import dataclass, field
from typing import Sequence

from ..network.node import Node
from .base import (
    Component,
    StampData,
    UpdateData,
    require_positive,
    stamp_conductance,
    stamp_current_source,
)

R_CLOSED = 1e-3
R_OPEN = 1e9
R_MIN = 1e-3


@dataclass(eq=False)
class Resistor(Component):
    name: str
    nodes: Sequence[Node]
    resistance: float

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.nodes)
        require_positive(self, "resistance", self.resistance)

    def stamp(self, data: StampData) -> None:
        n1, n2 = self.nodes
        stamp_conductance(data, n1, n2, 1.0 / self.resistance)


@dataclass(eq=False)
class Switch(Component):
    """
    Two-terminal switch modeled as an extreme conductance ratio.

    A closed switch is a 1 mOhm resistor and an open switch a 1 GOhm resistor,
    so toggling never changes the structure of the system.
    """
    name: str
    nodes: Sequence[Node]
    closed: bool = False

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.nodes)

    @property
    def conductance(self) -> float:
        return 1.0 / (R_CLOSED if self.closed else R_OPEN)

    def toggle(self) -> None:
        self.closed = not self.closed

    def stamp(self, data: StampData) -> None:
        n1, n2 = self.nodes
        stamp_conductance(data, n1, n2, self.conductance)


@dataclass(eq=False)
class Potentiometer(Component):
    """
    Three-terminal variable resistor: terminal1, wiper, terminal3.

    The track of total `resistance` is split at `position` (0..1): the segment
    terminal1-wiper is resistance*position, the segment wiper-terminal3 is
    resistance*(1-position). A segment never drops below R_MIN so the wiper at
    an end stop stamps a near short instead of a division by zero.
    """
    terminal_count = 3

    name: str
    nodes: Sequence[Node]
    resistance: float = 10e3
    position: float = 0.5

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.nodes)
        require_positive(self, "resistance", self.resistance)
        self.set_position(self.position)

    def set_position(self, pos: float) -> None:
        self.position = max(0.0, min(1.0, float(pos)))

    def segment_resistances(self) -> tuple[float, float]:
        r1 = max(self.resistance * self.position, R_MIN)
        r2 = max(self.resistance * (1.0 - self.position), R_MIN)
        return r1, r2

    def stamp(self, data: StampData) -> None:
        n1, wiper, n3 = self.nodes
        r1, r2 = self.segment_resistances()
        stamp_conductance(data, n1, wiper, 1.0 / r1)
        stamp_conductance(data, wiper, n3, 1.0 / r2)


@dataclass(eq=False)
class Capacitor(Component):
    """
    Capacitor discretized with backward Euler.

    Each step the capacitor is replaced by its companion model: a conductance
    G = C/dt in parallel with a current source G*V_prev, where V_prev is the
    voltage solved at the previous step.

    Attributes:
        capacitance: Capacitance in Farad.
        v_init: Voltage across the terminals before the first step (default 0 V).
        v_prev: Voltage history used by the next stamp.
    """
    stateful = True

    name: str
    nodes: Sequence[Node]
    capacitance: float
    v_init: float = 0.0
    v_prev: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.nodes)
        require_positive(self, "capacitance", self.capacitance)
        self.v_prev = self.v_init

    def stamp(self, data: StampData) -> None:
        n1, n2 = self.nodes
        G = self.capacitance / data.dt
        stamp_conductance(data, n1, n2, G)
        # history current pushes into n1 and out of n2
        stamp_current_source(data, n1, n2, -G * self.v_prev)

    def update(self, data: UpdateData) -> None:
        self.v_prev = self.branch_voltage(data, 0, 1)


@dataclass(eq=False)
class Coil(Component):
    """
    Inductor discretized with backward Euler, dual of the capacitor.

    The companion model is a conductance G = dt/L in parallel with the current
    accumulated so far, I_L. After each solve:
    I_L_{k+1} = I_L_{k} + (dt/L) * v_{k+1}

    Attributes:
        inductance: Inductance in Henry (default 10 mH).
        i_init: Current through the coil before the first step (default 0 A).
        current: Accumulated coil current, positive from the first to the second terminal.
    """
    stateful = True

    name: str
    nodes: Sequence[Node]
    inductance: float = 0.01
    i_init: float = 0.0
    current: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.nodes)
        require_positive(self, "inductance", self.inductance)
        self.current = self.i_init

    def stamp(self, data: StampData) -> None:
        n1, n2 = self.nodes
        stamp_conductance(data, n1, n2, data.dt / self.inductance)
        stamp_current_source(data, n1, n2, self.current)

    def update(self, data: UpdateData) -> None:
        self.current += data.dt / self.inductance * self.branch_voltage(data, 0, 1)
