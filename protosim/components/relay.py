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
from .passive import R_CLOSED, R_OPEN


@dataclass(eq=False)
class Relay(Component):
    """
    Electromechanical relay: a coil branch driving a contact branch.

    Terminals are (coil+, coil-, switch+, switch-). The coil is a series
    resistor-inductor discretized with backward Euler:
    G = 1 / (R + L/dt),  i_{k+1} = G * (v_{k+1} + (L/dt) * i_k)
    The contacts are stamped like a Switch. They close once the coil current
    reaches `threshold` and open again when it drops below it; the decision
    taken after a solve applies from the next step.

    Attributes:
        coil_R: Coil resistance (default 10 Ohm).
        coil_L: Coil inductance (default 10 mH).
        threshold: Pull-in current magnitude (default 50 mA).
        coil_current: Coil current of the last solved step.
        switch_closed: State of the contacts.
    """
    terminal_count = 4
    stateful = True

    name: str
    nodes: Sequence[Node]
    coil_R: float = 10.0
    coil_L: float = 0.01
    threshold: float = 0.05
    coil_current: float = field(init=False, default=0.0)
    switch_closed: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.nodes)
        require_positive(self, "coil_R", self.coil_R)
        require_positive(self, "coil_L", self.coil_L)

    @classmethod
    def from_pairs(cls, name: str, coil_nodes: Sequence[Node], switch_nodes: Sequence[Node], **params) -> Relay:
        return cls(name, [*coil_nodes, *switch_nodes], **params)

    def _coil_companion(self, dt: float) -> tuple[float, float]:
        """Conductance and history current of the coil branch."""
        G = 1.0 / (self.coil_R + self.coil_L / dt)
        return G, G * (self.coil_L / dt) * self.coil_current

    def stamp(self, data: StampData) -> None:
        coil_pos, coil_neg, sw_pos, sw_neg = self.nodes
        G, I_hist = self._coil_companion(data.dt)
        stamp_conductance(data, coil_pos, coil_neg, G)
        stamp_current_source(data, coil_pos, coil_neg, I_hist)

        g_switch = 1.0 / (R_CLOSED if self.switch_closed else R_OPEN)
        stamp_conductance(data, sw_pos, sw_neg, g_switch)

    def update(self, data: UpdateData) -> None:
        G, I_hist = self._coil_companion(data.dt)
        self.coil_current = G * self.branch_voltage(data, 0, 1) + I_hist
        self.switch_closed = abs(self.coil_current) >= self.threshold
