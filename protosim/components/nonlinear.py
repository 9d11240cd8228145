from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Sequence

from ..logging import logger
from ..network.node import Node
from .base import (
    Component,
    StampData,
    UpdateData,
    stamp_conductance,
    stamp_current_source,
)

IVFunction = Callable[[float], float]


@dataclass(eq=False)
class GenericNonlinear(Component):
    """
    Two-terminal device defined by a user I-V curve and its conductance.

    The device is stamped with the same companion model as the diode, using
    the caller supplied functions at the voltage of the previous step:
    G = G(V), I_eq = I(V) - G(V)*V

    When `v_max` or `i_max` is exceeded after a solve, the device breaks: the
    `broken` flag is set for good, a warning is logged and from the next step
    on the device is an open circuit. The simulation keeps running.

    Attributes:
        I: Current as a function of terminal voltage (A).
        G: dI/dV as a function of terminal voltage (S).
        v_max: Optional absolute voltage rating.
        i_max: Optional absolute current rating.
    """
    stateful = True

    name: str
    nodes: Sequence[Node]
    I: IVFunction
    G: IVFunction
    v_max: float | None = None
    i_max: float | None = None
    V: float = field(init=False, default=0.0)
    broken: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.nodes)

    def stamp(self, data: StampData) -> None:
        if self.broken:
            return
        n1, n2 = self.nodes
        g = self.G(self.V)
        stamp_conductance(data, n1, n2, g)
        stamp_current_source(data, n1, n2, self.I(self.V) - g * self.V)

    def update(self, data: UpdateData) -> None:
        if self.broken:
            return
        self.V = self.branch_voltage(data, 0, 1)
        current = self.I(self.V)
        over_v = self.v_max is not None and abs(self.V) > self.v_max
        over_i = self.i_max is not None and abs(current) > self.i_max
        if over_v or over_i:
            self.broken = True
            logger.warning(f"{self.name} has broken! V={self.V:.2f}, I={current:.2f} (t={data.t:.6g}s)")
