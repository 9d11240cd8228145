from __future__ import annotations
from dataclasses import dataclass, field
from typing import Sequence
import numpy as np
from scipy.constants import k, elementary_charge as q

from ..network.node import Node
from .base import (
    Component,
    StampData,
    UpdateData,
    require_positive,
    stamp_block,
    stamp_conductance,
    stamp_current_source,
)

# Junction exponentials are exact up to this argument and continue linearly
# beyond it. At the limit a 1e-12 A junction conducts about 1e4 S, which the
# dense solve still resolves next to ordinary resistors.
EXP_LIMIT = 40.0
GDS_SAT = 1e-12


def thermal_voltage(temperature_c: float = 27.0) -> float:
    """
    Thermal voltage k*T/q at the given temperature.

    Args:
        temperature_c: Junction temperature in degrees Celsius.

    Returns:
        Thermal voltage in Volt (about 25.85 mV at 27 C).
    """
    return k * (temperature_c + 273.15) / q


def limited_exp(x: float) -> tuple[float, float]:
    """
    Return exp(x) and its derivative, linearly continued above EXP_LIMIT.
    """
    if x <= EXP_LIMIT:
        e = float(np.exp(x))
        return e, e
    e_lim = float(np.exp(EXP_LIMIT))
    return e_lim * (1.0 + x - EXP_LIMIT), e_lim


def junction(Is: float, v: float, nVt: float) -> tuple[float, float]:
    """
    Shockley junction current and small-signal conductance at voltage v.

    Returns:
        Tuple (I, G) with I = Is*(exp(v/nVt) - 1) and G = dI/dv.
    """
    e, de = limited_exp(v / nVt)
    return Is * (e - 1.0), Is / nVt * de


@dataclass(eq=False)
class Diode(Component):
    """
    Diode using the exponential Shockley law, linearized once per step.

    The linearization point is the junction voltage V_d solved at the previous
    step; there is no Newton iteration inside a step:
    G = Is/(n*V_T) * exp(V_d/(n*V_T))
    I_eq = Is*(exp(V_d/(n*V_T)) - 1) - G*V_d

    Attributes:
        Is: Saturation current in Ampere (default 1e-12 A).
        n: Emission coefficient (default 1).
        V_T: Thermal voltage in Volt (default 0.026 V).
        V_d: Junction voltage (anode minus cathode) of the last solved step.
    """
    stateful = True

    name: str
    nodes: Sequence[Node]
    Is: float = 1e-12
    n: float = 1.0
    V_T: float = 0.026
    V_d: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.nodes)
        require_positive(self, "Is", self.Is)
        require_positive(self, "n", self.n)
        require_positive(self, "V_T", self.V_T)

    def linearize(self) -> tuple[float, float]:
        """
        Companion model at the current linearization point.

        Returns:
            Tuple (G, I_eq).
        """
        i_d, G = junction(self.Is, self.V_d, self.n * self.V_T)
        return G, i_d - G * self.V_d

    @property
    def current(self) -> float:
        """Diode current at the last solved junction voltage."""
        return junction(self.Is, self.V_d, self.n * self.V_T)[0]

    def stamp(self, data: StampData) -> None:
        anode, cathode = self.nodes
        G, I_eq = self.linearize()
        stamp_conductance(data, anode, cathode, G)
        stamp_current_source(data, anode, cathode, I_eq)

    def update(self, data: UpdateData) -> None:
        self.V_d = self.branch_voltage(data, 0, 1)


@dataclass(eq=False)
class LED(Diode):
    """
    Light emitting diode: a diode plus a display-only "lit" predicate.

    `forward_voltage` does not enter the matrix, it only sets the threshold of
    `is_lit` (V_d above 80 % of the forward voltage).
    """
    forward_voltage: float = 2.0

    @property
    def voltage(self) -> float:
        return self.V_d

    @property
    def is_lit(self) -> bool:
        return self.V_d > self.forward_voltage * 0.8


@dataclass(eq=False)
class BJT(Component):
    """
    NPN bipolar transistor, Ebers-Moll injection model.

    Terminals are (collector, base, emitter). The forward and reverse junction
    currents
    I_F = Is*(exp(V_be/V_T) - 1),  I_R = Is*(exp(V_bc/V_T) - 1)
    are linearized at the junction voltages of the previous step and combined
    into the terminal currents
    I_c = alpha_F*I_F - I_R
    I_b = (1-alpha_F)*I_F + (1-alpha_R)*I_R
    I_e = I_F - alpha_R*I_R   (leaving the emitter)
    which gives a 3x3 conductance block plus three equivalent currents.

    Attributes:
        Is: Transport saturation current (default 1e-15 A).
        V_T: Thermal voltage (default 0.026 V).
        alpha_F: Forward common-base current gain (default 0.99).
        alpha_R: Reverse common-base current gain (default 0.5).
        V_be, V_bc: Junction voltages of the last solved step.
    """
    terminal_count = 3
    stateful = True

    name: str
    nodes: Sequence[Node]
    Is: float = 1e-15
    V_T: float = 0.026
    alpha_F: float = 0.99
    alpha_R: float = 0.5
    V_be: float = field(init=False, default=0.0)
    V_bc: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.nodes)
        require_positive(self, "Is", self.Is)
        require_positive(self, "V_T", self.V_T)

    def linearize(self) -> tuple[np.ndarray, np.ndarray]:
        """
        Conductance block and equivalent currents for (collector, base, emitter).

        Row i gives the current entering terminal i as G[i] @ v + I[i].
        """
        aF, aR = self.alpha_F, self.alpha_R
        i_f, gF = junction(self.Is, self.V_be, self.V_T)
        i_r, gR = junction(self.Is, self.V_bc, self.V_T)
        ieq_f = i_f - gF * self.V_be
        ieq_r = i_r - gR * self.V_bc

        G = np.array([
            [gR, aF * gF - gR, -aF * gF],
            [-(1 - aR) * gR, (1 - aF) * gF + (1 - aR) * gR, -(1 - aF) * gF],
            [-aR * gR, -gF + aR * gR, gF],
        ])
        I = np.array([
            aF * ieq_f - ieq_r,
            (1 - aF) * ieq_f + (1 - aR) * ieq_r,
            -ieq_f + aR * ieq_r,
        ])
        return G, I

    @property
    def collector_current(self) -> float:
        i_f = junction(self.Is, self.V_be, self.V_T)[0]
        i_r = junction(self.Is, self.V_bc, self.V_T)[0]
        return self.alpha_F * i_f - i_r

    def stamp(self, data: StampData) -> None:
        G, I = self.linearize()
        stamp_block(data, self.nodes, G, I)

    def update(self, data: UpdateData) -> None:
        self.V_be = self.branch_voltage(data, 1, 2)
        self.V_bc = self.branch_voltage(data, 1, 0)


@dataclass(eq=False)
class MOSFET(Component):
    """
    N-channel enhancement MOSFET, square-law model.

    Terminals are (drain, gate, source). The operating region is picked from
    the bias of the previous step:
    - cutoff (V_gs <= V_th): no current, nothing is stamped
    - triode (V_ds < V_gs - V_th): I_d = k*((V_gs-V_th)*V_ds - V_ds^2/2)
    - saturation: I_d = k/2*(V_gs-V_th)^2 with a tiny output conductance

    Attributes:
        k: Transconductance parameter in A/V^2 (default 1e-3).
        V_th: Threshold voltage (default 1 V).
        V_gs, V_ds: Bias voltages of the last solved step.
    """
    terminal_count = 3
    stateful = True

    name: str
    nodes: Sequence[Node]
    k: float = 1e-3
    V_th: float = 1.0
    V_gs: float = field(init=False, default=0.0)
    V_ds: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.nodes)
        require_positive(self, "k", self.k)

    @property
    def region(self) -> str:
        if self.V_gs <= self.V_th:
            return "cutoff"
        if self.V_ds < self.V_gs - self.V_th:
            return "triode"
        return "saturation"

    def operating_point(self) -> tuple[float, float, float]:
        """
        Drain current, output conductance and transconductance at the last bias.

        Returns:
            Tuple (I_d, G_ds, G_m).
        """
        v_ov = self.V_gs - self.V_th
        region = self.region
        if region == "cutoff":
            return 0.0, 0.0, 0.0
        if region == "triode":
            v_ds = self.V_ds
            return self.k * (v_ov * v_ds - 0.5 * v_ds * v_ds), self.k * (v_ov - v_ds), self.k * v_ds
        return 0.5 * self.k * v_ov ** 2, GDS_SAT, self.k * v_ov

    def stamp(self, data: StampData) -> None:
        i_d, gds, gm = self.operating_point()
        if gds == 0.0 and gm == 0.0:
            return
        i_eq = i_d - gds * self.V_ds - gm * self.V_gs
        G = np.array([
            [gds, gm, -(gds + gm)],
            [0.0, 0.0, 0.0],
            [-gds, -gm, gds + gm],
        ])
        I = np.array([i_eq, 0.0, -i_eq])
        stamp_block(data, self.nodes, G, I)

    def update(self, data: UpdateData) -> None:
        self.V_gs = self.branch_voltage(data, 1, 2)
        self.V_ds = self.branch_voltage(data, 0, 2)
