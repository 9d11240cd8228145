from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence
import numpy as np

from ..errors import ConfigurationError
from ..network.node import Node
from .base import Component, StampData, stamp_voltage_source

MODES = ("DC", "AC")


@dataclass(eq=False)
class VoltageSource(Component):
    """
    Ideal voltage source between its two terminals, V(n_plus) - V(n_minus) = V(t).

    The source owns one extra unknown (its branch current) whose index is
    assigned by the simulator before the first stamp. In AC mode the waveform is
    V(t) = vdc + vac * sin(2*pi*frequency*t + phase), evaluated at the time of
    the step being solved.

    Attributes:
        mode: "DC" or "AC".
        vdc: DC level in Volt.
        vac: AC amplitude in Volt (AC mode only).
        frequency: AC frequency in Hz. Derived from `period` when omitted.
        period: Optional AC period in seconds.
        phase: Phase offset in radians.
    """
    name: str
    nodes: Sequence[Node]
    vdc: float = 0.0
    mode: str = "DC"
    vac: float = 0.0
    frequency: float | None = None
    period: float | None = None
    phase: float = 0.0

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.nodes)
        if self.mode not in MODES:
            raise ConfigurationError(f"VoltageSource '{self.name}': mode must be one of {MODES}, got {self.mode!r}.")
        if not self.frequency and self.period:
            self.frequency = 1.0 / self.period

    @property
    def index(self) -> int | None:
        """Index of the branch-current unknown, None until assigned."""
        return self.aux_index

    def num_aux_vars(self) -> int:
        return 1

    def voltage_at(self, t: float) -> float:
        v = self.vdc
        if self.mode == "AC" and self.frequency:
            v += self.vac * np.sin(2 * np.pi * self.frequency * t + self.phase)
        return float(v)

    def stamp(self, data: StampData) -> None:
        if self.aux_index is None:
            raise RuntimeError(f"VoltageSource '{self.name}' has no branch-current index assigned.")
        n_plus, n_minus = self.nodes
        stamp_voltage_source(data, self.aux_index, n_plus, n_minus, self.voltage_at(data.t))
