from __future__ import annotations
from dataclasses import dataclass
from abc import ABC, abstractmethod
from typing import ClassVar, Dict, List, Sequence
import numpy as np

from ..errors import ConfigurationError
from ..network.node import Node

Array = np.ndarray


@dataclass
class StampData:
    """
    Shared view of the MNA system while the devices stamp one time step.

    Attributes:
        M: Conductance matrix, shape (n+n_aux, n+n_aux), zeroed by the simulator.
        b: Right-hand side vector (injected currents and source voltages).
        node_index: Mapping master node -> row/column index (ground excluded).
        dt: Fixed integration step in seconds.
        t: Simulated time at the end of the step being solved.
    """
    M: Array
    b: Array
    node_index: Dict[Node, int]
    dt: float
    t: float

    def node(self, node: Node) -> int | None:
        return self.node_index.get(node.master)


@dataclass
class UpdateData:
    """
    Solved step handed to stateful devices.

    Attributes:
        x: Solution vector. Logic gates may overwrite entries of their output nodes.
        node_index: Mapping master node -> index in x (ground excluded).
        dt: Integration step used for the solve.
        t: Simulated time of the solution.
    """
    x: Array
    node_index: Dict[Node, int]
    dt: float
    t: float

    def node(self, node: Node) -> int | None:
        return self.node_index.get(node.master)

    def voltage(self, node: Node) -> float:
        idx = self.node(node)
        return 0.0 if idx is None else float(self.x[idx])

    def voltage_between(self, n_plus: Node, n_minus: Node) -> float:
        return self.voltage(n_plus) - self.voltage(n_minus)


def _add_to_matrix(M: Array, row: int | None, col: int | None, value: float) -> None:
    if row is None or col is None:
        return
    M[row, col] += value


def stamp_conductance(data: StampData, n_plus: Node, n_minus: Node, conductance: float) -> None:
    ip = data.node(n_plus)
    ineg = data.node(n_minus)
    if ip is not None:
        data.M[ip, ip] += conductance
    if ineg is not None:
        data.M[ineg, ineg] += conductance
    if ip is not None and ineg is not None:
        data.M[ip, ineg] -= conductance
        data.M[ineg, ip] -= conductance


def stamp_current_source(data: StampData, n_plus: Node, n_minus: Node, current: float) -> None:
    """
    Positive current flows from n_plus to n_minus through the element.
    """
    ip = data.node(n_plus)
    ineg = data.node(n_minus)
    if ip is not None:
        data.b[ip] -= current
    if ineg is not None:
        data.b[ineg] += current


def stamp_voltage_source(data: StampData, aux_idx: int, n_plus: Node, n_minus: Node, voltage: float) -> None:
    ip = data.node(n_plus)
    ineg = data.node(n_minus)
    if ip is not None:
        _add_to_matrix(data.M, ip, aux_idx, 1.0)
        _add_to_matrix(data.M, aux_idx, ip, 1.0)
    if ineg is not None:
        _add_to_matrix(data.M, ineg, aux_idx, -1.0)
        _add_to_matrix(data.M, aux_idx, ineg, -1.0)
    data.b[aux_idx] += voltage


def stamp_block(data: StampData, nodes: Sequence[Node], G: Array, I: Array) -> None:
    """
    Stamp a multi-terminal linearized device.

    Row i of G holds the partial derivatives of the current entering terminal i
    with respect to each terminal voltage; I holds the constant part of those
    currents. Rows and columns of terminals on ground are skipped.
    """
    idx = [data.node(n) for n in nodes]
    for r, row in enumerate(idx):
        if row is None:
            continue
        for c, col in enumerate(idx):
            _add_to_matrix(data.M, row, col, G[r][c])
        data.b[row] -= I[r]


class Component(ABC):
    """
    Base class for devices stamped into the transient MNA system.

    Every device writes its linear(ized) contribution into the shared system in
    `stamp`. Devices with history (energy storage) or a per-step linearization
    point (nonlinear parts) set the class flag `stateful` and read the solved
    voltages back in `update`; the simulator never calls `update` on the others.

    Class attributes:
        terminal_count: Number of terminals the device requires (None: variable).
        stateful: Whether the simulator must call `update` after each solve.
    """
    terminal_count: ClassVar[int | None] = 2
    stateful: ClassVar[bool] = False

    def __init__(self, name: str, nodes: Sequence[Node]) -> None:
        self.name = name
        self.nodes: List[Node] = list(nodes)
        self.aux_index: int | None = None
        self._validate_terminals()

    def _validate_terminals(self) -> None:
        expected = self.terminal_count
        if expected is not None and len(self.nodes) != expected:
            raise ConfigurationError(
                f"{type(self).__name__} '{self.name}' requires {expected} nodes, got {len(self.nodes)}."
            )

    def terminal_voltage(self, data: UpdateData, i: int) -> float:
        """Solved voltage of terminal i (0 V for a terminal on ground)."""
        return data.voltage(self.nodes[i])

    def branch_voltage(self, data: UpdateData, i: int, j: int) -> float:
        """Solved voltage of terminal i relative to terminal j."""
        return data.voltage_between(self.nodes[i], self.nodes[j])

    def num_aux_vars(self) -> int:
        return 0

    @abstractmethod
    def stamp(self, data: StampData) -> None:
        """
        Add this device's contribution to the global M, b system.
        """

    def update(self, data: UpdateData) -> None:
        """
        Capture the solved step into the device history.
        """


def require_positive(component: Component, label: str, value: float) -> None:
    if not value > 0:
        raise ConfigurationError(f"{type(component).__name__} '{component.name}': {label} must be positive.")
