from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Tuple
import math
import numpy as np

from .components.base import Component, StampData, UpdateData
from .config import SimulatorConfig
from .errors import SingularMatrixError
from .logging import logger
from .network.node import Node
from .solver.linear import solve_dense

Array = np.ndarray


@dataclass(frozen=True)
class StepRecord:
    """
    Snapshot of one solved time step, handed to the `on_step` callback.

    Attributes:
        step: Number of steps solved by the simulator so far (1 for the first).
        t: Simulated time at the end of the step (s).
        nodes: Master nodes in unknown order, ground first.
        voltages: Node voltages aligned with `nodes` (ground is 0.0).
        currents: Branch current of each voltage source, by name. Positive
            current flows into the source at its first terminal.
    """
    step: int
    t: float
    nodes: Tuple[Node, ...]
    voltages: Array
    currents: Dict[str, float] = field(default_factory=dict)

    def voltage(self, node: Node) -> float:
        master = node.master
        for n, v in zip(self.nodes, self.voltages):
            if n is master:
                return float(v)
        raise KeyError(f"Node '{node.name}' is not part of this simulation.")

    def as_dict(self) -> Dict[str, float]:
        return {n.name: float(v) for n, v in zip(self.nodes, self.voltages)}

    def format(self) -> str:
        values = ", ".join(f"{n.name}={v:.4f}V" for n, v in zip(self.nodes, self.voltages))
        return f"t={self.t:.6f}s {values}"


@dataclass
class TransientResult:
    """
    Time series collected by one `run_transient` call.

    Attributes:
        t: Time points, one per solved step (length N).
        nodes: Master nodes in row order, ground first.
        v_nodes: Node voltage history, shape (n_nodes, N).
        aux_names: Voltage source names in row order of `aux_values`.
        aux_values: Source branch current history, shape (n_sources, N).
    """
    t: Array
    nodes: List[Node]
    v_nodes: Array
    aux_names: List[str]
    aux_values: Array

    def node_voltage(self, node: Node) -> tuple[Array, Array]:
        """
        Return the voltage time series of the net containing `node`.
        """
        master = node.master
        for i, n in enumerate(self.nodes):
            if n is master:
                return self.t, self.v_nodes[i]
        raise KeyError(f"Node '{node.name}' not present in this simulation.")

    def source_current(self, name: str) -> tuple[Array, Array]:
        """
        Return the branch current time series of a voltage source.
        """
        try:
            idx = self.aux_names.index(name)
        except ValueError as exc:
            raise KeyError(f"Voltage source '{name}' not present in this simulation.") from exc
        return self.t, self.aux_values[idx]


StepCallback = Callable[[StepRecord], None]


class Simulator:
    """
    Transient MNA simulator with a fixed time step.

    The simulator owns the registry of nodes and devices. Setup is append only:
    devices are added with `add_component`, which also registers their
    terminals, then `assign_voltage_source_indices` numbers the unknowns
    (master nodes first, ground excluded, then one branch current per voltage
    source). Every step rebuilds and solves a dense system:

        zero M, b -> stamp all devices -> solve M x = b
        -> update stateful devices -> write node voltages -> report

    A device cannot be removed from a live simulator; use `rebuild` to get a
    fresh simulator from the surviving devices.
    """

    def __init__(self, config: SimulatorConfig | None = None, ground: Node | None = None) -> None:
        self.config = config if config is not None else SimulatorConfig()
        self.ground = ground if ground is not None else Node(self.config.ground_name)
        self.ground.voltage = 0.0
        self.components: List[Component] = []
        self.nodes: List[Node] = [self.ground]
        self.total_size = 0
        self.time = 0.0
        self.step_count = 0
        self._registered: List[Node] = [self.ground]
        self._node_index: Dict[Node, int] = {}
        self._signature: tuple | None = None

    # ---- setup ----
    def add_node(self, node: Node) -> None:
        if not any(n is node for n in self._registered):
            self._registered.append(node)

    def add_component(self, component: Component) -> None:
        if any(c is component for c in self.components):
            raise ValueError(f"Component '{component.name}' already added.")
        if any(c.name == component.name for c in self.components):
            raise ValueError(f"Component '{component.name}' already exists.")
        self.components.append(component)
        for node in component.nodes:
            self.add_node(node)

    def _topology_signature(self) -> tuple:
        return (len(self.components),) + tuple(id(n.master) for n in self._registered)

    def assign_voltage_source_indices(self) -> int:
        """
        Number the unknowns of the system.

        Master nodes are collected in first-seen order; the net containing
        ground is the reference and gets no unknown. Nodes take indices
        0..N-1, then every device with auxiliary unknowns (voltage sources)
        takes the next indices N, N+1, ... in registration order.

        Returns:
            Total number of unknowns N + K.
        """
        ground = self.ground.master
        nodes: List[Node] = [ground]
        for node in self._registered:
            master = node.master
            if not any(m is master for m in nodes):
                nodes.append(master)

        node_index = {m: i for i, m in enumerate(nodes[1:])}
        cursor = len(node_index)
        for comp in self.components:
            n_aux = comp.num_aux_vars()
            if n_aux:
                comp.aux_index = cursor
                cursor += n_aux
            else:
                comp.aux_index = None

        self.nodes = nodes
        self._node_index = node_index
        self.total_size = cursor
        self._signature = self._topology_signature()
        logger.info(
            f"Assigned {cursor} unknowns: {len(node_index)} nodes, "
            f"{cursor - len(node_index)} source currents"
        )
        return cursor

    @property
    def node_index(self) -> Dict[Node, int]:
        return dict(self._node_index)

    def describe_unknown(self, index: int) -> str:
        n_nodes = len(self._node_index)
        if 0 <= index < n_nodes:
            return f"node '{self.nodes[index + 1].name}'"
        for comp in self.components:
            if comp.aux_index is not None and comp.aux_index <= index < comp.aux_index + comp.num_aux_vars():
                return f"I({comp.name})"
        return f"unknown {index}"

    def rebuild(self, components: Iterable[Component]) -> Simulator:
        """
        Create a fresh simulator sharing ground, config and time with this one.

        This is how a device is removed: pass the list of surviving devices.
        """
        sim = Simulator(self.config, ground=self.ground)
        sim.time = self.time
        for comp in components:
            sim.add_component(comp)
        sim.assign_voltage_source_indices()
        return sim

    # ---- execution ----
    def _prepare(self, dt: float) -> None:
        if not (isinstance(dt, (int, float)) and math.isfinite(dt) and dt > 0):
            raise ValueError(f"dt must be a positive finite number, got {dt!r}.")
        if self._signature != self._topology_signature():
            self.assign_voltage_source_indices()

    def _source_currents(self, x: Array) -> Dict[str, float]:
        return {
            comp.name: float(x[comp.aux_index])
            for comp in self.components
            if comp.aux_index is not None
        }

    def _advance(self, dt: float) -> StepRecord:
        t_next = self.time + dt
        size = self.total_size
        M = np.zeros((size, size))
        b = np.zeros(size)

        stamp_data = StampData(M=M, b=b, node_index=self._node_index, dt=dt, t=t_next)
        for comp in self.components:
            comp.stamp(stamp_data)

        try:
            x = solve_dense(M, b)
        except SingularMatrixError as exc:
            label = self.describe_unknown(exc.index) if exc.index is not None else None
            message = f"Singular MNA matrix at t={t_next:.6g}s"
            if label is not None:
                message += f" (no unique solution for {label})"
            logger.error(message)
            raise SingularMatrixError(message, index=exc.index, label=label) from exc

        update_data = UpdateData(x=x, node_index=self._node_index, dt=dt, t=t_next)
        for comp in self.components:
            if comp.stateful:
                comp.update(update_data)

        for node, idx in self._node_index.items():
            node.voltage = float(x[idx])
        self.nodes[0].voltage = 0.0
        self.ground.voltage = 0.0

        self.time = t_next
        self.step_count += 1

        voltages = np.zeros(len(self.nodes))
        for i, node in enumerate(self.nodes[1:], start=1):
            voltages[i] = x[self._node_index[node]]
        record = StepRecord(
            step=self.step_count,
            t=t_next,
            nodes=tuple(self.nodes),
            voltages=voltages,
            currents=self._source_currents(x),
        )
        if self.config.log_steps:
            logger.debug(record.format())
        return record

    def step(self, dt: float) -> StepRecord:
        """
        Solve a single time step of length dt and return its record.
        """
        self._prepare(dt)
        return self._advance(dt)

    def run_transient(self, dt: float, steps: int, on_step: StepCallback | None = None) -> TransientResult:
        """
        Run `steps` fixed steps of backward-Euler transient simulation.

        Unknown indices are (re)assigned first if devices, nodes or merges
        changed since the last assignment. Steps are strictly sequential: each
        one uses the device history left by the previous `update`.

        Args:
            dt: Step size in seconds.
            steps: Number of steps to solve.
            on_step: Optional callback invoked with the StepRecord of every step.

        Returns:
            TransientResult with the time series of this run. When
            `config.record_history` is False the arrays are empty.

        Raises:
            ValueError: Invalid dt or steps.
            SingularMatrixError: The system of a step has no unique solution.
                That step is not committed: device history, node voltages and
                time stay those of the previous step.
        """
        if isinstance(steps, bool) or not isinstance(steps, (int, np.integer)) or steps < 0:
            raise ValueError(f"steps must be a non-negative integer, got {steps!r}.")
        self._prepare(dt)

        record_history = self.config.record_history
        n_rows = steps if record_history else 0
        sources = [c for c in self.components if c.aux_index is not None]
        t = np.zeros(n_rows)
        v_nodes = np.zeros((len(self.nodes), n_rows))
        aux_values = np.zeros((len(sources), n_rows))

        for k in range(steps):
            record = self._advance(dt)
            if record_history:
                t[k] = record.t
                v_nodes[:, k] = record.voltages
                for j, src in enumerate(sources):
                    aux_values[j, k] = record.currents[src.name]
            if on_step is not None:
                on_step(record)

        return TransientResult(
            t=t,
            nodes=list(self.nodes),
            v_nodes=v_nodes,
            aux_names=[c.name for c in sources],
            aux_values=aux_values,
        )
