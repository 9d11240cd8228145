from __future__ import annotations
from abc import abstractmethod
from dataclasses import dataclass
from typing import List, Sequence

from ..errors import ConfigurationError
from ..network.node import Node
from .base import Component, StampData, UpdateData


@dataclass(eq=False)
class LogicGate(Component):
    """
    Behavioral logic gate living outside the linear system.

    A gate stamps nothing. After each solve it compares its input voltages
    with `threshold`, evaluates `compute` and writes the resulting level
    straight into the solved vector at its output node, replacing what the
    solver found there. Devices updated after the gate, and the node voltages
    written back by the simulator, see the forced level. The output node must
    still be tied into the circuit (e.g. by a load) so the matrix stays regular.

    Terminals are the inputs followed by the output.
    """
    terminal_count = None
    min_inputs = 1
    max_inputs = None
    stateful = True

    name: str
    inputs: Sequence[Node]
    output: Node
    high_voltage: float = 5.0
    low_voltage: float = 0.0
    threshold: float = 2.5

    def __post_init__(self) -> None:
        self.inputs = list(self.inputs)
        Component.__init__(self, self.name, [*self.inputs, self.output])

    def _validate_terminals(self) -> None:
        n_in = len(self.nodes) - 1
        if n_in < self.min_inputs or (self.max_inputs is not None and n_in > self.max_inputs):
            if self.max_inputs == self.min_inputs:
                expected = f"exactly {self.min_inputs}"
            else:
                expected = f"at least {self.min_inputs}"
            raise ConfigurationError(
                f"{type(self).__name__} '{self.name}' requires {expected} input node(s), got {n_in}."
            )

    @abstractmethod
    def compute(self, inputs: List[bool]) -> bool: ...

    def stamp(self, data: StampData) -> None:
        pass

    def update(self, data: UpdateData) -> None:
        levels = [self.terminal_voltage(data, i) >= self.threshold for i in range(len(self.inputs))]
        out_idx = data.node(self.output)
        if out_idx is None:
            return
        data.x[out_idx] = self.high_voltage if self.compute(levels) else self.low_voltage


class ANDGate(LogicGate):
    min_inputs = 2

    def compute(self, inputs: List[bool]) -> bool:
        return all(inputs)


class NOTGate(LogicGate):
    max_inputs = 1

    def compute(self, inputs: List[bool]) -> bool:
        return not inputs[0]


class XORGate(LogicGate):
    min_inputs = 2

    def compute(self, inputs: List[bool]) -> bool:
        return sum(inputs) % 2 == 1
