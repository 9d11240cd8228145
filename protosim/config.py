from __future__ import annotations
from dataclasses import dataclass


@dataclass
class SimulatorConfig:
    """
    Configuration parameters for the transient simulator.

    Attributes:
        ground_name: Name given to the reference node created by the simulator (default: "gnd").
        record_history: Collect the per-step voltages into a TransientResult (default: True).
            Long interactive runs that only need the live node voltages can turn this off.
        log_steps: Emit a DEBUG log line for every solved step (default: False).
    """
    ground_name: str = "gnd"
    record_history: bool = True
    log_steps: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.ground_name, str) or not self.ground_name:
            raise ValueError("ground_name must be a non-empty string.")
