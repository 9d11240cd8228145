"""
DC voltage divider on a protoboard.

Circuit:
    V1 (10 V) on the VCC rail -> R1 (1 kOhm) -> row 0 -> R2 (2 kOhm) -> GND rail.

The circuit is purely resistive, so the first step already gives the final
answer: V(row 0) = 10 * 2k / 3k = 6.667 V.
"""

import sys
from pathlib import Path

project_root = Path(__file__).resolve().parents[2]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from protosim import Node, Protoboard, Simulator
from protosim.components import Resistor, VoltageSource


def main() -> None:
    sim = Simulator()
    board = Protoboard("board", row_count=4)
    board.rails["GND"].merge_with(sim.ground)

    v_pos, v_neg = Node("V1+"), Node("V1-")
    board.connect(v_pos, "VCC")
    board.connect(v_neg, "GND")

    r1_a, r1_b = Node("R1.a"), Node("R1.b")
    board.connect(r1_a, "VCC")
    board.connect(r1_b, 0)

    r2_a, r2_b = Node("R2.a"), Node("R2.b")
    board.connect(r2_a, 0)
    board.connect(r2_b, "GND")

    sim.add_component(VoltageSource("V1", [v_pos, v_neg], vdc=10.0))
    sim.add_component(Resistor("R1", [r1_a, r1_b], resistance=1e3))
    sim.add_component(Resistor("R2", [r2_a, r2_b], resistance=2e3))

    result = sim.run_transient(dt=1e-3, steps=1)
    _, v_mid = result.node_voltage(board.rows[0])
    _, i_src = result.source_current("V1")

    print(f"V(row 0) = {v_mid[-1]:.4f} V (expected 6.6667 V)")
    print(f"I(V1) = {i_src[-1] * 1e3:.4f} mA")


if __name__ == "__main__":
    main()
