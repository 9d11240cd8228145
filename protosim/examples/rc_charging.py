"""
RC charging transient.

Circuit:
    V1 (5 V DC) -> R (1 kOhm) -> node cap -> C (100 uF) -> ground.

Time constant RC = 100 ms. The capacitor voltage follows the backward-Euler
approximation of 5 * (1 - exp(-t/RC)).
"""

import sys
from pathlib import Path

project_root = Path(__file__).resolve().parents[2]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import numpy as np

from protosim import Node, Simulator
from protosim.components import Capacitor, Resistor, VoltageSource


def main() -> None:
    R, C, V = 1e3, 100e-6, 5.0
    dt = 1e-3
    t_stop = 0.5

    sim = Simulator()
    vin, cap = Node("vin"), Node("cap")
    sim.add_component(VoltageSource("V1", [vin, sim.ground], vdc=V))
    sim.add_component(Resistor("R1", [vin, cap], resistance=R))
    sim.add_component(Capacitor("C1", [cap, sim.ground], capacitance=C))

    result = sim.run_transient(dt=dt, steps=int(round(t_stop / dt)))
    t, v_cap = result.node_voltage(cap)
    v_exact = V * (1.0 - np.exp(-t / (R * C)))

    print(f"Final capacitor voltage: {v_cap[-1]:.3f} V (target {V:.1f} V)")
    print(f"Max deviation from the analytic curve: {np.max(np.abs(v_cap - v_exact)) * 1e3:.3f} mV")

    try:
        import matplotlib.pyplot as plt

        plt.figure(figsize=(7, 4))
        plt.plot(t * 1e3, v_cap, label="v_cap (backward Euler)")
        plt.plot(t * 1e3, v_exact, "--", label="analytic")
        plt.xlabel("Time [ms]")
        plt.ylabel("Voltage [V]")
        plt.title("RC Charging")
        plt.grid(True)
        plt.legend()
        plt.tight_layout()
        plt.show()
    except ImportError:
        pass


if __name__ == "__main__":
    main()
