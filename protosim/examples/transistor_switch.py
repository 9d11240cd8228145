"""
Low-side NPN switch driving an LED, toggled by a relay.

Circuit:
    VCC (5 V) -> R_led (220 Ohm) -> LED -> collector of Q1, emitter to ground.
    VCC -> relay contacts -> R_base (10 kOhm) -> base of Q1, base pulled down by 100 kOhm.
    V_drive (AC square-ish sine, 5 Hz) -> relay coil.

The relay closes when its coil current exceeds the pull-in threshold, the
transistor saturates and the LED lights. Step records are streamed to a
callback instead of being printed by the engine.
"""

import sys
from pathlib import Path

project_root = Path(__file__).resolve().parents[2]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from protosim import Node, Simulator, StepRecord
from protosim.components import BJT, LED, Relay, Resistor, VoltageSource


def main() -> None:
    sim = Simulator()
    gnd = sim.ground
    vcc, drive, anode, collector = Node("vcc"), Node("drive"), Node("anode"), Node("collector")
    contact, base = Node("contact"), Node("base")

    led = LED("D1", [anode, collector])
    relay = Relay("K1", [drive, gnd, vcc, contact])

    sim.add_component(VoltageSource("VCC", [vcc, gnd], vdc=5.0))
    sim.add_component(VoltageSource("Vdrive", [drive, gnd], mode="AC", vdc=0.0, vac=5.0, frequency=5.0))
    sim.add_component(relay)
    sim.add_component(Resistor("Rb", [contact, base], resistance=10e3))
    sim.add_component(Resistor("Rpd", [base, gnd], resistance=100e3))
    sim.add_component(Resistor("Rled", [vcc, anode], resistance=220.0))
    sim.add_component(led)
    sim.add_component(BJT("Q1", [collector, base, gnd]))

    def report(record: StepRecord) -> None:
        if record.step % 20 == 0:
            state = "lit" if led.is_lit else "dark"
            print(f"t={record.t:.3f}s relay={'closed' if relay.switch_closed else 'open'} "
                  f"V(collector)={record.voltage(collector):.3f}V LED {state}")

    sim.run_transient(dt=1e-3, steps=400, on_step=report)


if __name__ == "__main__":
    main()
