"""Tests for the behavioral devices: overstress model, relay and logic gates."""

import logging

import pytest

from protosim import ConfigurationError, Node
from protosim.components import ANDGate, GenericNonlinear, NOTGate, Relay, Resistor, VoltageSource, XORGate


def ohmic(resistance):
    return (lambda v: v / resistance), (lambda v: 1.0 / resistance)


class TestGenericNonlinear:
    """User I-V device with voltage and current ratings"""

    def build(self, sim, **ratings):
        vin, node = Node("vin"), Node("node")
        I, G = ohmic(100.0)
        dev = GenericNonlinear("X1", [node, sim.ground], I=I, G=G, **ratings)
        sim.add_component(VoltageSource("V1", [vin, sim.ground], vdc=5.0))
        sim.add_component(Resistor("R1", [vin, node], resistance=100.0))
        sim.add_component(dev)
        return dev, node

    def test_within_rating_behaves_like_its_curve(self, sim):
        dev, node = self.build(sim, i_max=0.1)
        sim.run_transient(dt=1e-3, steps=3)
        assert not dev.broken
        assert node.voltage == pytest.approx(2.5)

    def test_overcurrent_breaks_device(self, sim, caplog):
        dev, node = self.build(sim, i_max=0.02)
        with caplog.at_level(logging.WARNING, logger="protosim"):
            sim.step(1e-3)
        assert dev.broken
        assert node.voltage == pytest.approx(2.5)
        assert "X1 has broken!" in caplog.text

        result = sim.run_transient(dt=1e-3, steps=2)
        assert node.voltage == pytest.approx(5.0)
        _, i_src = result.source_current("V1")
        assert abs(i_src[-1]) < 1e-12

    def test_overvoltage_breaks_device(self, sim):
        dev, _ = self.build(sim, v_max=2.0)
        sim.step(1e-3)
        assert dev.broken

    def test_broken_device_stays_broken(self, sim, caplog):
        dev, _ = self.build(sim, i_max=0.02)
        with caplog.at_level(logging.WARNING, logger="protosim"):
            sim.run_transient(dt=1e-3, steps=5)
        assert dev.broken
        assert caplog.text.count("has broken!") == 1


class TestRelay:
    """Coil current drives the contact state of the next step"""

    def build(self, sim, drive):
        coil, vcc, load = Node("coil"), Node("vcc"), Node("load")
        relay = Relay.from_pairs("K1", [coil, sim.ground], [vcc, load])
        sim.add_component(VoltageSource("VDRV", [coil, sim.ground], vdc=drive))
        sim.add_component(VoltageSource("VCC", [vcc, sim.ground], vdc=5.0))
        sim.add_component(Resistor("RL", [load, sim.ground], resistance=1e3))
        sim.add_component(relay)
        return relay, load

    def test_pull_in(self, sim):
        relay, load = self.build(sim, drive=2.0)
        sim.step(1e-3)
        # G = 1/(R + L/dt) = 1/20 S
        assert relay.coil_current == pytest.approx(0.1)
        assert relay.switch_closed
        assert load.voltage < 1e-3

        sim.step(1e-3)
        assert load.voltage == pytest.approx(5.0, rel=1e-5)

    def test_coil_current_settles_to_v_over_r(self, sim):
        relay, _ = self.build(sim, drive=2.0)
        sim.run_transient(dt=1e-3, steps=40)
        assert relay.coil_current == pytest.approx(0.2, rel=1e-6)

    def test_weak_drive_keeps_contacts_open(self, sim):
        relay, load = self.build(sim, drive=0.2)
        sim.run_transient(dt=1e-3, steps=40)
        assert relay.coil_current == pytest.approx(0.02, rel=1e-6)
        assert not relay.switch_closed
        assert load.voltage < 1e-3

    def test_requires_four_nodes(self):
        with pytest.raises(ConfigurationError):
            Relay("K1", [Node(), Node(), Node()])


class TestLogicGates:
    """Gates force their output level after the solve"""

    def build(self, sim, gate_cls, levels):
        inputs = []
        for i, level in enumerate(levels):
            node = Node(f"in{i}")
            sim.add_component(VoltageSource(f"V{i}", [node, sim.ground], vdc=level))
            inputs.append(node)
        out = Node("out")
        sim.add_component(Resistor("RL", [out, sim.ground], resistance=1e3))
        sim.add_component(gate_cls("U1", inputs, out))
        return out

    @pytest.mark.parametrize(
        "gate_cls, levels, expected",
        [
            (ANDGate, [5.0, 5.0], 5.0),
            (ANDGate, [5.0, 0.0], 0.0),
            (ANDGate, [5.0, 5.0, 2.5], 5.0),
            (NOTGate, [0.0], 5.0),
            (NOTGate, [3.3], 0.0),
            (XORGate, [5.0, 0.0], 5.0),
            (XORGate, [5.0, 5.0], 0.0),
            (XORGate, [5.0, 5.0, 5.0], 5.0),
        ],
    )
    def test_truth_table(self, sim, gate_cls, levels, expected):
        out = self.build(sim, gate_cls, levels)
        records = []
        sim.run_transient(dt=1e-3, steps=1, on_step=records.append)
        assert out.voltage == expected
        assert records[0].voltage(out) == expected

    def test_custom_levels(self, sim):
        a, out = Node("a"), Node("out")
        sim.add_component(VoltageSource("VA", [a, sim.ground], vdc=0.0))
        sim.add_component(Resistor("RL", [out, sim.ground], resistance=1e3))
        sim.add_component(NOTGate("U1", [a], out, high_voltage=3.3, threshold=1.65))
        sim.step(1e-3)
        assert out.voltage == pytest.approx(3.3)

    def test_output_on_ground_is_ignored(self, sim):
        a = Node("a")
        sim.add_component(VoltageSource("VA", [a, sim.ground], vdc=0.0))
        sim.add_component(NOTGate("U1", [a], sim.ground))
        sim.step(1e-3)
        assert sim.ground.voltage == 0.0

    def test_not_gate_takes_one_input(self):
        with pytest.raises(ConfigurationError, match="exactly 1"):
            NOTGate("U1", [Node(), Node()], Node())

    @pytest.mark.parametrize("gate_cls", [ANDGate, XORGate])
    def test_binary_gates_need_two_inputs(self, gate_cls):
        with pytest.raises(ConfigurationError, match="at least 2"):
            gate_cls("U1", [Node()], Node())
