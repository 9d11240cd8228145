"""Tests for unknown assignment and the transient loop."""

import io
import logging

import numpy as np
import pytest

from protosim import Node, Simulator, SimulatorConfig, SingularMatrixError
from protosim.components import Capacitor, Resistor, VoltageSource
from protosim.logging import enable_step_logging, logger, set_log_level


def rc_circuit(sim):
    vin, cap = Node("vin"), Node("cap")
    sim.add_component(VoltageSource("V1", [vin, sim.ground], vdc=5.0))
    sim.add_component(Resistor("R1", [vin, cap], resistance=1e3))
    sim.add_component(Capacitor("C1", [cap, sim.ground], capacitance=1e-6))
    return vin, cap


class TestIndexAssignment:
    """Unknown numbering: nodes first, then source currents"""

    def test_indices_follow_registration_order(self, divider):
        sim, nodes = divider
        total = sim.assign_voltage_source_indices()
        assert total == 3
        assert sim.node_index == {nodes["vin"]: 0, nodes["mid"]: 1}
        assert sim.components[0].index == 2
        assert sim.nodes[0] is sim.ground

    def test_assignment_is_idempotent(self, divider):
        sim, _ = divider
        first_total = sim.assign_voltage_source_indices()
        first_index = sim.node_index
        first_aux = [c.aux_index for c in sim.components]

        second_total = sim.assign_voltage_source_indices()
        assert second_total == first_total
        assert sim.node_index == first_index
        assert [c.aux_index for c in sim.components] == first_aux

    def test_sources_get_consecutive_indices(self, sim):
        a, b = Node("a"), Node("b")
        v1 = VoltageSource("V1", [a, sim.ground], vdc=1.0)
        v2 = VoltageSource("V2", [b, sim.ground], vdc=2.0)
        sim.add_component(v1)
        sim.add_component(Resistor("R1", [a, b], resistance=1e3))
        sim.add_component(v2)
        assert sim.assign_voltage_source_indices() == 4
        assert (v1.index, v2.index) == (2, 3)

    def test_merged_nodes_share_one_unknown(self, sim):
        a, a_alias, b = Node("a"), Node("a'"), Node("b")
        a_alias.merge_with(a)
        sim.add_component(Resistor("R1", [a, b], resistance=1e3))
        sim.add_component(Resistor("R2", [a_alias, sim.ground], resistance=1e3))
        sim.assign_voltage_source_indices()
        assert len(sim.node_index) == 2
        assert a_alias not in sim.node_index

    def test_net_containing_ground_is_reference(self, sim):
        rail = Node("GND rail")
        rail.merge_with(sim.ground)
        top = Node("top")
        sim.add_component(VoltageSource("V1", [top, rail], vdc=3.0))
        sim.add_component(Resistor("R1", [top, rail], resistance=1e3))
        assert sim.assign_voltage_source_indices() == 2
        sim.run_transient(dt=1e-3, steps=1)
        assert top.voltage == pytest.approx(3.0)
        assert rail.master.voltage == 0.0

    def test_duplicate_component_name(self, sim):
        sim.add_component(Resistor("R1", [Node(), sim.ground], resistance=1e3))
        with pytest.raises(ValueError):
            sim.add_component(Resistor("R1", [Node(), sim.ground], resistance=1e3))

    def test_merge_after_assignment_triggers_reassignment(self, sim):
        vin, a, b = Node("vin"), Node("a"), Node("b")
        sim.add_component(VoltageSource("V1", [vin, sim.ground], vdc=10.0))
        sim.add_component(Resistor("R1", [vin, a], resistance=1e3))
        sim.add_component(Resistor("R2", [b, sim.ground], resistance=2e3))
        assert sim.assign_voltage_source_indices() == 4

        a.merge_with(b)
        sim.run_transient(dt=1e-3, steps=1)
        assert sim.total_size == 3
        assert b.voltage == pytest.approx(20.0 / 3.0, abs=1e-6)


class TestTransient:
    """Per-step assemble/solve/update loop"""

    def test_ground_stays_at_zero(self, sim):
        rc_circuit(sim)
        records = []
        sim.run_transient(dt=1e-4, steps=20, on_step=records.append)
        assert len(records) == 20
        assert all(r.voltages[0] == 0.0 for r in records)
        assert all(r.nodes[0] is sim.ground for r in records)
        assert sim.ground.voltage == 0.0

    def test_step_records_report_time(self, sim):
        rc_circuit(sim)
        records = []
        sim.run_transient(dt=1e-3, steps=3, on_step=records.append)
        assert [r.step for r in records] == [1, 2, 3]
        np.testing.assert_allclose([r.t for r in records], [1e-3, 2e-3, 3e-3])
        assert sim.time == pytest.approx(3e-3)

    def test_time_continues_across_runs(self, sim):
        rc_circuit(sim)
        sim.run_transient(dt=1e-3, steps=2)
        result = sim.run_transient(dt=1e-3, steps=2)
        np.testing.assert_allclose(result.t, [3e-3, 4e-3])
        assert sim.step_count == 4

    def test_step_matches_run_transient(self):
        sim_a, sim_b = Simulator(), Simulator()
        _, cap_a = rc_circuit(sim_a)
        _, cap_b = rc_circuit(sim_b)
        sim_a.run_transient(dt=1e-4, steps=5)
        for _ in range(5):
            record = sim_b.step(1e-4)
        assert record.voltage(cap_b) == pytest.approx(cap_a.voltage)

    def test_record_lookup_and_format(self, divider):
        sim, nodes = divider
        record = sim.step(1e-3)
        assert record.voltage(nodes["mid"]) == pytest.approx(20.0 / 3.0)
        assert record.as_dict()["vin"] == pytest.approx(10.0)
        assert record.currents["V1"] == pytest.approx(-10.0 / 3e3)
        assert record.format().startswith("t=0.001000s gnd=0.0000V")
        with pytest.raises(KeyError):
            record.voltage(Node("stranger"))

    def test_result_shapes(self, divider):
        sim, nodes = divider
        result = sim.run_transient(dt=1e-3, steps=4)
        assert result.t.shape == (4,)
        assert result.v_nodes.shape == (3, 4)
        assert result.aux_values.shape == (1, 4)
        assert result.aux_names == ["V1"]
        with pytest.raises(KeyError):
            result.node_voltage(Node("stranger"))

    def test_history_can_be_disabled(self):
        sim = Simulator(SimulatorConfig(record_history=False))
        _, cap = rc_circuit(sim)
        result = sim.run_transient(dt=1e-4, steps=10)
        assert result.v_nodes.shape == (3, 0)
        assert cap.voltage is not None and cap.voltage > 0

    def test_zero_steps(self, divider):
        sim, nodes = divider
        result = sim.run_transient(dt=1e-3, steps=0)
        assert result.t.size == 0
        assert nodes["mid"].voltage is None

    @pytest.mark.parametrize("dt", [0.0, -1e-3, float("nan"), float("inf")])
    def test_invalid_dt(self, divider, dt):
        sim, _ = divider
        with pytest.raises(ValueError):
            sim.run_transient(dt=dt, steps=1)

    @pytest.mark.parametrize("steps", [-1, 1.5, True])
    def test_invalid_steps(self, divider, steps):
        sim, _ = divider
        with pytest.raises(ValueError):
            sim.run_transient(dt=1e-3, steps=steps)

    def test_rebuild_drops_components(self, divider):
        sim, nodes = divider
        r3 = Resistor("R3", [nodes["mid"], sim.ground], resistance=2e3)
        sim.add_component(r3)
        sim.run_transient(dt=1e-3, steps=1)
        assert nodes["mid"].voltage == pytest.approx(5.0)

        rebuilt = sim.rebuild([c for c in sim.components if c is not r3])
        assert rebuilt.ground is sim.ground
        assert rebuilt.time == pytest.approx(sim.time)
        rebuilt.run_transient(dt=1e-3, steps=1)
        assert nodes["mid"].voltage == pytest.approx(20.0 / 3.0)

    def test_ground_name_from_config(self):
        sim = Simulator(SimulatorConfig(ground_name="0"))
        assert sim.ground.name == "0"

    def test_empty_ground_name_rejected(self):
        with pytest.raises(ValueError):
            SimulatorConfig(ground_name="")


class TestSingularMatrix:
    """Floating nodes and contradictory sources abort the step"""

    def test_unwired_node_raises(self, divider):
        sim, nodes = divider
        sim.add_node(Node("floating"))
        with pytest.raises(SingularMatrixError) as excinfo:
            sim.run_transient(dt=1e-3, steps=1)
        assert excinfo.value.index == 2
        assert excinfo.value.label == "node 'floating'"
        assert "floating" in str(excinfo.value)

    def test_floating_resistor_ring_raises(self, divider):
        sim, _ = divider
        f0, f1, f2 = Node("f0"), Node("f1"), Node("f2")
        sim.add_component(Resistor("F0", [f0, f1], resistance=1e3))
        sim.add_component(Resistor("F1", [f1, f2], resistance=3e3))
        sim.add_component(Resistor("F2", [f2, f0], resistance=7e3))
        with pytest.raises(SingularMatrixError) as excinfo:
            sim.run_transient(dt=1e-3, steps=1)
        assert excinfo.value.label in {"node 'f0'", "node 'f1'", "node 'f2'"}
        assert f0.voltage is None

    def test_failed_step_is_not_committed(self, sim):
        _, cap = rc_circuit(sim)
        sim.run_transient(dt=1e-4, steps=2)
        c1 = sim.components[2]
        v_before, t_before, hist_before = cap.voltage, sim.time, c1.v_prev

        sim.add_node(Node("floating"))
        with pytest.raises(SingularMatrixError):
            sim.run_transient(dt=1e-4, steps=1)
        assert sim.time == t_before
        assert sim.step_count == 2
        assert cap.voltage == v_before
        assert c1.v_prev == hist_before

    def test_contradictory_sources(self, sim):
        top = Node("top")
        sim.add_component(VoltageSource("V1", [top, sim.ground], vdc=10.0))
        sim.add_component(VoltageSource("V2", [top, sim.ground], vdc=5.0))
        with pytest.raises(SingularMatrixError) as excinfo:
            sim.run_transient(dt=1e-3, steps=1)
        assert excinfo.value.label == "I(V2)"

    def test_singular_matrix_is_logged(self, divider, caplog):
        sim, _ = divider
        sim.add_node(Node("floating"))
        with caplog.at_level(logging.ERROR, logger="protosim"):
            with pytest.raises(SingularMatrixError):
                sim.step(1e-3)
        assert "Singular MNA matrix" in caplog.text


@pytest.fixture
def restore_logger():
    """Put the package logger back the way the test found it."""
    handlers, level = logger.handlers[:], logger.level
    handler_levels = [h.level for h in handlers]
    yield logger
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    for handler, handler_level in zip(handlers, handler_levels):
        handler.setLevel(handler_level)
        logger.addHandler(handler)
    logger.setLevel(level)


class TestStepLogging:
    """Per-step DEBUG records and log level control"""

    def test_log_steps(self, restore_logger):
        stream = io.StringIO()
        enable_step_logging(stream)
        sim = Simulator(SimulatorConfig(log_steps=True))
        rc_circuit(sim)
        sim.run_transient(dt=1e-3, steps=2)

        lines = [line for line in stream.getvalue().splitlines() if line.startswith("t=")]
        assert len(lines) == 2
        assert lines[0].startswith("t=0.001000s gnd=0.0000V vin=5.0000V")

    def test_steps_are_quiet_by_default(self, restore_logger):
        stream = io.StringIO()
        enable_step_logging(stream)
        sim = Simulator()
        rc_circuit(sim)
        sim.run_transient(dt=1e-3, steps=2)
        assert not any(line.startswith("t=") for line in stream.getvalue().splitlines())

    def test_set_log_level(self, restore_logger, divider):
        sim, _ = divider
        stream = io.StringIO()
        enable_step_logging(stream)
        set_log_level(logging.WARNING)
        assert logger.level == logging.WARNING
        assert all(h.level == logging.WARNING for h in logger.handlers)
        sim.assign_voltage_source_indices()
        assert stream.getvalue() == ""

        set_log_level(logging.INFO)
        sim.assign_voltage_source_indices()
        assert "Assigned 3 unknowns: 2 nodes, 1 source currents" in stream.getvalue()
