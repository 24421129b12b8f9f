import math

import pytest

from core.dispersion import DispersionUnit
from core.errors import ConfigurationError, ReceiverReferenceError
from core.gas import DispersionKind, Gas
from core.receptor import Neuron


def make_unit(radius=10.0, speed=2.0, kind="FLAT", strength=0.5, gas_id="NO"):
    unit = DispersionUnit(radius, strength, speed, kind, gas_id=gas_id)
    unit.build_channel()
    return unit


def line_of_neurons(*xs):
    source = Neuron("src", 0.0, 0.0)
    others = [Neuron(f"r{i}", x, 0.0) for i, x in enumerate(xs)]
    return source, others


def test_channel_geometry_radius_10_speed_2():
    unit = make_unit(radius=10.0, speed=2.0)
    assert len(unit.slots) == 5
    assert unit.slot_size == 2.0
    assert [s.inner_radius for s in unit.slots] == [0.0, 2.0, 4.0, 6.0, 8.0]
    assert unit.concentrations() == [0.0] * 5


def test_channel_slot_count_floors_and_widens_slots():
    unit = make_unit(radius=10.0, speed=3.0)
    assert len(unit.slots) == 3
    assert unit.slot_size == pytest.approx(10.0 / 3.0)


def test_rebuilding_channel_starts_empty():
    unit = make_unit()
    unit.slots[2].concentration = 4.0
    unit.build_channel()
    assert unit.concentrations() == [0.0] * 5


@pytest.mark.parametrize(
    "radius,speed",
    [
        (0.0, 2.0),
        (-1.0, 2.0),
        (10.0, 0.0),
        (10.0, -0.5),
        (math.inf, 2.0),
        (math.nan, 2.0),
        (10.0, math.inf),
        (10.0, math.nan),
    ],
)
def test_non_positive_or_non_finite_geometry_rejected_at_construction(radius, speed):
    with pytest.raises(ConfigurationError):
        DispersionUnit(radius, 0.5, speed, "FLAT")


def test_geometry_broken_after_construction_rejected_by_build_channel():
    unit = DispersionUnit(10.0, 0.5, 2.0, "FLAT")
    unit.propagation_speed = 0.0
    with pytest.raises(ConfigurationError):
        unit.build_channel()


def test_radius_shorter_than_one_step_has_no_slots_and_is_rejected():
    unit = DispersionUnit(1.0, 0.5, 2.0, "FLAT")
    with pytest.raises(ConfigurationError):
        unit.build_channel()


def test_slot_count_that_overflows_is_rejected():
    unit = DispersionUnit(1e308, 0.5, 1e-308, "FLAT")
    with pytest.raises(ConfigurationError):
        unit.build_channel()


@pytest.mark.parametrize("strength", [-0.1, 1.2])
def test_initial_strength_outside_range_rejected(strength):
    with pytest.raises(ConfigurationError):
        DispersionUnit(10.0, strength, 2.0, "FLAT")


def test_operations_before_build_channel_are_rejected():
    unit = DispersionUnit(10.0, 0.5, 2.0, "FLAT")
    source, others = line_of_neurons(3.0)
    with pytest.raises(ConfigurationError):
        unit.bind_receivers(others, source)
    with pytest.raises(ConfigurationError):
        unit.emit()


def test_from_gas_copies_descriptor_fields():
    gas = Gas("CO", 1.5, DispersionKind.DECAY)
    unit = DispersionUnit.from_gas(9.0, 0.4, gas)
    assert unit.gas_id == "CO"
    assert unit.propagation_speed == 1.5
    assert unit.dispersion_kind is DispersionKind.DECAY
    assert unit.base_strength == unit.current_strength == 0.4
    assert unit.slots == []


def test_boundary_receiver_binds_to_farther_slot():
    unit = make_unit()
    source, others = line_of_neurons(2.0)
    unit.bind_receivers(others, source)
    assert unit.slot_of("r0") == 1
    assert unit.slots[1].receivers == {"r0": 2.0}
    assert unit.slots[0].receivers == {}


def test_receiver_at_emission_radius_binds_to_outermost_slot():
    unit = make_unit()
    source, others = line_of_neurons(10.0)
    unit.bind_receivers(others, source)
    assert unit.slot_of("r0") == 4


@pytest.mark.parametrize("radius,speed", [(10.0, 1.5), (10.0, 0.7), (10.0, 3.0)])
def test_receiver_on_any_reported_inner_radius_binds_to_that_slot(radius, speed):
    unit = make_unit(radius=radius, speed=speed)
    source = Neuron("src", 0.0, 0.0)
    for k in range(1, len(unit.slots)):
        edge = unit.slots[k].inner_radius
        receiver = Neuron("edge", edge, 0.0)
        unit.bind_receivers([receiver], source)
        assert unit.slot_of("edge") == k
        assert unit.slots[k].receivers == {"edge": edge}
        inside = Neuron("inside", math.nextafter(edge, 0.0), 0.0)
        unit.bind_receivers([inside], source)
        assert unit.slot_of("inside") == k - 1


def test_binning_is_a_partition_by_distance():
    unit = make_unit()
    source, others = line_of_neurons(0.5, 1.9, 3.0, 5.5, 7.99, 9.0, 10.5)
    unit.bind_receivers(others + [source], source)
    assert [unit.slot_of(f"r{i}") for i in range(7)] == [0, 0, 1, 2, 3, 4, None]
    assert unit.slot_of("src") is None
    ids = unit.receiver_ids()
    assert len(ids) == len(set(ids)) == 6


def test_diagonal_distance_is_euclidean():
    unit = make_unit()
    source = Neuron("src", 1.0, 1.0)
    receiver = Neuron("diag", 4.0, 5.0)  # distance 5
    unit.bind_receivers([receiver], source)
    assert unit.slots[2].receivers == {"diag": 5.0}


def test_co_located_neuron_is_not_bound():
    unit = make_unit(kind="DECAY")
    source = Neuron("src", 0.0, 0.0)
    twin = Neuron("twin", 0.0, 0.0)
    unit.bind_receivers([twin], source)
    assert unit.slot_of("twin") is None


def test_rebinding_replaces_previous_binding():
    unit = make_unit()
    source, others = line_of_neurons(3.0)
    unit.bind_receivers(others, source)
    others[0].x = 7.0
    unit.bind_receivers(others, source)
    assert unit.slot_of("r0") == 3
    assert unit.receiver_ids() == ["r0"]


def test_receiver_beyond_radius_never_receives():
    unit = make_unit(strength=1.0)
    source, others = line_of_neurons(11.0)
    unit.bind_receivers(others, source)
    lookup = {n.neuron_id: n for n in others}
    for _ in range(12):
        unit.adapt_strength(True)
        unit.emit()
        unit.update_targets(lookup)
        unit.advance()
    assert others[0].receptor.concentration("NO") == 0.0


def test_flat_contribution_is_slot_concentration():
    unit = make_unit(kind="FLAT")
    source, others = line_of_neurons(3.0, 9.0)
    unit.bind_receivers(others, source)
    unit.slots[1].concentration = 0.7
    unit.slots[4].concentration = 0.7
    unit.update_targets({n.neuron_id: n for n in others})
    assert others[0].receptor.concentration("NO") == 0.7
    assert others[1].receptor.concentration("NO") == 0.7


def test_decay_contribution_is_inverse_square():
    unit = make_unit(kind="DECAY")
    source, others = line_of_neurons(3.0, 9.0)
    unit.bind_receivers(others, source)
    unit.slots[1].concentration = 0.9
    unit.slots[4].concentration = 0.9
    unit.update_targets({n.neuron_id: n for n in others})
    assert others[0].receptor.concentration("NO") == pytest.approx(0.9 / 9.0)
    assert others[1].receptor.concentration("NO") == pytest.approx(0.9 / 81.0)


def test_update_targets_adds_onto_existing_buildup():
    unit = make_unit(kind="FLAT")
    source, others = line_of_neurons(1.0)
    unit.bind_receivers(others, source)
    others[0].receptor.built_up_concentrations["NO"] = 0.25
    others[0].receptor.built_up_concentrations["CO"] = 0.1
    unit.emit()
    unit.update_targets({"r0": others[0]})
    unit.update_targets({"r0": others[0]})
    assert others[0].receptor.concentration("NO") == pytest.approx(1.25)
    assert others[0].receptor.concentration("CO") == 0.1


def test_empty_slots_contribute_nothing():
    unit = make_unit(strength=0.0)
    source, others = line_of_neurons(1.0)
    unit.bind_receivers(others, source)
    unit.emit()
    unit.update_targets({"r0": others[0]})
    assert others[0].receptor.built_up_concentrations == {}


def test_missing_receiver_in_lookup_raises():
    unit = make_unit()
    source, others = line_of_neurons(1.0, 3.0)
    unit.bind_receivers(others, source)
    unit.emit()
    with pytest.raises(ReceiverReferenceError) as excinfo:
        unit.update_targets({"r1": others[1]})
    assert excinfo.value.neuron_id == "r0"
    assert isinstance(excinfo.value, KeyError)


def test_missing_receiver_leaves_every_receptor_untouched():
    unit = make_unit()
    source, others = line_of_neurons(1.0, 3.0)
    unit.bind_receivers(others, source)
    unit.emit()
    unit.slots[1].concentration = 0.4
    with pytest.raises(ReceiverReferenceError) as excinfo:
        unit.update_targets({"r0": others[0]})
    assert excinfo.value.neuron_id == "r1"
    assert others[0].receptor.built_up_concentrations == {}


def test_strength_ramp_arms_climbs_clamps_and_falls():
    unit = make_unit(strength=0.5)
    unit.adapt_strength(True)
    assert unit.current_strength == 0.5
    assert unit.was_emitting_last_tick
    unit.adapt_strength(True)
    assert unit.current_strength == pytest.approx(0.8)
    unit.adapt_strength(True)
    assert unit.current_strength == 1.0
    unit.adapt_strength(True)
    assert unit.current_strength == 1.0
    unit.adapt_strength(False)
    assert unit.current_strength == pytest.approx(0.7)
    assert not unit.was_emitting_last_tick


def test_strength_never_drops_below_base():
    unit = make_unit(strength=0.5)
    for _ in range(2):
        unit.adapt_strength(True)
    assert unit.current_strength == pytest.approx(0.8)
    unit.adapt_strength(False)
    assert unit.current_strength == pytest.approx(0.5)
    assert unit.current_strength >= unit.base_strength
    unit.adapt_strength(False)
    assert unit.current_strength == pytest.approx(0.5)


def test_inactive_tick_after_inactive_tick_does_not_decrease():
    unit = make_unit(strength=0.5)
    unit.adapt_strength(True)
    unit.adapt_strength(True)
    unit.adapt_strength(True)
    unit.adapt_strength(False)
    assert unit.current_strength == pytest.approx(0.7)
    # Not emitting any more, so the second quiet tick leaves strength alone.
    unit.adapt_strength(False)
    assert unit.current_strength == pytest.approx(0.7)
    # Re-arming takes a tick again.
    unit.adapt_strength(True)
    assert unit.current_strength == pytest.approx(0.7)


def test_emit_overwrites_innermost_slot():
    unit = make_unit(strength=0.5)
    unit.slots[0].concentration = 3.0
    unit.emit()
    assert unit.concentrations() == [0.5, 0.0, 0.0, 0.0, 0.0]


def test_advance_moves_wavefront_and_drops_it_at_boundary():
    unit = make_unit()
    unit.slots[0].concentration = 5.0
    unit.advance()
    assert unit.concentrations() == [0.0, 5.0, 0.0, 0.0, 0.0]
    for expected_index in (2, 3, 4):
        unit.advance()
        assert unit.concentrations()[expected_index] == 5.0
    unit.advance()
    assert unit.concentrations() == [0.0] * 5


def test_advance_shifts_every_slot_by_one():
    unit = make_unit()
    for i, c in enumerate([1.0, 2.0, 3.0, 4.0, 5.0]):
        unit.slots[i].concentration = c
    unit.advance()
    assert unit.concentrations() == [0.0, 1.0, 2.0, 3.0, 4.0]


def test_full_tick_sequence_delays_signal_by_distance():
    unit = make_unit(strength=0.5)
    source, others = line_of_neurons(1.0, 3.0, 5.0)
    unit.bind_receivers(others, source)
    lookup = {n.neuron_id: n for n in others}
    seen = []
    for _ in range(3):
        for n in others:
            n.receptor.clear()
        unit.adapt_strength(True)
        unit.emit()
        unit.update_targets(lookup)
        unit.advance()
        seen.append([n.receptor.concentration("NO") for n in others])
    assert seen[0] == [0.5, 0.0, 0.0]
    assert seen[1] == pytest.approx([0.8, 0.5, 0.0])
    assert seen[2] == pytest.approx([1.0, 0.8, 0.5])


def test_clone_copies_configuration_and_state():
    unit = make_unit(kind="DECAY", strength=0.4)
    source, others = line_of_neurons(3.0)
    unit.bind_receivers(others, source)
    unit.adapt_strength(True)
    unit.adapt_strength(True)
    unit.emit()
    twin = unit.clone()
    assert twin is not unit
    assert twin.current_strength == unit.current_strength
    assert twin.base_strength == unit.base_strength
    assert twin.was_emitting_last_tick == unit.was_emitting_last_tick
    assert twin.slot_size == unit.slot_size
    assert twin.dispersion_kind is unit.dispersion_kind
    assert twin.gas_id == unit.gas_id
    assert twin.concentrations() == unit.concentrations()
    assert twin.slots[1].receivers == unit.slots[1].receivers


def test_clone_slots_are_independent():
    unit = make_unit()
    source, others = line_of_neurons(3.0)
    unit.bind_receivers(others, source)
    twin = unit.clone()

    twin.slots[0].concentration = 9.0
    twin.slots[1].receivers["intruder"] = 2.5
    twin.slots.append(twin.slots[0].clone())
    twin.adapt_strength(True)
    twin.adapt_strength(True)

    assert unit.slots[0].concentration == 0.0
    assert unit.slots[1].receivers == {"r0": 3.0}
    assert len(unit.slots) == 5
    assert unit.current_strength == 0.5
    assert not unit.was_emitting_last_tick

    unit.slots[1].receivers.pop("r0")
    assert twin.slots[1].receivers == {"r0": 3.0, "intruder": 2.5}
