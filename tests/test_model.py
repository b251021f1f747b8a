import math

import numpy as np
import pytest

from cstrsim.config import DEFAULT_INITIAL_STATE, DEFAULT_PARAMETERS
from cstrsim.model import ReactorModel, ReactorState, derivatives


def test_reference_scenario_first_step():
    model = ReactorModel(DEFAULT_INITIAL_STATE, DEFAULT_PARAMETERS)
    assert model.outlet_flow() == pytest.approx(0.09)
    f0 = derivatives(DEFAULT_INITIAL_STATE.as_vector(), DEFAULT_PARAMETERS)
    assert f0[0] == pytest.approx(0.91)

    state = model.step()
    # Volume balance is linear: V(t) = Vss + (V0 - Vss) exp(-KV t), Vss = Vmin + F0/KV
    v_exact = 10.1 - 9.1 * math.exp(-0.01)
    assert state.volume == pytest.approx(v_exact, abs=1e-10)
    assert state.volume == pytest.approx(1.0 + 0.091, abs=1e-3)
    assert state.time == 0.1


def test_runs_are_bit_for_bit_reproducible():
    a = ReactorModel(DEFAULT_INITIAL_STATE, DEFAULT_PARAMETERS)
    b = ReactorModel(DEFAULT_INITIAL_STATE, DEFAULT_PARAMETERS)
    traj_a = [a.step() for _ in range(200)]
    traj_b = [b.step() for _ in range(200)]
    assert traj_a == traj_b


def test_no_reaction_with_matched_flow_is_steady():
    p = DEFAULT_PARAMETERS.merge(pre_exponential_factor=0.0)
    v_ss = p.minimum_volume + p.inlet_flow_rate / p.valve_constant
    init = ReactorState(volume=v_ss, concentration=p.feed_concentration, temperature=350.0, jacket_temperature=300.0)
    model = ReactorModel(init, p)
    for _ in range(1000):
        state = model.step()
    assert state.volume == pytest.approx(v_ss, abs=1e-9)
    assert state.concentration == pytest.approx(p.feed_concentration, abs=1e-9)


def test_time_accumulates_by_repeated_addition():
    model = ReactorModel(DEFAULT_INITIAL_STATE, DEFAULT_PARAMETERS)
    expected = DEFAULT_INITIAL_STATE.time
    for _ in range(537):
        expected += 0.1
        state = model.step()
    assert state.time == expected
    assert model.get_state().time == expected


def test_update_parameters_keeps_state_and_applies_next_step():
    model = ReactorModel(DEFAULT_INITIAL_STATE, DEFAULT_PARAMETERS)
    model.step()
    before = model.get_state()
    model.update_parameters({"inlet_flow_rate": 2.0}, heat_transfer_coefficient=300.0)
    assert model.get_state() == before
    assert model.parameters.inlet_flow_rate == 2.0
    assert model.parameters.heat_transfer_coefficient == 300.0
    assert model.parameters.feed_concentration == DEFAULT_PARAMETERS.feed_concentration

    reference = ReactorModel(before, DEFAULT_PARAMETERS)
    assert model.step().volume > reference.step().volume


def test_update_parameters_rejects_unknown_field():
    model = ReactorModel(DEFAULT_INITIAL_STATE, DEFAULT_PARAMETERS)
    with pytest.raises(TypeError):
        model.update_parameters(flux_capacitor=1.21)


def test_state_is_copied_in_and_out():
    init = DEFAULT_INITIAL_STATE.copy()
    model = ReactorModel(init, DEFAULT_PARAMETERS)
    init.volume = 99.0
    assert model.get_state().volume == 1.0

    returned = model.step()
    returned.volume = -1.0
    model.get_state().temperature = 0.0
    assert model.get_state().volume > 1.0
    assert model.get_state().temperature != 0.0


def test_instances_are_independent():
    a = ReactorModel(DEFAULT_INITIAL_STATE, DEFAULT_PARAMETERS)
    b = ReactorModel(DEFAULT_INITIAL_STATE, DEFAULT_PARAMETERS)
    a.update_parameters(inlet_flow_rate=3.0)
    a.step()
    assert b.get_state() == DEFAULT_INITIAL_STATE
    assert b.parameters.inlet_flow_rate == 1.0


def test_conversion_bounds_and_zero_feed():
    for ca in np.linspace(0.0, DEFAULT_PARAMETERS.feed_concentration, 11):
        init = DEFAULT_INITIAL_STATE.copy()
        init.concentration = float(ca)
        conv = ReactorModel(init, DEFAULT_PARAMETERS).conversion()
        assert 0.0 <= conv <= 100.0
    model = ReactorModel(DEFAULT_INITIAL_STATE, DEFAULT_PARAMETERS.merge(feed_concentration=0.0))
    assert model.conversion() == 0


def test_diagnostics_at_initial_state():
    model = ReactorModel(DEFAULT_INITIAL_STATE, DEFAULT_PARAMETERS)
    assert model.conversion() == 0.0
    assert model.residence_time() == pytest.approx(1.0 / 0.09)
    assert model.heat_removal_rate() == pytest.approx(100.0 * 1.0 * 50.0 / 1000)
    k = 1.0 * math.exp(-10000.0 / (8.314 * 350.0))
    assert model.reaction_rate() == pytest.approx(k * 0.5 ** 2)


def test_residence_time_zero_without_outflow():
    init = DEFAULT_INITIAL_STATE.copy()
    init.volume = 0.05  # below Vmin, valve law gives negative flow
    model = ReactorModel(init, DEFAULT_PARAMETERS)
    assert model.outlet_flow() < 0
    assert model.residence_time() == 0.0


def test_zero_volume_propagates_non_finite_values():
    init = DEFAULT_INITIAL_STATE.copy()
    init.volume = 0.0
    model = ReactorModel(init, DEFAULT_PARAMETERS)
    state = model.step()
    values = [state.concentration, state.temperature]
    assert not all(math.isfinite(v) for v in values)
    assert state.time == 0.1


def test_negative_concentration_with_fractional_order_gives_nan():
    init = DEFAULT_INITIAL_STATE.copy()
    init.concentration = -0.1
    model = ReactorModel(init, DEFAULT_PARAMETERS.merge(reaction_order=1.5))
    assert math.isnan(model.reaction_rate())
    state = model.step()
    assert math.isnan(state.concentration)


def _balances_by_hand(V, CA, T, TJ):
    # Reference parameters written out literally.
    F = 0.1 * (V - 0.1)
    r = 1.0 * math.exp(-10000.0 / (8.314 * T)) * CA ** 2.0
    dV = 1.0 - F
    dCA = (1.0 * 0.5 - F * CA - V * r) / V
    dT = (1000.0 * 4.18 * (1.0 * 350.0 - F * T) - 1.0 * V * r - 100.0 * 1.0 * (T - TJ)) / (1000.0 * 4.18 * V)
    dTJ = (0.1 * 1000.0 * 4.18 * (300.0 - TJ) + 100.0 * 1.0 * (T - TJ)) / (1000.0 * 4.18 * 0.1)
    return [dV, dCA, dT, dTJ]


def test_all_four_balances_at_initial_state():
    f = derivatives(DEFAULT_INITIAL_STATE.as_vector(), DEFAULT_PARAMETERS)
    r = math.exp(-10000.0 / (8.314 * 350.0)) * 0.25

    assert f[0] == pytest.approx(0.91, rel=1e-12)
    assert f[1] == pytest.approx(0.5 - 0.09 * 0.5 - r, rel=1e-12)
    # Convective heating, minus reaction heat, minus heat lost to the jacket.
    assert f[2] == pytest.approx((4180.0 * (350.0 - 0.09 * 350.0) - r - 100.0 * 50.0) / 4180.0, rel=1e-12)
    # Jacket inlet equals jacket temperature, so only the heat gained from the reactor remains.
    assert f[3] == pytest.approx((0.1 * 4180.0 * 0.0 + 100.0 * 1.0 * 50.0) / (4180.0 * 0.1), rel=1e-12)
    assert f[3] > 0
    assert list(f) == pytest.approx(_balances_by_hand(1.0, 0.5, 350.0, 300.0), rel=1e-12)


def test_balances_away_from_initial_state():
    y = [2.0, 0.3, 380.0, 310.0]
    f = derivatives(np.array(y), DEFAULT_PARAMETERS)
    assert list(f) == pytest.approx(_balances_by_hand(*y), rel=1e-12)


def test_step_matches_hand_rolled_rk4():
    h = 0.1
    x0 = [1.0, 0.5, 350.0, 300.0]
    k1 = [h * d for d in _balances_by_hand(*x0)]
    k2 = [h * d for d in _balances_by_hand(*[x + k / 2 for x, k in zip(x0, k1)])]
    k3 = [h * d for d in _balances_by_hand(*[x + k / 2 for x, k in zip(x0, k2)])]
    k4 = [h * d for d in _balances_by_hand(*[x + k for x, k in zip(x0, k3)])]
    expected = [x + (a + 2 * b + 2 * c + d) / 6 for x, a, b, c, d in zip(x0, k1, k2, k3, k4)]

    state = ReactorModel(DEFAULT_INITIAL_STATE, DEFAULT_PARAMETERS).step()
    got = [state.volume, state.concentration, state.temperature, state.jacket_temperature]
    assert got == pytest.approx(expected, rel=1e-12)
