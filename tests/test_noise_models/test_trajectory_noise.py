"""
Test Suite: Stochastic Trajectory Noise
=======================================

Verifies the quantum-jump application of Kraus channels:

1. Branch selection: inverse CDF, zero-weight branches never chosen
2. Deterministic channels (p = 0, p = 1)
3. Placement of the channel relative to the paired unitary
4. Draw accounting and reproducibility
5. Ensemble average over trajectories vs. exact QuTiP evolution
"""

import numpy as np
import pytest
from scipy import stats

from noisy_qpu import (
    NoisySimulator,
    SimulatorConfig,
    NoiseChannel,
    NoiseModel,
    NoisePlacement,
    GateDescriptor,
    IncompleteNoiseChannel,
    InvalidQubit,
    MalformedGate,
    NonUnitaryGate,
    bit_flip,
    depolarizing,
    two_qubit_depolarizing,
    amplitude_damping,
)
from noisy_qpu.noise_models import select_branch
from noisy_qpu.primitives import PAULI_I, PAULI_X


def fresh(num_qubits: int = 1, seed: int = 0, noise_model=None, **config) -> NoisySimulator:
    sim = NoisySimulator(SimulatorConfig(seed=seed, **config), noise_model)
    sim.init_state(num_qubits)
    return sim


# =============================================================================
# BRANCH SELECTION
# =============================================================================

class TestSelectBranch:

    @pytest.mark.parametrize("probabilities, u, expected", [
        ([0.5, 0.5], 0.0, 0),
        ([0.5, 0.5], 0.49, 0),
        ([0.5, 0.5], 0.5, 1),
        ([0.0, 1.0], 0.0, 1),
        ([0.2, 0.0, 0.8], 0.2, 2),
        ([1.0, 0.0], 0.999999, 0),
    ])
    def test_inverse_cdf(self, probabilities, u, expected):
        assert select_branch(probabilities, u) == expected

    def test_rounding_falls_back_to_last_nonzero_branch(self):
        assert select_branch([0.3, 0.6999999, 0.0], 0.99999999) == 1

    def test_all_zero(self):
        with pytest.raises(IncompleteNoiseChannel):
            select_branch([0.0, 0.0], 0.3)


# =============================================================================
# DETERMINISTIC CHANNELS
# =============================================================================

class TestDeterministicChannels:

    @pytest.mark.parametrize("seed", range(10))
    def test_certain_bit_flip_always_measures_one(self, seed):
        sim = fresh(seed=seed)
        index = sim.apply_channel(bit_flip(1.0), [0])

        assert index == 1
        assert sim.measure(0) == 1

    @pytest.mark.parametrize("seed", range(10))
    def test_zero_probability_flip_is_identity(self, seed):
        sim = fresh(seed=seed)
        assert sim.apply_channel(bit_flip(0.0), [0]) == 0
        np.testing.assert_allclose(sim.full_state(), [1, 0])
        assert sim.random.draws == 1, "A p = 0 channel still consumes its draw"

    def test_two_qubit_channel_uses_first_target_as_high_bit(self):
        sim = fresh(num_qubits=2)
        x_on_first = NoiseChannel([np.kron(PAULI_X, PAULI_I)], name="x_first")
        sim.apply_channel(x_on_first, [1, 0])
        np.testing.assert_allclose(np.abs(sim.full_state()), [0, 0, 1, 0])

    def test_channel_on_entangled_qubit_keeps_norm(self):
        sim = fresh(num_qubits=2, seed=3)
        sim.gate("H", [0])
        sim.gate("CNOT", [0, 1])
        sim.apply_channel(amplitude_damping(0.5), [1])
        assert np.linalg.norm(sim.full_state()) == pytest.approx(1.0)


# =============================================================================
# PLACEMENT
# =============================================================================

class TestPlacement:

    @pytest.mark.parametrize("placement, expected", [
        (NoisePlacement.AFTER, [1, 0]),     # X then decay
        (NoisePlacement.BEFORE, [0, 1]),    # decay of |0⟩ then X
        (NoisePlacement.REPLACE, [1, 0]),   # decay only
    ])
    def test_placement_order(self, placement, expected):
        sim = fresh()
        channel = amplitude_damping(1.0, placement=placement)
        sim.apply_noisy_gate(GateDescriptor.standard("X", [0]), channel)
        np.testing.assert_allclose(np.abs(sim.full_state()), expected, atol=1e-12)

    def test_noise_on_targets_only(self):
        sim = fresh(num_qubits=2)
        sim.gate("X", [0])
        selected = sim.apply_noisy_gate(
            GateDescriptor.standard("X", [1], controls=[0]), bit_flip(1.0)
        )
        assert selected == [1]
        np.testing.assert_allclose(sim.probability_vector([0, 1]), [0, 1, 0, 0])


# =============================================================================
# DRAW ACCOUNTING AND ERRORS
# =============================================================================

class TestDrawAccounting:

    def test_single_qubit_channel_per_target(self):
        sim = fresh(num_qubits=2)
        selected = sim.apply_noisy_gate(GateDescriptor.standard("CNOT", [0, 1]), bit_flip(0.0))
        assert selected == [0, 0]
        assert sim.random.draws == 2

    def test_two_qubit_channel_single_draw(self):
        sim = fresh(num_qubits=2)
        sim.apply_noisy_gate(GateDescriptor.standard("CNOT", [0, 1]),
                             two_qubit_depolarizing(0.1))
        assert sim.random.draws == 1

    def test_noiseless_gate_draws_nothing(self):
        sim = fresh(num_qubits=2)
        assert sim.gate("H", [0]) == []
        assert sim.gate("CNOT", [0, 1]) == []
        assert sim.random.draws == 0

    def test_arity_mismatch(self):
        sim = fresh(num_qubits=2)
        with pytest.raises(MalformedGate):
            sim.apply_noisy_gate(GateDescriptor.standard("X", [0]), two_qubit_depolarizing(0.1))
        with pytest.raises(MalformedGate):
            sim.apply_channel(two_qubit_depolarizing(0.1), [0])

    def test_unknown_qubit(self):
        sim = fresh()
        with pytest.raises(InvalidQubit):
            sim.apply_channel(bit_flip(0.1), [4])

    def test_incomplete_on_state_leaves_it_untouched(self):
        sim = fresh(seed=1)
        sim.gate("H", [0])
        loose = NoiseChannel([np.sqrt(0.5) * np.eye(2)], atol=1.0)
        before = sim.full_state()

        with pytest.raises(IncompleteNoiseChannel):
            sim.apply_channel(loose, [0])

        np.testing.assert_allclose(sim.full_state(), before)
        assert sim.random.draws == 0

    def test_invalid_gate_rejected_before_noise(self):
        sim = fresh(validate_unitarity=True)
        shear = GateDescriptor.custom([0], np.array([[1, 1], [0, 1]]))
        with pytest.raises(NonUnitaryGate):
            sim.apply_noisy_gate(shear, bit_flip(1.0, placement=NoisePlacement.BEFORE))

        np.testing.assert_allclose(sim.full_state(), [1, 0])
        assert sim.random.draws == 0


class TestNoiseModelIntegration:

    def test_model_channel_applied_by_gate(self):
        sim = fresh(noise_model=NoiseModel({("X", 1): bit_flip(1.0)}))
        assert sim.gate("X", [0]) == [1]
        assert sim.measure(0) == 0, "X followed by a certain flip returns to |0⟩"

    def test_rate_profile_uses_error_rate(self):
        model = NoiseModel(rate_profile=lambda p, n: bit_flip(p))
        sim = fresh(noise_model=model)

        assert sim.gate("I", [0]) == []
        assert sim.gate("I", [0], error_rate=1.0) == [1]
        assert sim.measure(0) == 1

    def test_same_seed_same_trajectory(self):
        model = NoiseModel({("H", 1): depolarizing(0.3),
                            ("CNOT", 2): two_qubit_depolarizing(0.2)})

        def run(seed):
            sim = fresh(num_qubits=3, seed=seed, noise_model=model)
            branches = []
            for _ in range(10):
                branches += sim.gate("H", [0])
                branches += sim.gate("CNOT", [0, 1])
                branches += sim.gate("CNOT", [1, 2])
            outcomes = [sim.measure(q) for q in range(3)]
            return branches, outcomes, sim.full_state()

        b1, o1, s1 = run(77)
        b2, o2, s2 = run(77)
        assert b1 == b2 and o1 == o2
        np.testing.assert_array_equal(s1, s2)


# =============================================================================
# ENSEMBLE STATISTICS
# =============================================================================

class TestEnsembleAverage:

    def test_amplitude_damping_matches_exact_channel(self):
        channel = amplitude_damping(0.4)
        sim = NoisySimulator(SimulatorConfig(seed=2024))
        trajectories = 4000

        rho = np.zeros((2, 2), dtype=complex)
        for _ in range(trajectories):
            sim.init_state(1)
            sim.gate("H", [0])
            sim.apply_channel(channel, [0])
            psi = sim.full_state()
            rho += np.outer(psi, psi.conj())
        rho /= trajectories

        exact = channel.evolve_density_matrix(0.5 * np.ones((2, 2)))
        np.testing.assert_allclose(rho, exact, atol=0.04)

    def test_bit_flip_rate(self):
        p = 0.3
        sim = NoisySimulator(SimulatorConfig(seed=99))
        trials = 2000
        flips = 0
        for _ in range(trials):
            sim.init_state(1)
            flips += sim.apply_channel(bit_flip(p), [0])

        assert stats.binomtest(flips, trials, p).pvalue > 1e-4
