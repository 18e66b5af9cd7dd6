"""
Test Suite: NoisySimulator Session Facade
=========================================

End-to-end behaviour of one simulation session:

1. Bell-state preparation through the facade
2. Initial states, identifiers and resource guards
3. Session reset and reproducibility
4. Norm-drift diagnostics (NumericalDrift warnings)
5. Lazy merging as seen from the facade
6. State access and summaries
"""

import warnings

import numpy as np
import pytest

from noisy_qpu import (
    NoisySimulator,
    SimulatorConfig,
    NoiseModel,
    NumericalDrift,
    MalformedInitialState,
    ResourceExhausted,
    InvalidQubit,
    depolarizing,
)


SQ2 = 1 / np.sqrt(2)


@pytest.fixture
def sim() -> NoisySimulator:
    return NoisySimulator(SimulatorConfig.debug(seed=42))


# =============================================================================
# BELL STATE
# =============================================================================

class TestBellState:

    def test_bell_state_and_table(self, sim):
        q0, q1 = sim.init_state(2)
        sim.gate("H", [q0])
        sim.gate("CNOT", [q0, q1])

        np.testing.assert_allclose(sim.full_state(), [SQ2, 0, 0, SQ2], atol=1e-12)
        table = sim.probabilities([q0, q1], top_k=2)
        assert set(table) == {0, 3}
        assert all(p == pytest.approx(0.5) for p in table.values())

    def test_dagger_undoes_gate(self, sim):
        sim.init_state(1)
        sim.gate("H", [0])
        sim.gate("T", [0])
        sim.gate("T", [0], dagger=True)
        sim.gate("H", [0])
        np.testing.assert_allclose(sim.full_state(), [1, 0], atol=1e-12)

    def test_diagonal_through_facade(self, sim):
        sim.init_state(2)
        sim.gate("H", [0])
        sim.gate("H", [1])
        sim.apply_diagonal([0, 1], np.exp(1j * np.array([0, 0.1, 0.2, 0.3])))
        phases = np.angle(sim.full_state() / sim.full_state()[0])
        np.testing.assert_allclose(phases, [0, 0.1, 0.2, 0.3], atol=1e-12)


# =============================================================================
# INITIAL STATES AND RESOURCES
# =============================================================================

class TestInitialisation:

    def test_identifiers_follow_bit_order(self, sim):
        assert sim.init_state(3) == [0, 1, 2]
        sim.gate("X", [2])
        assert abs(sim.full_state()[4]) == pytest.approx(1.0)

    def test_explicit_initial_state(self, sim):
        qubits = sim.init_state(2, np.array([0, 0, 1, 0], dtype=complex))
        assert qubits == [0, 1]
        assert sim.num_stores == 1
        np.testing.assert_allclose(sim.probability_vector([1]), [0, 1])

    @pytest.mark.parametrize("state", [
        np.array([1, 1, 0, 0]),
        np.ones(3) / np.sqrt(3),
    ])
    def test_malformed_initial_state(self, sim, state):
        n = 2 if len(state) == 4 else 1
        with pytest.raises(MalformedInitialState):
            sim.init_state(n, state)

    def test_independent_qubits_may_exceed_max_qubits(self):
        sim = NoisySimulator(SimulatorConfig(seed=0, max_qubits=4))
        assert sim.init_state(6) == list(range(6))
        assert sim.num_stores == 6
        assert sim.allocate_qubits(3) == [6, 7, 8]

        sim.gate("H", [0])
        sim.gate("CNOT", [0, 5])
        assert sim.measure(5) == sim.measure(0)

    def test_merge_past_max_qubits(self):
        sim = NoisySimulator(SimulatorConfig(seed=0, max_qubits=4))
        sim.init_state(5)
        for q in range(3):
            sim.gate("CNOT", [q, q + 1])
        before = sim.store_of(0).amplitudes.copy()

        with pytest.raises(ResourceExhausted):
            sim.gate("CNOT", [3, 4])
        assert sim.num_stores == 2, "A refused merge leaves the partition intact"
        np.testing.assert_allclose(sim.store_of(0).amplitudes, before)

    def test_seeded_state_past_max_qubits(self):
        sim = NoisySimulator(SimulatorConfig(seed=0, max_qubits=4))
        state = np.zeros(32, dtype=complex)
        state[0] = 1.0
        with pytest.raises(ResourceExhausted):
            sim.init_state(5, state)

    def test_full_state_past_max_qubits(self):
        sim = NoisySimulator(SimulatorConfig(seed=0, max_qubits=4))
        sim.init_state(5)
        with pytest.raises(ResourceExhausted):
            sim.full_state()

    def test_resource_exhausted_is_memory_error(self):
        assert issubclass(ResourceExhausted, MemoryError)

    def test_unknown_qubit(self, sim):
        sim.init_state(2)
        with pytest.raises(InvalidQubit):
            sim.gate("H", [5])
        with pytest.raises(InvalidQubit):
            sim.measure(7)
        with pytest.raises(KeyError):
            sim.probabilities([0, 9])


# =============================================================================
# RESET AND REPRODUCIBILITY
# =============================================================================

class TestSessionReset:

    def test_reset_clears_register(self, sim):
        sim.init_state(3)
        sim.reset()
        assert sim.qubits == []
        assert sim.allocate_qubits(1) == [0]

    def test_reset_keeps_random_stream(self, sim):
        sim.init_state(1)
        sim.gate("H", [0])
        sim.measure(0)
        sim.reset()
        assert sim.random.draws == 1

    def test_reset_with_seed_replays(self):
        def trajectory(sim):
            sim.init_state(2)
            sim.gate("H", [0])
            sim.gate("RY", [1], 0.7)
            return [sim.measure(0), sim.measure(1)]

        a = NoisySimulator(SimulatorConfig(seed=5))
        first = trajectory(a)
        trajectory(a)
        a.reset(seed=5)
        assert trajectory(a) == first

    def test_two_sessions_same_seed(self):
        model = NoiseModel({("H", 1): depolarizing(0.5)}, readout_error=0.1)
        results = []
        for _ in range(2):
            sim = NoisySimulator(SimulatorConfig(seed=314), model)
            outcomes = []
            for _ in range(25):
                sim.init_state(1)
                sim.gate("H", [0])
                outcomes.append(sim.measure(0))
            results.append(outcomes)
        assert results[0] == results[1]


# =============================================================================
# NORM DRIFT
# =============================================================================

class TestNumericalDrift:

    def test_drift_warns(self, sim):
        sim.init_state(1)
        sim.store_of(0).amplitudes *= 1.01
        with pytest.warns(NumericalDrift):
            sim.gate("Z", [0])

    def test_check_norms_reports_and_renormalize_fixes(self, sim):
        sim.init_state(2)
        sim.store_of(1).amplitudes *= 2.0

        with pytest.warns(NumericalDrift):
            deviations = sim.check_norms()
        assert deviations[(1,)] == pytest.approx(3.0)
        assert deviations[(0,)] == pytest.approx(0.0)

        sim.renormalize()
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            deviations = sim.check_norms()
        assert max(deviations.values()) < 1e-12

    def test_no_warning_when_checks_disabled(self):
        sim = NoisySimulator(SimulatorConfig.release(seed=0))
        sim.init_state(1)
        sim.store_of(0).amplitudes *= 1.5
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            sim.gate("X", [0])

    def test_long_circuit_stays_within_tolerance(self, sim):
        sim.init_state(3)
        with warnings.catch_warnings():
            warnings.simplefilter("error", NumericalDrift)
            for i in range(300):
                sim.gate("RX", [i % 3], 0.1 * i)
                sim.gate("ISWAP", [i % 3, (i + 1) % 3])
        assert np.linalg.norm(sim.full_state()) == pytest.approx(1.0, abs=1e-9)


# =============================================================================
# LAZY MERGING AND STATE ACCESS
# =============================================================================

class TestLazyMerging:

    def test_stores_merge_only_when_needed(self, sim):
        sim.init_state(4)
        assert sim.num_stores == 4
        sim.gate("H", [0])
        assert sim.num_stores == 4
        sim.gate("CNOT", [0, 1])
        assert sim.num_stores == 3
        sim.gate("CNOT", [2, 3])
        assert sim.num_stores == 2
        sim.gate("CNOT", [1, 2])
        assert sim.num_stores == 1

    def test_full_state_does_not_merge(self, sim):
        sim.init_state(3)
        sim.gate("H", [1])
        state = sim.full_state()
        assert sim.num_stores == 3
        np.testing.assert_allclose(np.abs(state), [SQ2, 0, SQ2, 0, 0, 0, 0, 0], atol=1e-12)


class TestStateAccess:

    def test_measure_detailed(self, sim):
        sim.init_state(1)
        sim.gate("X", [0])
        outcome = sim.measure_detailed(0)
        assert (outcome.qubit, outcome.outcome, outcome.collapsed) == (0, 1, 1)
        assert outcome.probability == pytest.approx(1.0)
        assert not outcome.readout_flipped

    def test_local_state_slices(self, sim):
        partition = sim.init_rank_state(rank=1, rank_count=4, qubit_count=3)
        assert (partition.start, partition.stop) == (2, 4)

        sim.gate("X", [2])
        sim.gate("X", [1])
        np.testing.assert_allclose(np.abs(sim.local_state()), [0, 0])

        sim.init_rank_state(rank=3, rank_count=4, qubit_count=3)
        sim.gate("X", [2])
        sim.gate("X", [1])
        np.testing.assert_allclose(np.abs(sim.local_state()), [1, 0])

    def test_local_state_needs_partition(self, sim):
        sim.init_state(2)
        with pytest.raises(ValueError):
            sim.local_state()

    def test_summary(self, sim):
        sim.init_state(3)
        sim.gate("CNOT", [0, 2])
        text = sim.summary()
        assert "SIMULATOR STATE" in text
        assert "Stores: 2" in text
        assert "0,2" in text
