"""
Noisy State-Vector Simulator
============================

The session facade. One ``NoisySimulator`` owns:

- a PartitionRegistry with its amplitude stores
- a RandomSource (seeded from ``SimulatorConfig.seed``)
- a GateEngine, a TrajectoryNoiseEngine and a MeasurementEngine wired to
  the registry and the random source
- a NoiseModel used for channel lookup and readout error

Operations are synchronous and must be issued one at a time per session;
the facade does no locking. Everything stochastic goes through the
session's RandomSource, so two sessions with the same seed and the same
operation sequence produce identical outcomes and states.

Typical use
-----------

    >>> sim = NoisySimulator(SimulatorConfig(seed=1))
    >>> q0, q1 = sim.init_state(2)
    >>> sim.gate("H", [q0])
    >>> sim.gate("CNOT", [q0, q1])
    >>> sim.probabilities([q0, q1])
    {0: 0.5, 3: 0.5, 1: 0.0, 2: 0.0}

Noisy trajectories
------------------

    >>> model = NoiseModel({("X", 1): bit_flip(0.01)}, readout_error=0.02)
    >>> sim = NoisySimulator(SimulatorConfig(seed=7), model)

Each run of a circuit is ONE trajectory. Ensemble quantities (averaged
populations, error rates) require many runs, e.g. with ``reset()``
between them, aggregated by the caller.
"""

import warnings
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..configurations import SimulatorConfig
from ..exceptions import NumericalDrift
from ..noise_models.channels import NoiseChannel, NoiseModel
from ..noise_models.trajectory import TrajectoryNoiseEngine
from ..primitives.gate_engine import GateEngine
from ..primitives.gates import GateDescriptor
from ..primitives.measurement import MeasurementEngine, MeasurementOutcome
from ..state.amplitude_store import AmplitudeStore
from ..state.partition_registry import PartitionRegistry
from ..state.random_source import RandomSource
from .distributed import RankPartition


class NoisySimulator:
    """
    Simulation session: allocation, gates, noise, measurement.

    Parameters
    ----------
    config : SimulatorConfig, optional
        Engine settings. Defaults to ``SimulatorConfig()``.
    noise_model : NoiseModel, optional
        Channel lookup and readout error. Defaults to a noiseless model.
    """

    def __init__(self, config: Optional[SimulatorConfig] = None,
                 noise_model: Optional[NoiseModel] = None):
        self.config = config if config is not None else SimulatorConfig()
        self.noise_model = noise_model if noise_model is not None else NoiseModel()
        self.random = RandomSource(self.config.seed)
        self.partition: Optional[RankPartition] = None
        self._build_engines()

    def _build_engines(self):
        self.registry = PartitionRegistry(
            max_qubits=self.config.max_qubits,
            norm_atol=self.config.norm_atol,
            verbose=self.config.verbose,
        )
        self.gate_engine = GateEngine(self.registry, self.config)
        self.noise_engine = TrajectoryNoiseEngine(
            self.registry, self.random, self.gate_engine, self.config
        )
        self.measurement_engine = MeasurementEngine(
            self.registry, self.random, self._readout_flip, self.config.verbose
        )

    def _readout_flip(self, qubit: int, collapsed: int) -> float:
        return self.noise_model.readout_error_for(qubit).flip_probability(collapsed)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def reset(self, seed: Optional[int] = None):
        """
        Destroy every store and rewind qubit numbering.

        The random stream continues unless ``seed`` is given, so repeated
        trajectories after ``reset()`` are independent.
        """
        if seed is not None:
            self.random.reseed(seed)
        self.partition = None
        self._build_engines()

    def allocate_qubits(self, count: int = 1) -> List[int]:
        """
        Add ``count`` qubits, each in its own |0⟩ store.

        The register may exceed ``max_qubits``: the cap applies to single
        stores (merges, seeded states) and to ``full_state()``.
        """
        return self.registry.allocate(count)

    def init_state(self, qubit_count: int, state: Optional[np.ndarray] = None) -> List[int]:
        """
        Reset and allocate ``qubit_count`` qubits (identifiers 0..n-1).

        ``state`` (length 2^n, identifier i on bit i) seeds one shared store;
        otherwise every qubit starts in its own |0⟩ store.
        """
        self.reset()
        if state is None:
            return self.allocate_qubits(qubit_count)
        return self.registry.allocate(qubit_count, state)

    def init_rank_state(self, rank: int, rank_count: int, qubit_count: int) -> RankPartition:
        """Initialise |0...0⟩ and record which global slice this rank owns."""
        partition = RankPartition(rank, rank_count, qubit_count)
        self.init_state(qubit_count)
        self.partition = partition
        return partition

    @property
    def qubits(self) -> List[int]:
        return self.registry.qubits

    @property
    def num_stores(self) -> int:
        return len(self.registry.stores())

    def store_of(self, qubit: int) -> AmplitudeStore:
        return self.registry.store_of(qubit)

    # =========================================================================
    # GATES
    # =========================================================================

    def apply_gate(self, gate: GateDescriptor):
        """Apply the unitary part of ``gate`` only (no noise lookup)."""
        store = self.gate_engine.apply(gate)
        self._check_drift(store)

    def apply_noisy_gate(self, gate: GateDescriptor,
                         channel: Optional[NoiseChannel] = None) -> List[int]:
        """
        Apply ``gate`` with ``channel`` (or the noise model's channel for it).

        Returns the selected Kraus index per channel application; an empty
        list if no channel applies and the gate ran noiselessly.
        """
        if channel is None:
            channel = self.noise_model.channel_for(gate)
        if channel is None:
            self.apply_gate(gate)
            return []
        selected = self.noise_engine.apply_noisy(gate, channel)
        self._check_drift(self.registry.store_of(gate.targets[0]))
        return selected

    def gate(self, kind, targets: Sequence[int], *params,
             controls: Sequence[int] = (), dagger: bool = False,
             error_rate: float = 0.0) -> List[int]:
        """Build a standard gate and apply it with whatever noise the model pairs with it."""
        descriptor = GateDescriptor.standard(kind, targets, *params, controls=controls,
                                             dagger=dagger, error_rate=error_rate)
        return self.apply_noisy_gate(descriptor)

    def apply_diagonal(self, qubits: Sequence[int], diagonal: np.ndarray,
                       controls: Sequence[int] = (), dagger: bool = False):
        store = self.gate_engine.apply_diagonal(qubits, diagonal, controls, dagger)
        self._check_drift(store)

    def apply_channel(self, channel: NoiseChannel, qubits: Sequence[int]) -> int:
        """Apply a channel on its own (idle noise, state-preparation error)."""
        index = self.noise_engine.apply_channel(channel, qubits)
        self._check_drift(self.registry.store_of(qubits[0]))
        return index

    # =========================================================================
    # MEASUREMENT
    # =========================================================================

    def measure(self, qubit: int) -> int:
        return self.measure_detailed(qubit).outcome

    def measure_detailed(self, qubit: int) -> MeasurementOutcome:
        outcome = self.measurement_engine.measure(qubit)
        self._check_drift(self.registry.store_of(qubit))
        return outcome

    def probabilities(self, qubits: Sequence[int],
                      top_k: Optional[int] = None) -> Dict[int, float]:
        return self.measurement_engine.probabilities(qubits, top_k)

    def probability_vector(self, qubits: Sequence[int]) -> np.ndarray:
        return self.measurement_engine.probability_vector(qubits)

    def reset_qubit(self, qubit: int):
        store = self.measurement_engine.reset(qubit)
        self._check_drift(store)

    # =========================================================================
    # STATE ACCESS (debug / testing)
    # =========================================================================

    def full_state(self) -> np.ndarray:
        """Global amplitude vector, identifier order = bit order. Costs 2^n."""
        return self.registry.full_state()

    def local_state(self) -> np.ndarray:
        """This rank's slice of ``full_state()``."""
        if self.partition is None:
            raise ValueError("local_state() needs init_rank_state() first")
        return self.full_state()[self.partition.as_slice()]

    # =========================================================================
    # NORM BOOKKEEPING
    # =========================================================================

    def _check_drift(self, store: AmplitudeStore):
        if not self.config.check_norm:
            return
        deviation = abs(store.norm_squared() - 1.0)
        if deviation > self.config.norm_atol:
            warnings.warn(
                f"Store {store.qubits} has squared norm off by {deviation:.3e} "
                f"(tolerance {self.config.norm_atol:.1e}); call renormalize()",
                NumericalDrift,
            )

    def check_norms(self) -> Dict[Tuple[int, ...], float]:
        """Deviation |‖ψ‖² - 1| per store, warning for each one out of tolerance."""
        deviations = {}
        for store in self.registry.stores():
            deviations[tuple(store.qubits)] = abs(store.norm_squared() - 1.0)
            if deviations[tuple(store.qubits)] > self.config.norm_atol:
                warnings.warn(
                    f"Store {store.qubits} has drifted by "
                    f"{deviations[tuple(store.qubits)]:.3e}",
                    NumericalDrift,
                )
        return deviations

    def renormalize(self):
        """Rescale every store to unit norm."""
        for store in self.registry.stores():
            store.normalize()

    def summary(self) -> str:
        lines = [
            "=" * 60,
            "SIMULATOR STATE",
            "=" * 60,
            f"{'Store':<8} {'Qubits':<30} {'Size':<10} {'|ψ|²'}",
            "-" * 60,
        ]
        for i, store in enumerate(self.registry.stores()):
            qubits = ",".join(str(q) for q in store.qubits)
            lines.append(f"{i:<8} {qubits:<30} {store.size:<10} {store.norm_squared():.8f}")
        lines.extend([
            "-" * 60,
            f"Qubits: {len(self.registry)}   Stores: {self.num_stores}   "
            f"Random draws: {self.random.draws}",
        ])
        if self.partition is not None:
            lines.append(f"Rank {self.partition.rank}/{self.partition.rank_count}: "
                         f"[{self.partition.start}, {self.partition.stop})")
        lines.append("=" * 60)
        return "\n".join(lines)
