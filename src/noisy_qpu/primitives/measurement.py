"""
Measurement Engine
==================

Probability queries and sampled single-qubit collapse.

PROBABILITY QUERIES
-------------------

For a subset of qubits (q₀, q₁, ..., q_{m-1}) the marginal probability of
an assignment is the sum of |a|² over every amplitude consistent with it.
The assignment is encoded as the sub-index

    Σⱼ bit(qⱼ) · 2ʲ

so q₀ is the least significant bit. ``probability_vector`` returns all
2^m marginals; ``probabilities`` returns them as a table sorted by
probability (descending, ties by ascending sub-index), optionally cut to
the first ``top_k`` entries. Zero-probability assignments are part of the
table: truncation gives exactly the prefix of the full sorted table.

If the subset spans several stores they are merged first.

SAMPLED COLLAPSE
----------------

    p₀ = Σ |a|² over amplitudes with bit(q) = 0
    u  ~ U[0, 1)                     (one draw)
    outcome = 0 if u < p₀ else 1
    zero every amplitude inconsistent with the outcome, divide by √p

A readout error then may flip the REPORTED bit (one more draw, only if
the flip probability for the collapsed outcome is non-zero). The quantum
state keeps the true outcome.

RESET
-----

Collapse as above (no readout), then if the outcome was 1 move every
amplitude from the bit=1 half into the bit=0 half: the X correction.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence

import numpy as np

from ..constants import ZERO_PROBABILITY
from ..state.amplitude_store import AmplitudeStore
from ..state.partition_registry import PartitionRegistry
from ..state.random_source import RandomSource


@dataclass
class MeasurementOutcome:
    """
    Result of one sampled single-qubit measurement.

    Attributes
    ----------
    qubit : int
        Measured qubit identifier.
    outcome : int
        Reported classical bit (after readout error).
    collapsed : int
        Bit the quantum state actually collapsed to.
    probability : float
        Probability of ``collapsed`` before the measurement.
    """
    qubit: int
    outcome: int
    collapsed: int
    probability: float

    @property
    def readout_flipped(self) -> bool:
        return self.outcome != self.collapsed


class MeasurementEngine:
    """
    Read-only probability queries plus collapse/reset.

    Parameters
    ----------
    registry : PartitionRegistry
    random : RandomSource
        Shared with the noise engine.
    readout_flip : callable, optional
        ``readout_flip(qubit, collapsed_bit) -> float`` giving the chance of
        reporting the opposite bit. Defaults to perfect readout.
    verbose : bool
    """

    def __init__(self, registry: PartitionRegistry, random: RandomSource,
                 readout_flip: Optional[Callable[[int, int], float]] = None,
                 verbose: bool = False):
        self.registry = registry
        self.random = random
        self.readout_flip = readout_flip
        self.verbose = verbose

    # -------------------------------------------------------------------------
    # Probability queries
    # -------------------------------------------------------------------------

    def probability_vector(self, qubits: Sequence[int]) -> np.ndarray:
        """Marginal distribution of length 2^len(qubits)."""
        qubits = list(qubits)
        if len(set(qubits)) != len(qubits):
            raise ValueError(f"Repeated qubit in measurement subset: {qubits}")
        store = self.registry.resolve(qubits)

        index = np.arange(store.size, dtype=np.int64)
        sub_index = np.zeros(store.size, dtype=np.int64)
        for j, bit in enumerate(store.bits_of(qubits)):
            sub_index |= ((index >> bit) & 1) << j

        weights = np.abs(store.amplitudes) ** 2
        return np.bincount(sub_index, weights=weights, minlength=1 << len(qubits))

    def probabilities(self, qubits: Sequence[int],
                      top_k: Optional[int] = None) -> Dict[int, float]:
        """
        Sorted probability table {sub-index: probability}.

        Parameters
        ----------
        qubits : sequence of int
            Subset to marginalise onto.
        top_k : int, optional
            Keep only the first ``top_k`` entries. ``None`` or ``-1`` keeps
            everything.
        """
        if top_k is not None and top_k != -1 and top_k < 1:
            raise ValueError(f"top_k must be a positive integer, -1 or None, got {top_k}")

        vector = self.probability_vector(qubits)
        order = np.lexsort((np.arange(vector.shape[0]), -vector))
        if top_k is not None and top_k != -1:
            order = order[:top_k]
        return {int(i): float(vector[i]) for i in order}

    # -------------------------------------------------------------------------
    # Collapse
    # -------------------------------------------------------------------------

    def _collapse(self, qubit: int):
        """One draw; returns (store, bit position, outcome, probability)."""
        store = self.registry.store_of(qubit)
        bit = store.bit_of(qubit)
        weights = np.abs(store.amplitudes) ** 2
        one = store.bit_mask(bit, 1)
        p1 = float(weights[one].sum())
        p0 = float(weights[~one].sum())
        total = p0 + p1

        u = self.random.uniform()
        outcome = 0 if u < p0 / total else 1
        probability = (p0 if outcome == 0 else p1) / total
        if probability <= ZERO_PROBABILITY:
            outcome = 1 - outcome
            probability = (p0 if outcome == 0 else p1) / total

        keep = one if outcome else ~one
        store.amplitudes[~keep] = 0.0
        store.amplitudes[keep] /= np.sqrt(probability * total)
        return store, bit, outcome, probability

    def measure(self, qubit: int) -> MeasurementOutcome:
        """Collapse ``qubit`` and report a (possibly readout-flipped) bit."""
        store, bit, collapsed, probability = self._collapse(qubit)

        reported = collapsed
        if self.readout_flip is not None:
            flip = self.readout_flip(qubit, collapsed)
            if flip > 0 and self.random.uniform() < flip:
                reported = 1 - collapsed

        if self.verbose:
            note = " (readout flipped)" if reported != collapsed else ""
            print(f"[measure] q{qubit}: {reported}{note}, p={probability:.4f}")
        return MeasurementOutcome(qubit, reported, collapsed, probability)

    def reset(self, qubit: int) -> AmplitudeStore:
        """Force ``qubit`` to |0⟩ by measuring and correcting a 1 outcome."""
        store, bit, outcome, _ = self._collapse(qubit)
        if outcome == 1:
            pairs = store.group_indices([bit])
            store.amplitudes[pairs[0]] = store.amplitudes[pairs[1]]
            store.amplitudes[pairs[1]] = 0.0
        return store
