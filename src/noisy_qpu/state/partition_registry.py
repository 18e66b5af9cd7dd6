"""
Partition Registry
==================

Tracks which amplitude store currently owns each allocated qubit. This is
the lazy entanglement-tracking structure of the engine.

WHY NOT ONE BIG STATE VECTOR?
-----------------------------

A 20-qubit register simulated as one vector costs 2^20 amplitudes even if
the circuit only ever entangles pairs of neighbours. Keeping each group of
interacting qubits in its own store costs Σ 2^kᵢ instead of 2^Σkᵢ.

Qubits start out in their own 1-qubit stores. When an operation spans
several stores, ``resolve`` replaces them by their tensor product:

    store A: qubits [0]     a = (a0, a1)
    store B: qubits [1]     b = (b0, b1)

    resolve([0, 1]) → store AB: qubits [0, 1], amplitudes B ⊗ A
                            = (a0 b0, a1 b0, a0 b1, a1 b1)

Merges are monotonic. Two qubits that once shared a store are never split
again, even if a later operation disentangles them: exact decomposition
would need a Schmidt decomposition after every gate.

INVARIANTS
----------

- every allocated identifier maps to exactly one store
- the stores' qubit lists are disjoint and cover all allocated identifiers
- identifiers are never reused while the registry is alive (``clear`` does
  not rewind the counter)
"""

from functools import reduce
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from ..constants import DEFAULT_MAX_QUBITS, NORM_ATOL
from ..exceptions import InvalidQubit, MalformedInitialState, ResourceExhausted
from ..utils.math_utils import is_power_of_two, permute_qubits
from .amplitude_store import AmplitudeStore


class PartitionRegistry:
    """
    Mapping qubit identifier → owning AmplitudeStore.

    Parameters
    ----------
    max_qubits : int
        Largest store the registry is allowed to build.
    norm_atol : float
        Tolerance for seeding a store from an explicit initial state.
    verbose : bool
        Print a line for every merge.
    """

    def __init__(self, max_qubits: int = DEFAULT_MAX_QUBITS,
                 norm_atol: float = NORM_ATOL, verbose: bool = False):
        self.max_qubits = max_qubits
        self.norm_atol = norm_atol
        self.verbose = verbose
        self._owner: Dict[int, AmplitudeStore] = {}
        self._next_id = 0

    # -------------------------------------------------------------------------
    # Allocation
    # -------------------------------------------------------------------------

    def allocate(self, count: int = 1, state: Optional[np.ndarray] = None) -> List[int]:
        """
        Allocate ``count`` fresh qubit identifiers.

        Without ``state`` every qubit gets its own 1-qubit store in |0⟩.
        With ``state`` all of them share one store seeded from the vector;
        the i-th new identifier occupies bit i.

        Raises
        ------
        MalformedInitialState
            ``state`` is not of length 2^count, or not normalised.
        ResourceExhausted
            ``count`` exceeds ``max_qubits`` for a seeded store.
        """
        if count < 0:
            raise ValueError(f"Cannot allocate {count} qubits")

        if state is not None:
            state = np.asarray(state, dtype=np.complex128).reshape(-1)
            length = state.shape[0]
            if not is_power_of_two(length):
                raise MalformedInitialState(
                    f"Initial state length {length} is not a power of two"
                )
            if length != 1 << count:
                raise MalformedInitialState(
                    f"Initial state of length {length} does not match {count} qubits "
                    f"(expected {1 << count})"
                )
            norm2 = float(np.vdot(state, state).real)
            if abs(norm2 - 1.0) > self.norm_atol:
                raise MalformedInitialState(
                    f"Initial state has squared norm {norm2:.8f}, expected 1"
                )
            if count > self.max_qubits:
                raise ResourceExhausted(
                    f"{count} qubits exceeds max_qubits={self.max_qubits}"
                )

        ids = list(range(self._next_id, self._next_id + count))
        self._next_id += count

        if state is not None:
            store = AmplitudeStore(ids, state.copy())
            for q in ids:
                self._owner[q] = store
        else:
            for q in ids:
                self._owner[q] = AmplitudeStore([q])
        return ids

    def clear(self):
        """Drop every store (identifiers already handed out stay retired)."""
        self._owner.clear()

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @property
    def qubits(self) -> List[int]:
        return sorted(self._owner)

    def __contains__(self, qubit) -> bool:
        return qubit in self._owner

    def __len__(self) -> int:
        return len(self._owner)

    def check(self, qubits: Iterable[int]):
        """Raise InvalidQubit for the first unknown identifier."""
        for q in qubits:
            if isinstance(q, bool) or not isinstance(q, (int, np.integer)) or q not in self._owner:
                raise InvalidQubit(q)

    def store_of(self, qubit: int) -> AmplitudeStore:
        self.check([qubit])
        return self._owner[qubit]

    def stores(self) -> List[AmplitudeStore]:
        """Distinct stores, ordered by their lowest qubit identifier."""
        seen = {}
        for q in sorted(self._owner):
            store = self._owner[q]
            seen.setdefault(id(store), store)
        return list(seen.values())

    # -------------------------------------------------------------------------
    # Merge
    # -------------------------------------------------------------------------

    def resolve(self, qubits: Sequence[int]) -> AmplitudeStore:
        """
        Single store covering all ``qubits``, merging stores if needed.

        Distinct stores are combined in order of first appearance in
        ``qubits``; each later store goes onto higher bits, so every
        store's internal bit ordering is preserved. The registry entries
        are swapped only once the product has been built.
        """
        qubits = list(qubits)
        if not qubits:
            raise ValueError("resolve() needs at least one qubit")
        self.check(qubits)

        involved: List[AmplitudeStore] = []
        for q in qubits:
            store = self._owner[q]
            if not any(store is s for s in involved):
                involved.append(store)
        if len(involved) == 1:
            return involved[0]

        total = sum(s.num_qubits for s in involved)
        if total > self.max_qubits:
            raise ResourceExhausted(
                f"Merging {len(involved)} stores gives {total} qubits, "
                f"exceeds max_qubits={self.max_qubits}"
            )

        merged = reduce(lambda low, high: low.kron(high), involved)
        for q in merged.qubits:
            self._owner[q] = merged

        if self.verbose:
            sizes = " + ".join(str(s.num_qubits) for s in involved)
            print(f"[merge] {sizes} → {total} qubits {merged.qubits}")
        return merged

    # -------------------------------------------------------------------------
    # Global view
    # -------------------------------------------------------------------------

    def full_state(self, order: Optional[Sequence[int]] = None) -> np.ndarray:
        """
        Amplitudes of the whole register, without merging the registry.

        ``order`` lists identifiers by global bit position (default: sorted
        identifiers, so identifier ``order[i]`` is bit i). Costs 2^n memory.
        """
        order = list(order) if order is not None else self.qubits
        if sorted(order) != self.qubits:
            raise InvalidQubit(order, "order must list every allocated qubit exactly once")
        if not order:
            return np.ones(1, dtype=np.complex128)
        if len(order) > self.max_qubits:
            raise ResourceExhausted(
                f"Full state of {len(order)} qubits exceeds max_qubits={self.max_qubits}"
            )
        combined = reduce(lambda low, high: low.kron(high), self.stores())
        return permute_qubits(combined.amplitudes, combined.qubits, order)
