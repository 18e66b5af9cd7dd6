"""
Amplitude Store
===============

One amplitude store holds the state vector of one maximal subsystem of
qubits that have (possibly) become entangled. It is a plain container:

    amplitudes : complex128 array of length 2^k
    qubits     : list of the k qubit identifiers, by bit position

The identifier at ``qubits[i]`` occupies bit i of the linear index, so for
a store with ``qubits == [3, 7]``:

    index 0 = |q7=0, q3=0⟩
    index 1 = |q7=0, q3=1⟩
    index 2 = |q7=1, q3=0⟩
    index 3 = |q7=1, q3=1⟩

Stores never refer back to the registry that owns them; the registry maps
qubits to stores, never the other way round.

Group indexing
--------------
Gates, Kraus operators and projectors all act on a few target bits. The
amplitudes they mix form disjoint groups of 2^m indices that differ only in
the target bits. ``group_indices`` returns these groups as a (2^m, N) index
array, row r holding the member whose target bits spell r (first target is
the most significant bit of r). A matrix M then acts on every group at once:

    amps[groups] = M @ amps[groups]

Each amplitude appears in at most one group, so the update is free of data
hazards and numpy executes it as one vectorised operation.
"""

from typing import Iterable, List, Optional, Sequence

import numpy as np

from ..constants import AMPLITUDE_DTYPE, BYTES_PER_AMPLITUDE
from ..exceptions import InvalidQubit, ResourceExhausted


def allocate_amplitudes(num_qubits: int) -> np.ndarray:
    """Zero-filled amplitude buffer, translating allocation failure."""
    try:
        return np.zeros(1 << num_qubits, dtype=AMPLITUDE_DTYPE)
    except (MemoryError, ValueError) as exc:
        gib = (1 << num_qubits) * BYTES_PER_AMPLITUDE / 1024 ** 3
        raise ResourceExhausted(
            f"Cannot allocate {num_qubits}-qubit amplitude buffer ({gib:.1f} GiB)"
        ) from exc


class AmplitudeStore:
    """
    State vector of one subsystem.

    Parameters
    ----------
    qubits : sequence of int
        Qubit identifiers by bit position.
    amplitudes : np.ndarray, optional
        Initial amplitudes of length 2^len(qubits). Defaults to |0...0⟩.
    """

    def __init__(self, qubits: Sequence[int], amplitudes: Optional[np.ndarray] = None):
        self.qubits: List[int] = list(qubits)
        if amplitudes is None:
            amplitudes = allocate_amplitudes(len(self.qubits))
            amplitudes[0] = 1.0
        else:
            amplitudes = np.asarray(amplitudes, dtype=AMPLITUDE_DTYPE)
        if amplitudes.shape != (1 << len(self.qubits),):
            raise ValueError(
                f"{len(self.qubits)} qubits need {1 << len(self.qubits)} amplitudes, "
                f"got shape {amplitudes.shape}"
            )
        self.amplitudes = amplitudes

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    @property
    def num_qubits(self) -> int:
        return len(self.qubits)

    @property
    def size(self) -> int:
        return self.amplitudes.shape[0]

    def bit_of(self, qubit: int) -> int:
        """Bit position of ``qubit`` inside this store."""
        try:
            return self.qubits.index(qubit)
        except ValueError:
            raise InvalidQubit(qubit, f"Qubit {qubit} is not held by this store") from None

    def bits_of(self, qubits: Iterable[int]) -> List[int]:
        return [self.bit_of(q) for q in qubits]

    def group_indices(self, target_bits: Sequence[int],
                      control_bits: Sequence[int] = ()) -> np.ndarray:
        """
        Disjoint index groups differing only in ``target_bits``.

        Only groups whose control bits are all 1 are returned; amplitudes
        outside them are untouched by whatever acts on the groups.

        Returns
        -------
        np.ndarray
            Integer array of shape (2^m, N), m = len(target_bits).
        """
        index = np.arange(self.size, dtype=np.int64)
        target_mask = 0
        for bit in target_bits:
            target_mask |= 1 << bit
        base = index[(index & target_mask) == 0]

        if control_bits:
            control_mask = 0
            for bit in control_bits:
                control_mask |= 1 << bit
            base = base[(base & control_mask) == control_mask]

        m = len(target_bits)
        rows = []
        for row in range(1 << m):
            offset = 0
            for j, bit in enumerate(target_bits):
                if (row >> (m - 1 - j)) & 1:
                    offset |= 1 << bit
            rows.append(base | offset)
        return np.stack(rows)

    def bit_mask(self, bit: int, value: int) -> np.ndarray:
        """Boolean mask of indices whose ``bit`` equals ``value``."""
        index = np.arange(self.size, dtype=np.int64)
        return ((index >> bit) & 1) == value

    # -------------------------------------------------------------------------
    # Amplitude operations
    # -------------------------------------------------------------------------

    def apply_matrix(self, matrix: np.ndarray, target_bits: Sequence[int],
                     control_bits: Sequence[int] = ()):
        """In-place amps[groups] = matrix @ amps[groups]."""
        groups = self.group_indices(target_bits, control_bits)
        self.amplitudes[groups] = matrix @ self.amplitudes[groups]

    def norm_squared(self) -> float:
        return float(np.vdot(self.amplitudes, self.amplitudes).real)

    def normalize(self) -> float:
        """Divide by the norm; returns the squared norm before scaling."""
        norm2 = self.norm_squared()
        if norm2 <= 0.0:
            raise ValueError("Cannot normalise a zero vector")
        self.amplitudes /= np.sqrt(norm2)
        return norm2

    def kron(self, other: "AmplitudeStore") -> "AmplitudeStore":
        """
        Tensor product with ``other`` placed on the HIGH bits.

        The result keeps both internal bit orderings: this store's qubits
        stay at bits 0..k-1 and ``other``'s follow at k..k+j-1, which is
        exactly what ``np.kron(other, self)`` produces.
        """
        try:
            amplitudes = np.kron(other.amplitudes, self.amplitudes)
        except MemoryError as exc:
            raise ResourceExhausted(
                f"Cannot merge stores of {self.num_qubits} and {other.num_qubits} qubits"
            ) from exc
        return AmplitudeStore(self.qubits + other.qubits, amplitudes)

    def __repr__(self):
        return f"AmplitudeStore(qubits={self.qubits}, norm²={self.norm_squared():.6f})"
