"""
Gate Primitives
===============

The closed set of gates understood by the engine, the matrices that
implement them, and the ``GateDescriptor`` value handed to the gate engine.

GATE KINDS
----------

Single-qubit:
    I, H, X, Y, Z, S, T        fixed
    P0, P1                     projectors |0⟩⟨0|, |1⟩⟨1| (not unitary)
    U1(θ), U2(φ, λ), U3(θ, φ, λ)
    RX(θ), RY(θ), RZ(θ)        exp(-iθσ/2)
    U                          arbitrary 2×2 supplied by the caller

Two-qubit:
    CNOT, CZ, SWAP, SQISWAP    fixed
    CR(θ)                      controlled phase diag(1, 1, 1, e^{iθ})
    ISWAP(θ=π/2)               exp(iθ(XX+YY)/2)
    U2Q                        arbitrary 4×4 supplied by the caller

Any number of qubits:
    DIAGONAL                   diagonal phase/amplitude pattern

The set is fixed, so it is an Enum dispatched by arity inside one apply
routine rather than a class hierarchy with one subclass per gate.

MATRIX CONVENTION FOR TWO-QUBIT GATES
-------------------------------------

For ``targets=(a, b)`` the 4×4 row/column index is 2·bit(a) + bit(b): the
FIRST target is the most significant bit. So ``CNOT`` with
``targets=(control, target)`` is the textbook matrix

    [[1, 0, 0, 0],
     [0, 1, 0, 0],
     [0, 0, 0, 1],
     [0, 0, 1, 0]]

Padded controlled matrices follow the same rule with the control qubits
in front: a Toffoli can be written as X on one target with two controls,
or as the full 8×8 matrix with ``controls=(c0, c1)``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy.linalg import expm

from ..constants import SQRT2_INV
from ..exceptions import MalformedGate


# =============================================================================
# GATE KINDS
# =============================================================================

class GateKind(Enum):
    I = "I"
    H = "H"
    X = "X"
    Y = "Y"
    Z = "Z"
    S = "S"
    T = "T"
    P0 = "P0"
    P1 = "P1"
    U1 = "U1"
    U2 = "U2"
    U3 = "U3"
    RX = "RX"
    RY = "RY"
    RZ = "RZ"
    U = "U"
    CNOT = "CNOT"
    CZ = "CZ"
    CR = "CR"
    SWAP = "SWAP"
    ISWAP = "ISWAP"
    SQISWAP = "SQISWAP"
    U2Q = "U2Q"
    DIAGONAL = "DIAGONAL"

    @property
    def arity(self) -> Optional[int]:
        """Number of target qubits (None for DIAGONAL, which takes any)."""
        if self is GateKind.DIAGONAL:
            return None
        return 2 if self in _TWO_QUBIT_KINDS else 1

    @property
    def is_unitary(self) -> bool:
        return self not in (GateKind.P0, GateKind.P1)

    @classmethod
    def parse(cls, kind) -> "GateKind":
        """Accept a GateKind or its (case-insensitive) name."""
        if isinstance(kind, cls):
            return kind
        try:
            return cls(str(kind).upper())
        except ValueError:
            raise MalformedGate(f"Unknown gate kind: {kind!r}") from None


_TWO_QUBIT_KINDS = frozenset({
    GateKind.CNOT, GateKind.CZ, GateKind.CR, GateKind.SWAP,
    GateKind.ISWAP, GateKind.SQISWAP, GateKind.U2Q,
})


# =============================================================================
# MATRICES
# =============================================================================

PAULI_I = np.eye(2, dtype=np.complex128)
PAULI_X = np.array([[0, 1], [1, 0]], dtype=np.complex128)
PAULI_Y = np.array([[0, -1j], [1j, 0]], dtype=np.complex128)
PAULI_Z = np.array([[1, 0], [0, -1]], dtype=np.complex128)

_FIXED_MATRICES = {
    GateKind.I: PAULI_I,
    GateKind.H: SQRT2_INV * np.array([[1, 1], [1, -1]], dtype=np.complex128),
    GateKind.X: PAULI_X,
    GateKind.Y: PAULI_Y,
    GateKind.Z: PAULI_Z,
    GateKind.S: np.diag([1, 1j]).astype(np.complex128),
    GateKind.T: np.diag([1, np.exp(1j * np.pi / 4)]).astype(np.complex128),
    GateKind.P0: np.diag([1, 0]).astype(np.complex128),
    GateKind.P1: np.diag([0, 1]).astype(np.complex128),
    GateKind.CNOT: np.array([[1, 0, 0, 0],
                             [0, 1, 0, 0],
                             [0, 0, 0, 1],
                             [0, 0, 1, 0]], dtype=np.complex128),
    GateKind.CZ: np.diag([1, 1, 1, -1]).astype(np.complex128),
    GateKind.SWAP: np.array([[1, 0, 0, 0],
                             [0, 0, 1, 0],
                             [0, 1, 0, 0],
                             [0, 0, 0, 1]], dtype=np.complex128),
}

# Number of scalar parameters per parametrised kind
PARAMETER_COUNTS = {
    GateKind.U1: 1, GateKind.U2: 2, GateKind.U3: 3,
    GateKind.RX: 1, GateKind.RY: 1, GateKind.RZ: 1,
    GateKind.CR: 1,
}


def rotation(axis: np.ndarray, theta: float) -> np.ndarray:
    """exp(-iθσ/2) for a Pauli generator σ."""
    return expm(-0.5j * theta * axis)


def iswap(theta: float = np.pi / 2) -> np.ndarray:
    """exp(iθ(XX+YY)/2): cos θ on the |01⟩,|10⟩ block, i·sin θ off-diagonal."""
    c, s = np.cos(theta), np.sin(theta)
    return np.array([[1, 0, 0, 0],
                     [0, c, 1j * s, 0],
                     [0, 1j * s, c, 0],
                     [0, 0, 0, 1]], dtype=np.complex128)


def gate_matrix(kind, *params) -> np.ndarray:
    """
    Matrix of a gate kind.

    Parameters
    ----------
    kind : GateKind or str
    *params : float or np.ndarray
        Angles for parametrised kinds; the matrix itself for U / U2Q.

    Raises
    ------
    MalformedGate
        Unknown kind, wrong parameter count, or a kind without a fixed
        matrix (DIAGONAL).
    """
    kind = GateKind.parse(kind)

    if kind in (GateKind.U, GateKind.U2Q):
        if len(params) != 1:
            raise MalformedGate(f"{kind.value} takes exactly one matrix argument")
        dim = 2 if kind is GateKind.U else 4
        matrix = np.asarray(params[0], dtype=np.complex128)
        if matrix.shape != (dim, dim):
            raise MalformedGate(
                f"{kind.value} needs a {dim}x{dim} matrix, got shape {matrix.shape}"
            )
        return matrix.copy()

    if kind is GateKind.DIAGONAL:
        raise MalformedGate("DIAGONAL gates are applied through apply_diagonal()")

    if kind is GateKind.ISWAP:
        if len(params) > 1:
            raise MalformedGate(f"ISWAP takes at most one angle, got {len(params)}")
        return iswap(*params)
    if kind is GateKind.SQISWAP:
        _expect_params(kind, params, 0)
        return iswap(np.pi / 4)

    if kind in _FIXED_MATRICES:
        _expect_params(kind, params, 0)
        return _FIXED_MATRICES[kind].copy()

    _expect_params(kind, params, PARAMETER_COUNTS[kind])
    if kind is GateKind.RX:
        return rotation(PAULI_X, params[0])
    if kind is GateKind.RY:
        return rotation(PAULI_Y, params[0])
    if kind is GateKind.RZ:
        return rotation(PAULI_Z, params[0])
    if kind is GateKind.U1:
        return np.diag([1, np.exp(1j * params[0])]).astype(np.complex128)
    if kind is GateKind.CR:
        return np.diag([1, 1, 1, np.exp(1j * params[0])]).astype(np.complex128)
    if kind is GateKind.U2:
        phi, lam = params
        return SQRT2_INV * np.array([[1, -np.exp(1j * lam)],
                                     [np.exp(1j * phi), np.exp(1j * (phi + lam))]],
                                    dtype=np.complex128)
    # U3
    theta, phi, lam = params
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([[c, -np.exp(1j * lam) * s],
                     [np.exp(1j * phi) * s, np.exp(1j * (phi + lam)) * c]],
                    dtype=np.complex128)


def _expect_params(kind: GateKind, params, count: int):
    if len(params) != count:
        raise MalformedGate(
            f"{kind.value} takes {count} parameter(s), got {len(params)}"
        )


# =============================================================================
# GATE DESCRIPTOR
# =============================================================================

@dataclass(frozen=True, eq=False)
class GateDescriptor:
    """
    Everything the engine needs to apply one gate.

    Attributes
    ----------
    kind : GateKind
        Gate kind; also the key for noise-channel lookup.
    targets : tuple of int
        Target qubit identifiers (1 or 2).
    matrix : np.ndarray
        2×2 / 4×4 target matrix, or the padded controlled matrix of
        dimension 2^(len(controls) + len(targets)).
    controls : tuple of int
        Control qubits; the matrix acts only where all of them are 1.
    dagger : bool
        Apply the conjugate transpose of ``matrix`` instead.
    error_rate : float
        Scalar used by ``NoiseModel.rate_profile`` to pick a noise channel
        when the model has no explicit entry for ``kind``.

    Example
    -------
    >>> bell = [GateDescriptor.standard("H", [0]),
    ...         GateDescriptor.standard("CNOT", [0, 1])]
    """
    kind: GateKind
    targets: Tuple[int, ...]
    matrix: np.ndarray
    controls: Tuple[int, ...] = field(default_factory=tuple)
    dagger: bool = False
    error_rate: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "kind", GateKind.parse(self.kind))
        object.__setattr__(self, "targets", tuple(self.targets))
        object.__setattr__(self, "controls", tuple(self.controls))
        object.__setattr__(self, "matrix", np.asarray(self.matrix, dtype=np.complex128))

        if len(self.targets) not in (1, 2):
            raise MalformedGate(
                f"{self.kind.value} acts on 1 or 2 targets, got {len(self.targets)}"
            )
        if self.kind.arity is not None and self.kind.arity != len(self.targets):
            raise MalformedGate(
                f"{self.kind.value} is a {self.kind.arity}-qubit gate, "
                f"got targets {self.targets}"
            )
        touched = self.targets + self.controls
        if len(set(touched)) != len(touched):
            raise MalformedGate(f"Repeated qubit in targets/controls: {touched}")
        if not 0.0 <= self.error_rate <= 1.0:
            raise ValueError(f"error_rate must be in [0, 1], got {self.error_rate}")

    @classmethod
    def standard(cls, kind, targets: Sequence[int], *params,
                 controls: Sequence[int] = (), dagger: bool = False,
                 error_rate: float = 0.0) -> "GateDescriptor":
        """Descriptor for a kind from the built-in gate set."""
        kind = GateKind.parse(kind)
        return cls(kind, tuple(targets), gate_matrix(kind, *params),
                   tuple(controls), dagger, error_rate)

    @classmethod
    def custom(cls, targets: Sequence[int], matrix: np.ndarray,
               controls: Sequence[int] = (), dagger: bool = False,
               error_rate: float = 0.0) -> "GateDescriptor":
        """Descriptor for a caller-supplied matrix (kind U or U2Q)."""
        targets = tuple(targets)
        kind = GateKind.U if len(targets) == 1 else GateKind.U2Q
        return cls(kind, targets, matrix, tuple(controls), dagger, error_rate)

    @property
    def qubits(self) -> Tuple[int, ...]:
        """Targets followed by controls."""
        return self.targets + self.controls

    def adjoint(self) -> "GateDescriptor":
        """The inverse gate (flips ``dagger``)."""
        return GateDescriptor(self.kind, self.targets, self.matrix, self.controls,
                              not self.dagger, self.error_rate)

    def target_matrix(self) -> np.ndarray:
        """
        The 2^m × 2^m matrix acting on the targets, adjoint applied.

        A padded controlled matrix is reduced to its trailing block after
        checking that every other block is the identity.

        Raises
        ------
        MalformedGate
            Dimension matches neither the target count nor the padded form.
        """
        m = len(self.targets)
        dim = 1 << m
        matrix = self.matrix
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise MalformedGate(f"Gate matrix must be square, got shape {matrix.shape}")

        if matrix.shape[0] != dim:
            padded = 1 << (m + len(self.controls))
            if not self.controls or matrix.shape[0] != padded:
                raise MalformedGate(
                    f"{self.kind.value} on {m} target(s) needs a {dim}x{dim} matrix"
                    + (f" (or {padded}x{padded} padded)" if self.controls else "")
                    + f", got {matrix.shape[0]}x{matrix.shape[1]}"
                )
            block = matrix[padded - dim:, padded - dim:]
            expected = np.eye(padded, dtype=np.complex128)
            expected[padded - dim:, padded - dim:] = block
            if not np.allclose(matrix, expected):
                raise MalformedGate(
                    "Padded controlled matrix is not the identity outside its target block"
                )
            matrix = block

        return matrix.conj().T if self.dagger else matrix
