"""
Kraus Channels and Noise Models
===============================

A noisy gate is modelled as a quantum channel in operator-sum form:

    ρ → Σᵢ Kᵢ ρ Kᵢ†

with the completeness (trace-preservation) condition

    Σᵢ Kᵢ† Kᵢ = I

The engine never builds ρ. It follows one stochastic trajectory instead
(see ``trajectory.py``), which is only a correct unravelling of the
channel if completeness holds, so ``NoiseChannel`` checks it at
construction time and refuses incomplete channels.

PLACEMENT
---------

Whether the noise acts before the gate's unitary, after it, or instead of
it differs between noise sources (e.g. a state-preparation error vs. a
decoherence channel during the gate), so it is a per-channel flag:

    NoisePlacement.AFTER    U, then channel   (default)
    NoisePlacement.BEFORE   channel, then U
    NoisePlacement.REPLACE  channel only

NOISE MODEL LOOKUP
------------------

``NoiseModel`` maps (gate kind, arity) to a channel. If no entry exists
and a ``rate_profile`` is configured, the descriptor's ``error_rate`` is
turned into a channel on the fly, e.g.

    NoiseModel(rate_profile=lambda p, n: depolarizing(p) if n == 1
                                         else two_qubit_depolarizing(p))

Readout error is classical: it flips the REPORTED bit of a measurement
and leaves the collapsed state alone. It may be asymmetric (P(1|0) ≠
P(0|1)) and overridden per qubit.

ENSEMBLE REFERENCE
------------------

Trajectory statistics converge to the channel's exact action on ρ. The
QuTiP conversions (``to_superoperator``, ``evolve_density_matrix``) give
that exact action for cross-checking; callers that need ensemble
averages must run many independent trajectories themselves.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from qutip import Qobj, kraus_to_super

from ..constants import KRAUS_ATOL
from ..exceptions import IncompleteNoiseChannel
from ..primitives.gates import GateDescriptor, GateKind
from ..utils.math_utils import is_power_of_two, kraus_completeness_residual


class NoisePlacement(Enum):
    BEFORE = "before"
    AFTER = "after"
    REPLACE = "replace"


# =============================================================================
# NOISE CHANNEL
# =============================================================================

class NoiseChannel:
    """
    Ordered list of Kraus operators acting on 1 or 2 qubits.

    The order is significant: branch selection walks the operators in this
    order, so the same seed picks the same branch only if the order is the
    same.

    Parameters
    ----------
    kraus_operators : sequence of array-like
        Square matrices of equal dimension 2^arity.
    placement : NoisePlacement or str
        Where the channel goes relative to the paired unitary.
    name : str
        Label used in summaries and verbose output.
    atol : float
        Tolerance of the completeness check.

    Raises
    ------
    IncompleteNoiseChannel
        Σ K†K differs from I by more than ``atol``.
    ValueError
        Empty list, non-square or mismatched operator shapes.

    Example
    -------
    >>> p = 0.1
    >>> flip = NoiseChannel([np.sqrt(1 - p) * np.eye(2),
    ...                      np.sqrt(p) * np.array([[0, 1], [1, 0]])],
    ...                     name="bit_flip")
    >>> flip.arity
    1
    """

    def __init__(self, kraus_operators: Sequence, placement=NoisePlacement.AFTER,
                 name: str = "", atol: float = KRAUS_ATOL):
        operators = [np.asarray(op, dtype=np.complex128) for op in kraus_operators]
        if not operators:
            raise ValueError("A noise channel needs at least one Kraus operator")

        dim = operators[0].shape[0] if operators[0].ndim == 2 else 0
        for op in operators:
            if op.ndim != 2 or op.shape != (dim, dim):
                raise ValueError(
                    f"Kraus operators must all be square of the same size, got {op.shape}"
                )
        if not is_power_of_two(dim) or dim > 4:
            raise ValueError(f"Kraus operators must be 2x2 or 4x4, got {dim}x{dim}")

        residual = kraus_completeness_residual(operators)
        if residual > atol:
            raise IncompleteNoiseChannel(
                f"Noise channel {name or '<unnamed>'} violates completeness: "
                f"max |Σ K†K - I| = {residual:.3e} > {atol:.1e}"
            )

        self._operators: Tuple[np.ndarray, ...] = tuple(operators)
        for op in self._operators:
            op.setflags(write=False)
        self.placement = NoisePlacement(placement)
        self.name = name
        self.atol = atol
        self.completeness_residual = residual

    @property
    def kraus_operators(self) -> Tuple[np.ndarray, ...]:
        return self._operators

    @property
    def arity(self) -> int:
        return self._operators[0].shape[0].bit_length() - 1

    def __len__(self) -> int:
        return len(self._operators)

    def __repr__(self):
        return (f"NoiseChannel(name={self.name!r}, arity={self.arity}, "
                f"operators={len(self)}, placement={self.placement.value})")

    def with_placement(self, placement) -> "NoiseChannel":
        return NoiseChannel(self._operators, placement, self.name, self.atol)

    # -------------------------------------------------------------------------
    # QuTiP reference (exact density-matrix action)
    # -------------------------------------------------------------------------

    def _dims(self) -> List[List[int]]:
        return [[2] * self.arity, [2] * self.arity]

    def to_qobj_kraus(self) -> List[Qobj]:
        return [Qobj(op, dims=self._dims()) for op in self._operators]

    def to_superoperator(self) -> Qobj:
        """Superoperator of the channel (QuTiP ``kraus_to_super``)."""
        return kraus_to_super(self.to_qobj_kraus())

    def is_cptp(self) -> bool:
        return bool(self.to_superoperator().iscptp)

    def evolve_density_matrix(self, rho: np.ndarray) -> np.ndarray:
        """Exact Σ K ρ K† for a 2^arity × 2^arity density matrix."""
        rho_q = Qobj(np.asarray(rho, dtype=np.complex128), dims=self._dims())
        kraus = self.to_qobj_kraus()
        out = kraus[0] * rho_q * kraus[0].dag()
        for k in kraus[1:]:
            out = out + k * rho_q * k.dag()
        return out.full()


# =============================================================================
# READOUT ERROR
# =============================================================================

@dataclass(frozen=True)
class ReadoutError:
    """
    Classical flip probabilities of a measurement report.

    Attributes
    ----------
    flip_0 : float
        P(report 1 | collapsed to 0)
    flip_1 : float
        P(report 0 | collapsed to 1)
    """
    flip_0: float = 0.0
    flip_1: float = 0.0

    def __post_init__(self):
        for name in ("flip_0", "flip_1"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")

    @classmethod
    def symmetric(cls, p: float) -> "ReadoutError":
        return cls(p, p)

    @classmethod
    def coerce(cls, value: Union[float, "ReadoutError", Tuple[float, float]]) -> "ReadoutError":
        if isinstance(value, cls):
            return value
        if isinstance(value, (tuple, list)):
            return cls(*value)
        return cls.symmetric(float(value))

    def flip_probability(self, outcome: int) -> float:
        return self.flip_1 if outcome else self.flip_0

    @property
    def confusion_matrix(self) -> np.ndarray:
        """[[P(0|0), P(1|0)], [P(0|1), P(1|1)]]"""
        return np.array([[1 - self.flip_0, self.flip_0],
                         [self.flip_1, 1 - self.flip_1]])


# =============================================================================
# NOISE MODEL
# =============================================================================

ChannelKey = Tuple[GateKind, int]
RateProfile = Callable[[float, int], NoiseChannel]


class NoiseModel:
    """
    Lookup {gate kind, arity} → NoiseChannel, plus readout error.

    Parameters
    ----------
    channels : dict, optional
        Keys are ``(kind, arity)`` with ``kind`` a GateKind or its name.
    readout_error : float, tuple or ReadoutError
        Default readout error for every qubit.
    qubit_readout_errors : dict, optional
        Per-qubit overrides of ``readout_error``.
    rate_profile : callable, optional
        ``rate_profile(error_rate, arity) -> NoiseChannel`` used for gates
        with ``error_rate > 0`` and no explicit channel.

    Example
    -------
    >>> model = NoiseModel({("H", 1): depolarizing(0.01),
    ...                     ("CNOT", 2): two_qubit_depolarizing(0.02)},
    ...                    readout_error=0.02)
    """

    def __init__(self, channels: Optional[Dict] = None,
                 readout_error=0.0,
                 qubit_readout_errors: Optional[Dict[int, object]] = None,
                 rate_profile: Optional[RateProfile] = None):
        self._channels: Dict[ChannelKey, NoiseChannel] = {}
        for (kind, arity), channel in (channels or {}).items():
            self.add_channel(kind, arity, channel)
        self.readout_error = ReadoutError.coerce(readout_error)
        self.qubit_readout_errors: Dict[int, ReadoutError] = {
            q: ReadoutError.coerce(e) for q, e in (qubit_readout_errors or {}).items()
        }
        self.rate_profile = rate_profile

    def add_channel(self, kind, arity: int, channel: NoiseChannel):
        kind = GateKind.parse(kind)
        if arity not in (1, 2):
            raise ValueError(f"arity must be 1 or 2, got {arity}")
        if channel.arity not in (1, arity):
            raise ValueError(
                f"{channel.arity}-qubit channel cannot be paired with {arity}-qubit {kind.value}"
            )
        self._channels[(kind, arity)] = channel

    @property
    def channels(self) -> Dict[ChannelKey, NoiseChannel]:
        return dict(self._channels)

    def channel_for(self, gate: GateDescriptor) -> Optional[NoiseChannel]:
        """Channel paired with ``gate``, or None for a noiseless gate."""
        key = (gate.kind, len(gate.targets))
        if key in self._channels:
            return self._channels[key]
        if self.rate_profile is not None and gate.error_rate > 0:
            return self.rate_profile(gate.error_rate, len(gate.targets))
        return None

    def readout_error_for(self, qubit: int) -> ReadoutError:
        return self.qubit_readout_errors.get(qubit, self.readout_error)

    def summary_table(self) -> str:
        lines = [
            "=" * 60,
            "NOISE MODEL",
            "=" * 60,
            f"{'Gate':<12} {'Arity':<6} {'Channel':<24} {'Kraus':<6} {'Placement'}",
            "-" * 60,
        ]
        for (kind, arity), ch in sorted(self._channels.items(),
                                        key=lambda kv: (kv[0][0].value, kv[0][1])):
            lines.append(f"{kind.value:<12} {arity:<6} {ch.name or '-':<24} "
                         f"{len(ch):<6} {ch.placement.value}")
        lines.extend([
            "-" * 60,
            f"Readout error: P(1|0) = {self.readout_error.flip_0:.4f}, "
            f"P(0|1) = {self.readout_error.flip_1:.4f}",
            "=" * 60,
        ])
        return "\n".join(lines)
