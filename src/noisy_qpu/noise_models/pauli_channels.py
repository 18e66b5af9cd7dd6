# Pauli Error Channels
#
# Standard Pauli-basis error models, as ordered Kraus lists.
#
# Channel types:
#
# Depolarizing:
#   ρ → (1-p)ρ + (p/3)(XρX + YρY + ZρZ)
#   - Symmetric noise
#   - p = total error probability
#
# Dephasing (phase-flip):
#   ρ → (1-p)ρ + pZρZ
#
# Bit-flip:
#   ρ → (1-p)ρ + pXρX
#
# Asymmetric Pauli:
#   ρ → (1-px-py-pz)ρ + px·XρX + py·YρY + pz·ZρZ
#
# Two-qubit depolarizing:
#   ρ → (1-p)ρ + (p/15) Σ_{P ≠ II} PρP
#
# The identity branch always comes first, so at p = 0 the trajectory
# engine selects it for every draw.

from itertools import product

import numpy as np

from ..primitives.gates import PAULI_I, PAULI_X, PAULI_Y, PAULI_Z
from .channels import NoiseChannel, NoisePlacement

PAULIS = (PAULI_I, PAULI_X, PAULI_Y, PAULI_Z)


def _check_probability(name: str, p: float):
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {p}")


def pauli_channel(px: float, py: float, pz: float,
                  placement=NoisePlacement.AFTER) -> NoiseChannel:
    """General single-qubit Pauli channel."""
    for name, p in (("px", px), ("py", py), ("pz", pz)):
        _check_probability(name, p)
    p_identity = 1.0 - px - py - pz
    if p_identity < -1e-12:
        raise ValueError(f"px + py + pz = {px + py + pz:.6f} exceeds 1")
    weights = (max(p_identity, 0.0), px, py, pz)
    return NoiseChannel([np.sqrt(w) * P for w, P in zip(weights, PAULIS)],
                        placement, name=f"pauli({px:g},{py:g},{pz:g})")


def bit_flip(p: float, placement=NoisePlacement.AFTER) -> NoiseChannel:
    """{√(1-p)·I, √p·X}"""
    _check_probability("p", p)
    return NoiseChannel([np.sqrt(1 - p) * PAULI_I, np.sqrt(p) * PAULI_X],
                        placement, name=f"bit_flip({p:g})")


def phase_flip(p: float, placement=NoisePlacement.AFTER) -> NoiseChannel:
    """{√(1-p)·I, √p·Z}"""
    _check_probability("p", p)
    return NoiseChannel([np.sqrt(1 - p) * PAULI_I, np.sqrt(p) * PAULI_Z],
                        placement, name=f"phase_flip({p:g})")


def bit_phase_flip(p: float, placement=NoisePlacement.AFTER) -> NoiseChannel:
    """{√(1-p)·I, √p·Y}"""
    _check_probability("p", p)
    return NoiseChannel([np.sqrt(1 - p) * PAULI_I, np.sqrt(p) * PAULI_Y],
                        placement, name=f"bit_phase_flip({p:g})")


def depolarizing(p: float, placement=NoisePlacement.AFTER) -> NoiseChannel:
    """Single-qubit depolarizing channel with total error probability p."""
    _check_probability("p", p)
    channel = pauli_channel(p / 3, p / 3, p / 3, placement)
    channel.name = f"depolarizing({p:g})"
    return channel


def two_qubit_depolarizing(p: float, placement=NoisePlacement.AFTER) -> NoiseChannel:
    """
    Two-qubit depolarizing channel: identity with 1-p, each of the 15
    non-identity Pauli products with p/15.
    """
    _check_probability("p", p)
    operators = []
    for a, b in product(range(4), repeat=2):
        weight = 1.0 - p if (a, b) == (0, 0) else p / 15
        operators.append(np.sqrt(weight) * np.kron(PAULIS[a], PAULIS[b]))
    return NoiseChannel(operators, placement, name=f"two_qubit_depolarizing({p:g})")


def depolarizing_profile(error_rate: float, arity: int) -> NoiseChannel:
    """``NoiseModel.rate_profile`` turning an error rate into depolarizing noise."""
    if arity == 1:
        return depolarizing(error_rate)
    return two_qubit_depolarizing(error_rate)
