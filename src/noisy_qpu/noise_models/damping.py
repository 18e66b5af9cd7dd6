# Damping Channels
#
# Energy relaxation (T1) and pure dephasing (T2) as Kraus lists.
#
# Amplitude damping (T1 decay |1⟩ → |0⟩):
#   K0 = [[1, 0], [0, √(1-γ)]]     K1 = [[0, √γ], [0, 0]]
#
# Phase damping (coherence ρ01 → √(1-λ)·ρ01, no population change):
#   K0 = [[1, 0], [0, √(1-λ)]]     K1 = [[0, 0], [0, √λ]]
#
# Decoherence over a gate of duration t:
#   γ = 1 - exp(-t/T1)
#   1/Tφ = 1/T2 - 1/(2·T1)          (pure dephasing rate)
#   λ = 1 - exp(-2t/Tφ)
#   Kraus list = {Aᵢ·Bⱼ}: amplitude damping followed by phase damping
#
# Physical constraint: T2 ≤ 2·T1.

import numpy as np

from .channels import NoiseChannel, NoisePlacement


def amplitude_damping(gamma: float, placement=NoisePlacement.AFTER) -> NoiseChannel:
    if not 0.0 <= gamma <= 1.0:
        raise ValueError(f"gamma must be in [0, 1], got {gamma}")
    k0 = np.array([[1, 0], [0, np.sqrt(1 - gamma)]])
    k1 = np.array([[0, np.sqrt(gamma)], [0, 0]])
    return NoiseChannel([k0, k1], placement, name=f"amplitude_damping({gamma:g})")


def phase_damping(lam: float, placement=NoisePlacement.AFTER) -> NoiseChannel:
    if not 0.0 <= lam <= 1.0:
        raise ValueError(f"lambda must be in [0, 1], got {lam}")
    k0 = np.array([[1, 0], [0, np.sqrt(1 - lam)]])
    k1 = np.array([[0, 0], [0, np.sqrt(lam)]])
    return NoiseChannel([k0, k1], placement, name=f"phase_damping({lam:g})")


def decoherence(t1: float, t2: float, gate_time: float,
                placement=NoisePlacement.AFTER) -> NoiseChannel:
    """
    Combined T1/T2 decoherence during a gate of duration ``gate_time``.

    Parameters
    ----------
    t1, t2 : float
        Relaxation and coherence times (same unit as ``gate_time``).
        ``t2`` must not exceed ``2 * t1``.
    gate_time : float
        Duration the qubit is exposed.

    Example
    -------
    >>> ch = decoherence(t1=100e-6, t2=80e-6, gate_time=50e-9)
    >>> len(ch)
    4
    """
    if t1 <= 0 or t2 <= 0:
        raise ValueError(f"T1 and T2 must be positive, got T1={t1}, T2={t2}")
    if t2 > 2 * t1:
        raise ValueError(f"T2 = {t2} exceeds 2·T1 = {2 * t1}")
    if gate_time < 0:
        raise ValueError(f"gate_time must be non-negative, got {gate_time}")

    gamma = 1.0 - np.exp(-gate_time / t1)
    dephasing_rate = 1.0 / t2 - 1.0 / (2.0 * t1)
    lam = 1.0 - np.exp(-2.0 * gate_time * dephasing_rate)

    damping_ops = amplitude_damping(gamma).kraus_operators
    dephasing_ops = phase_damping(lam).kraus_operators
    operators = [b @ a for a in damping_ops for b in dephasing_ops]
    return NoiseChannel(operators, placement,
                        name=f"decoherence(T1={t1:g},T2={t2:g},t={gate_time:g})")
