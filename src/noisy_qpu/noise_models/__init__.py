# Noise Models
#
# CPTP error channels and their stochastic (trajectory) application.
#
# This module provides:
#   - Kraus channel container with completeness check (channels)
#   - Noise model lookup {gate kind, arity} → channel, readout error
#   - Standard channels: Pauli family (pauli_channels), T1/T2 (damping)
#   - Quantum-jump application of channels (trajectory)
#
# Representations:
#   - Kraus operators (native)
#   - Superoperator via QuTiP (reference / ensemble checks)

from .channels import NoiseChannel, NoiseModel, NoisePlacement, ReadoutError
from .pauli_channels import (
    pauli_channel,
    bit_flip,
    phase_flip,
    bit_phase_flip,
    depolarizing,
    two_qubit_depolarizing,
    depolarizing_profile,
)
from .damping import amplitude_damping, phase_damping, decoherence
from .trajectory import TrajectoryNoiseEngine, select_branch

__all__ = [
    "NoiseChannel", "NoiseModel", "NoisePlacement", "ReadoutError",
    "pauli_channel", "bit_flip", "phase_flip", "bit_phase_flip",
    "depolarizing", "two_qubit_depolarizing", "depolarizing_profile",
    "amplitude_damping", "phase_damping", "decoherence",
    "TrajectoryNoiseEngine", "select_branch",
]
