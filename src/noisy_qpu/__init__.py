# Noisy QPU: Noisy State-Vector Simulation Engine
#
# Simulates multi-qubit pure states on classical hardware, including noisy
# (Kraus-channel) evolution by stochastic trajectories and sampled
# measurement with readout error.
#
# Architecture:
#   state (Amplitude stores): buffers, partition registry, random source
#   primitives (Operations): gates, gate engine, measurement engine
#   noise_models (Channels): Kraus channels, noise model, trajectory engine
#   architecture (Session): NoisySimulator facade, distributed boundary

from .configurations import SimulatorConfig
from .exceptions import (
    SimulatorError,
    InvalidQubit,
    MalformedGate,
    NonUnitaryGate,
    MalformedInitialState,
    IncompleteNoiseChannel,
    ResourceExhausted,
    NumericalDrift,
)
from .state import AmplitudeStore, PartitionRegistry, RandomSource
from .primitives import GateKind, GateDescriptor, gate_matrix, MeasurementOutcome
from .noise_models import (
    NoiseChannel, NoiseModel, NoisePlacement, ReadoutError,
    pauli_channel, bit_flip, phase_flip, bit_phase_flip,
    depolarizing, two_qubit_depolarizing, depolarizing_profile,
    amplitude_damping, phase_damping, decoherence,
)
from .architecture import NoisySimulator, RankPartition

__version__ = "0.1.0"
