# State Layer
#
# Amplitude buffers and the bookkeeping of which qubits share them.
#
#   - amplitude_store: AmplitudeStore, one state vector per subsystem
#   - partition_registry: PartitionRegistry, lazy tensor-product merging
#   - random_source: RandomSource, the session's only randomness

from .amplitude_store import AmplitudeStore, allocate_amplitudes
from .partition_registry import PartitionRegistry
from .random_source import RandomSource

__all__ = ["AmplitudeStore", "allocate_amplitudes", "PartitionRegistry", "RandomSource"]
