# Architecture Layer
#
# Session-level composition of the engines.
#
#   - simulator: NoisySimulator, the query surface for clients
#   - distributed: RankPartition, per-rank slice of the amplitude space

from .distributed import RankPartition
from .simulator import NoisySimulator

__all__ = ["NoisySimulator", "RankPartition"]
