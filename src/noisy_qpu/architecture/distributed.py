# Distributed Partition Boundary
#
# Which contiguous slice of the 2^n amplitude space one process owns.
#
# With R ranks (R a power of two) each rank holds 2^n / R consecutive
# amplitudes of the GLOBAL state vector:
#
#   rank r owns indices [r · 2^n/R, (r+1) · 2^n/R)
#
# Equivalently, the top log2(R) bits of the global index select the rank.
# Exchanging amplitudes between ranks and reducing partial results is the
# job of the orchestration layer; the engine only reports the boundary.

from dataclasses import dataclass

from ..utils.math_utils import is_power_of_two


@dataclass(frozen=True)
class RankPartition:
    """
    Slice of the global amplitude space owned by one rank.

    Raises
    ------
    ValueError
        ``rank_count`` is not a power of two, exceeds 2^qubit_count, or
        ``rank`` is outside [0, rank_count).
    """
    rank: int
    rank_count: int
    qubit_count: int

    def __post_init__(self):
        if self.qubit_count < 0:
            raise ValueError(f"qubit_count must be >= 0, got {self.qubit_count}")
        if not is_power_of_two(self.rank_count):
            raise ValueError(f"rank_count must be a power of two, got {self.rank_count}")
        if self.rank_count > 1 << self.qubit_count:
            raise ValueError(
                f"{self.rank_count} ranks exceed the {1 << self.qubit_count} amplitudes "
                f"of {self.qubit_count} qubits"
            )
        if not 0 <= self.rank < self.rank_count:
            raise ValueError(f"rank must be in [0, {self.rank_count}), got {self.rank}")

    @property
    def size(self) -> int:
        return (1 << self.qubit_count) // self.rank_count

    @property
    def start(self) -> int:
        return self.rank * self.size

    @property
    def stop(self) -> int:
        return self.start + self.size

    @property
    def rank_bits(self) -> int:
        """Number of high global-index bits that select the rank."""
        return self.rank_count.bit_length() - 1

    def contains(self, index: int) -> bool:
        return self.start <= index < self.stop

    def as_slice(self) -> slice:
        return slice(self.start, self.stop)
