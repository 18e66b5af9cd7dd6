"""
Test Suite: Rank Partition Boundaries
=====================================

1. Slice geometry for R ranks over 2^n amplitudes
2. Validation of rank triples
3. Rank slices tile the global state
"""

import numpy as np
import pytest

from noisy_qpu import NoisySimulator, SimulatorConfig, RankPartition


class TestRankPartition:

    def test_geometry(self):
        part = RankPartition(rank=3, rank_count=4, qubit_count=5)
        assert part.size == 8
        assert (part.start, part.stop) == (24, 32)
        assert part.rank_bits == 2
        assert part.contains(24) and part.contains(31)
        assert not part.contains(32)
        assert part.as_slice() == slice(24, 32)

    def test_single_rank_owns_everything(self):
        part = RankPartition(0, 1, 4)
        assert (part.start, part.stop, part.rank_bits) == (0, 16, 0)

    @pytest.mark.parametrize("rank, rank_count, qubit_count", [
        (0, 3, 4),      # not a power of two
        (0, 0, 4),
        (0, 16, 3),     # more ranks than amplitudes
        (4, 4, 3),      # rank out of range
        (-1, 2, 3),
        (0, 1, -1),
    ])
    def test_invalid_triples(self, rank, rank_count, qubit_count):
        with pytest.raises(ValueError):
            RankPartition(rank, rank_count, qubit_count)


class TestRankSlices:

    def test_slices_tile_global_state(self):
        rank_count, n = 4, 4
        pieces = []
        for rank in range(rank_count):
            sim = NoisySimulator(SimulatorConfig(seed=11))
            sim.init_rank_state(rank, rank_count, n)
            for q in range(n):
                sim.gate("RY", [q], 0.3 * (q + 1))
            sim.gate("CNOT", [0, 3])
            pieces.append(sim.local_state())
            full = sim.full_state()

        np.testing.assert_allclose(np.concatenate(pieces), full, atol=1e-12)
