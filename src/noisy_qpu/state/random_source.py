"""
Random Source
=============

The single source of randomness of a simulation session. Both the noise
engine (Kraus branch selection) and the measurement engine (collapse and
readout error) draw from the same handle, in a fixed order, so a run is
exactly replayable from its seed.

The handle is owned by the session and passed explicitly to the engines.
There is no process-wide generator: two sessions with the same seed never
interfere with each other, which keeps parallel test runs deterministic.

Draw accounting
---------------
Every call to ``uniform()`` is one logical draw and increments ``draws``.
The order in which engine calls consume draws is:

- noisy gate:   one draw per channel application
- measure:      one draw for the collapse, then one for readout error
                (only if the flip probability for the collapsed
                outcome is non-zero)
- reset_qubit:  one draw
- everything else: none
"""

from typing import Optional

import numpy as np


class RandomSource:
    """
    Seedable uniform generator backed by ``numpy.random.Generator``.

    Parameters
    ----------
    seed : int, optional
        Seed for the underlying PCG64 bit generator. ``None`` uses fresh OS
        entropy.

    Example
    -------
    >>> a, b = RandomSource(7), RandomSource(7)
    >>> a.uniform() == b.uniform()
    True
    """

    def __init__(self, seed: Optional[int] = None):
        self._seed = seed
        self._rng = np.random.default_rng(seed)
        self.draws = 0

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def uniform(self) -> float:
        """One uniform sample in [0, 1)."""
        self.draws += 1
        return float(self._rng.random())

    def reseed(self, seed: Optional[int] = None):
        """Restart the stream (used by a full engine reset)."""
        self._seed = seed
        self._rng = np.random.default_rng(seed)
        self.draws = 0

    def __repr__(self):
        return f"RandomSource(seed={self._seed!r}, draws={self.draws})"
