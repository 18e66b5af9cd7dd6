"""
Numerical Constants for the Noisy State-Vector Engine
=====================================================

Tolerances and defaults shared by every layer of the engine. They are
collected here so that the validation code in the gate, noise and
measurement engines agrees on what "close to unitary" or "close to
normalised" means.

WHY TOLERANCES AT ALL?
----------------------

Amplitudes are stored as complex128. Every gate application costs a few
ulp of rounding, so after thousands of operations the total probability

    Σᵢ |aᵢ|²

wanders away from exactly 1. The engine does not silently fix this; it
warns (``NumericalDrift``) once the drift exceeds ``NORM_ATOL`` and lets
the caller renormalise.

**Unitary tolerance** (UNITARY_ATOL)
    Used by the debug-mode check ``U†U ≈ I``. Matrices typed in by hand
    with 1/√2 to 15 digits pass comfortably.

**Kraus tolerance** (KRAUS_ATOL)
    Used for the completeness condition ``Σ K†K ≈ I`` and for the per-
    application check that the branch probabilities sum to one. Channels
    loaded from text files are rarely more accurate than ~1e-7.
"""

import numpy as np

# Complex dtype of every amplitude buffer
AMPLITUDE_DTYPE = np.complex128

# Bytes per amplitude (used for the resource guard message)
BYTES_PER_AMPLITUDE = np.dtype(AMPLITUDE_DTYPE).itemsize

# =============================================================================
# TOLERANCES
# =============================================================================

UNITARY_ATOL = 1e-8
KRAUS_ATOL = 1e-6
NORM_ATOL = 1e-6

# Probabilities below this are treated as exactly zero when a branch is
# selected (a branch with p=0 must never be chosen).
ZERO_PROBABILITY = 1e-15

# =============================================================================
# RESOURCE DEFAULTS
# =============================================================================

# 2^30 amplitudes × 16 bytes = 16 GiB
DEFAULT_MAX_QUBITS = 30

SQRT2_INV = 1.0 / np.sqrt(2.0)
