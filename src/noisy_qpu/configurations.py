"""
Configuration Dataclasses for the Simulator
===========================================

``SimulatorConfig`` groups the knobs of a simulation session so that the
session facade takes one structured object instead of a long argument list:

    BAD:
        NoisySimulator(seed, True, 1e-8, 1e-6, 1e-6, True, 30, False)

    GOOD:
        NoisySimulator(SimulatorConfig(seed=7, validate_unitarity=True))

Noise itself is configured separately through ``NoiseModel`` (see
``noisy_qpu.noise_models.channels``), because the same engine settings are
typically reused across many noise profiles.

PRESETS
-------

- ``SimulatorConfig.debug()``: unitarity validation on, drift checks on.
- ``SimulatorConfig.release()``: validation off, drift checks off.
"""

from dataclasses import dataclass
from typing import Optional

from .constants import (
    UNITARY_ATOL, KRAUS_ATOL, NORM_ATOL, DEFAULT_MAX_QUBITS,
)


@dataclass
class SimulatorConfig:
    """
    Engine-wide settings for one simulation session.

    Attributes
    ----------
    seed : int, optional
        Seed of the session's RandomSource. ``None`` draws OS entropy, so the
        run is not reproducible.
    validate_unitarity : bool
        Debug mode: reject gates with U†U ≠ I (NonUnitaryGate). Off by
        default because the check costs a matrix product per gate.
    unitary_atol : float
        Absolute tolerance of the unitarity check.
    kraus_atol : float
        Absolute tolerance of the Kraus completeness check and of the
        per-application probability-sum check.
    norm_atol : float
        Allowed deviation of Σ|a|² from 1 before NumericalDrift is issued.
    check_norm : bool
        Check store norms after every completed operation.
    max_qubits : int
        Resource guard. Allocating a single store larger than this raises
        ResourceExhausted instead of attempting a huge allocation.
    verbose : bool
        Print merge events, sampled noise branches and measurement outcomes.

    Example
    -------
    >>> config = SimulatorConfig(seed=1234, validate_unitarity=True)
    >>> sim = NoisySimulator(config)
    """
    seed: Optional[int] = None
    validate_unitarity: bool = False
    unitary_atol: float = UNITARY_ATOL
    kraus_atol: float = KRAUS_ATOL
    norm_atol: float = NORM_ATOL
    check_norm: bool = True
    max_qubits: int = DEFAULT_MAX_QUBITS
    verbose: bool = False

    def __post_init__(self):
        if self.max_qubits < 1:
            raise ValueError(f"max_qubits must be >= 1, got {self.max_qubits}")
        for name in ("unitary_atol", "kraus_atol", "norm_atol"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

    @classmethod
    def debug(cls, seed: Optional[int] = None, **kwargs) -> "SimulatorConfig":
        """Validating configuration for tests and development."""
        return cls(seed=seed, validate_unitarity=True, check_norm=True, **kwargs)

    @classmethod
    def release(cls, seed: Optional[int] = None, **kwargs) -> "SimulatorConfig":
        """Fast configuration: no unitarity or drift checks."""
        return cls(seed=seed, validate_unitarity=False, check_norm=False, **kwargs)
