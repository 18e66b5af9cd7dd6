"""
Error Taxonomy
==============

All errors are raised synchronously at the offending call; none are
retried by the engine. ``NumericalDrift`` is a warning category, not an
exception, because accumulated rounding is recoverable by
``NoisySimulator.renormalize()``.
"""


class SimulatorError(Exception):
    """Base class for every error raised by the engine."""


class InvalidQubit(SimulatorError, KeyError):
    """A qubit identifier that was never allocated (or is out of range)."""

    def __init__(self, qubit, message=None):
        self.qubit = qubit
        super().__init__(message or f"Unknown qubit identifier: {qubit!r}")

    def __str__(self):
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class MalformedGate(SimulatorError, ValueError):
    """Matrix shape does not match the number of targets (or controls)."""


class NonUnitaryGate(MalformedGate):
    """U†U differs from the identity (only checked in validation mode)."""


class MalformedInitialState(SimulatorError, ValueError):
    """Initial amplitude vector has the wrong length or zero norm."""


class IncompleteNoiseChannel(SimulatorError, ValueError):
    """Σ K†K is not the identity, or branch probabilities do not sum to 1."""


class ResourceExhausted(SimulatorError, MemoryError):
    """The amplitude buffer for the requested qubit count cannot be allocated."""


class NumericalDrift(UserWarning):
    """A store's squared norm has drifted outside the configured tolerance."""
