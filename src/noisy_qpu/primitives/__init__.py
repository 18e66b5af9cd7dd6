# Primitives Layer
#
# Gate and measurement operations on amplitude stores.
#
#   - gates: GateKind, gate_matrix(), GateDescriptor
#   - gate_engine: GateEngine (unitaries, projectors, diagonal gates)
#   - measurement: MeasurementEngine (probabilities, collapse, reset)

from .gates import (
    GateKind, GateDescriptor, gate_matrix, rotation, iswap,
    PAULI_I, PAULI_X, PAULI_Y, PAULI_Z,
)
from .gate_engine import GateEngine
from .measurement import MeasurementEngine, MeasurementOutcome

__all__ = [
    "GateKind", "GateDescriptor", "gate_matrix", "rotation", "iswap",
    "PAULI_I", "PAULI_X", "PAULI_Y", "PAULI_Z",
    "GateEngine", "MeasurementEngine", "MeasurementOutcome",
]
