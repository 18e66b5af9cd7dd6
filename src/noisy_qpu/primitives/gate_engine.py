"""
Gate Engine
===========

Applies dense unitaries to amplitude stores, merging partitions on demand.

How a gate is applied
---------------------

1. All targets and controls are resolved into ONE store (the registry
   merges stores if they are still separate). Controls must be in the same
   store as the targets, even though they do not enter the matrix.

2. The store's amplitudes are split into disjoint groups that differ only
   in the target bits, keeping only groups where every control bit is 1:

       1 target:  pairs       (a₀, a₁)
       2 targets: quadruples  (a₀₀, a₀₁, a₁₀, a₁₁)

3. Every group is replaced by M · group. Groups are independent, so numpy
   applies the matrix to all of them in one vectorised product.

Projectors (P0, P1) are applied the same way and the store is then
renormalised; projecting onto an outcome of zero probability is refused.
"""

from typing import Sequence

import numpy as np

from ..configurations import SimulatorConfig
from ..constants import ZERO_PROBABILITY
from ..exceptions import MalformedGate, NonUnitaryGate
from ..state.amplitude_store import AmplitudeStore
from ..state.partition_registry import PartitionRegistry
from ..utils.math_utils import unitarity_residual
from .gates import GateDescriptor


class GateEngine:
    """
    Unitary application over a PartitionRegistry.

    Parameters
    ----------
    registry : PartitionRegistry
        Owner of the amplitude stores.
    config : SimulatorConfig
        ``validate_unitarity`` switches on the NonUnitaryGate check.
    """

    def __init__(self, registry: PartitionRegistry, config: SimulatorConfig):
        self.registry = registry
        self.config = config

    def apply(self, gate: GateDescriptor) -> AmplitudeStore:
        """
        Apply ``gate`` in place and return the store it acted on.

        Raises
        ------
        InvalidQubit
            A target or control was never allocated.
        MalformedGate
            Matrix dimension does not match the targets.
        NonUnitaryGate
            Validation mode only: U†U ≠ I.
        """
        matrix = self.validate(gate)
        store = self.registry.resolve(gate.qubits)
        target_bits = store.bits_of(gate.targets)
        control_bits = store.bits_of(gate.controls)

        if gate.kind.is_unitary:
            store.apply_matrix(matrix, target_bits, control_bits)
        else:
            self._apply_projector(store, matrix, target_bits, control_bits, gate)
        return store

    def validate(self, gate: GateDescriptor) -> np.ndarray:
        """Run every check of ``apply`` without touching state; returns the target matrix."""
        self.registry.check(gate.qubits)
        matrix = gate.target_matrix()

        if self.config.validate_unitarity and gate.kind.is_unitary:
            residual = unitarity_residual(matrix)
            if residual > self.config.unitary_atol:
                raise NonUnitaryGate(
                    f"{gate.kind.value} matrix is not unitary "
                    f"(max |U†U - I| = {residual:.3e})"
                )
        return matrix

    def _apply_projector(self, store: AmplitudeStore, matrix: np.ndarray,
                         target_bits, control_bits, gate: GateDescriptor):
        groups = store.group_indices(target_bits, control_bits)
        projected = store.amplitudes.copy()
        projected[groups] = matrix @ store.amplitudes[groups]
        norm2 = float(np.vdot(projected, projected).real)
        if norm2 <= ZERO_PROBABILITY:
            raise ValueError(
                f"{gate.kind.value} on {gate.targets} projects onto an outcome "
                f"with zero probability"
            )
        store.amplitudes[:] = projected / np.sqrt(norm2)

    def apply_diagonal(self, qubits: Sequence[int], diagonal: np.ndarray,
                       controls: Sequence[int] = (), dagger: bool = False) -> AmplitudeStore:
        """
        Multiply every amplitude by the diagonal entry its sub-index selects.

        The sub-index of an amplitude is Σⱼ bit(qubits[j]) · 2ʲ, so
        ``qubits[0]`` is the least significant bit. Only amplitudes whose
        control bits are all 1 are touched.

        Raises
        ------
        MalformedGate
            ``diagonal`` is not of length 2^len(qubits), or qubits repeat.
        NonUnitaryGate
            Validation mode only: an entry does not have modulus 1.
        """
        qubits, controls = list(qubits), list(controls)
        touched = qubits + controls
        if not qubits or len(set(touched)) != len(touched):
            raise MalformedGate(f"Diagonal gate needs distinct qubits, got {touched}")
        self.registry.check(touched)

        diagonal = np.asarray(diagonal, dtype=np.complex128).reshape(-1)
        if diagonal.shape[0] != 1 << len(qubits):
            raise MalformedGate(
                f"Diagonal on {len(qubits)} qubits needs {1 << len(qubits)} entries, "
                f"got {diagonal.shape[0]}"
            )
        if dagger:
            diagonal = diagonal.conj()
        if self.config.validate_unitarity:
            residual = float(np.max(np.abs(np.abs(diagonal) - 1.0)))
            if residual > self.config.unitary_atol:
                raise NonUnitaryGate(
                    f"Diagonal gate is not unitary (max ||d| - 1| = {residual:.3e})"
                )

        store = self.registry.resolve(touched)
        index = np.arange(store.size, dtype=np.int64)
        sub_index = np.zeros(store.size, dtype=np.int64)
        for j, bit in enumerate(store.bits_of(qubits)):
            sub_index |= ((index >> bit) & 1) << j

        factors = diagonal[sub_index]
        if controls:
            mask = 0
            for bit in store.bits_of(controls):
                mask |= 1 << bit
            factors = np.where((index & mask) == mask, factors, 1.0)
        store.amplitudes *= factors
        return store
