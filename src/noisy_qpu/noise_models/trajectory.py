"""
Trajectory Noise Engine
=======================

Applies Kraus channels by the quantum-jump (single-trajectory Monte Carlo)
method instead of evolving a density matrix.

THE ALGORITHM
-------------

For the current pure state |ψ⟩ and a channel {K₀, K₁, ...}:

1. For every Kᵢ, in channel order, compute the unnormalised branch
   Kᵢ|ψ⟩ and its weight

       pᵢ = ⟨ψ|Kᵢ†Kᵢ|ψ⟩ = ‖Kᵢ|ψ⟩‖²

2. Draw ONE uniform u ∈ [0, 1) from the session's RandomSource.

3. Walk the cumulative sum of pᵢ and pick the first branch whose
   cumulative weight exceeds u. If rounding leaves u above the final sum,
   the last branch with non-zero weight is taken.

4. Replace |ψ⟩ by Kᵢ|ψ⟩ / √pᵢ.

Averaged over many trajectories, |ψ⟩⟨ψ| reproduces Σ Kᵢ ρ Kᵢ† exactly.
A single trajectory does NOT: running enough trajectories and aggregating
them is the caller's job.

If Σ pᵢ differs from ‖ψ‖² by more than the Kraus tolerance, the channel
is not trace-preserving on this state and IncompleteNoiseChannel is
raised before anything is modified.
"""

from typing import List, Sequence

import numpy as np

from ..configurations import SimulatorConfig
from ..constants import ZERO_PROBABILITY
from ..exceptions import IncompleteNoiseChannel, MalformedGate
from ..primitives.gate_engine import GateEngine
from ..primitives.gates import GateDescriptor
from ..state.partition_registry import PartitionRegistry
from ..state.random_source import RandomSource
from .channels import NoiseChannel, NoisePlacement


def select_branch(probabilities: Sequence[float], u: float) -> int:
    """
    Inverse-CDF selection over unnormalised branch weights.

    Zero-weight branches are never selected, including by the fallback.
    """
    cumulative = 0.0
    for i, p in enumerate(probabilities):
        cumulative += p
        if p > ZERO_PROBABILITY and u < cumulative:
            return i
    for i in range(len(probabilities) - 1, -1, -1):
        if probabilities[i] > ZERO_PROBABILITY:
            return i
    raise IncompleteNoiseChannel("Every Kraus branch has zero probability")


class TrajectoryNoiseEngine:
    """
    Stochastic Kraus application over a PartitionRegistry.

    Parameters
    ----------
    registry : PartitionRegistry
    random : RandomSource
        Shared with the measurement engine; one draw per application.
    gate_engine : GateEngine
        Applies the unitary part of a noisy gate.
    config : SimulatorConfig
    """

    def __init__(self, registry: PartitionRegistry, random: RandomSource,
                 gate_engine: GateEngine, config: SimulatorConfig):
        self.registry = registry
        self.random = random
        self.gate_engine = gate_engine
        self.config = config

    def apply_channel(self, channel: NoiseChannel, qubits: Sequence[int]) -> int:
        """
        Sample one Kraus branch on ``qubits`` and collapse onto it.

        Returns
        -------
        int
            Index of the selected Kraus operator.
        """
        qubits = list(qubits)
        if len(qubits) != channel.arity:
            raise MalformedGate(
                f"{channel.arity}-qubit channel applied to {len(qubits)} qubit(s)"
            )
        self.registry.check(qubits)

        store = self.registry.resolve(qubits)
        groups = store.group_indices(store.bits_of(qubits))
        block = store.amplitudes[groups]

        branches = [op @ block for op in channel.kraus_operators]
        probabilities = [float(np.vdot(b, b).real) for b in branches]

        total = sum(probabilities)
        norm2 = float(np.vdot(block, block).real)
        if abs(total - norm2) > self.config.kraus_atol:
            raise IncompleteNoiseChannel(
                f"Branch probabilities of {channel.name or 'channel'} sum to "
                f"{total:.8f}, expected {norm2:.8f}"
            )

        u = self.random.uniform()
        index = select_branch(probabilities, u)
        store.amplitudes[groups] = branches[index] / np.sqrt(probabilities[index])

        if self.config.verbose:
            print(f"[noise] {channel.name or 'channel'} on {qubits}: "
                  f"u={u:.4f} → K{index} (p={probabilities[index]:.4f})")
        return index

    def apply_noisy(self, gate: GateDescriptor, channel: NoiseChannel) -> List[int]:
        """
        Apply ``gate`` together with ``channel`` according to its placement.

        Noise acts on the targets only, never on the controls. A 1-qubit
        channel paired with a 2-qubit gate is applied to each target in
        target order, consuming one draw per target.

        Returns
        -------
        list of int
            Selected Kraus index for every channel application.
        """
        if channel.arity == len(gate.targets):
            noise_sites = [list(gate.targets)]
        elif channel.arity == 1:
            noise_sites = [[t] for t in gate.targets]
        else:
            raise MalformedGate(
                f"{channel.arity}-qubit channel cannot follow "
                f"{len(gate.targets)}-qubit {gate.kind.value}"
            )
        self.gate_engine.validate(gate)

        selected = []
        if channel.placement is NoisePlacement.AFTER:
            self.gate_engine.apply(gate)
        for site in noise_sites:
            selected.append(self.apply_channel(channel, site))
        if channel.placement is NoisePlacement.BEFORE:
            self.gate_engine.apply(gate)
        return selected
