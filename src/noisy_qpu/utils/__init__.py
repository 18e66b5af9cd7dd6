# Utility Functions
#
# Common utilities used across the simulator.
#
# Submodules:
#   - math_utils: Unitarity / completeness residuals, qubit permutation, fidelity
#   - visualization: Probability bar charts

from .math_utils import (
    is_power_of_two,
    unitarity_residual,
    kraus_completeness_residual,
    permute_qubits,
    state_fidelity,
)

__all__ = [
    "is_power_of_two", "unitarity_residual",
    "kraus_completeness_residual", "permute_qubits", "state_fidelity",
]
