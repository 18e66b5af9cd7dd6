# Mathematical Utilities
#
# Linear algebra and quantum information functions.
#
# Functions:
#   - Power-of-two checks for amplitude buffers
#   - Unitarity and Kraus completeness residuals
#   - Qubit-axis permutation of state vectors
#   - State fidelity (QuTiP)

from typing import Sequence

import numpy as np
from qutip import Qobj, fidelity


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def unitarity_residual(matrix: np.ndarray) -> float:
    """max |U†U - I|, zero for an exactly unitary matrix."""
    matrix = np.asarray(matrix)
    identity = np.eye(matrix.shape[0])
    return float(np.max(np.abs(matrix.conj().T @ matrix - identity)))


def kraus_completeness_residual(operators: Sequence[np.ndarray]) -> float:
    """
    max |Σ K†K - I| over the matrix entries.

    This is the trace-preservation condition of a quantum channel in the
    operator-sum representation. A valid channel gives zero up to rounding.
    """
    dim = operators[0].shape[0]
    total = np.zeros((dim, dim), dtype=np.complex128)
    for op in operators:
        total += op.conj().T @ op
    return float(np.max(np.abs(total - np.eye(dim))))


def permute_qubits(amplitudes: np.ndarray,
                   current_order: Sequence[int],
                   target_order: Sequence[int]) -> np.ndarray:
    """
    Re-express a state vector in a different qubit ordering.

    Both orders list qubit identifiers by bit position: the identifier at
    position i occupies bit i of the linear index. ``target_order`` must be
    a permutation of ``current_order``.

    Internally the vector is viewed as an n-axis tensor. numpy's C ordering
    puts bit (n-1-a) on axis a, hence the index juggling below.
    """
    n = len(current_order)
    if sorted(current_order) != sorted(target_order):
        raise ValueError("target_order must be a permutation of current_order")
    if list(current_order) == list(target_order):
        return np.array(amplitudes, copy=True)

    position = {q: i for i, q in enumerate(current_order)}
    tensor = np.reshape(amplitudes, (2,) * n)
    perm = [n - 1 - position[target_order[n - 1 - axis]] for axis in range(n)]
    return np.transpose(tensor, perm).reshape(-1).copy()


def state_fidelity(psi: np.ndarray, phi: np.ndarray) -> float:
    """
    Fidelity |⟨φ|ψ⟩|² between two pure states given as amplitude vectors.

    Uses QuTiP's fidelity (which returns |⟨φ|ψ⟩| for kets) so that the
    same helper works when either argument is later promoted to a density
    matrix.
    """
    psi_q = Qobj(np.asarray(psi).reshape(-1, 1))
    phi_q = Qobj(np.asarray(phi).reshape(-1, 1))
    return float(fidelity(psi_q, phi_q) ** 2)
