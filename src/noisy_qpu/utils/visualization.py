"""
Probability Visualization
=========================

Bar charts of measurement probability tables and trajectory statistics.

Key Functions
-------------
- plot_probabilities(): Bars for a {sub-index: probability} table
- plot_outcome_frequencies(): Sampled outcome counts vs. exact probabilities
"""

from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt


def basis_label(index: int, num_qubits: int) -> str:
    """Ket label with the most significant bit on the left, e.g. |01⟩."""
    return f"|{index:0{num_qubits}b}⟩"


def plot_probabilities(
    table: Dict[int, float],
    num_qubits: int,
    ax: Optional[plt.Axes] = None,
    title: Optional[str] = None,
    figsize: Tuple[float, float] = (8, 4),
    color: str = "tab:blue",
) -> plt.Axes:
    """
    Bar chart of a probability table, in the table's own order.

    Parameters
    ----------
    table : dict
        Output of ``NoisySimulator.probabilities``.
    num_qubits : int
        Width of the basis labels.
    ax : plt.Axes, optional
        Axes to draw on. If None, creates a new figure.

    Returns
    -------
    plt.Axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    labels = [basis_label(i, num_qubits) for i in table]
    ax.bar(range(len(table)), list(table.values()), color=color)
    ax.set_xticks(range(len(table)))
    ax.set_xticklabels(labels, rotation=45 if num_qubits > 3 else 0)
    ax.set_ylim(0, 1.05)
    ax.set_ylabel("Probability")
    ax.set_title(title or f"Measurement probabilities ({num_qubits} qubits)")
    return ax


def plot_outcome_frequencies(
    outcomes: Sequence[int],
    num_qubits: int,
    exact: Optional[np.ndarray] = None,
    ax: Optional[plt.Axes] = None,
    figsize: Tuple[float, float] = (8, 4),
) -> plt.Axes:
    """
    Histogram of sampled outcomes (e.g. over many trajectories), with the
    exact distribution overlaid as markers when given.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    dim = 1 << num_qubits
    counts = np.bincount(np.asarray(outcomes, dtype=np.int64), minlength=dim)
    frequencies = counts / max(len(outcomes), 1)
    positions = np.arange(dim)

    ax.bar(positions, frequencies, color="tab:gray", label=f"sampled (N={len(outcomes)})")
    if exact is not None:
        ax.plot(positions, exact, "o", color="tab:red", label="exact")
    ax.set_xticks(positions)
    ax.set_xticklabels([basis_label(i, num_qubits) for i in positions])
    ax.set_ylabel("Frequency")
    ax.legend()
    return ax
