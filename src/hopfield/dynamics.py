# -*- coding: utf-8 -*-
"""
Asynchronous recovery dynamics (pattern completion).

Exposes:
- `recover`: random single-neuron sign updates from an initial state, until
  stagnation, exact recall of a stored memory, or budget exhaustion.
- `RecoveryResult`: full trajectory (states + energies) and terminal status.
- `RecoveryStatus`: CONVERGED | EXHAUSTED.

Key dependencies:
- hopfield.networks.ClassicalHopfieldModel (read-only, shareable)
- hopfield.metrics.compute_energy
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np
from tqdm.auto import tqdm

from .config import RecoveryParams
from .metrics import compute_energy, local_field, matching_memory
from .networks import ClassicalHopfieldModel


__all__ = [
    "RecoveryStatus",
    "RecoveryResult",
    "recover",
]

logger = logging.getLogger(__name__)


class RecoveryStatus(str, Enum):
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True, eq=False)
class RecoveryResult:
    """Trajectory of one recovery run.

    Row t-1 of `frames` / `energies` is step t (steps are 1-based).
    """
    frames: np.ndarray        # (T, N) int32
    energies: np.ndarray      # (T,) float64
    status: RecoveryStatus
    stop_step: int
    stagnated: bool = False
    recalled: Optional[int] = None   # index of the matched memory, if any
    reference_energy: Optional[float] = None

    @property
    def converged(self) -> bool:
        return self.status is RecoveryStatus.CONVERGED

    @property
    def n_steps(self) -> int:
        return int(self.frames.shape[0])

    @property
    def final_state(self) -> np.ndarray:
        return self.frames[-1]

    @property
    def final_energy(self) -> float:
        return float(self.energies[-1])

    def frame_dict(self) -> Dict[int, np.ndarray]:
        return {t + 1: self.frames[t] for t in range(self.n_steps)}

    def energy_dict(self) -> Dict[int, float]:
        return {t + 1: float(self.energies[t]) for t in range(self.n_steps)}

    def as_tuple(self) -> Tuple[Dict[int, np.ndarray], Dict[int, float]]:
        """(step -> state, step -> energy) mappings."""
        return self.frame_dict(), self.energy_dict()


def _check_initial_state(model: ClassicalHopfieldModel, initial_state) -> np.ndarray:
    s0 = np.asarray(initial_state)
    if s0.ndim != 1 or s0.shape[0] != model.N:
        raise ValueError(f"initial_state must have shape ({model.N},); got {s0.shape}")
    if not np.all(np.isin(s0, (-1, 1))):
        raise ValueError("initial_state must contain only -1 and +1 entries.")
    return s0.astype(np.int32)


def _stagnated(history: deque, patience: int) -> bool:
    if len(history) != patience:
        return False
    first = history[0]
    return all(np.array_equal(h, first) for h in history)


def recover(
    model: ClassicalHopfieldModel,
    initial_state,
    reference_energy: Optional[float] = None,
    params: Optional[RecoveryParams] = None,
    *,
    rng: Optional[np.random.Generator] = None,
    show_progress: bool = False,
    desc: str = "recover",
    **overrides,
) -> RecoveryResult:
    """
    Recover a stored memory from `initial_state` with asynchronous updates.

    Parameters
    ----------
    model : ClassicalHopfieldModel
        Built model; never modified.
    initial_state : (N,) in {-1, +1}
        Starting state. Copied, the caller's array is left untouched.
    reference_energy : float, optional
        Diagnostic value (e.g. energy of the true memory). Stored on the
        result for later comparison, not used to decide termination.
    params : RecoveryParams, optional
        Budget and convergence parameters. Defaults to `RecoveryParams()`.
    rng : np.random.Generator, optional
        Source of neuron indices. A fresh default generator if omitted.
    show_progress : bool
        Wrap the iteration loop in a tqdm bar.
    **overrides
        Fields of `RecoveryParams` to override, e.g. ``max_iterations=200``.

    Returns
    -------
    RecoveryResult
        Frames and energies for steps 1..T and the terminal status.
    """
    params = RecoveryParams() if params is None else params
    if overrides:
        params = params.copy_with(**overrides)
    σ = _check_initial_state(model, initial_state)
    rng = np.random.default_rng() if rng is None else rng

    N = model.N
    patience = params.patience
    t_min = int(params.min_iterations_before_convergence)
    T_max = int(params.max_iterations)

    # one row per executed step
    frames: List[np.ndarray] = []
    energies: List[float] = []
    history: deque = deque(maxlen=patience)

    converged = False
    stagnated = False
    recalled: Optional[int] = None
    t = 0

    iterator = range(1, T_max + 1)
    if show_progress:
        iterator = tqdm(iterator, desc=desc, leave=False)
    for t in iterator:
        i = int(rng.integers(0, N))
        h = local_field(model, σ, i)
        σ[i] = 1 if h >= 0.0 else -1

        snapshot = σ.copy()
        frames.append(snapshot)
        energies.append(compute_energy(model, σ))

        if patience is not None:
            history.append(snapshot)

        if t >= t_min:
            stagnated = patience is not None and _stagnated(history, patience)
            # recall is checked even when stagnation already fired
            recalled = matching_memory(model, σ)
            converged = stagnated or recalled is not None

        if converged:
            break

    if converged:
        status = RecoveryStatus.CONVERGED
        logger.debug("converged at step %d (stagnated=%s, recalled=%s)", t, stagnated, recalled)
    else:
        status = RecoveryStatus.EXHAUSTED
        logger.debug("budget exhausted after %d steps", t)

    return RecoveryResult(
        frames=np.stack(frames).astype(np.int32, copy=False),
        energies=np.asarray(energies, dtype=np.float64),
        status=status,
        stop_step=t,
        stagnated=stagnated,
        recalled=recalled,
        reference_energy=None if reference_energy is None else float(reference_energy),
    )
