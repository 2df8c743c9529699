# -*- coding: utf-8 -*-
"""
Batch recovery test for a built Hopfield model.

Starting from corrupted copies of every stored memory, runs the asynchronous
recovery dynamics and measures how well each memory is restored: final
overlap (magnetisation) with the target, exact recall rate, convergence rate,
number of steps and residual Hamming distance.

Main API
--------
- corrupt_like_memories(...) : initial states with a controlled number of flips.
- run_recovery_test(...)     : runs `recover` on every initial state.
- RecoveryEvalResult         : per-memory and overall statistics.

Each run owns its own state and trajectory; the model is shared read-only.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from tqdm.auto import tqdm

from .config import EvalParams, RecoveryParams
from .data import corrupt_state
from .dynamics import recover
from .metrics import hamming, overlap
from .networks import ClassicalHopfieldModel


__all__ = [
    "corrupt_like_memories",
    "run_recovery_test",
    "run_recovery_test_from_params",
    "RecoveryEvalResult",
]

logger = logging.getLogger(__name__)


def corrupt_like_memories(
    memories: np.ndarray,
    reps_per_memory: int,
    flip_fraction: float = 0.1,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Corrupted copies of each memory.

    Parameters
    ----------
    memories : (N, K) in {-1, +1}
    reps_per_memory : int
        Number of copies per memory.
    flip_fraction : float in [0, 1]
        Fraction of entries flipped in each copy.
    rng : np.random.Generator, optional

    Returns
    -------
    σ0 : (K * reps_per_memory, N) int32
    targets : (K * reps_per_memory,) int
        Memory index each initial state was derived from.
    """
    rng = np.random.default_rng() if rng is None else rng
    memories = np.asarray(memories)
    if memories.ndim != 2:
        raise ValueError(f"memories must have shape (N, K); got {memories.shape}")
    N, K = memories.shape
    total = K * int(reps_per_memory)
    σ0 = np.empty((total, N), dtype=np.int32)
    targets = np.empty((total,), dtype=int)

    r = 0
    for μ in range(K):
        for _ in range(int(reps_per_memory)):
            σ0[r] = corrupt_state(memories[:, μ], flip_fraction, rng=rng)
            targets[r] = μ
            r += 1
    return σ0, targets


@dataclass
class RecoveryEvalResult:
    """Aggregated results of the batch recovery test."""
    overlap_by_mu: Dict[int, np.ndarray]   # μ -> (reps,) final overlaps
    mean_by_mu: Dict[int, float]
    std_by_mu: Dict[int, float]
    recall_rate_by_mu: Dict[int, float]
    mean_steps_by_mu: Dict[int, float]
    mean_hamming_by_mu: Dict[int, float]
    overall_mean: float
    overall_std: float
    success_rate: float
    convergence_rate: float

    def summary(self) -> Dict[str, Any]:
        """JSON-serialisable view (no arrays)."""
        return {
            "mean_by_mu": {int(k): float(v) for k, v in self.mean_by_mu.items()},
            "std_by_mu": {int(k): float(v) for k, v in self.std_by_mu.items()},
            "recall_rate_by_mu": {int(k): float(v) for k, v in self.recall_rate_by_mu.items()},
            "mean_steps_by_mu": {int(k): float(v) for k, v in self.mean_steps_by_mu.items()},
            "mean_hamming_by_mu": {int(k): float(v) for k, v in self.mean_hamming_by_mu.items()},
            "overall_mean": self.overall_mean,
            "overall_std": self.overall_std,
            "success_rate": self.success_rate,
            "convergence_rate": self.convergence_rate,
        }


def run_recovery_test(
    model: ClassicalHopfieldModel,
    reps_per_memory: int = 8,
    flip_fraction: float = 0.1,
    params: Optional[RecoveryParams] = None,
    rng: Optional[np.random.Generator] = None,
    show_progress: bool = False,
) -> RecoveryEvalResult:
    """
    Run the recovery dynamics from corrupted copies of every stored memory.

    Parameters
    ----------
    model : ClassicalHopfieldModel
    reps_per_memory : int
        Copies per memory.
    flip_fraction : float
        Fraction of flipped entries in each initial state.
    params : RecoveryParams, optional
        Passed through to `recover`.
    rng : np.random.Generator, optional
        Drives both corruption and neuron selection.
    show_progress : bool
        tqdm bar over the runs.

    Returns
    -------
    RecoveryEvalResult
    """
    rng = np.random.default_rng() if rng is None else rng
    params = RecoveryParams() if params is None else params
    K = model.K
    σ0, targets = corrupt_like_memories(model.memories, reps_per_memory, flip_fraction, rng=rng)

    ov: Dict[int, List[float]] = {μ: [] for μ in range(K)}
    hits: Dict[int, List[bool]] = {μ: [] for μ in range(K)}
    steps: Dict[int, List[int]] = {μ: [] for μ in range(K)}
    dist: Dict[int, List[int]] = {μ: [] for μ in range(K)}
    n_converged = 0

    iterator = range(σ0.shape[0])
    if show_progress:
        iterator = tqdm(iterator, desc="recovery test", leave=False)
    for r in iterator:
        μ = int(targets[r])
        target = model.memories[:, μ]
        res = recover(model, σ0[r], float(model.energy[μ]), params, rng=rng)
        final = res.final_state
        ov[μ].append(overlap(final, target))
        hits[μ].append(bool(np.array_equal(final, target)))
        steps[μ].append(res.n_steps)
        dist[μ].append(hamming(final, target))
        n_converged += int(res.converged)

    overlap_by_mu = {μ: np.asarray(v, dtype=float) for μ, v in ov.items()}
    mean_by_mu = {μ: float(v.mean()) if v.size else 0.0 for μ, v in overlap_by_mu.items()}
    std_by_mu = {μ: float(v.std(ddof=1)) if v.size > 1 else 0.0 for μ, v in overlap_by_mu.items()}
    all_vals = np.concatenate(list(overlap_by_mu.values()), axis=0)
    all_hits = [h for v in hits.values() for h in v]

    result = RecoveryEvalResult(
        overlap_by_mu=overlap_by_mu,
        mean_by_mu=mean_by_mu,
        std_by_mu=std_by_mu,
        recall_rate_by_mu={μ: float(np.mean(v)) for μ, v in hits.items()},
        mean_steps_by_mu={μ: float(np.mean(v)) for μ, v in steps.items()},
        mean_hamming_by_mu={μ: float(np.mean(v)) for μ, v in dist.items()},
        overall_mean=float(all_vals.mean()),
        overall_std=float(all_vals.std(ddof=1)) if all_vals.size > 1 else 0.0,
        success_rate=float(np.mean(all_hits)),
        convergence_rate=n_converged / float(σ0.shape[0]),
    )
    logger.info(
        "recovery test: K=%d reps=%d flip=%.2f success=%.3f mean overlap=%.3f",
        K, reps_per_memory, flip_fraction, result.success_rate, result.overall_mean,
    )
    return result


def run_recovery_test_from_params(model: ClassicalHopfieldModel, ep: EvalParams) -> RecoveryEvalResult:
    """`run_recovery_test` driven by an `EvalParams` bundle."""
    rng = np.random.default_rng(ep.seed)
    return run_recovery_test(
        model,
        reps_per_memory=ep.reps_per_memory,
        flip_fraction=ep.flip_fraction,
        params=ep.recovery,
        rng=rng,
        show_progress=ep.use_tqdm,
    )
