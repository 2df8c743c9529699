# -*- coding: utf-8 -*-
"""
Core metrics on bipolar states:

- Energy E(s) = -1/2 s^T W s - b^T s.
- Local field h_i = sum_j W_ij s_j - b_i.
- Hamming distance and normalised overlap (magnetisation).
- Exact match of a state against the stored memories.
"""
from __future__ import annotations

from typing import Optional

import numpy as np

from .networks import ClassicalHopfieldModel, tf


__all__ = [
    "compute_energy",
    "local_field",
    "hamming",
    "overlap",
    "matching_memory",
]


def _check_state(model: ClassicalHopfieldModel, state) -> np.ndarray:
    s = np.asarray(state)
    if s.ndim != 1 or s.shape[0] != model.N:
        raise ValueError(f"state must have shape ({model.N},); got {s.shape}")
    return s


def compute_energy(model: ClassicalHopfieldModel, state) -> float:
    """
    E(s) = -1/2 s^T W s - b^T s
    """
    s = _check_state(model, state).astype(np.float64)
    return float(-0.5 * s @ tf.einsum('ij,j->i', model.W, s) - model.b @ s)


def local_field(model: ClassicalHopfieldModel, state, i: int) -> float:
    """
    h_i = sum_j W_ij s_j - b_i, evaluated on the current state.
    """
    s = _check_state(model, state)
    return float(model.W[i] @ s - model.b[i])


def _check_pair(a: np.ndarray, b: np.ndarray, name: str) -> None:
    if a.ndim != 1 or b.ndim != 1 or a.shape != b.shape:
        raise ValueError(f"{name} needs equal-length 1D vectors; got shapes {a.shape} and {b.shape}")


def hamming(a, b) -> int:
    """Number of positions where a and b differ."""
    a = np.asarray(a)
    b = np.asarray(b)
    _check_pair(a, b, "hamming")
    return int(np.count_nonzero(a != b))


def overlap(a, b) -> float:
    """
    m = <a, b> / N, in [-1, 1] for bipolar vectors.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    _check_pair(a, b, "overlap")
    if a.size == 0:
        return 0.0
    return float(a @ b / a.size)


def matching_memory(model: ClassicalHopfieldModel, state) -> Optional[int]:
    """Index of the first stored memory equal to `state`, or None."""
    s = _check_state(model, state)
    hits = np.flatnonzero(np.all(model.memories == s[:, None], axis=0))
    return int(hits[0]) if hits.size else None
