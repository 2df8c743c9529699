# -*- coding: utf-8 -*-
"""
Classical Hopfield network: model container and Hebbian builder.

The memory set is an (N, K) array in {-1, +1}: column k is memory k.
`build` computes

    W = (1/K) * sum_k m_k m_k^T,   W_ii = 0,   b = 0

and the reference energy E_k = -1/2 m_k^T W m_k of every stored memory.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np


__all__ = [
    "ClassicalHopfieldModel",
    "build",
]

logger = logging.getLogger(__name__)

# Load ratio K/N above which the classical network stops recalling reliably
CAPACITY_RATIO = 0.138


# Minimal NumPy backend with the ops used by the builder and the dynamics
class _Backend:
    def einsum(self, subscripts, *operands):
        # Fast paths for the contractions used in this package
        if subscripts == 'ik,jk->ij' and len(operands) == 2:
            A, B = operands
            return A @ B.T
        if subscripts == 'ij,j->i' and len(operands) == 2:
            J, s = operands
            return J @ s
        if subscripts == 'ik,ij,jk->k' and len(operands) == 3:
            A, J, B = operands
            return np.sum(A * (J @ B), axis=0)
        raise ValueError(f"unsupported contraction {subscripts!r}")

    def sign(self, x):
        # ties go to +1
        return np.where(np.asarray(x) >= 0, 1, -1)


tf = _Backend()


@dataclass(frozen=True, eq=False)
class ClassicalHopfieldModel:
    """Immutable Hopfield model.

    Attributes
    ----------
    W : (N, N) float64, symmetric, zero diagonal
    b : (N,) float64, identically zero
    energy : (K,) float64, reference energy of each stored memory
    memories : (N, K) int32, retained copy of the memory set
    """
    W: np.ndarray
    b: np.ndarray
    energy: np.ndarray
    memories: np.ndarray

    def __post_init__(self):
        # private read-only copies; the caller's arrays stay writeable
        for name in ("W", "b", "energy", "memories"):
            arr = np.array(getattr(self, name))
            arr.flags.writeable = False
            object.__setattr__(self, name, arr)

    @property
    def N(self) -> int:
        return int(self.W.shape[0])

    @property
    def K(self) -> int:
        return int(self.memories.shape[1])

    def memory(self, k: int) -> np.ndarray:
        """Column k of the memory set (read-only view)."""
        if not (0 <= k < self.K):
            raise IndexError(f"memory index k={k} out of range [0, {self.K - 1}]")
        return self.memories[:, k]


def _as_memory_matrix(memories) -> np.ndarray:
    if memories is None:
        raise ValueError("build requires a `memories` array of shape (N, K).")
    try:
        M = np.asarray(memories)
    except ValueError as exc:
        # ragged nested sequences
        raise ValueError(f"memories must be rectangular: {exc}") from exc
    if M.dtype == object or M.ndim != 2:
        raise ValueError(f"memories must be a rectangular 2D array (N, K); got shape {M.shape}")
    N, K = M.shape
    if N == 0 or K == 0:
        raise ValueError(f"memories must be non-empty; got shape {M.shape}")
    if not np.all(np.isin(M, (-1, 1))):
        raise ValueError("memories must contain only -1 and +1 entries.")
    return M.astype(np.int32)


def build(memories) -> ClassicalHopfieldModel:
    """
    Build a classical Hopfield model with Hebb's rule.

    Parameters
    ----------
    memories : array-like (N, K) in {-1, +1}
        One memory per column.

    Returns
    -------
    ClassicalHopfieldModel
    """
    ξ = _as_memory_matrix(memories)
    N, K = ξ.shape

    ξf = ξ.astype(np.float64)
    W = tf.einsum('ik,jk->ij', ξf, ξf) / float(K)
    np.fill_diagonal(W, 0.0)

    b = np.zeros(N, dtype=np.float64)
    energy = -0.5 * tf.einsum('ik,ij,jk->k', ξf, W, ξf)

    logger.debug("built Hopfield model N=%d K=%d", N, K)
    if K / N > CAPACITY_RATIO:
        logger.warning(
            "load ratio K/N=%.3f exceeds capacity %.3f; recall may be unreliable",
            K / N, CAPACITY_RATIO,
        )
    return ClassicalHopfieldModel(W=W, b=b, energy=np.asarray(energy, dtype=np.float64), memories=ξ)
