# src/hopfield/data.py
from __future__ import annotations

import math
from typing import Optional

import numpy as np

from .networks import tf


__all__ = [
    "decode",
    "encode",
    "gen_patterns",
    "corrupt_state",
]


def decode(state) -> np.ndarray:
    """
    Map a bipolar vector of length N = n^2 to an (n, n) image in {0.0, 1.0}.

    -1 -> 0.0, +1 -> 1.0. The reshape is column-major, the inverse of `encode`.
    """
    s = np.asarray(state).ravel()
    N = s.shape[0]
    n = math.isqrt(N)
    if n * n != N:
        raise ValueError(f"decode: length must be a perfect square; got N={N}")
    return (s == 1).astype(np.float64).reshape((n, n), order="F")


def encode(image, threshold: float = 0.5) -> np.ndarray:
    """
    Flatten an image into a bipolar vector: pixels > threshold -> +1, else -1.
    """
    img = np.asarray(image, dtype=np.float64)
    if img.ndim != 2:
        raise ValueError(f"encode expects a 2D image; got shape {img.shape}")
    return np.where(img.ravel(order="F") > float(threshold), 1, -1).astype(np.int32)


def gen_patterns(N: int, K: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    K random bipolar memories of dimension N, one per column: shape (N, K).
    """
    if N <= 0 or K <= 0:
        raise ValueError(f"N and K must be positive; got N={N}, K={K}")
    rng = np.random.default_rng() if rng is None else rng
    return tf.sign(rng.standard_normal(size=(N, K))).astype(np.int32)


def corrupt_state(state, flip_fraction: float, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Flip exactly round(flip_fraction * N) distinct entries of a bipolar state.

    Returns a new array; the input is left untouched.
    """
    if not (0.0 <= float(flip_fraction) <= 1.0):
        raise ValueError(f"flip_fraction must be in [0, 1]; got {flip_fraction}")
    rng = np.random.default_rng() if rng is None else rng
    σ = np.array(state, dtype=np.int32).ravel()
    n_flip = int(round(float(flip_fraction) * σ.shape[0]))
    if n_flip:
        idx = rng.choice(σ.shape[0], size=n_flip, replace=False)
        σ[idx] *= -1
    return σ
