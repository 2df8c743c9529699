# -*- coding: utf-8 -*-
"""
Configuration and hyperparameters for the recovery dynamics.

Exposes two frozen dataclasses:
- `RecoveryParams`: budget and convergence parameters of `dynamics.recover`.
- `EvalParams`: parameters of the batch recovery test in `hopfield_eval`.

Notes:
- `patience=None` disables the stagnation check (only exact recall of a
  stored memory can then stop the loop early).
- `min_iterations_before_convergence=None` falls back to `patience`, or to 1
  when patience is disabled too.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class RecoveryParams:
    """Parameters of the asynchronous recovery loop."""
    max_iterations: int = 1000
    patience: Optional[int] = 5
    min_iterations_before_convergence: Optional[int] = None
    # True when the threshold was filled in from patience
    _derived_threshold: bool = field(default=False, init=False, repr=False, compare=False)

    def __post_init__(self):
        if int(self.max_iterations) < 1:
            raise ValueError(f"max_iterations must be >= 1; got {self.max_iterations}")
        if self.patience is not None and int(self.patience) < 1:
            raise ValueError(f"patience must be >= 1 or None; got {self.patience}")
        if self.min_iterations_before_convergence is None:
            fallback = self.patience if self.patience is not None else 1
            object.__setattr__(self, "min_iterations_before_convergence", int(fallback))
            object.__setattr__(self, "_derived_threshold", True)
        elif int(self.min_iterations_before_convergence) < 1:
            raise ValueError(
                "min_iterations_before_convergence must be >= 1; "
                f"got {self.min_iterations_before_convergence}"
            )

    @property
    def stagnation_enabled(self) -> bool:
        return self.patience is not None

    def copy_with(self, **kwargs) -> "RecoveryParams":
        """Clone with some fields overridden (handy for sweeps)."""
        data = {k: v for k, v in self.__dict__.items() if k != "_derived_threshold"}
        # a derived threshold follows patience; an explicit one is kept
        if self._derived_threshold and "min_iterations_before_convergence" not in kwargs:
            data["min_iterations_before_convergence"] = None
        data.update(kwargs)
        return RecoveryParams(**data)


@dataclass(frozen=True)
class EvalParams:
    """Parameters of the batch recovery test."""
    reps_per_memory: int = 8
    flip_fraction: float = 0.1
    recovery: RecoveryParams = field(default_factory=RecoveryParams)
    seed: Optional[int] = None
    use_tqdm: bool = False

    def __post_init__(self):
        if int(self.reps_per_memory) < 1:
            raise ValueError(f"reps_per_memory must be >= 1; got {self.reps_per_memory}")
        if not (0.0 <= float(self.flip_fraction) <= 1.0):
            raise ValueError(f"flip_fraction must be in [0, 1]; got {self.flip_fraction}")
