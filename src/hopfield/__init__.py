"""
Classical Hopfield associative memory: Hebbian builder, energy, asynchronous recovery.
"""

from .config import RecoveryParams, EvalParams
from .networks import ClassicalHopfieldModel, build
from .metrics import (
    compute_energy,
    local_field,
    hamming,
    overlap,
    matching_memory,
)
from .data import decode, encode, gen_patterns, corrupt_state
from .dynamics import RecoveryStatus, RecoveryResult, recover
from .hopfield_eval import (
    RecoveryEvalResult,
    corrupt_like_memories,
    run_recovery_test,
    run_recovery_test_from_params,
)

__all__ = [
    "RecoveryParams",
    "EvalParams",
    "ClassicalHopfieldModel",
    "build",
    "compute_energy",
    "local_field",
    "hamming",
    "overlap",
    "matching_memory",
    "decode",
    "encode",
    "gen_patterns",
    "corrupt_state",
    "RecoveryStatus",
    "RecoveryResult",
    "recover",
    "RecoveryEvalResult",
    "corrupt_like_memories",
    "run_recovery_test",
    "run_recovery_test_from_params",
]
