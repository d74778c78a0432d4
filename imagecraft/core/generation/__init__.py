"""
Multi-provider generation core.

Exports:
  - GenerationOrchestrator: Fan-out coordinator
  - Success, Failure, ProviderOutcome: Per-provider outcomes
  - reconcile, Reconciliation: Final status computation
  - MergeLocks: Per-message merge serialization
"""

from imagecraft.core.generation.merge_locks import MergeLocks
from imagecraft.core.generation.orchestrator import (
    SETTLEMENT_ERROR_KEY,
    GenerationOrchestrator,
)
from imagecraft.core.generation.outcomes import (
    NO_IMAGES_GENERATED,
    Failure,
    ProviderOutcome,
    Success,
)
from imagecraft.core.generation.reconciler import (
    Reconciliation,
    reconcile,
)

__all__ = [
    "MergeLocks",
    "SETTLEMENT_ERROR_KEY",
    "GenerationOrchestrator",
    "NO_IMAGES_GENERATED",
    "Failure",
    "ProviderOutcome",
    "Success",
    "Reconciliation",
    "reconcile",
]
