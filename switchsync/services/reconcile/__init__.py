"""
Reconcile Layer - Desired state to device writes

Responsibilities:
- Diff desired params against a fresh live snapshot
- Validate the whole batch before writing
- Submit one batched write and verify convergence
"""

from .compare import is_numeric_text, loose_equals
from .models import (
    ChangeRecord,
    DesiredChange,
    LiveSnapshot,
    ReconciliationResult,
    ResultKind,
    ValidationReason,
    parse_desired,
)
from .reconciler import Reconciler
from .service import ReconcileService
from .verifier import ConvergenceVerifier, VerificationOutcome

__all__ = [
    "ChangeRecord",
    "ConvergenceVerifier",
    "DesiredChange",
    "LiveSnapshot",
    "ReconcileService",
    "Reconciler",
    "ReconciliationResult",
    "ResultKind",
    "ValidationReason",
    "VerificationOutcome",
    "is_numeric_text",
    "loose_equals",
    "parse_desired",
]
