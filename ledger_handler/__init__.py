"""
Ledger - Handler Module

This module implements transaction validation against a UTXO pool and the
greedy, order-preserving commitment of a batch of candidate transactions.
"""

from .validator import (
    RejectionReason,
    ValidationResult,
    check_transaction,
    evaluate_transaction,
    is_valid_tx
)
from .handler import BatchResult, TxHandler, commit_batch

__all__ = [
    'RejectionReason',
    'ValidationResult',
    'check_transaction',
    'evaluate_transaction',
    'is_valid_tx',
    'BatchResult',
    'TxHandler',
    'commit_batch',
]
