"""
Ledger - Transaction Module

This module implements the transaction records the handler consumes: inputs
that claim existing UTXOs, outputs that create new ones, and the Ed25519
primitive used to authorize each claim.
"""

from .transaction import Transaction, TransactionInput, TransactionOutput
from .crypto import generate_keypair, sign_message, verify_signature

__all__ = [
    'Transaction',
    'TransactionInput',
    'TransactionOutput',
    'generate_keypair',
    'sign_message',
    'verify_signature',
]
