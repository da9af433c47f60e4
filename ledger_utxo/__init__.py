"""
Ledger - UTXO Module

This module implements the UTXO (Unspent Transaction Output) identity and the
in-memory pool of unspent outputs that the transaction handler validates
against and commits into.
"""

from .utxo import UTXO
from .pool import UTXOPool

__all__ = ['UTXO', 'UTXOPool']
