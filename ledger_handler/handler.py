"""
Implementation of batch commitment for the ledger.

Each epoch a batch of candidate transactions is checked against the current
pool and a mutually consistent subset is committed into it. Selection is
greedy and follows the order the candidates are given in: when two
candidates conflict, the one seen first wins. No other ordering is searched.
"""

from typing import Any, Iterable, List, Set, Tuple
import logging
from ledger_utxo.pool import UTXOPool
from ledger_utxo.utxo import UTXO
from ledger_transaction.crypto import Verifier, verify_signature
from ledger_transaction.transaction import Transaction
from .validator import (
    RejectionReason,
    ValidationResult,
    check_transaction,
    evaluate_transaction
)

logger = logging.getLogger(__name__)


class BatchResult:
    """
    Outcome of committing one batch.

    Attributes:
        accepted (List[Transaction]): Committed transactions, in iteration order
        rejected (List[Tuple[Any, ValidationResult]]): Skipped candidates with the reason
        pool (UTXOPool): The pool after commitment
    """

    def __init__(self, pool: UTXOPool):
        self.accepted: List[Transaction] = []
        self.rejected: List[Tuple[Any, ValidationResult]] = []
        self.pool = pool


def _apply(
    pool: UTXOPool,
    tx_hash: bytes,
    inputs: Tuple[Any, ...],
    outputs: Tuple[Any, ...]
) -> None:
    for tx_input in inputs:
        pool.remove_utxo(UTXO(tx_input.prev_tx_hash, tx_input.output_index))
    for index, output in enumerate(outputs):
        pool.add_utxo(UTXO(tx_hash, index), output)


def commit_batch(
    pool: UTXOPool,
    candidates: Iterable[Any],
    verifier: Verifier = verify_signature
) -> BatchResult:
    """
    Validate candidates in order and commit every admissible one into ``pool``.

    Each candidate is validated against the pool as already modified by the
    candidates accepted before it, so a UTXO spent earlier in the batch makes
    any later claim on it invalid. A transaction is accepted at most once per
    batch; repeated copies are rejected as ALREADY_ACCEPTED. Rejected
    candidates leave the pool untouched. An accepted candidate is committed
    from the same inputs and outputs that were validated, and the function
    never raises for a bad candidate or a failing verifier.

    Args:
        pool: Pool to commit into (modified in place)
        candidates: Candidate transactions, processed in the order given
        verifier: Signature primitive, (public_key, message, signature) -> bool

    Returns:
        BatchResult with accepted and rejected candidates and the final pool
    """
    result = BatchResult(pool)
    accepted_hashes: Set[bytes] = set()

    for tx in candidates:
        tx_hash = getattr(tx, "hash", None)
        if not isinstance(tx_hash, bytes):
            logger.warning("Malformed transaction candidate %r: missing hash", tx)
            verdict = ValidationResult.reject(
                RejectionReason.MALFORMED_TRANSACTION,
                "Transaction has no hash"
            )
        elif tx_hash in accepted_hashes:
            verdict = ValidationResult.reject(
                RejectionReason.ALREADY_ACCEPTED,
                "Transaction already accepted in this batch"
            )
        else:
            verdict, inputs, outputs = evaluate_transaction(pool, tx, verifier)

        if not verdict:
            logger.debug("Rejected %r: %s (%s)", tx, verdict.reason.value, verdict.detail)
            result.rejected.append((tx, verdict))
            continue

        _apply(pool, tx_hash, inputs, outputs)
        accepted_hashes.add(tx_hash)
        result.accepted.append(tx)
        logger.debug("Accepted %s", tx_hash.hex()[:16])

    logger.info(
        "Batch committed: %d accepted, %d rejected, %d unspent outputs",
        len(result.accepted),
        len(result.rejected),
        len(pool)
    )
    return result


class TxHandler:
    """
    Holds a ledger's pool of unspent outputs and processes epochs against it.

    Attributes:
        _utxo_pool (UTXOPool): The handler's own copy of the pool
        verifier (Verifier): Signature primitive used for every check
    """

    def __init__(self, utxo_pool: UTXOPool, verifier: Verifier = verify_signature):
        """
        Initialize handler.

        Args:
            utxo_pool: Starting pool. The handler keeps a copy and never
                       modifies the caller's pool.
            verifier: Signature primitive, (public_key, message, signature) -> bool
        """
        self._utxo_pool = UTXOPool(utxo_pool)
        self.verifier = verifier

    def get_utxo_pool(self) -> UTXOPool:
        """Return a copy of the current pool."""
        return self._utxo_pool.copy()

    def check_tx(self, tx: Any) -> ValidationResult:
        """Validate a transaction against the current pool, with the reason."""
        return check_transaction(self._utxo_pool, tx, self.verifier)

    def is_valid_tx(self, tx: Any) -> bool:
        """
        Check whether a transaction is admissible against the current pool.

        Does not modify the pool, so it is safe to call speculatively.
        """
        return self.check_tx(tx).valid

    def handle_txs(self, possible_txs: Iterable[Any]) -> List[Transaction]:
        """
        Handle one epoch of proposed transactions.

        Args:
            possible_txs: Proposed transactions, processed in the order given

        Returns:
            List of accepted transactions, in the order they were committed
        """
        return commit_batch(self._utxo_pool, possible_txs, self.verifier).accepted
