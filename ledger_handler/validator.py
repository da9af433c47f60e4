"""
Implementation of transaction validation for the ledger.

A transaction is admissible against a pool when, in this order:

1. no UTXO is claimed more than once by the transaction,
2. every claimed UTXO is in the pool,
3. every input is signed by the owner of the UTXO it claims,
4. no output value is negative, and
5. the claimed UTXOs hold at least as much value as the outputs declare.

Validation never mutates the pool and never raises for a bad candidate.
"""

from enum import Enum
from typing import Any, List, Optional, Set, Tuple
import logging
from ledger_utxo.pool import UTXOPool
from ledger_utxo.utxo import UTXO
from ledger_transaction.crypto import Verifier, verify_signature
from ledger_transaction.transaction import TransactionOutput

logger = logging.getLogger(__name__)


class RejectionReason(Enum):
    """Why a candidate transaction was not admitted."""

    DUPLICATE_CLAIM = "duplicate_claim"
    UNKNOWN_OUTPUT = "unknown_output"
    SIGNATURE_MISMATCH = "signature_mismatch"
    NEGATIVE_OUTPUT = "negative_output"
    VALUE_DEFICIT = "value_deficit"
    ALREADY_ACCEPTED = "already_accepted"
    MALFORMED_TRANSACTION = "malformed_transaction"


class ValidationResult:
    """
    Outcome of validating one transaction.

    Truthy iff the transaction is valid.

    Attributes:
        valid (bool): Whether the transaction is admissible
        reason (Optional[RejectionReason]): First failing check, None if valid
        detail (Optional[str]): Human-readable description of the failure
    """

    __slots__ = ("valid", "reason", "detail")

    def __init__(
        self,
        valid: bool,
        reason: Optional[RejectionReason] = None,
        detail: Optional[str] = None
    ):
        self.valid = valid
        self.reason = reason
        self.detail = detail

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(True)

    @classmethod
    def reject(cls, reason: RejectionReason, detail: str) -> "ValidationResult":
        return cls(False, reason, detail)

    def __bool__(self) -> bool:
        return self.valid

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationResult):
            return NotImplemented
        return (self.valid, self.reason, self.detail) == (other.valid, other.reason, other.detail)

    def __repr__(self) -> str:
        if self.valid:
            return "ValidationResult(valid=True)"
        return f"ValidationResult(valid=False, reason={self.reason.value}, detail={self.detail!r})"


def _verify(verifier: Verifier, public_key: bytes, message: bytes, signature: Any) -> bool:
    try:
        return bool(verifier(public_key, message, signature))
    except Exception as e:
        logger.warning("Signature verifier failed: %s", e)
        return False


def _check(
    pool: UTXOPool,
    tx: Any,
    inputs: Tuple[Any, ...],
    outputs: Tuple[Any, ...],
    verifier: Verifier
) -> ValidationResult:
    seen: Set[UTXO] = set()
    claims = [UTXO(inp.prev_tx_hash, inp.output_index) for inp in inputs]

    for index, utxo in enumerate(claims):
        if utxo in seen:
            return ValidationResult.reject(
                RejectionReason.DUPLICATE_CLAIM,
                f"Input {index} claims {utxo} more than once"
            )
        seen.add(utxo)

    claimed: List[TransactionOutput] = []
    for index, utxo in enumerate(claims):
        tx_out = pool.get_tx_output(utxo)
        if tx_out is None:
            return ValidationResult.reject(
                RejectionReason.UNKNOWN_OUTPUT,
                f"Input {index} claims {utxo} which is not in the pool"
            )
        claimed.append(tx_out)

    for index, (tx_input, tx_out) in enumerate(zip(inputs, claimed)):
        message = tx.get_raw_data_to_sign(index)
        if not _verify(verifier, tx_out.address, message, tx_input.signature):
            return ValidationResult.reject(
                RejectionReason.SIGNATURE_MISMATCH,
                f"Invalid signature for input {index}"
            )

    input_sum = sum(tx_out.value for tx_out in claimed)
    output_sum = 0
    for index, output in enumerate(outputs):
        if output.value < 0:
            return ValidationResult.reject(
                RejectionReason.NEGATIVE_OUTPUT,
                f"Output {index} has negative value {output.value}"
            )
        output_sum += output.value

    if input_sum < output_sum:
        return ValidationResult.reject(
            RejectionReason.VALUE_DEFICIT,
            f"Output amount {output_sum} exceeds input amount {input_sum}"
        )

    return ValidationResult.ok()


def evaluate_transaction(
    pool: UTXOPool,
    tx: Any,
    verifier: Verifier = verify_signature
) -> Tuple[ValidationResult, Tuple[Any, ...], Tuple[Any, ...]]:
    """
    Validate a transaction and return the inputs and outputs that were checked.

    ``tx.inputs`` and ``tx.outputs`` are read exactly once. Anything that
    acts on the verdict must use the returned tuples, not re-read the
    candidate.

    Args:
        pool: Current set of unspent outputs (not modified)
        tx: Candidate transaction
        verifier: Signature primitive, (public_key, message, signature) -> bool

    Returns:
        Tuple of (verdict, inputs, outputs); inputs and outputs are empty
        when the candidate is malformed
    """
    try:
        inputs = tuple(tx.inputs)
        outputs = tuple(tx.outputs)
        return _check(pool, tx, inputs, outputs, verifier), inputs, outputs
    except (AttributeError, TypeError, ValueError, IndexError) as e:
        logger.warning("Malformed transaction candidate %r: %s", tx, e)
        verdict = ValidationResult.reject(
            RejectionReason.MALFORMED_TRANSACTION,
            f"Validation error: {str(e)}"
        )
        return verdict, (), ()


def check_transaction(
    pool: UTXOPool,
    tx: Any,
    verifier: Verifier = verify_signature
) -> ValidationResult:
    """
    Validate a transaction against a pool and report why it failed, if it did.

    A verifier that raises is treated as a failed signature check.

    Args:
        pool: Current set of unspent outputs (not modified)
        tx: Candidate transaction
        verifier: Signature primitive, (public_key, message, signature) -> bool

    Returns:
        ValidationResult naming the first failing check
    """
    return evaluate_transaction(pool, tx, verifier)[0]


def is_valid_tx(
    pool: UTXOPool,
    tx: Any,
    verifier: Verifier = verify_signature
) -> bool:
    """
    Check whether a transaction is admissible against a pool.

    Args:
        pool: Current set of unspent outputs (not modified)
        tx: Candidate transaction
        verifier: Signature primitive, (public_key, message, signature) -> bool

    Returns:
        bool: True if every check passes
    """
    return check_transaction(pool, tx, verifier).valid
