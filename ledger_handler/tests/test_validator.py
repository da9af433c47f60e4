"""
Tests for transaction validation.
"""

import pytest
from ledger_utxo.utxo import UTXO
from ledger_utxo.pool import UTXOPool
from ledger_transaction.transaction import (
    Transaction,
    TransactionInput,
    TransactionOutput
)
from ledger_handler.validator import (
    RejectionReason,
    ValidationResult,
    check_transaction,
    evaluate_transaction,
    is_valid_tx
)


@pytest.fixture
def pool(genesis_hash, alice, carol):
    """Pool holding 10 and 5 for alice and 4 for carol."""
    pool = UTXOPool()
    pool.add_utxo(UTXO(genesis_hash, 0), TransactionOutput(10, alice.public_key))
    pool.add_utxo(UTXO(genesis_hash, 1), TransactionOutput(5, alice.public_key))
    pool.add_utxo(UTXO(genesis_hash, 2), TransactionOutput(4, carol.public_key))
    return pool


def spend(claims, outputs, keys):
    """Build a transaction claiming (hash, index) pairs and sign it."""
    tx = Transaction(
        inputs=[TransactionInput(tx_hash, index) for tx_hash, index in claims],
        outputs=[TransactionOutput(value, address) for value, address in outputs]
    )
    return tx.sign([key.private_key for key in keys])


def test_valid_spend(pool, genesis_hash, alice, bob):
    """Scenario: 10 owned by alice paid in full to bob."""
    tx = spend([(genesis_hash, 0)], [(10, bob.public_key)], [alice])
    assert is_valid_tx(pool, tx)
    result = check_transaction(pool, tx)
    assert result.valid
    assert result.reason is None
    assert result


def test_valid_spend_with_fee_and_change(pool, genesis_hash, alice, bob, carol):
    """Inputs may exceed outputs; several owners may sign one transaction."""
    tx = spend(
        [(genesis_hash, 0), (genesis_hash, 1), (genesis_hash, 2)],
        [(12, bob.public_key), (6, alice.public_key)],
        [alice, alice, carol]
    )
    assert is_valid_tx(pool, tx)


def test_zero_value_outputs_are_allowed(pool, genesis_hash, alice, bob):
    """Outputs worth zero are not negative and are admissible."""
    tx = spend([(genesis_hash, 1)], [(0, bob.public_key), (5, bob.public_key)], [alice])
    assert is_valid_tx(pool, tx)


def test_unknown_output(pool, alice, bob):
    """Claims on a transaction hash the pool has never seen are rejected."""
    tx = spend([(b"\x99" * 32, 0)], [(1, bob.public_key)], [alice])
    result = check_transaction(pool, tx)
    assert not result
    assert result.reason is RejectionReason.UNKNOWN_OUTPUT
    assert not is_valid_tx(pool, tx)


def test_unknown_output_index(pool, genesis_hash, alice, bob):
    """Claims on a missing position of a known transaction are rejected."""
    tx = spend([(genesis_hash, 3)], [(1, bob.public_key)], [alice])
    assert check_transaction(pool, tx).reason is RejectionReason.UNKNOWN_OUTPUT


def test_duplicate_claim(pool, genesis_hash, alice, bob):
    """Two inputs on the same UTXO fail even if everything else is fine."""
    tx = spend(
        [(genesis_hash, 0), (genesis_hash, 0)],
        [(1, bob.public_key)],
        [alice, alice]
    )
    result = check_transaction(pool, tx)
    assert result.reason is RejectionReason.DUPLICATE_CLAIM
    assert "Input 1" in result.detail


def test_duplicate_claim_checked_before_existence(pool, alice, bob):
    """An unknown UTXO claimed twice is reported as a duplicate claim."""
    missing = (b"\x77" * 32, 0)
    tx = spend([missing, missing], [(1, bob.public_key)], [alice, alice])
    assert check_transaction(pool, tx).reason is RejectionReason.DUPLICATE_CLAIM


def test_existence_checked_before_signatures(pool, genesis_hash, alice, bob):
    """A bad signature on input 0 loses to an unknown UTXO on input 1."""
    tx = Transaction(
        inputs=[TransactionInput(genesis_hash, 0), TransactionInput(b"\x77" * 32, 0)],
        outputs=[TransactionOutput(1, bob.public_key)]
    )
    assert check_transaction(pool, tx).reason is RejectionReason.UNKNOWN_OUTPUT


def test_signatures_checked_before_values(pool, genesis_hash, bob):
    """An unsigned input is reported before a negative output."""
    tx = Transaction(
        inputs=[TransactionInput(genesis_hash, 0)],
        outputs=[TransactionOutput(-1, bob.public_key), TransactionOutput(99, bob.public_key)]
    )
    assert check_transaction(pool, tx).reason is RejectionReason.SIGNATURE_MISMATCH


def test_negative_output_checked_before_conservation(pool, genesis_hash, alice, bob):
    """A negative output is reported before the value deficit."""
    tx = spend(
        [(genesis_hash, 0)],
        [(-1, bob.public_key), (99, bob.public_key)],
        [alice]
    )
    assert check_transaction(pool, tx).reason is RejectionReason.NEGATIVE_OUTPUT


def test_invalid_signature(pool, genesis_hash, alice, bob):
    """Scenario: the claim is signed by someone other than the owner."""
    tx = spend([(genesis_hash, 0)], [(10, bob.public_key)], [bob])
    result = check_transaction(pool, tx)
    assert result.reason is RejectionReason.SIGNATURE_MISMATCH
    assert not is_valid_tx(pool, tx)


def test_missing_signature(pool, genesis_hash, bob):
    """An input without a signature is treated as a bad signature."""
    tx = Transaction(
        inputs=[TransactionInput(genesis_hash, 0)],
        outputs=[TransactionOutput(10, bob.public_key)]
    )
    assert check_transaction(pool, tx).reason is RejectionReason.SIGNATURE_MISMATCH


def test_signature_bound_to_outputs(pool, genesis_hash, alice, bob, carol):
    """A signature cannot be reused after the outputs are changed."""
    signed = spend([(genesis_hash, 0)], [(10, bob.public_key)], [alice])
    forged = Transaction(
        inputs=signed.inputs,
        outputs=[TransactionOutput(10, carol.public_key)]
    )
    assert is_valid_tx(pool, signed)
    assert not is_valid_tx(pool, forged)


def test_signature_bound_to_input_position(pool, genesis_hash, alice, bob):
    """Each input signs its own payload."""
    signed = spend(
        [(genesis_hash, 0), (genesis_hash, 1)],
        [(15, bob.public_key)],
        [alice, alice]
    )
    swapped = Transaction(
        inputs=[
            signed.inputs[0].with_signature(signed.inputs[1].signature),
            signed.inputs[1].with_signature(signed.inputs[0].signature)
        ],
        outputs=signed.outputs
    )
    assert is_valid_tx(pool, signed)
    assert check_transaction(pool, swapped).reason is RejectionReason.SIGNATURE_MISMATCH


def test_negative_output(pool, genesis_hash, alice, bob):
    """Negative outputs fail even when the total is conserved."""
    tx = spend(
        [(genesis_hash, 0)],
        [(15, bob.public_key), (-5, alice.public_key)],
        [alice]
    )
    result = check_transaction(pool, tx)
    assert result.reason is RejectionReason.NEGATIVE_OUTPUT
    assert "Output 1" in result.detail


def test_value_deficit(pool, genesis_hash, alice, bob):
    """Scenario: 10 in, 15 out."""
    tx = spend([(genesis_hash, 0)], [(15, bob.public_key)], [alice])
    result = check_transaction(pool, tx)
    assert result.reason is RejectionReason.VALUE_DEFICIT
    assert not is_valid_tx(pool, tx)


def test_values_come_from_pool(genesis_hash, alice, bob):
    """Input value is what the pool records, not anything the spender claims."""
    pool = UTXOPool()
    pool.add_utxo(UTXO(genesis_hash, 0), TransactionOutput(1, alice.public_key))
    tx = spend([(genesis_hash, 0)], [(2, bob.public_key)], [alice])
    assert check_transaction(pool, tx).reason is RejectionReason.VALUE_DEFICIT


def test_exact_large_values(genesis_hash, alice, bob):
    """Integer amounts compare exactly at any magnitude."""
    big = 10 ** 18 + 1
    pool = UTXOPool()
    pool.add_utxo(UTXO(genesis_hash, 0), TransactionOutput(big, alice.public_key))

    exact = spend([(genesis_hash, 0)], [(big - 1, bob.public_key), (1, bob.public_key)], [alice])
    over = spend([(genesis_hash, 0)], [(big, bob.public_key), (1, bob.public_key)], [alice])
    assert is_valid_tx(pool, exact)
    assert not is_valid_tx(pool, over)


def test_empty_transaction_is_valid(pool):
    """Nothing claimed and nothing created conserves value."""
    assert is_valid_tx(pool, Transaction(inputs=[], outputs=[]))


def test_validation_is_pure(pool, genesis_hash, alice, bob):
    """Validation never mutates the pool and is repeatable."""
    snapshot = pool.copy()
    valid = spend([(genesis_hash, 0)], [(10, bob.public_key)], [alice])
    invalid = spend([(genesis_hash, 0)], [(11, bob.public_key)], [alice])

    for tx in (valid, invalid):
        first = check_transaction(pool, tx)
        second = check_transaction(pool, tx)
        assert first == second
        assert pool == snapshot


def test_injected_verifier(pool, genesis_hash, alice, bob):
    """The signature primitive is supplied by the caller."""
    calls = []

    def accept_all(public_key, message, signature):
        calls.append((public_key, message, signature))
        return True

    tx = Transaction(
        inputs=[TransactionInput(genesis_hash, 0, b"anything")],
        outputs=[TransactionOutput(10, bob.public_key)]
    )
    assert is_valid_tx(pool, tx, verifier=accept_all)
    assert calls == [(alice.public_key, tx.get_raw_data_to_sign(0), b"anything")]

    assert not is_valid_tx(pool, tx, verifier=lambda *args: False)


def test_malformed_candidate_does_not_raise(pool):
    """Objects without the transaction interface are rejected, not raised."""
    for candidate in (None, "tx", object()):
        result = check_transaction(pool, candidate)
        assert not result
        assert result.reason is RejectionReason.MALFORMED_TRANSACTION


def test_validation_result_repr():
    """Test string representation of verdicts."""
    assert repr(ValidationResult.ok()) == "ValidationResult(valid=True)"
    rejected = ValidationResult.reject(RejectionReason.VALUE_DEFICIT, "short")
    assert "value_deficit" in repr(rejected)
    assert rejected != ValidationResult.ok()


def test_evaluate_returns_checked_parts(pool, genesis_hash, alice, bob):
    """The inputs and outputs that were checked are returned with the verdict."""
    tx = spend([(genesis_hash, 0)], [(10, bob.public_key)], [alice])
    verdict, inputs, outputs = evaluate_transaction(pool, tx)
    assert verdict
    assert inputs == tx.inputs
    assert outputs == tx.outputs

    verdict, inputs, outputs = evaluate_transaction(pool, None)
    assert verdict.reason is RejectionReason.MALFORMED_TRANSACTION
    assert inputs == ()
    assert outputs == ()


def test_raising_verifier_is_signature_mismatch(pool, genesis_hash, alice, bob):
    """An exception from the verifier is reported as a bad signature."""
    def broken_verifier(public_key, message, signature):
        raise RuntimeError("hsm down")

    tx = spend([(genesis_hash, 0)], [(10, bob.public_key)], [alice])
    result = check_transaction(pool, tx, verifier=broken_verifier)
    assert result.reason is RejectionReason.SIGNATURE_MISMATCH
