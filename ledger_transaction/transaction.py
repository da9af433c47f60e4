"""
Implementation of the Transaction class for the ledger.

A transaction consumes UTXOs through its inputs and declares new outputs.
Its identity is the SHA-256 hash of its canonical serialization, so two
transactions with the same content are the same transaction.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple
import hashlib
import struct
from ledger_utxo.utxo import UTXO
from .crypto import sign_message

MAX_OUTPUT_INDEX = 2 ** 32 - 1
MIN_VALUE = -(2 ** 63)
MAX_VALUE = 2 ** 63 - 1


def _encode_bytes(data: bytes) -> bytes:
    """Length-prefix a variable-length field."""
    return struct.pack(">I", len(data)) + data


class TransactionInput:
    """
    Represents an input to a transaction (a claim on an existing UTXO).

    Attributes:
        prev_tx_hash (bytes): Hash of the transaction whose output is spent
        output_index (int): Position of the spent output in that transaction
        signature (Optional[bytes]): Owner's signature over the signing payload
    """

    __slots__ = ("_prev_tx_hash", "_output_index", "_signature")

    def __init__(self, prev_tx_hash: bytes, output_index: int, signature: Optional[bytes] = None):
        if isinstance(prev_tx_hash, bytearray):
            prev_tx_hash = bytes(prev_tx_hash)
        if not isinstance(prev_tx_hash, bytes):
            raise ValueError("Input prev_tx_hash must be bytes")
        if isinstance(output_index, bool) or not isinstance(output_index, int):
            raise ValueError("Input output_index must be an integer")
        if not 0 <= output_index <= MAX_OUTPUT_INDEX:
            raise ValueError(f"Input output_index out of range: {output_index}")
        if signature is not None and not isinstance(signature, (bytes, bytearray)):
            raise ValueError("Input signature must be bytes")

        self._prev_tx_hash = prev_tx_hash
        self._output_index = output_index
        self._signature = bytes(signature) if signature is not None else None

    @property
    def prev_tx_hash(self) -> bytes:
        return self._prev_tx_hash

    @property
    def output_index(self) -> int:
        return self._output_index

    @property
    def signature(self) -> Optional[bytes]:
        return self._signature

    @property
    def utxo(self) -> UTXO:
        """The UTXO this input claims."""
        return UTXO(self._prev_tx_hash, self._output_index)

    def with_signature(self, signature: Optional[bytes]) -> "TransactionInput":
        """Return a copy of this input carrying the given signature."""
        return TransactionInput(self._prev_tx_hash, self._output_index, signature)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransactionInput):
            return NotImplemented
        return (
            self._prev_tx_hash == other._prev_tx_hash
            and self._output_index == other._output_index
            and self._signature == other._signature
        )

    def __hash__(self) -> int:
        return hash((self._prev_tx_hash, self._output_index, self._signature))

    def __repr__(self) -> str:
        return (
            f"TransactionInput(prev_tx_hash={self._prev_tx_hash.hex()[:16]}, "
            f"output_index={self._output_index}, signed={self._signature is not None})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "prev_tx_hash": self._prev_tx_hash.hex(),
            "output_index": self._output_index,
            "signature": self._signature.hex() if self._signature is not None else None
        }


class TransactionOutput:
    """
    Represents an output created by a transaction.

    Values are integers in minor units. Negative values can be represented so
    that the handler can reject them; they are never admissible.

    Attributes:
        value (int): Amount carried by the output
        address (bytes): Owner's raw Ed25519 public key
    """

    __slots__ = ("_value", "_address")

    def __init__(self, value: int, address: bytes):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("Output value must be an integer amount of minor units")
        if not MIN_VALUE <= value <= MAX_VALUE:
            raise ValueError(f"Output value out of range: {value}")
        if isinstance(address, bytearray):
            address = bytes(address)
        if not isinstance(address, bytes):
            raise ValueError("Output address must be bytes")

        self._value = value
        self._address = address

    @property
    def value(self) -> int:
        return self._value

    @property
    def address(self) -> bytes:
        return self._address

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransactionOutput):
            return NotImplemented
        return self._value == other._value and self._address == other._address

    def __hash__(self) -> int:
        return hash((self._value, self._address))

    def __repr__(self) -> str:
        return f"TransactionOutput(value={self._value}, address={self._address.hex()[:16]})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"value": self._value, "address": self._address.hex()}


class Transaction:
    """
    Represents a transaction in the ledger.

    Transactions are immutable. Signing an input produces a new transaction
    with a new hash, because signatures are part of the serialized content.

    Attributes:
        inputs (Tuple[TransactionInput, ...]): Claims on existing UTXOs
        outputs (Tuple[TransactionOutput, ...]): Outputs created by this transaction
        hash (bytes): SHA-256 of the canonical serialization
    """

    def __init__(
        self,
        inputs: Sequence[TransactionInput],
        outputs: Sequence[TransactionOutput]
    ):
        """
        Initialize a new transaction.

        Args:
            inputs: Claims on existing UTXOs, in order
            outputs: New outputs, in order

        Raises:
            ValueError: If an element has the wrong type
        """
        for tx_input in inputs:
            if not isinstance(tx_input, TransactionInput):
                raise ValueError(f"Invalid transaction input: {tx_input!r}")
        for output in outputs:
            if not isinstance(output, TransactionOutput):
                raise ValueError(f"Invalid transaction output: {output!r}")

        self._inputs: Tuple[TransactionInput, ...] = tuple(inputs)
        self._outputs: Tuple[TransactionOutput, ...] = tuple(outputs)
        self._hash = hashlib.sha256(self.get_raw_tx()).digest()

    @property
    def inputs(self) -> Tuple[TransactionInput, ...]:
        return self._inputs

    @property
    def outputs(self) -> Tuple[TransactionOutput, ...]:
        return self._outputs

    @property
    def hash(self) -> bytes:
        return self._hash

    def _encode_outputs(self) -> bytes:
        return b"".join(
            struct.pack(">q", out.value) + _encode_bytes(out.address)
            for out in self._outputs
        )

    def get_raw_data_to_sign(self, index: int) -> bytes:
        """
        Build the bytes the owner of input ``index`` must sign.

        The payload covers the claimed UTXO and every output, and excludes
        all signatures.

        Args:
            index: Position of the input

        Returns:
            bytes: Canonical signing payload

        Raises:
            IndexError: If there is no input at ``index``
        """
        if not 0 <= index < len(self._inputs):
            raise IndexError(f"No input at index {index}")
        tx_input = self._inputs[index]
        return (
            _encode_bytes(tx_input.prev_tx_hash)
            + struct.pack(">I", tx_input.output_index)
            + self._encode_outputs()
        )

    def get_raw_tx(self) -> bytes:
        """
        Serialize the whole transaction, signatures included.

        Returns:
            bytes: Canonical serialization the hash is computed over
        """
        parts: List[bytes] = [struct.pack(">I", len(self._inputs))]
        for tx_input in self._inputs:
            parts.append(_encode_bytes(tx_input.prev_tx_hash))
            parts.append(struct.pack(">I", tx_input.output_index))
            if tx_input.signature is None:
                parts.append(b"\x00")
            else:
                parts.append(b"\x01" + _encode_bytes(tx_input.signature))
        parts.append(struct.pack(">I", len(self._outputs)))
        parts.append(self._encode_outputs())
        return b"".join(parts)

    def with_signature(self, index: int, signature: bytes) -> "Transaction":
        """
        Return a copy of this transaction with input ``index`` signed.

        Raises:
            IndexError: If there is no input at ``index``
        """
        if not 0 <= index < len(self._inputs):
            raise IndexError(f"No input at index {index}")
        inputs = list(self._inputs)
        inputs[index] = inputs[index].with_signature(signature)
        return Transaction(inputs, self._outputs)

    def sign(self, private_keys: Sequence[bytes]) -> "Transaction":
        """
        Sign every input with the matching private key.

        Args:
            private_keys: One 32-byte Ed25519 private key per input, in order

        Returns:
            New, fully signed Transaction

        Raises:
            ValueError: If the number of keys does not match the number of inputs
        """
        if len(private_keys) != len(self._inputs):
            raise ValueError(
                f"Expected {len(self._inputs)} private keys, got {len(private_keys)}"
            )
        # Signing payloads exclude signatures, so they are stable while signing.
        inputs = [
            tx_input.with_signature(sign_message(key, self.get_raw_data_to_sign(i)))
            for i, (tx_input, key) in enumerate(zip(self._inputs, private_keys))
        ]
        return Transaction(inputs, self._outputs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transaction):
            return NotImplemented
        return self._hash == other._hash

    def __hash__(self) -> int:
        return hash(self._hash)

    def __repr__(self) -> str:
        return (
            f"Transaction(hash={self._hash.hex()[:16]}, "
            f"inputs={len(self._inputs)}, outputs={len(self._outputs)})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert transaction to dictionary for serialization."""
        return {
            "tx_hash": self._hash.hex(),
            "inputs": [inp.to_dict() for inp in self._inputs],
            "outputs": [out.to_dict() for out in self._outputs]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        """
        Create transaction from dictionary representation.

        Args:
            data: Dictionary with transaction data

        Returns:
            New Transaction instance

        Raises:
            ValueError: If data is invalid or the embedded hash does not match
        """
        try:
            inputs = [
                TransactionInput(
                    prev_tx_hash=bytes.fromhex(inp["prev_tx_hash"]),
                    output_index=inp["output_index"],
                    signature=(
                        bytes.fromhex(inp["signature"])
                        if inp.get("signature") is not None else None
                    )
                )
                for inp in data["inputs"]
            ]
            outputs = [
                TransactionOutput(
                    value=out["value"],
                    address=bytes.fromhex(out["address"])
                )
                for out in data["outputs"]
            ]
            tx = cls(inputs=inputs, outputs=outputs)
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Error deserializing transaction: {str(e)}")

        if "tx_hash" in data and tx.hash.hex() != data["tx_hash"]:
            raise ValueError("Transaction ID mismatch")

        return tx
