"""
Implementation of the UTXO class for the ledger.

A UTXO is the identity of a single output produced by a transaction: the hash
of the transaction that created it and the position of the output within
that transaction. The value and owner of the output live in the pool, not here.
"""

from typing import Any, Dict, Tuple


class UTXO:
    """
    Identity of an unspent transaction output.

    Attributes:
        tx_hash (bytes): Hash of the transaction that produced the output
        index (int): Position of the output within that transaction
    """

    __slots__ = ("_tx_hash", "_index")

    def __init__(self, tx_hash: bytes, index: int):
        """
        Initialize a UTXO identity.

        Args:
            tx_hash: Hash of the originating transaction
            index: Output position within the originating transaction

        Raises:
            ValueError: If tx_hash is not bytes or index is not a non-negative int
        """
        if isinstance(tx_hash, bytearray):
            tx_hash = bytes(tx_hash)
        if not isinstance(tx_hash, bytes):
            raise ValueError("UTXO tx_hash must be bytes")
        if isinstance(index, bool) or not isinstance(index, int):
            raise ValueError("UTXO index must be an integer")
        if index < 0:
            raise ValueError("UTXO index must be non-negative")

        self._tx_hash = tx_hash
        self._index = index

    @property
    def tx_hash(self) -> bytes:
        return self._tx_hash

    @property
    def index(self) -> int:
        return self._index

    def _key(self) -> Tuple[bytes, int]:
        return (self._tx_hash, self._index)

    def __eq__(self, other: object) -> bool:
        """Check equality with another UTXO."""
        if not isinstance(other, UTXO):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __lt__(self, other: "UTXO") -> bool:
        if not isinstance(other, UTXO):
            return NotImplemented
        return self._key() < other._key()

    def __repr__(self) -> str:
        """Return string representation of the UTXO."""
        return f"UTXO(tx_hash={self._tx_hash.hex()[:16]}, index={self._index})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"tx_hash": self._tx_hash.hex(), "index": self._index}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UTXO":
        """
        Create a UTXO from its dictionary representation.

        Raises:
            ValueError: If data is invalid
        """
        try:
            return cls(bytes.fromhex(data["tx_hash"]), data["index"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Error deserializing UTXO: {str(e)}")
