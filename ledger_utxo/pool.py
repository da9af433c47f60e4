"""
Implementation of the UTXOPool class for the ledger.

The pool is the authoritative in-memory snapshot of spendable value: a mapping
from UTXO identity to the output that identity refers to.
"""

from typing import TYPE_CHECKING, Dict, Iterator, List, Optional
from .utxo import UTXO

if TYPE_CHECKING:
    from ledger_transaction.transaction import TransactionOutput


class UTXOPool:
    """
    In-memory set of unspent transaction outputs.

    Lookups and removals never raise; an absent UTXO is simply reported as
    absent. Outputs and identities are immutable, so copying the mapping
    yields a fully independent pool.

    Attributes:
        _outputs (Dict[UTXO, TransactionOutput]): Maps UTXO identities to outputs
    """

    def __init__(self, pool: Optional["UTXOPool"] = None):
        """
        Initialize a pool, optionally as a copy of another pool.

        Args:
            pool: Pool to copy entries from. The new pool never aliases it.
        """
        self._outputs: Dict[UTXO, "TransactionOutput"] = {}
        if pool is not None:
            self._outputs.update(pool._outputs)

    def copy(self) -> "UTXOPool":
        """Return an independent copy of this pool."""
        return UTXOPool(self)

    def add_utxo(self, utxo: UTXO, tx_out: "TransactionOutput") -> None:
        """
        Map a UTXO to an output, replacing any existing mapping.

        Args:
            utxo: Identity of the output
            tx_out: The output itself
        """
        self._outputs[utxo] = tx_out

    def remove_utxo(self, utxo: UTXO) -> None:
        """Remove a UTXO from the pool. Does nothing if it is absent."""
        self._outputs.pop(utxo, None)

    def get_tx_output(self, utxo: UTXO) -> Optional["TransactionOutput"]:
        """
        Look up the output a UTXO refers to.

        Args:
            utxo: Identity to look up

        Returns:
            TransactionOutput if present, None otherwise
        """
        return self._outputs.get(utxo)

    def contains(self, utxo: UTXO) -> bool:
        """Check whether a UTXO is currently unspent."""
        return utxo in self._outputs

    def get_all_utxos(self) -> List[UTXO]:
        """
        Get all UTXOs in the pool.

        Returns:
            List of UTXOs sorted by (tx_hash, index)
        """
        return sorted(self._outputs)

    def get_total_value(self) -> int:
        """
        Calculate the total value held by the pool.

        Returns:
            int: Sum of all output values
        """
        return sum(out.value for out in self._outputs.values())

    def __contains__(self, utxo: object) -> bool:
        return utxo in self._outputs

    def __len__(self) -> int:
        return len(self._outputs)

    def __iter__(self) -> Iterator[UTXO]:
        return iter(self.get_all_utxos())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UTXOPool):
            return NotImplemented
        return self._outputs == other._outputs

    def __repr__(self) -> str:
        return f"UTXOPool(size={len(self._outputs)})"
