"""
Shared fixtures for the ledger test suites.
"""

import hashlib
import pytest
from ledger_transaction.crypto import generate_keypair


class KeyPair:
    """Raw Ed25519 keypair used by tests."""

    def __init__(self):
        self.private_key, self.public_key = generate_keypair()


@pytest.fixture
def alice():
    """Keypair owning the genesis outputs."""
    return KeyPair()


@pytest.fixture
def bob():
    """Keypair receiving payments."""
    return KeyPair()


@pytest.fixture
def carol():
    """Third party keypair."""
    return KeyPair()


@pytest.fixture
def genesis_hash():
    """Hash of the pseudo-transaction that created the initial outputs."""
    return hashlib.sha256(b"genesis").digest()
