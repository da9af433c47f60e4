"""
Ed25519 signing and verification for transaction inputs.

Owners are identified by their raw 32-byte Ed25519 public key. Signatures
are raw 64-byte Ed25519 signatures over a transaction's signing payload.
"""

from typing import Callable, Optional, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

# (public_key, message, signature) -> bool. The handler treats an exception
# raised by a verifier as a failed check.
Verifier = Callable[[bytes, bytes, Optional[bytes]], bool]


def generate_keypair() -> Tuple[bytes, bytes]:
    """
    Generate an Ed25519 keypair.

    Returns:
        Tuple of (private_key_bytes, public_key_bytes)
    """
    private_key = ed25519.Ed25519PrivateKey.generate()
    public_key = private_key.public_key()

    private_bytes = private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption()
    )

    public_bytes = public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw
    )

    return private_bytes, public_bytes


def sign_message(private_key: bytes, message: bytes) -> bytes:
    """
    Sign a message with Ed25519.

    Args:
        private_key: 32-byte Ed25519 private key
        message: Bytes to sign

    Returns:
        64-byte signature

    Raises:
        ValueError: If the private key is malformed
    """
    private_key_obj = ed25519.Ed25519PrivateKey.from_private_bytes(private_key)
    return private_key_obj.sign(message)


def verify_signature(public_key: bytes, message: bytes, signature: Optional[bytes]) -> bool:
    """
    Verify an Ed25519 signature.

    A missing signature, a malformed key and a signature made by another key
    are all reported the same way.

    Args:
        public_key: 32-byte Ed25519 public key of the output owner
        message: Bytes that were signed
        signature: Signature to check

    Returns:
        True if the signature is valid, False otherwise
    """
    if signature is None:
        return False

    try:
        public_key_obj = ed25519.Ed25519PublicKey.from_public_bytes(public_key)
        public_key_obj.verify(signature, message)
        return True
    except (InvalidSignature, ValueError, TypeError):
        return False
