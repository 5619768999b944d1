"""Syntactic checks for Solana addresses and transaction signatures."""

from solders.pubkey import Pubkey
from solders.signature import Signature


def is_valid_address(address) -> bool:
    """True for a base58 string that decodes to a 32-byte public key."""
    if not isinstance(address, str) or not 32 <= len(address) <= 44:
        return False
    try:
        Pubkey.from_string(address)
    except ValueError:
        return False
    return True


def is_valid_signature(signature) -> bool:
    """True for a base58 string that decodes to a 64-byte signature."""
    if not isinstance(signature, str) or not 64 <= len(signature) <= 88:
        return False
    try:
        Signature.from_string(signature)
    except ValueError:
        return False
    return True
