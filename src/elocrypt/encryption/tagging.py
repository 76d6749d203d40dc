"""
Tagging of encrypted values.

Encrypted values are stored with a fixed prefix so they can be told
apart from plaintext written before encryption was switched on. The
prefix is part of the stored data format and must never change.
"""

from typing import Any


ELOCRYPT_PREFIX = "__ELOCRYPT__:"


def is_tagged(value: Any) -> bool:
    """
    Check whether a stored value carries the encryption prefix.
    
    Only strings can be tagged; any other type is reported as untagged.
    
    Args:
        value: The stored value
        
    Returns:
        True if the value starts with the prefix
    """
    return isinstance(value, str) and value.startswith(ELOCRYPT_PREFIX)


def tag(ciphertext: str) -> str:
    """Prefix a ciphertext so it is recognised as encrypted."""
    return ELOCRYPT_PREFIX + ciphertext


def untag(value: str) -> str:
    """Strip the prefix from a value already known to be tagged."""
    return value[len(ELOCRYPT_PREFIX):]
