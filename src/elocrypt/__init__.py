"""
Elocrypt - transparent field-level encryption for records.

This package encrypts selected fields of a record on write and decrypts
them on read, tagging ciphertext so that existing plaintext data keeps
working without a migration.
"""

from .config import ElocryptConfig
from .encryption import (
    ELOCRYPT_PREFIX,
    CryptResult,
    CryptStatus,
    EncryptionAlgorithm,
    Encrypter,
    FieldCrypt,
)
from .models import EncryptedAttributes, EncryptedModel

__version__ = "0.1.0"

__all__ = [
    "ElocryptConfig",
    "ELOCRYPT_PREFIX",
    "CryptResult",
    "CryptStatus",
    "EncryptionAlgorithm",
    "Encrypter",
    "FieldCrypt",
    "EncryptedAttributes",
    "EncryptedModel",
]
