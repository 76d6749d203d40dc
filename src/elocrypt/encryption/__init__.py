"""
Encryption utilities for Elocrypt.

This package provides the cipher, the field classifier, the tagging
codec and the read/write orchestration used by record stores.
"""

from .cipher import (
    CipherError,
    CipherPrimitive,
    DecryptError,
    EncryptError,
    EncryptionAlgorithm,
    Encrypter,
    format_key,
    parse_key,
)
from .classifier import field_configuration, is_encryptable
from .field_crypt import (
    CryptResult,
    CryptStatus,
    FailureCounter,
    FieldCrypt,
    report_failure,
)
from .tagging import ELOCRYPT_PREFIX, is_tagged, tag, untag

__all__ = [
    "CipherError",
    "CipherPrimitive",
    "DecryptError",
    "EncryptError",
    "EncryptionAlgorithm",
    "Encrypter",
    "format_key",
    "parse_key",
    "field_configuration",
    "is_encryptable",
    "CryptResult",
    "CryptStatus",
    "FailureCounter",
    "FieldCrypt",
    "report_failure",
    "ELOCRYPT_PREFIX",
    "is_tagged",
    "tag",
    "untag",
]
