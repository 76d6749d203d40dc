"""
Encrypt-on-write and decrypt-on-read for record fields.

This module sits between a record store and the cipher. It decides
which fields to encrypt, tags ciphertext so legacy plaintext is still
readable, and applies a fail-open policy: a cipher failure never breaks
the host's read or write, the original value is passed through instead.

Every operation returns a CryptResult so that fallbacks are visible to
callers and to an optional failure hook, even though the stored or
returned value is exactly what the fail-open policy prescribes.
"""

import sys
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Collection, Mapping, Optional

from ..config import ElocryptConfig
from .cipher import CipherPrimitive, Encrypter
from .classifier import is_encryptable
from .tagging import is_tagged, tag, untag


class CryptStatus(str, Enum):
    """Outcome of a single field read or write."""
    
    # Field is not configured for encryption
    PASSTHROUGH = "passthrough"
    
    # Write side
    ENCRYPTED = "encrypted"
    ALREADY_ENCRYPTED = "already_encrypted"
    WRITE_DISABLED = "write_disabled"
    EMPTY = "empty"
    ENCRYPT_FAILED = "encrypt_failed"
    
    # Read side
    PLAINTEXT = "plaintext"
    DECRYPTED = "decrypted"
    DECRYPT_FAILED = "decrypt_failed"


FAILED_STATUSES = frozenset({CryptStatus.ENCRYPT_FAILED, CryptStatus.DECRYPT_FAILED})


@dataclass(frozen=True)
class CryptResult:
    """
    Result of running a field value through the write or read path.
    
    `value` is always what the host should store (write) or expose
    (read). On failure it is the untouched input and `error` holds the
    cipher exception.
    """
    
    field_name: str
    value: Any
    status: CryptStatus
    error: Optional[BaseException] = None
    
    @property
    def failed(self) -> bool:
        return self.status in FAILED_STATUSES


FailureHook = Callable[[CryptResult], None]


def report_failure(result: CryptResult) -> None:
    """
    Print a one-line warning for a failed field operation.
    
    Only the field name and error type are printed, never the value.
    """
    if result.status == CryptStatus.ENCRYPT_FAILED:
        action = "encrypt"
        outcome = "stored as plaintext"
    else:
        action = "decrypt"
        outcome = "returned still encrypted"
    
    print(
        f"[WARNING] Failed to {action} field '{result.field_name}' "
        f"({type(result.error).__name__}); {outcome}",
        file=sys.stderr,
    )


class FailureCounter:
    """Failure hook that counts fallbacks by status and by field."""
    
    def __init__(self) -> None:
        self.by_status: Counter = Counter()
        self.by_field: Counter = Counter()
    
    def __call__(self, result: CryptResult) -> None:
        self.by_status[result.status] += 1
        self.by_field[result.field_name] += 1
    
    @property
    def total(self) -> int:
        return sum(self.by_status.values())
    
    def reset(self) -> None:
        self.by_status.clear()
        self.by_field.clear()


class FieldCrypt:
    """
    Applies field-level encryption on behalf of a record store.
    
    A single instance can serve every record type: the set of sensitive
    field names is passed with each call. The instance itself holds only
    the cipher and hooks, so it is safe to share between threads as long
    as the cipher is.
    """
    
    def __init__(
        self,
        cipher: CipherPrimitive,
        *,
        encrypt_on_write: bool = True,
        on_failure: Optional[FailureHook] = None,
    ) -> None:
        """
        Initialize the field crypt.
        
        Args:
            cipher: Object providing encrypt(str) and decrypt(str)
            encrypt_on_write: When False, writes store plaintext but reads
                still decrypt tagged values
            on_failure: Optional hook called with every failed result
        """
        self.cipher = cipher
        self.encrypt_on_write = encrypt_on_write
        self.on_failure = on_failure
    
    @classmethod
    def from_config(cls) -> "FieldCrypt":
        """Build a field crypt from the active configuration."""
        return cls(
            Encrypter.from_config(),
            encrypt_on_write=ElocryptConfig.is_encryption_enabled(),
            on_failure=report_failure if ElocryptConfig.reports_failures() else None,
        )
    
    def _failed(self, result: CryptResult) -> CryptResult:
        if self.on_failure is not None:
            self.on_failure(result)
        return result
    
    def encrypt_field(self, field_name: str, value: Any, encrypts: Collection[str]) -> CryptResult:
        """
        Run a value through the write path.
        
        The host applies its own casting and serialization before calling
        this, so `value` is normally a string.
        
        Args:
            field_name: Name of the field being written
            value: The value about to be stored
            encrypts: Sensitive field names for the record type
            
        Returns:
            The result, whose value is what should be stored
        """
        if not is_encryptable(field_name, encrypts):
            return CryptResult(field_name, value, CryptStatus.PASSTHROUGH)
        
        if value is None:
            return CryptResult(field_name, value, CryptStatus.EMPTY)
        
        # Re-saving a stored value must not encrypt it a second time
        if is_tagged(value):
            return CryptResult(field_name, value, CryptStatus.ALREADY_ENCRYPTED)
        
        if not self.encrypt_on_write:
            return CryptResult(field_name, value, CryptStatus.WRITE_DISABLED)
        
        try:
            ciphertext = self.cipher.encrypt(value)
        except Exception as e:  # any cipher failure falls back
            return self._failed(CryptResult(field_name, value, CryptStatus.ENCRYPT_FAILED, e))
        
        return CryptResult(field_name, tag(ciphertext), CryptStatus.ENCRYPTED)
    
    def decrypt_field(self, field_name: str, stored: Any, encrypts: Collection[str]) -> CryptResult:
        """
        Run a stored value through the read path.
        
        Untagged values are legacy plaintext and are returned unchanged.
        
        Args:
            field_name: Name of the field being read
            stored: The value as held in storage
            encrypts: Sensitive field names for the record type
            
        Returns:
            The result, whose value is what should be exposed to the caller
        """
        if not is_encryptable(field_name, encrypts):
            return CryptResult(field_name, stored, CryptStatus.PASSTHROUGH)
        
        if not is_tagged(stored):
            return CryptResult(field_name, stored, CryptStatus.PLAINTEXT)
        
        try:
            plaintext = self.cipher.decrypt(untag(stored))
        except Exception as e:  # any cipher failure falls back
            return self._failed(CryptResult(field_name, stored, CryptStatus.DECRYPT_FAILED, e))
        
        return CryptResult(field_name, plaintext, CryptStatus.DECRYPTED)
    
    def export_fields(
        self, stored: Mapping[str, Any], encrypts: Collection[str]
    ) -> dict[str, CryptResult]:
        """Run every stored field through the read path, keeping key order."""
        return {
            name: self.decrypt_field(name, value, encrypts)
            for name, value in stored.items()
        }
    
    def on_field_set(self, field_name: str, value: Any, encrypts: Collection[str]) -> Any:
        """Return the value to store for a field write."""
        return self.encrypt_field(field_name, value, encrypts).value
    
    def on_field_get(self, field_name: str, stored: Any, encrypts: Collection[str]) -> Any:
        """Return the value to expose for a field read."""
        return self.decrypt_field(field_name, stored, encrypts).value
    
    def on_fields_export(self, stored: Mapping[str, Any], encrypts: Collection[str]) -> dict[str, Any]:
        """Return the exposed form of a whole stored record."""
        return {
            name: result.value
            for name, result in self.export_fields(stored, encrypts).items()
        }
    
    def encrypted_value(self, value: str) -> str:
        """
        Encrypt and tag a value, raising on failure.
        
        Useful for building stored fixtures or for comparing against
        stored data outside the fail-open paths.
        """
        return tag(self.cipher.encrypt(value))
    
    def decrypted_value(self, value: str) -> str:
        """
        Strip the tag from a stored value and decrypt it, raising on failure.
        
        Raises:
            ValueError: If the value is not tagged
        """
        if not is_tagged(value):
            raise ValueError("Value is not tagged as encrypted")
        return self.cipher.decrypt(untag(value))
