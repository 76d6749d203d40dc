"""
Encrypted attribute store.

Wraps a plain field mapping so that writes go through the encryption
path and reads go through the decryption path, without the underlying
store knowing anything about encryption.
"""

from typing import Any, Iterable, Iterator, Mapping, MutableMapping, Optional

from ..encryption import FieldCrypt, field_configuration


class EncryptedAttributes(MutableMapping[str, Any]):
    """
    Mapping view over a record's stored fields with transparent encryption.
    
    Iteration order and key set follow the wrapped storage. The storage
    itself always holds the stored (tagged) form.
    """
    
    def __init__(
        self,
        encrypts: Iterable[str],
        storage: Optional[MutableMapping[str, Any]] = None,
        field_crypt: Optional[FieldCrypt] = None,
    ) -> None:
        """
        Initialize the attribute store.
        
        Args:
            encrypts: Names of fields to encrypt
            storage: Existing stored fields, used as-is (not re-encrypted)
            field_crypt: Field crypt to use; built from configuration if omitted
        """
        self.encrypts = field_configuration(encrypts)
        self._storage: MutableMapping[str, Any] = storage if storage is not None else {}
        self._field_crypt = field_crypt
    
    @property
    def field_crypt(self) -> FieldCrypt:
        if self._field_crypt is None:
            self._field_crypt = FieldCrypt.from_config()
        return self._field_crypt
    
    def __getitem__(self, name: str) -> Any:
        return self.field_crypt.on_field_get(name, self._storage[name], self.encrypts)
    
    def __setitem__(self, name: str, value: Any) -> None:
        self._storage[name] = self.field_crypt.on_field_set(name, value, self.encrypts)
    
    def __delitem__(self, name: str) -> None:
        del self._storage[name]
    
    def __iter__(self) -> Iterator[str]:
        return iter(self._storage)
    
    def __len__(self) -> int:
        return len(self._storage)
    
    def __repr__(self) -> str:
        # Stored form only, so plaintext never leaks into logs
        return f"{type(self).__name__}({dict(self._storage)!r})"
    
    def fill(self, values: Mapping[str, Any]) -> "EncryptedAttributes":
        """Assign several fields at once and return self."""
        for name, value in values.items():
            self[name] = value
        return self
    
    def get_raw(self, name: str, default: Any = None) -> Any:
        """Get the stored form of a field without decrypting it."""
        return self._storage.get(name, default)
    
    def stored(self) -> dict[str, Any]:
        """Get a copy of all stored fields, as they would be persisted."""
        return dict(self._storage)
    
    def to_dict(self) -> dict[str, Any]:
        """Export all fields with encrypted ones decrypted."""
        return self.field_crypt.on_fields_export(self._storage, self.encrypts)
