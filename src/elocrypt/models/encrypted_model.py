"""
Base encrypted model implementation.

This module provides a pydantic base model whose sensitive fields are
encrypted transparently: values are encrypted whenever a field is
written (validation, assignment, copy with update, construct) and
decrypted when a field is read or the model is dumped.
"""

import json
from typing import Any, ClassVar, Collection, Mapping, Optional, TypeVar

from pydantic import BaseModel, model_validator

from ..encryption import CryptResult, FieldCrypt, field_configuration


T = TypeVar("T", bound="EncryptedModel")


class EncryptedModel(BaseModel):
    """
    Base class for models with encrypted fields.
    
    Subclasses name their sensitive fields in `__encrypts__`:
    
        class User(EncryptedModel):
            __encrypts__ = {"ssn", "address"}
            
            name: str
            ssn: str
            address: str | None = None
    
    Attribute access returns plaintext, while `get_stored_data()` returns
    the form to persist. Sensitive fields should be string-typed; the
    host is responsible for serializing anything else before assignment.
    """
    
    # Names of sensitive fields, overridden by subclasses
    __encrypts__: ClassVar[Collection[str]] = ()
    
    # Field crypt shared by instances of the class
    _field_crypt: ClassVar[Optional[FieldCrypt]] = None
    
    @classmethod
    def encrypted_fields(cls) -> frozenset[str]:
        """Get the names of this model's sensitive fields."""
        return field_configuration(cls.__encrypts__)
    
    @classmethod
    def use_field_crypt(cls, field_crypt: Optional[FieldCrypt]) -> None:
        """
        Set the field crypt used by this model class.
        
        Passing None makes the next use rebuild it from configuration.
        """
        cls._field_crypt = field_crypt
    
    @classmethod
    def _get_field_crypt(cls) -> FieldCrypt:
        """
        Get or create the field crypt for this model.
        
        Returns:
            The field crypt instance for this model
        """
        if cls._field_crypt is None:
            cls._field_crypt = FieldCrypt.from_config()
        
        return cls._field_crypt
    
    @classmethod
    def _export_keys(cls, by_alias: Optional[bool]) -> frozenset[str]:
        """
        Get the dump keys of the sensitive fields.
        
        Args:
            by_alias: The by_alias option passed to the dump
            
        Returns:
            Field names, or their serialization aliases when dumping by alias
        """
        if by_alias is None:
            by_alias = bool(cls.model_config.get("serialize_by_alias", False))
        
        names = cls.encrypted_fields()
        if not by_alias:
            return names
        
        keys = set()
        for name in names:
            field = cls.model_fields.get(name)
            if field is None:
                keys.add(name)
            else:
                keys.add(field.serialization_alias or field.alias or name)
        return frozenset(keys)
    
    def _encrypt_stored_fields(self) -> None:
        """Run the write path over every sensitive field currently set."""
        cls = type(self)
        crypt = cls._get_field_crypt()
        encrypts = cls.encrypted_fields()
        
        for name in encrypts:
            if name in self.__dict__:
                self.__dict__[name] = crypt.on_field_set(name, self.__dict__[name], encrypts)
    
    @model_validator(mode="after")
    def encrypt_sensitive_fields(self) -> "EncryptedModel":
        """Encrypt sensitive fields once the model has been validated."""
        self._encrypt_stored_fields()
        return self
    
    @classmethod
    def model_construct(cls: type[T], _fields_set: Optional[set[str]] = None, **values: Any) -> T:
        """
        Override model_construct so unvalidated construction still encrypts.
        
        Args:
            _fields_set: Passed to the parent method
            **values: Field values, plaintext or already stored
            
        Returns:
            A new model instance with sensitive fields in stored form
        """
        model = super().model_construct(_fields_set, **values)
        model._encrypt_stored_fields()
        return model
    
    def model_copy(self: T, *, update: Optional[Mapping[str, Any]] = None, deep: bool = False) -> T:
        """
        Override model_copy to run the write path over updated values.
        
        Args:
            update: Field values to change in the copy
            deep: Whether to deep copy the model
            
        Returns:
            The copied model
        """
        if update:
            cls = type(self)
            crypt = cls._get_field_crypt()
            encrypts = cls.encrypted_fields()
            update = {
                name: crypt.on_field_set(name, value, encrypts)
                for name, value in update.items()
            }
        
        return super().model_copy(update=update, deep=deep)
    
    def __setattr__(self, name: str, value: Any) -> None:
        cls = type(self)
        if name in cls.model_fields:
            value = cls._get_field_crypt().on_field_set(name, value, cls.encrypted_fields())
        super().__setattr__(name, value)
    
    def __getattribute__(self, name: str) -> Any:
        value = super().__getattribute__(name)
        
        # Hot path: called for every attribute access
        cls = type(self)
        encrypts = cls.__encrypts__
        if name in encrypts:
            return cls._get_field_crypt().on_field_get(name, value, encrypts)
        
        return value
    
    def get_attribute(self, name: str) -> Any:
        """
        Get the exposed value of a field by name.
        
        Raises:
            KeyError: If the model has no such field
        """
        if name not in type(self).model_fields:
            raise KeyError(name)
        return getattr(self, name)
    
    def get_stored_data(self) -> dict[str, Any]:
        """
        Get the stored representation of this model.
        
        Sensitive fields are in their tagged, encrypted form, ready to
        be persisted.
        
        Returns:
            Dictionary of stored field values
        """
        return super().model_dump()
    
    def export_results(self) -> dict[str, CryptResult]:
        """Get the per-field read results, including any decryption failures."""
        cls = type(self)
        return cls._get_field_crypt().export_fields(self.get_stored_data(), cls.encrypted_fields())
    
    def model_dump(self, **kwargs: Any) -> dict[str, Any]:
        """
        Override model_dump to expose sensitive fields decrypted.
        
        Args:
            **kwargs: Keyword arguments to pass to the parent method
            
        Returns:
            Dictionary representation of the model with plaintext values
        """
        stored = super().model_dump(**kwargs)
        cls = type(self)
        return cls._get_field_crypt().on_fields_export(stored, cls._export_keys(kwargs.get("by_alias")))
    
    def model_dump_json(self, *, indent: Optional[int] = None, **kwargs: Any) -> str:
        """
        Override model_dump_json to serialize the decrypted export.
        
        Args:
            indent: Indentation for pretty-printing
            **kwargs: Keyword arguments to pass to model_dump
            
        Returns:
            JSON string of the model with plaintext values
        """
        ensure_ascii = kwargs.pop("ensure_ascii", False)
        separators = None if indent is not None else (",", ":")
        return json.dumps(
            self.model_dump(mode="json", **kwargs),
            indent=indent,
            ensure_ascii=ensure_ascii,
            separators=separators,
        )
    
    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize the decrypted model to a JSON string."""
        return self.model_dump_json(indent=indent)
    
    @classmethod
    def from_stored(cls: type[T], data: dict[str, Any]) -> T:
        """
        Create a model instance from stored data.
        
        Values that are already encrypted are kept as they are; legacy
        plaintext in sensitive fields is encrypted.
        
        Args:
            data: Dictionary of stored field values
            
        Returns:
            A new instance of the model
        """
        return cls(**data)
