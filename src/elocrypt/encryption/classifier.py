"""Decides which fields of a record are encrypted."""

from typing import Collection, Iterable


def field_configuration(names: Iterable[str]) -> frozenset[str]:
    """
    Build the set of sensitive field names for a record type.
    
    Duplicates collapse; order is irrelevant.
    """
    return frozenset(names)


def is_encryptable(field_name: str, encrypts: Collection[str]) -> bool:
    """
    Check whether a field is configured for encryption.
    
    Args:
        field_name: The field name
        encrypts: The sensitive field names for the record type
        
    Returns:
        True if the field should be encrypted; unknown fields are never encrypted
    """
    return field_name in encrypts
