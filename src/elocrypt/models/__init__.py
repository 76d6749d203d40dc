"""
Record integrations for Elocrypt.

This module provides the record classes that apply field encryption
transparently.
"""

from .encrypted_attributes import EncryptedAttributes
from .encrypted_model import EncryptedModel

__all__ = ["EncryptedAttributes", "EncryptedModel"]
