"""
Example of using encrypted fields in models.

This example demonstrates how to define models with encrypted fields
and what their stored and exposed forms look like.
"""

import os
import json
from typing import Optional

from elocrypt.config import ElocryptConfig
from elocrypt.encryption import ELOCRYPT_PREFIX, Encrypter, format_key
from elocrypt.models import EncryptedModel


# Define a model with encrypted fields
class UserWithEncryption(EncryptedModel):
    """
    User model with encrypted sensitive fields.
    
    Only the fields named in __encrypts__ are encrypted; everything
    else is stored as given.
    """
    
    __encrypts__ = {"ssn", "credit_card"}
    
    name: str
    email: str
    ssn: Optional[str] = None
    credit_card: Optional[str] = None
    public_profile: bool = False


def main() -> None:
    """Example usage of encrypted fields in models."""
    os.environ["ELOCRYPT_MODE"] = "PROD"
    os.environ["ELOCRYPT_KEY"] = format_key(Encrypter.generate_key())
    
    # Force re-initialization of configuration
    ElocryptConfig.initialize()
    
    print("Encryption enabled:", ElocryptConfig.is_encryption_enabled())
    print("Cipher:", ElocryptConfig.get_cipher_name())
    
    user = UserWithEncryption(
        name="John Doe",
        email="john@example.com",
        ssn="123-45-6789",
        credit_card="4242-4242-4242-4242",
        public_profile=True,
    )
    
    print("\nUser as read by the application:")
    print(json.dumps(user.model_dump(), indent=2))
    
    print("\nUser as stored:")
    for key, value in user.get_stored_data().items():
        if isinstance(value, str) and value.startswith(ELOCRYPT_PREFIX):
            print(f"{key}: <encrypted, {len(value)} chars>")
        else:
            print(f"{key}: {value}")
    
    # Reassignment is encrypted too
    user.ssn = "987-65-4321"
    print("\nUpdated SSN reads back as:", user.ssn)


if __name__ == "__main__":
    main()
