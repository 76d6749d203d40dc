"""
Pytest configuration for Elocrypt tests.
"""

import os
from typing import Generator

import pytest

from elocrypt.config import ElocryptConfig
from elocrypt.encryption import (
    EncryptError,
    DecryptError,
    EncryptionAlgorithm,
    Encrypter,
    FailureCounter,
    FieldCrypt,
)


ENV_KEYS = [
    "ELOCRYPT_MODE",
    "ELOCRYPT_ENCRYPTION_ENABLED",
    "ELOCRYPT_KEY",
    "ELOCRYPT_CIPHER",
]

# Fixed test key, 32 bytes
TEST_KEY = b"088409730f085dd15e8e3a7d429dd185"


class BrokenCipher:
    """Cipher stand-in whose every call fails."""
    
    def encrypt(self, value: str) -> str:
        raise EncryptError("encryption unavailable")
    
    def decrypt(self, payload: str) -> str:
        raise DecryptError("decryption unavailable")


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """
    Isolate each test from ELOCRYPT_* environment variables.
    
    Removes the variables before the test, re-initializes the
    configuration, and restores the original values afterwards.
    """
    original = {key: os.environ.get(key) for key in ENV_KEYS}
    for key in ENV_KEYS:
        os.environ.pop(key, None)
    ElocryptConfig.initialize()
    
    yield
    
    for key, value in original.items():
        if value is not None:
            os.environ[key] = value
        else:
            os.environ.pop(key, None)
    ElocryptConfig.initialize()


@pytest.fixture
def prod_mode_env() -> None:
    """Switch to production mode for the duration of the test."""
    os.environ["ELOCRYPT_MODE"] = "PROD"
    ElocryptConfig.initialize()


@pytest.fixture
def encrypter() -> Encrypter:
    return Encrypter(TEST_KEY, EncryptionAlgorithm.AES_256_CBC)


@pytest.fixture
def other_encrypter() -> Encrypter:
    """An encrypter with a different key from `encrypter`."""
    return Encrypter(b"f" * 32, EncryptionAlgorithm.AES_256_CBC)


@pytest.fixture
def failures() -> FailureCounter:
    return FailureCounter()


@pytest.fixture
def field_crypt(encrypter: Encrypter, failures: FailureCounter) -> FieldCrypt:
    return FieldCrypt(encrypter, on_failure=failures)


@pytest.fixture
def broken_cipher() -> BrokenCipher:
    return BrokenCipher()
