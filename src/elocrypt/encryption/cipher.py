"""
Symmetric cipher primitive.

This module provides the authenticated encrypter used to protect field
values. Payloads are self-describing: base64 of a compact JSON object
holding the IV, the ciphertext, and either an HMAC (CBC modes) or an
authentication tag (GCM modes).
"""

import base64
import binascii
import hashlib
import hmac
import json
import os
import sys
from enum import Enum
from typing import Any, Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..config import ElocryptConfig


KEY_PREFIX = "base64:"

# Only ever used when no key is configured in DEV mode
DEV_KEY_PHRASE = "dev-only-elocrypt-key-do-not-use-in-production"


class CipherError(Exception):
    """Base class for cipher failures."""


class EncryptError(CipherError):
    """Raised when a value cannot be encrypted."""


class DecryptError(CipherError):
    """Raised when a payload cannot be decrypted."""


class CipherPrimitive(Protocol):
    """Anything that can encrypt and decrypt strings."""
    
    def encrypt(self, value: str) -> str: ...
    
    def decrypt(self, payload: str) -> str: ...


class EncryptionAlgorithm(str, Enum):
    """Supported encryption algorithms."""
    
    AES_128_CBC = "AES-128-CBC"
    AES_256_CBC = "AES-256-CBC"
    AES_128_GCM = "AES-128-GCM"
    AES_256_GCM = "AES-256-GCM"
    
    @property
    def key_length(self) -> int:
        return 16 if "128" in self.value else 32
    
    @property
    def is_aead(self) -> bool:
        return self.value.endswith("GCM")
    
    @property
    def iv_length(self) -> int:
        # 96-bit nonce for GCM, one block for CBC
        return 12 if self.is_aead else 16


def parse_key(key: str) -> bytes:
    """
    Convert a configured key string into raw key bytes.
    
    Keys written as ``base64:<data>`` are decoded; anything else is
    taken as UTF-8 text.
    
    Args:
        key: The configured key
        
    Returns:
        The raw key bytes
        
    Raises:
        ValueError: If a base64 key cannot be decoded
    """
    if key.startswith(KEY_PREFIX):
        try:
            return base64.b64decode(key[len(KEY_PREFIX):], validate=True)
        except ValueError as e:
            raise ValueError(f"Invalid base64 key: {e}") from e
    return key.encode("utf-8")


def format_key(key: bytes) -> str:
    """Render raw key bytes in the ``base64:<data>`` configuration form."""
    return KEY_PREFIX + base64.b64encode(key).decode("ascii")


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class Encrypter:
    """
    Encrypts and decrypts strings with a single symmetric key.
    
    Every call to encrypt uses a fresh random IV, so encrypting the same
    value twice gives different payloads. Instances hold no mutable
    state and are safe to share between threads.
    """
    
    def __init__(
        self,
        key: bytes,
        algorithm: EncryptionAlgorithm | str = EncryptionAlgorithm.AES_256_CBC,
    ) -> None:
        """
        Initialize the encrypter.
        
        Args:
            key: Raw key bytes, 16 or 32 bytes depending on the algorithm
            algorithm: The algorithm to use
            
        Raises:
            ValueError: If the algorithm is unknown or the key length is wrong
        """
        algorithm = EncryptionAlgorithm(algorithm)
        if not self.supported(key, algorithm):
            raise ValueError(
                f"Unsupported cipher or incorrect key length: {algorithm.value} "
                f"requires a {algorithm.key_length}-byte key"
            )
        
        self.key = key
        self.algorithm = algorithm
    
    @staticmethod
    def supported(key: bytes, algorithm: EncryptionAlgorithm | str) -> bool:
        """Check whether a key has the right length for an algorithm."""
        try:
            algorithm = EncryptionAlgorithm(algorithm)
        except ValueError:
            return False
        return len(key) == algorithm.key_length
    
    @staticmethod
    def generate_key(
        algorithm: EncryptionAlgorithm | str = EncryptionAlgorithm.AES_256_CBC,
    ) -> bytes:
        """Generate a random key suitable for the given algorithm."""
        return os.urandom(EncryptionAlgorithm(algorithm).key_length)
    
    @classmethod
    def from_config(cls) -> "Encrypter":
        """
        Build an encrypter from the active configuration.
        
        The key is taken from ELOCRYPT_KEY or ``encryption.key``. In DEV
        mode a fixed development key is derived when none is configured.
        Anything else is a fatal configuration error.
        
        Returns:
            A configured Encrypter
        """
        try:
            algorithm = EncryptionAlgorithm(ElocryptConfig.get_cipher_name())
        except ValueError:
            print(
                f"ERROR: Unsupported cipher configured: {ElocryptConfig.get_cipher_name()}",
                file=sys.stderr,
            )
            sys.exit(1)
        
        configured = os.environ.get("ELOCRYPT_KEY") or ElocryptConfig.get_key()
        
        if configured:
            try:
                key = parse_key(configured)
            except ValueError as e:
                print(f"ERROR: {e}", file=sys.stderr)
                sys.exit(1)
        elif ElocryptConfig.is_dev_mode():
            key = hashlib.sha256(DEV_KEY_PHRASE.encode("utf-8")).digest()[:algorithm.key_length]
        else:
            print("ERROR: No encryption key provided or found in environment", file=sys.stderr)
            sys.exit(1)
        
        try:
            return cls(key, algorithm)
        except ValueError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            sys.exit(1)
    
    def _cipher(self, iv: bytes, tag: bytes | None = None) -> Cipher:
        if self.algorithm.is_aead:
            mode = modes.GCM(iv, tag)
        else:
            mode = modes.CBC(iv)
        return Cipher(algorithms.AES(self.key), mode, backend=default_backend())
    
    def _mac(self, iv: str, value: str) -> str:
        return hmac.new(self.key, (iv + value).encode("ascii"), hashlib.sha256).hexdigest()
    
    def encrypt(self, value: str) -> str:
        """
        Encrypt a string.
        
        Args:
            value: The plaintext to encrypt
            
        Returns:
            The encrypted payload as a base64 string
            
        Raises:
            EncryptError: If the value is not a string or encryption fails
        """
        if not isinstance(value, str):
            raise EncryptError(f"Can only encrypt strings, got {type(value).__name__}")
        
        data = value.encode("utf-8")
        iv = os.urandom(self.algorithm.iv_length)
        encryptor = self._cipher(iv).encryptor()
        
        if self.algorithm.is_aead:
            ciphertext = encryptor.update(data) + encryptor.finalize()
            tag = _b64(encryptor.tag)
        else:
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(data) + padder.finalize()
            ciphertext = encryptor.update(padded) + encryptor.finalize()
            tag = ""
        
        iv_b64 = _b64(iv)
        value_b64 = _b64(ciphertext)
        payload = {
            "iv": iv_b64,
            "value": value_b64,
            "mac": "" if self.algorithm.is_aead else self._mac(iv_b64, value_b64),
            "tag": tag,
        }
        
        return _b64(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    
    def _parse_payload(self, payload: str) -> dict[str, str]:
        if not isinstance(payload, str):
            raise DecryptError("The payload is not a string")
        
        try:
            decoded = json.loads(base64.b64decode(payload, validate=True))
        except (binascii.Error, ValueError) as e:
            raise DecryptError("The payload is invalid") from e
        
        if not isinstance(decoded, dict) or not all(
            isinstance(decoded.get(field), str) for field in ("iv", "value", "mac")
        ):
            raise DecryptError("The payload is invalid")
        
        if not isinstance(decoded.get("tag", ""), str):
            raise DecryptError("The payload is invalid")
        
        return decoded
    
    def decrypt(self, payload: str) -> str:
        """
        Decrypt a payload produced by encrypt.
        
        Args:
            payload: The encrypted payload
            
        Returns:
            The decrypted string
            
        Raises:
            DecryptError: If the payload is malformed, fails authentication,
                or was produced with a different key or algorithm
        """
        fields = self._parse_payload(payload)
        
        try:
            iv = base64.b64decode(fields["iv"], validate=True)
            ciphertext = base64.b64decode(fields["value"], validate=True)
            tag = base64.b64decode(fields.get("tag") or "", validate=True)
        except ValueError as e:
            # binascii.Error, or non-ASCII characters in the payload
            raise DecryptError("The payload is invalid") from e
        
        if len(iv) != self.algorithm.iv_length:
            raise DecryptError("The payload is invalid")
        
        try:
            if self.algorithm.is_aead:
                if len(tag) != 16:
                    raise DecryptError("Could not decrypt the data")
                decryptor = self._cipher(iv, tag).decryptor()
                data = decryptor.update(ciphertext) + decryptor.finalize()
            else:
                expected = self._mac(fields["iv"], fields["value"])
                if not hmac.compare_digest(expected.encode("ascii"), fields["mac"].encode("utf-8")):
                    raise DecryptError("The MAC is invalid")
                decryptor = self._cipher(iv).decryptor()
                padded = decryptor.update(ciphertext) + decryptor.finalize()
                unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
                data = unpadder.update(padded) + unpadder.finalize()
            
            return data.decode("utf-8")
        except (InvalidTag, ValueError) as e:
            # ValueError covers bad padding, partial blocks and bad UTF-8
            raise DecryptError("Could not decrypt the data") from e
    
    def encrypt_value(self, value: Any) -> str:
        """
        Encrypt any JSON-serializable value.
        
        Args:
            value: The value to encrypt
            
        Returns:
            The encrypted payload
            
        Raises:
            EncryptError: If the value cannot be serialized
        """
        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise EncryptError(f"Could not serialize value: {e}") from e
        return self.encrypt(serialized)
    
    def decrypt_value(self, payload: str) -> Any:
        """
        Decrypt a payload produced by encrypt_value.
        
        Raises:
            DecryptError: If decryption or deserialization fails
        """
        try:
            return json.loads(self.decrypt(payload))
        except json.JSONDecodeError as e:
            raise DecryptError("The decrypted data is not valid JSON") from e
