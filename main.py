#!/usr/bin/env python3
"""
Elocrypt command line utility.

Generates keys, encrypts or decrypts single values in the stored
(tagged) format, and runs a short demonstration of encrypted records.
"""

import argparse
import json
import os
import sys

from elocrypt.config import ElocryptConfig
from elocrypt.encryption import (
    DecryptError,
    EncryptionAlgorithm,
    Encrypter,
    FailureCounter,
    FieldCrypt,
    format_key,
)
from elocrypt.models import EncryptedAttributes, EncryptedModel


class Customer(EncryptedModel):
    """Example customer record for demonstration."""
    
    __encrypts__ = {"address", "phone"}
    
    name: str
    address: str
    phone: str | None = None


def parse_args() -> argparse.Namespace:
    """
    Parse command line arguments.
    
    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description="Elocrypt field encryption utility")
    
    parser.add_argument(
        "--config",
        help="Path to configuration file"
    )
    
    parser.add_argument(
        "--mode",
        choices=["DEV", "PROD"],
        help="Override operation mode (DEV or PROD)"
    )
    
    parser.add_argument(
        "--cipher",
        choices=[algorithm.value for algorithm in EncryptionAlgorithm],
        help="Override the configured cipher"
    )
    
    actions = parser.add_mutually_exclusive_group(required=True)
    
    actions.add_argument(
        "--generate-key",
        action="store_true",
        help="Print a new random key in base64: form"
    )
    
    actions.add_argument(
        "--encrypt",
        metavar="VALUE",
        help="Encrypt a value and print its stored form"
    )
    
    actions.add_argument(
        "--decrypt",
        metavar="STORED",
        help="Decrypt a stored (tagged) value"
    )
    
    actions.add_argument(
        "--demo",
        action="store_true",
        help="Run a demonstration of encrypted records"
    )
    
    return parser.parse_args()


def run_demo(crypt: FieldCrypt) -> None:
    """Run a demonstration of encrypting and reading records."""
    counter = FailureCounter()
    crypt.on_failure = counter
    Customer.use_field_crypt(crypt)
    
    customer = Customer(name="Jane Roe", address="1 Main Street", phone="555-0100")
    stored = customer.get_stored_data()
    
    print("Stored customer record:")
    print(json.dumps(stored, indent=2))
    
    print("\nCustomer record as read:")
    print(json.dumps(Customer.from_stored(stored).model_dump(), indent=2))
    
    # Legacy rows written before encryption was enabled still read back
    legacy = EncryptedAttributes(
        Customer.encrypted_fields(),
        storage={"name": "John Doe", "address": "2 High Street"},
        field_crypt=crypt,
    )
    print("\nLegacy plaintext record as read:")
    print(json.dumps(legacy.to_dict(), indent=2))
    
    print(f"\nFallbacks during demo: {counter.total}")


def main() -> None:
    """Main entry point for the Elocrypt utility."""
    args = parse_args()
    
    if args.mode:
        os.environ["ELOCRYPT_MODE"] = args.mode
    if args.cipher:
        os.environ["ELOCRYPT_CIPHER"] = args.cipher
    
    ElocryptConfig.initialize(args.config)
    
    if args.generate_key:
        print(format_key(Encrypter.generate_key(ElocryptConfig.get_cipher_name())))
        return
    
    crypt = FieldCrypt.from_config()
    
    if args.encrypt is not None:
        print(crypt.encrypted_value(args.encrypt))
        return
    
    if args.decrypt is not None:
        try:
            print(crypt.decrypted_value(args.decrypt))
        except (DecryptError, ValueError) as e:
            print(f"Error decrypting value: {e}", file=sys.stderr)
            sys.exit(1)
        return
    
    print(f"Elocrypt - {ElocryptConfig.get('mode')} mode")
    print(f"Cipher: {ElocryptConfig.get_cipher_name()}")
    run_demo(crypt)


if __name__ == "__main__":
    main()
