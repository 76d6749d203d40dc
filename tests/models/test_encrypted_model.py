"""
Tests for encrypted fields in EncryptedModel.
"""

import json
from typing import Optional

import pytest
from pydantic import Field

from elocrypt.encryption import (
    CryptStatus,
    Encrypter,
    FailureCounter,
    FieldCrypt,
    is_tagged,
)
from elocrypt.models import EncryptedModel


class SensitiveData(EncryptedModel):
    __encrypts__ = ["password", "api_key", "password"]
    
    username: str
    password: str
    api_key: Optional[str] = None
    public_flag: bool = False


class TestEncryptedModel:
    """Tests for encrypted fields in EncryptedModel."""
    
    @pytest.fixture(autouse=True)
    def use_test_crypt(self, field_crypt: FieldCrypt):
        SensitiveData.use_field_crypt(field_crypt)
        yield
        SensitiveData.use_field_crypt(None)
    
    def test_encrypted_fields(self) -> None:
        assert SensitiveData.encrypted_fields() == frozenset({"password", "api_key"})
    
    def test_fields_are_encrypted_when_stored(self) -> None:
        data = SensitiveData(username="testuser", password="secret123", api_key="api-key-12345")
        stored = data.get_stored_data()
        
        assert stored["username"] == "testuser"
        assert stored["public_flag"] is False
        assert is_tagged(stored["password"])
        assert is_tagged(stored["api_key"])
        assert "secret123" not in json.dumps(stored)
    
    def test_attribute_access_is_decrypted(self) -> None:
        data = SensitiveData(username="testuser", password="secret123")
        
        assert data.username == "testuser"
        assert data.password == "secret123"
        assert data.get_attribute("password") == "secret123"
        assert data.api_key is None
    
    def test_get_attribute_unknown_field(self) -> None:
        data = SensitiveData(username="testuser", password="secret123")
        
        with pytest.raises(KeyError):
            data.get_attribute("nope")
    
    def test_assignment_is_encrypted(self) -> None:
        data = SensitiveData(username="testuser", password="secret123")
        data.password = "new-password"
        data.username = "renamed"
        
        stored = data.get_stored_data()
        assert is_tagged(stored["password"])
        assert stored["username"] == "renamed"
        assert data.password == "new-password"
    
    def test_model_dump_is_decrypted(self) -> None:
        data = SensitiveData(username="testuser", password="secret123", api_key="k")
        
        assert data.model_dump() == {
            "username": "testuser",
            "password": "secret123",
            "api_key": "k",
            "public_flag": False,
        }
        assert json.loads(data.to_json())["password"] == "secret123"
    
    def test_model_dump_keeps_options(self) -> None:
        data = SensitiveData(username="testuser", password="secret123")
        
        assert data.model_dump(include={"password"}) == {"password": "secret123"}
    
    def test_repr_shows_stored_form(self) -> None:
        data = SensitiveData(username="testuser", password="secret123")
        
        assert "secret123" not in repr(data)
    
    def test_from_stored_does_not_double_encrypt(self) -> None:
        data = SensitiveData(username="testuser", password="secret123")
        stored = data.get_stored_data()
        
        reloaded = SensitiveData.from_stored(stored)
        
        assert reloaded.get_stored_data() == stored
        assert reloaded.password == "secret123"
    
    def test_from_stored_encrypts_legacy_plaintext(self) -> None:
        reloaded = SensitiveData.from_stored({"username": "old", "password": "legacy"})
        
        assert is_tagged(reloaded.get_stored_data()["password"])
        assert reloaded.password == "legacy"
    
    def test_export_results_report_failures(self, other_encrypter: Encrypter) -> None:
        foreign = FieldCrypt(other_encrypter).encrypted_value("elsewhere")
        data = SensitiveData.from_stored({"username": "u", "password": foreign})
        
        results = data.export_results()
        
        assert results["password"].status == CryptStatus.DECRYPT_FAILED
        assert data.password == foreign
        assert data.model_dump()["password"] == foreign


class TestModelFailures:
    """Tests for fallback behavior on models."""
    
    def test_encryption_failure_stores_plaintext(self, broken_cipher) -> None:
        counter = FailureCounter()
        
        class Fragile(EncryptedModel):
            __encrypts__ = {"secret"}
            
            secret: str
        
        Fragile.use_field_crypt(FieldCrypt(broken_cipher, on_failure=counter))
        item = Fragile(secret="hello")
        
        assert item.get_stored_data() == {"secret": "hello"}
        assert item.secret == "hello"
        assert counter.by_status[CryptStatus.ENCRYPT_FAILED] == 1
    
    def test_encryption_disabled(self, encrypter: Encrypter) -> None:
        class Quiet(EncryptedModel):
            __encrypts__ = {"secret"}
            
            secret: str
        
        Quiet.use_field_crypt(FieldCrypt(encrypter, encrypt_on_write=False))
        item = Quiet(secret="hello")
        
        assert item.get_stored_data() == {"secret": "hello"}
        assert item.secret == "hello"
    
    def test_model_without_encrypted_fields(self, field_crypt: FieldCrypt) -> None:
        class Plain(EncryptedModel):
            name: str
        
        Plain.use_field_crypt(field_crypt)
        item = Plain(name="x")
        
        assert item.get_stored_data() == {"name": "x"}
        assert item.model_dump() == {"name": "x"}


class TestModelWriteRoutes:
    """Tests for pydantic routes that write fields without validation."""
    
    @pytest.fixture(autouse=True)
    def use_test_crypt(self, field_crypt: FieldCrypt):
        SensitiveData.use_field_crypt(field_crypt)
        yield
        SensitiveData.use_field_crypt(None)
    
    def test_model_copy_update_is_encrypted(self) -> None:
        data = SensitiveData(username="testuser", password="secret123")
        
        copied = data.model_copy(update={"password": "plain-ssn", "username": "other"})
        stored = copied.get_stored_data()
        
        assert is_tagged(stored["password"])
        assert stored["username"] == "other"
        assert copied.password == "plain-ssn"
        # The original is untouched
        assert data.password == "secret123"
    
    def test_model_copy_keeps_stored_values(self) -> None:
        data = SensitiveData(username="testuser", password="secret123")
        
        assert data.model_copy().get_stored_data() == data.get_stored_data()
        assert data.model_copy(deep=True).password == "secret123"
    
    def test_model_construct_is_encrypted(self) -> None:
        data = SensitiveData.model_construct(username="testuser", password="plain-ssn")
        stored = data.get_stored_data()
        
        assert is_tagged(stored["password"])
        assert stored["username"] == "testuser"
        assert data.password == "plain-ssn"
    
    def test_model_construct_from_stored_values(self) -> None:
        stored = SensitiveData(username="u", password="secret123").get_stored_data()
        
        rebuilt = SensitiveData.model_construct(**stored)
        
        assert rebuilt.get_stored_data() == stored


class TestModelSerialization:
    """Tests for whole-record serialization."""
    
    @pytest.fixture(autouse=True)
    def use_test_crypt(self, field_crypt: FieldCrypt):
        SensitiveData.use_field_crypt(field_crypt)
        yield
        SensitiveData.use_field_crypt(None)
    
    def test_model_dump_json_is_decrypted(self) -> None:
        data = SensitiveData(username="testuser", password="secret123")
        
        dumped = json.loads(data.model_dump_json())
        
        assert dumped == data.model_dump()
        assert dumped["password"] == "secret123"
        assert "__ELOCRYPT__" not in data.model_dump_json(indent=2)
    
    def test_model_dump_json_options(self) -> None:
        data = SensitiveData(username="testuser", password="secret123")
        
        assert json.loads(data.model_dump_json(include={"password"})) == {"password": "secret123"}
        assert json.loads(data.model_dump_json(exclude_none=True)).get("api_key", "absent") == "absent"
    
    def test_dump_by_alias(self, field_crypt: FieldCrypt) -> None:
        class Aliased(EncryptedModel):
            __encrypts__ = {"secret", "token"}
            
            secret: str = Field(alias="Secret")
            token: str = Field(serialization_alias="apiToken")
            name: str
        
        Aliased.use_field_crypt(field_crypt)
        item = Aliased(Secret="hello", token="t-123", name="n")
        
        by_alias = item.model_dump(by_alias=True)
        
        assert by_alias == {"Secret": "hello", "apiToken": "t-123", "name": "n"}
        assert json.loads(item.model_dump_json(by_alias=True))["Secret"] == "hello"
        assert item.model_dump()["secret"] == "hello"
