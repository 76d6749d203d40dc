"""
Configuration management for Elocrypt.

This module provides configuration utilities for controlling behavior
of field encryption, including development/production modes, the
active cipher and key, and failure reporting.
"""

import os
import sys
from copy import deepcopy
from pathlib import Path

import yaml


_TRUE_VALUES = ("1", "true", "True", "yes", "Yes")
_FALSE_VALUES = ("0", "false", "False", "no", "No")


class ElocryptConfig:
    """
    Process-wide configuration for Elocrypt.
    
    Values come from built-in defaults, then an optional YAML file,
    then environment variables, in that order of precedence.
    """
    
    # Default configuration values
    _default_config: dict[str, object] = {
        "mode": "DEV",  # DEV or PROD
        "encryption": {
            "enabled": True,
            "cipher": "AES-256-CBC",
            "key": None,
            "report_failures": True,
        },
    }
    
    # Instance configuration values, loaded from file or environment
    _config: dict[str, object] = {}
    
    # Flag indicating if the configuration has been initialized
    _initialized: bool = False
    
    @classmethod
    def initialize(cls, config_path: str | None = None) -> None:
        """
        Initialize the configuration.
        
        Args:
            config_path: Optional path to a YAML configuration file
        """
        cls._config = deepcopy(cls._default_config)
        
        if config_path:
            cls._load_from_file(config_path)
        
        # Environment always wins over the file
        cls._load_from_env()
        
        cls._initialized = True
    
    @classmethod
    def _merge(cls, values: object, source: str) -> None:
        """
        Merge a loaded mapping into the active configuration, one section deep.
        
        Sections that are mappings by default must stay mappings; anything
        else is a fatal configuration error.
        
        Args:
            values: The loaded YAML document
            source: Path of the file it came from, for error messages
        """
        if not isinstance(values, dict):
            print(f"[ERROR] Configuration in {source} must be a mapping", file=sys.stderr)
            sys.exit(1)
        
        for section, value in values.items():
            if isinstance(cls._default_config.get(section), dict) and not isinstance(value, dict):
                print(
                    f"[ERROR] Configuration section '{section}' in {source} must be a mapping",
                    file=sys.stderr,
                )
                sys.exit(1)
        
        for section, value in values.items():
            current = cls._config.get(section)
            if isinstance(value, dict) and isinstance(current, dict):
                current.update(value)
            else:
                cls._config[section] = value
    
    @classmethod
    def _load_from_file(cls, config_path: str) -> None:
        """
        Load configuration from a YAML file.
        
        Args:
            config_path: Path to the YAML configuration file
        """
        path = Path(config_path)
        if not path.exists():
            print(f"[ERROR] Configuration file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        
        try:
            with open(path, "r") as f:
                file_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            print(f"[ERROR] Error loading configuration file: {e}", file=sys.stderr)
            sys.exit(1)
        
        if file_config is not None:
            cls._merge(file_config, config_path)
    
    @classmethod
    def _load_from_env(cls) -> None:
        """Load configuration from environment variables."""
        env_mode = os.environ.get("ELOCRYPT_MODE")
        if env_mode in ("DEV", "PROD"):
            cls._config["mode"] = env_mode
        
        encryption = cls._config["encryption"]
        
        env_enabled = os.environ.get("ELOCRYPT_ENCRYPTION_ENABLED")
        if env_enabled in _TRUE_VALUES:
            encryption["enabled"] = True
        elif env_enabled in _FALSE_VALUES:
            encryption["enabled"] = False
        
        env_key = os.environ.get("ELOCRYPT_KEY")
        if env_key:
            encryption["key"] = env_key
        
        env_cipher = os.environ.get("ELOCRYPT_CIPHER")
        if env_cipher:
            encryption["cipher"] = env_cipher
    
    @classmethod
    def _ensure_initialized(cls) -> None:
        """Ensure the configuration is initialized."""
        if not cls._initialized:
            cls.initialize()
    
    @classmethod
    def get(cls, key: str, default: object = None) -> object:
        """
        Get a configuration value.
        
        Args:
            key: The configuration key to retrieve, dot-separated for nested values
            default: Default value to return if key is not found
            
        Returns:
            The configuration value, or default if not found
        """
        cls._ensure_initialized()
        
        if "." in key:
            value = cls._config
            for part in key.split("."):
                if isinstance(value, dict) and part in value:
                    value = value[part]
                else:
                    return default
            return value
        
        return cls._config.get(key, default)
    
    @classmethod
    def is_dev_mode(cls) -> bool:
        """Check if the system is in development mode."""
        return cls.get("mode") == "DEV"
    
    @classmethod
    def is_encryption_enabled(cls) -> bool:
        """Check if encryption on write is enabled."""
        return bool(cls.get("encryption.enabled", True))
    
    @classmethod
    def get_cipher_name(cls) -> str:
        return str(cls.get("encryption.cipher", "AES-256-CBC"))
    
    @classmethod
    def get_key(cls) -> str | None:
        return cls.get("encryption.key")
    
    @classmethod
    def reports_failures(cls) -> bool:
        return bool(cls.get("encryption.report_failures", True))
    
    @classmethod
    def load_from_secrets_file(cls, file_path: str) -> None:
        """
        Load configuration from a secrets file.
        
        Secrets files hold values that should not live in the main
        configuration file, typically `encryption.key`. A missing file
        is not an error.
        
        Args:
            file_path: Path to the secrets file
        """
        cls._ensure_initialized()
        
        path = Path(file_path)
        if not path.exists():
            print(f"[WARNING] Secrets file not found: {file_path}", file=sys.stderr)
            return
        
        try:
            with open(path, "r") as f:
                secrets = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            print(f"[ERROR] Error loading secrets file: {e}", file=sys.stderr)
            sys.exit(1)
        
        if secrets is not None:
            cls._merge(secrets, file_path)
