"""Binding settings for the FTP binding.

Provides the BindingSettings dataclass built from the host runtime's
static properties, per-request metadata merging, and JSON properties
file loading for the command line.
"""

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

from ftp_binding.ftp.connection import FTPConnectionConfig
from ftp_binding.ftp.exceptions import ConfigError
from ftp_binding.ftp.paths import normalize_root
from ftp_binding.utils.validators import (
    split_server,
    validate_port,
    validate_server,
    validate_timeout,
)


DEFAULT_PORT = 21
DEFAULT_USER = "anonymous"
DEFAULT_TIMEOUT = 30

# Recognized static property keys and their descriptions
PROPERTY_KEYS: Dict[str, str] = {
    "rootPath": "Root directory every filename and directory is confined to. Defaults to '/'.",
    "server": "FTP server address as host or host:port. Required.",
    "port": "Port used when server carries none. Defaults to 21.",
    "user": "Login user name. Defaults to 'anonymous'.",
    "password": "Login password. Falls back to the system keyring when empty.",
    "directory": "Default directory for list operations, relative to rootPath.",
    "timeout": "Socket timeout in seconds, 5-300. Defaults to 30.",
}

# Per-request metadata keys
FILENAME_KEY = "filename"
DIRECTORY_KEY = "directory"


def _lookup(properties: Mapping[str, str], key: str) -> Optional[str]:
    """Case-insensitive property lookup."""
    if key in properties:
        return properties[key]
    lowered = key.lower()
    for name, value in properties.items():
        if name.lower() == lowered:
            return value
    return None


def _text(properties: Mapping[str, str], key: str, default: str = "") -> str:
    value = _lookup(properties, key)
    if value is None:
        return default
    return str(value).strip()


@dataclass(frozen=True)
class BindingSettings:
    """Static binding configuration, fixed for the binding's lifetime."""
    root_path: str
    host: str
    port: int = DEFAULT_PORT
    user: str = DEFAULT_USER
    password: str = field(default="", repr=False)
    directory: str = ""
    timeout: int = DEFAULT_TIMEOUT

    @property
    def server(self) -> str:
        """Server address as host:port."""
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    @classmethod
    def from_properties(cls, properties: Mapping[str, str]) -> "BindingSettings":
        """
        Build settings from static binding properties.

        Keys are matched case-insensitively. See PROPERTY_KEYS.

        Args:
            properties: Static properties from the host runtime

        Returns:
            BindingSettings instance

        Raises:
            ConfigError: If a value is missing or invalid
        """
        server = _text(properties, "server")
        is_valid, error = validate_server(server)
        if not is_valid:
            raise ConfigError(f"Invalid server: {error}")

        host, port = split_server(server)
        if port is None:
            port = _text(properties, "port") or str(DEFAULT_PORT)
            is_valid, error = validate_port(port)
            if not is_valid:
                raise ConfigError(f"Invalid port: {error}")

        timeout = _text(properties, "timeout") or str(DEFAULT_TIMEOUT)
        is_valid, error = validate_timeout(timeout)
        if not is_valid:
            raise ConfigError(f"Invalid timeout: {error}")

        password = _lookup(properties, "password")

        return cls(
            root_path=normalize_root(_text(properties, "rootPath")),
            host=host,
            port=int(port),
            user=_text(properties, "user") or DEFAULT_USER,
            password="" if password is None else str(password),
            directory=_text(properties, "directory"),
            timeout=int(timeout),
        )

    def to_connection_config(self) -> FTPConnectionConfig:
        """Connection configuration for a session."""
        return FTPConnectionConfig(
            host=self.host,
            port=self.port,
            username=self.user,
            password=self.password,
            timeout=self.timeout,
        )

    def with_password(self, password: str) -> "BindingSettings":
        """Copy of the settings with a different password."""
        return replace(self, password=password)


def get_request_value(metadata: Optional[Mapping[str, str]], key: str) -> str:
    """
    Read a per-request metadata value.

    Args:
        metadata: Request metadata, may be None
        key: Metadata key, matched case-insensitively

    Returns:
        The value, or an empty string when absent
    """
    if not metadata:
        return ""
    value = _lookup(metadata, key)
    return "" if value is None else str(value)


def merge_request_metadata(
    settings: BindingSettings,
    metadata: Optional[Mapping[str, str]]
) -> BindingSettings:
    """
    Apply per-request overrides to the static settings.

    Only ``directory`` may be overridden, and only by a non-empty value.
    The static settings are left untouched.

    Args:
        settings: Static binding settings
        metadata: Request metadata

    Returns:
        Effective settings for one invocation
    """
    directory = get_request_value(metadata, DIRECTORY_KEY)
    if directory:
        return replace(settings, directory=directory)
    return settings


def load_properties(path: Path) -> Dict[str, str]:
    """
    Load static properties from a JSON file.

    Args:
        path: Path to a JSON object of property names to values

    Returns:
        Properties dictionary

    Raises:
        ConfigError: If the file is missing, unreadable or not an object
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigError(f"Cannot read properties file '{path}'", e) from e

    if not isinstance(data, dict):
        raise ConfigError(f"Properties file '{path}' must contain a JSON object")

    return {str(k): "" if v is None else str(v) for k, v in data.items()}
