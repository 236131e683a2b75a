"""FTP output binding.

Routes create, list, get and delete requests to their handlers. Every
handler resolves its target inside the configured root first, then runs
exactly one file action inside its own FTP session.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from ftp_binding.config.credentials import CredentialManager
from ftp_binding.config.settings import (
    FILENAME_KEY,
    PROPERTY_KEYS,
    BindingSettings,
    get_request_value,
    merge_request_metadata,
)
from ftp_binding.ftp.connection import ftp_session
from ftp_binding.ftp.exceptions import (
    ConfigError,
    EncodingError,
    FTPError,
    UnsupportedOperationError,
    ValidationError,
)
from ftp_binding.ftp.listing import DirectoryListing
from ftp_binding.ftp.paths import resolve, resolve_directory

logger = logging.getLogger("ftp_binding.binding")


class OperationKind(Enum):
    """Operations supported by the binding."""
    CREATE = "create"
    LIST = "list"
    GET = "get"
    DELETE = "delete"


@dataclass
class InvokeRequest:
    """A single binding invocation."""
    operation: Union[OperationKind, str]
    data: bytes = b""
    metadata: Dict[str, str] = field(default_factory=dict)
    # time.monotonic() value; checked between protocol steps only
    deadline: Optional[float] = None


@dataclass
class InvokeResponse:
    """Result of a binding invocation."""
    data: bytes = b""
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class CreateResult:
    """Where a create request stored its payload."""
    file_name: str

    def to_dict(self) -> dict:
        """Convert to the binding's response shape."""
        return {"fileName": self.file_name}


class FTPBinding:
    """Output binding performing file operations on an FTP server."""

    def __init__(self, credentials: Optional[CredentialManager] = None):
        """
        Initialize the binding.

        Args:
            credentials: Keyring lookup used when no password is configured
        """
        self._credentials = credentials
        self._settings: Optional[BindingSettings] = None
        self._handlers: Dict[OperationKind, Callable[[InvokeRequest], InvokeResponse]] = {
            OperationKind.CREATE: self._create,
            OperationKind.LIST: self._list,
            OperationKind.GET: self._get,
            OperationKind.DELETE: self._delete,
        }

    @property
    def settings(self) -> BindingSettings:
        """
        Static settings.

        Raises:
            ConfigError: If the binding was not initialized
        """
        if self._settings is None:
            raise ConfigError("FTP binding is not initialized")
        return self._settings

    def init(self, properties: Dict[str, str]) -> None:
        """
        Parse static properties.

        Args:
            properties: Static binding properties

        Raises:
            ConfigError: If the properties are invalid
        """
        settings = BindingSettings.from_properties(properties)

        if not settings.password and self._credentials is not None:
            password = self._credentials.get_password(settings.host, settings.user)
            if password:
                logger.debug("Using keyring password for %s@%s", settings.user, settings.host)
                settings = settings.with_password(password)

        self._settings = settings
        logger.info(
            "FTP binding initialized for %s with root %s",
            settings.server,
            settings.root_path,
        )

    def operations(self) -> List[OperationKind]:
        """Operations this binding supports."""
        return list(self._handlers)

    def get_component_metadata(self) -> Dict[str, object]:
        """Describe recognized properties and supported operations."""
        return {
            "properties": dict(PROPERTY_KEYS),
            "operations": [kind.value for kind in self._handlers],
        }

    def invoke(self, request: InvokeRequest) -> InvokeResponse:
        """
        Run one operation.

        Args:
            request: Operation kind, metadata and payload

        Returns:
            InvokeResponse shaped for the operation

        Raises:
            UnsupportedOperationError: If the operation kind is unknown
            FTPError: Subclass naming the phase that failed
        """
        if self._settings is None:
            raise ConfigError("FTP binding is not initialized")

        try:
            kind = OperationKind(request.operation)
        except ValueError:
            raise UnsupportedOperationError(str(request.operation)) from None

        try:
            return self._handlers[kind](request)
        except FTPError as e:
            logger.error("%s failed: %s", kind.value, e)
            raise

    def _create(self, request: InvokeRequest) -> InvokeResponse:
        effective = merge_request_metadata(self.settings, request.metadata)
        filename = get_request_value(request.metadata, FILENAME_KEY)
        if not filename:
            raise ValidationError("create", FILENAME_KEY)

        target = resolve(effective.root_path, filename)

        with ftp_session(effective.to_connection_config(), request.deadline) as session:
            session.change_directory(target.directory, create_missing=True)
            bytes_sent = session.store(target.base_name, request.data)

        logger.info("Stored %d bytes at %s", bytes_sent, target.absolute_path)
        result = CreateResult(file_name=target.absolute_path)
        return InvokeResponse(data=self._encode("create", result.to_dict()))

    def _list(self, request: InvokeRequest) -> InvokeResponse:
        effective = merge_request_metadata(self.settings, request.metadata)
        directory = resolve_directory(effective.root_path, effective.directory)

        with ftp_session(effective.to_connection_config(), request.deadline) as session:
            session.change_directory(directory)
            entries = session.list_entries()

        logger.info("Listed %d entries in %s", len(entries), directory)
        listing = DirectoryListing(directory=directory, entries=entries)
        return InvokeResponse(data=self._encode("list", listing.to_dict()))

    def _get(self, request: InvokeRequest) -> InvokeResponse:
        effective = merge_request_metadata(self.settings, request.metadata)
        filename = get_request_value(request.metadata, FILENAME_KEY)
        if not filename:
            raise ValidationError("get", FILENAME_KEY)

        target = resolve(effective.root_path, filename)

        with ftp_session(effective.to_connection_config(), request.deadline) as session:
            session.change_directory(target.directory)
            content = session.retrieve(target.base_name)

        logger.info("Retrieved %d bytes from %s", len(content), target.absolute_path)
        return InvokeResponse(data=content)

    def _delete(self, request: InvokeRequest) -> InvokeResponse:
        effective = merge_request_metadata(self.settings, request.metadata)
        filename = get_request_value(request.metadata, FILENAME_KEY)
        if not filename:
            raise ValidationError("delete", FILENAME_KEY)

        target = resolve(effective.root_path, filename)

        with ftp_session(effective.to_connection_config(), request.deadline) as session:
            session.change_directory(target.directory)
            session.delete(target.base_name)

        logger.info("Deleted %s", target.absolute_path)
        return InvokeResponse()

    @staticmethod
    def _encode(operation: str, payload: dict) -> bytes:
        try:
            return json.dumps(payload).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EncodingError(operation, e) from e
