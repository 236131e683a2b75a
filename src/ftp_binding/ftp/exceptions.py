"""FTP binding exceptions.

Custom exception hierarchy for binding operations. Each error names the
phase that failed (configuration, validation, path resolution, connect,
login, navigate, action, close) so callers never have to guess.
"""


class FTPError(Exception):
    """Base exception for all FTP binding errors."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class ConfigError(FTPError):
    """Static binding configuration is missing or invalid."""


class ValidationError(FTPError):
    """A required request field is missing or malformed."""

    def __init__(self, operation: str, field_name: str):
        self.operation = operation
        self.field_name = field_name
        message = f"{operation}: {field_name} is empty"
        super().__init__(message)


class SecurityError(FTPError):
    """Path resolution would leave the configured root."""

    def __init__(self, root: str, path: str, reason: str = "path escapes root"):
        self.root = root
        self.path = path
        message = f"Refusing '{path}' under root '{root}': {reason}"
        super().__init__(message)


class UnsupportedOperationError(FTPError):
    """Operation kind is not handled by the binding."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Unsupported operation '{operation}'")


class EncodingError(FTPError):
    """Response could not be serialized."""

    def __init__(self, operation: str, original_error: Exception = None):
        self.operation = operation
        message = f"{operation}: error encoding response as JSON"
        super().__init__(message, original_error)


class FTPConnectionError(FTPError):
    """Failed to establish FTP connection."""

    def __init__(self, host: str, port: int, original_error: Exception = None):
        self.host = host
        self.port = port
        message = f"Failed to connect to {host}:{port}"
        super().__init__(message, original_error)


class FTPTimeoutError(FTPConnectionError):
    """FTP operation timed out."""

    def __init__(
        self,
        host: str,
        port: int,
        operation: str = "Connection",
        timeout: float = 30
    ):
        self.host = host
        self.port = port
        self.operation = operation
        self.timeout = timeout
        message = f"{operation} to {host}:{port} timed out after {timeout} seconds"
        FTPError.__init__(self, message)


class FTPAuthenticationError(FTPError):
    """FTP authentication (login) failed."""

    def __init__(self, username: str, original_error: Exception = None):
        self.username = username
        message = f"Authentication failed for user '{username}'"
        super().__init__(message, original_error)


class FTPDirectoryError(FTPError):
    """Changing into (or creating) a remote directory failed."""

    def __init__(self, path: str, operation: str, original_error: Exception = None):
        self.path = path
        self.operation = operation
        message = f"Failed to {operation} directory '{path}'"
        super().__init__(message, original_error)


class FTPActionError(FTPError):
    """The file action of a session (store, retrieve, list, delete) failed."""

    def __init__(self, action: str, path: str, original_error: Exception = None):
        self.action = action
        self.path = path
        message = f"Failed to {action} '{path}'"
        super().__init__(message, original_error)


class FTPSessionCloseError(FTPError):
    """The QUIT handshake failed after the session's action."""

    def __init__(self, host: str, original_error: Exception = None):
        self.host = host
        message = f"Failed to close session with {host}"
        super().__init__(message, original_error)


class FTPSessionStateError(FTPError):
    """Session step attempted out of protocol order."""

    def __init__(self, step: str, state: str):
        self.step = step
        self.state = state
        message = f"Cannot {step} while session is {state}"
        super().__init__(message)
