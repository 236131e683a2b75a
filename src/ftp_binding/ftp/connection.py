"""FTP session protocol for the binding.

Provides SessionState enum, FTPConnectionConfig dataclass, the
single-use FTPSession state machine and the ``ftp_session`` context
manager that guarantees the session is closed on every exit path.
"""

import io
import logging
import posixpath
import socket
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from ftplib import FTP, all_errors, error_perm
from typing import Iterator, List, Optional

from ftp_binding.ftp.exceptions import (
    FTPActionError,
    FTPAuthenticationError,
    FTPConnectionError,
    FTPDirectoryError,
    FTPSessionCloseError,
    FTPSessionStateError,
    FTPTimeoutError,
)
from ftp_binding.ftp.listing import FileEntry, parse_list_lines

logger = logging.getLogger("ftp_binding.session")


class SessionState(Enum):
    """FTP session state."""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    DIRECTORY_READY = "directory_ready"
    COMPLETED = "completed"
    CLOSED = "closed"
    ERROR = "error"


@dataclass
class FTPConnectionConfig:
    """FTP connection configuration."""
    host: str
    port: int = 21
    username: str = "anonymous"
    password: str = field(default="", repr=False)
    timeout: int = 30

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.host:
            raise ValueError("Host is required")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"Port must be between 1 and 65535, got {self.port}")
        if not 5 <= self.timeout <= 300:
            raise ValueError(f"Timeout must be between 5 and 300, got {self.timeout}")


class FTPSession:
    """
    One dial-through-close lifecycle against an FTP server.

    States only move forward:
    DISCONNECTED -> CONNECTED -> AUTHENTICATED -> (DIRECTORY_READY)
    -> COMPLETED -> CLOSED. Any failure moves the session to ERROR.
    Exactly one file action is allowed per session.
    """

    # Block size for FTP transfers (8KB)
    BLOCK_SIZE = 8192

    def __init__(self, config: FTPConnectionConfig, deadline: Optional[float] = None):
        """
        Initialize the session.

        Args:
            config: Connection configuration
            deadline: Optional ``time.monotonic()`` value after which no
                further protocol step is started
        """
        self._config = config
        self._deadline = deadline
        self._started = time.monotonic()
        self._ftp: Optional[FTP] = None
        self._state = SessionState.DISCONNECTED
        self._directory: Optional[str] = None

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._state

    @property
    def config(self) -> FTPConnectionConfig:
        """Connection configuration."""
        return self._config

    @property
    def directory(self) -> Optional[str]:
        """Directory changed into, if any."""
        return self._directory

    def _require(self, step: str, *states: SessionState) -> None:
        if self._state not in states:
            raise FTPSessionStateError(step, self._state.value)

    def _check_deadline(self, step: str) -> None:
        """Refuse to start a step once the caller's deadline has passed."""
        if self._deadline is None or time.monotonic() < self._deadline:
            return
        self._state = SessionState.ERROR
        raise FTPTimeoutError(
            self._config.host,
            self._config.port,
            operation=step,
            timeout=round(self._deadline - self._started, 3),
        )

    def _remote_path(self, name: str) -> str:
        if self._directory is None:
            return name
        return posixpath.join(self._directory, name)

    def connect(self) -> None:
        """
        Dial the server.

        Raises:
            FTPConnectionError: If the server cannot be reached
            FTPTimeoutError: If the connection times out
        """
        self._require("connect", SessionState.DISCONNECTED)
        self._check_deadline("Connection")
        config = self._config

        logger.debug("Connecting to %s:%s", config.host, config.port)
        self._ftp = FTP()
        self._ftp.set_debuglevel(0)

        try:
            self._ftp.connect(host=config.host, port=config.port, timeout=config.timeout)
        except socket.timeout as e:
            self._fail()
            raise FTPTimeoutError(config.host, config.port, "Connection", config.timeout) from e
        except all_errors as e:
            self._fail()
            raise FTPConnectionError(config.host, config.port, e) from e

        self._state = SessionState.CONNECTED

    def login(self) -> None:
        """
        Submit credentials.

        Raises:
            FTPAuthenticationError: If the server rejects the credentials
            FTPConnectionError: If the connection drops during login
        """
        self._require("login", SessionState.CONNECTED)
        self._check_deadline("Login")
        config = self._config

        try:
            self._ftp.login(user=config.username, passwd=config.password)
        except error_perm as e:
            self._state = SessionState.ERROR
            raise FTPAuthenticationError(config.username, e) from e
        except socket.timeout as e:
            self._state = SessionState.ERROR
            raise FTPTimeoutError(config.host, config.port, "Login", config.timeout) from e
        except all_errors as e:
            self._state = SessionState.ERROR
            raise FTPConnectionError(config.host, config.port, e) from e

        logger.debug("Logged in to %s as %s", config.host, config.username)
        self._state = SessionState.AUTHENTICATED

    def change_directory(self, path: str, create_missing: bool = False) -> None:
        """
        Change into the target directory.

        Args:
            path: Resolved remote directory
            create_missing: On a permanent CWD failure, create the
                directory with a single MKD and retry CWD once

        Raises:
            FTPDirectoryError: If the directory cannot be entered
        """
        self._require("change directory", SessionState.AUTHENTICATED)
        self._check_deadline("Change directory")
        ftp = self._ftp

        try:
            ftp.cwd(path)
        except error_perm as e:
            if not create_missing:
                self._state = SessionState.ERROR
                raise FTPDirectoryError(path, "change to", e) from e

            logger.debug("Directory %s not found, creating it", path)
            try:
                ftp.mkd(path)
            except all_errors as mkd_error:
                self._state = SessionState.ERROR
                raise FTPDirectoryError(path, "create", mkd_error) from mkd_error
            try:
                ftp.cwd(path)
            except all_errors as retry_error:
                self._state = SessionState.ERROR
                raise FTPDirectoryError(path, "change to", retry_error) from retry_error
        except all_errors as e:
            self._state = SessionState.ERROR
            raise FTPDirectoryError(path, "change to", e) from e

        self._directory = path
        self._state = SessionState.DIRECTORY_READY

    def _begin_action(self, action: str) -> None:
        self._require(action, SessionState.AUTHENTICATED, SessionState.DIRECTORY_READY)
        self._check_deadline(action.capitalize())

    def _action_failed(self, action: str, path: str, error: Exception) -> FTPActionError:
        self._state = SessionState.ERROR
        return FTPActionError(action, path, error)

    def store(self, name: str, data: bytes) -> int:
        """
        Store bytes under ``name`` in the current directory, replacing
        any existing file.

        Returns:
            Number of bytes sent

        Raises:
            FTPActionError: If STOR fails
        """
        self._begin_action("store")
        bytes_sent = 0

        def callback(block: bytes) -> None:
            nonlocal bytes_sent
            bytes_sent += len(block)

        try:
            self._ftp.storbinary(
                f"STOR {name}",
                io.BytesIO(data),
                blocksize=self.BLOCK_SIZE,
                callback=callback
            )
        except all_errors as e:
            raise self._action_failed("store", self._remote_path(name), e) from e

        self._state = SessionState.COMPLETED
        return bytes_sent

    def retrieve(self, name: str) -> bytes:
        """
        Retrieve the full content of ``name``.

        The data channel is drained and closed before this returns.

        Raises:
            FTPActionError: If RETR fails
        """
        self._begin_action("retrieve")
        buffer = io.BytesIO()

        try:
            self._ftp.retrbinary(f"RETR {name}", buffer.write, blocksize=self.BLOCK_SIZE)
        except all_errors as e:
            raise self._action_failed("retrieve", self._remote_path(name), e) from e

        self._state = SessionState.COMPLETED
        return buffer.getvalue()

    def list_entries(self) -> List[FileEntry]:
        """
        List the current directory.

        Returns:
            Entries in the order the server sent them

        Raises:
            FTPActionError: If LIST fails
        """
        self._begin_action("list")
        lines: List[str] = []

        try:
            self._ftp.retrlines("LIST", lines.append)
        except all_errors as e:
            raise self._action_failed("list", self._directory or ".", e) from e

        self._state = SessionState.COMPLETED
        return parse_list_lines(lines)

    def delete(self, name: str) -> None:
        """
        Delete ``name`` from the current directory.

        A missing file is an error.

        Raises:
            FTPActionError: If DELE fails
        """
        self._begin_action("delete")

        try:
            self._ftp.delete(name)
        except all_errors as e:
            raise self._action_failed("delete", self._remote_path(name), e) from e

        self._state = SessionState.COMPLETED

    def close(self) -> None:
        """
        Terminate the session with QUIT.

        The socket is released even when QUIT fails.

        Raises:
            FTPSessionCloseError: If the QUIT handshake fails
        """
        if self._state == SessionState.CLOSED:
            return
        if self._ftp is None:
            self._state = SessionState.CLOSED
            return

        try:
            self._ftp.quit()
        except all_errors as e:
            raise FTPSessionCloseError(self._config.host, e) from e
        finally:
            self._release()

    def abort(self) -> None:
        """Close after a failure without masking it."""
        if self._ftp is None:
            self._state = SessionState.CLOSED
            return

        try:
            self._ftp.quit()
        except all_errors as e:
            logger.warning("Ignoring close failure for %s: %s", self._config.host, e)
        finally:
            self._release()

    def _fail(self) -> None:
        self._release()
        self._state = SessionState.ERROR

    def _release(self) -> None:
        if self._ftp is not None:
            try:
                self._ftp.close()
            except OSError as e:
                logger.debug("Socket close failed for %s: %s", self._config.host, e)
        self._ftp = None
        self._state = SessionState.CLOSED


@contextmanager
def ftp_session(
    config: FTPConnectionConfig,
    deadline: Optional[float] = None
) -> Iterator[FTPSession]:
    """
    Open an authenticated session and close it on every exit path.

    On normal exit the QUIT handshake runs and its failure surfaces as
    FTPSessionCloseError. If the body raises, the session is aborted and
    the original error propagates unchanged.

    Usage:
        with ftp_session(config) as session:
            session.change_directory("/srv/ftp/data")
            payload = session.retrieve("out.txt")
    """
    session = FTPSession(config, deadline=deadline)
    try:
        session.connect()
        session.login()
        yield session
    except BaseException:
        session.abort()
        raise
    session.close()
