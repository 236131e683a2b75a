"""Secure credential storage for the FTP binding.

Uses the system keyring (Windows Credential Manager, macOS Keychain,
Linux Secret Service) so FTP passwords can stay out of binding
properties files.
"""

import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError

logger = logging.getLogger("ftp_binding.credentials")


class CredentialManager:
    """Secure credential storage using system keyring."""

    SERVICE_NAME = "ftp-binding"

    def _make_key(self, host: str, username: str) -> str:
        """
        Create a unique key for the credential.

        Args:
            host: FTP host
            username: FTP username

        Returns:
            Unique key string
        """
        return f"{host}:{username}"

    def save_password(self, host: str, username: str, password: str) -> bool:
        """
        Save FTP password securely.

        Args:
            host: FTP host
            username: FTP username
            password: Password to save

        Returns:
            True if saved successfully, False otherwise
        """
        try:
            key = self._make_key(host, username)
            keyring.set_password(self.SERVICE_NAME, key, password)
            return True
        except KeyringError as e:
            logger.warning("Could not save password for %s: %s", host, e)
            return False

    def get_password(self, host: str, username: str) -> Optional[str]:
        """
        Retrieve saved password.

        Args:
            host: FTP host
            username: FTP username

        Returns:
            Password string or None if not found
        """
        try:
            key = self._make_key(host, username)
            return keyring.get_password(self.SERVICE_NAME, key)
        except KeyringError as e:
            logger.debug("Keyring lookup failed for %s: %s", host, e)
            return None

    def delete_password(self, host: str, username: str) -> bool:
        """
        Remove saved password.

        Args:
            host: FTP host
            username: FTP username

        Returns:
            True if deleted successfully, False otherwise
        """
        try:
            key = self._make_key(host, username)
            keyring.delete_password(self.SERVICE_NAME, key)
            return True
        except KeyringError:
            return False

