"""Pytest configuration and shared fixtures for FTP binding tests."""

import logging

import pytest
from dataclasses import dataclass
from ftplib import error_perm
from typing import Dict
from unittest.mock import MagicMock


# Test constants
TEST_FTP_HOST = "127.0.0.1"
TEST_FTP_PORT = 2121
TEST_FTP_USER = "testuser"
TEST_FTP_PASS = "testpass"
TEST_ROOT_PATH = "/srv/ftp/data"


@dataclass
class MockFTPConfig:
    """Configuration for mock FTP server in tests."""
    host: str = TEST_FTP_HOST
    port: int = TEST_FTP_PORT
    username: str = TEST_FTP_USER
    password: str = TEST_FTP_PASS


@pytest.fixture(autouse=True)
def reset_binding_logger():
    """Drop handlers installed by setup_logging during a test."""
    yield
    logger = logging.getLogger("ftp_binding")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def ftp_config() -> MockFTPConfig:
    """Provide mock FTP configuration for tests."""
    return MockFTPConfig()


@pytest.fixture
def binding_properties(ftp_config: MockFTPConfig) -> Dict[str, str]:
    """Static binding properties pointing at the test server."""
    return {
        "rootPath": TEST_ROOT_PATH,
        "server": f"{ftp_config.host}:{ftp_config.port}",
        "user": ftp_config.username,
        "password": ftp_config.password,
    }


@pytest.fixture
def mock_ftp() -> MagicMock:
    """
    ftplib.FTP stand-in with a tiny in-memory remote filesystem.

    ``mock_ftp.remote_dirs`` holds directories CWD accepts and
    ``mock_ftp.remote_files`` maps "<dir>/<name>" to stored bytes.
    """
    ftp = MagicMock()
    ftp.remote_dirs = {"/", TEST_ROOT_PATH}
    ftp.remote_files = {}
    ftp.cwd_path = "/"
    ftp.list_lines = []

    def fake_cwd(path):
        if path not in ftp.remote_dirs:
            raise error_perm(f"550 {path}: No such file or directory")
        ftp.cwd_path = path
        return "250 OK"

    def fake_mkd(path):
        ftp.remote_dirs.add(path)
        return path

    def fake_storbinary(cmd, fp, blocksize=8192, callback=None):
        name = cmd.split(" ", 1)[1]
        data = b""
        while True:
            block = fp.read(blocksize)
            if not block:
                break
            data += block
            if callback:
                callback(block)
        ftp.remote_files[f"{ftp.cwd_path}/{name}"] = data
        return "226 Transfer complete"

    def fake_retrbinary(cmd, callback, blocksize=8192):
        name = cmd.split(" ", 1)[1]
        key = f"{ftp.cwd_path}/{name}"
        if key not in ftp.remote_files:
            raise error_perm(f"550 {name}: No such file or directory")
        data = ftp.remote_files[key]
        for i in range(0, len(data), blocksize):
            callback(data[i:i + blocksize])
        return "226 Transfer complete"

    def fake_retrlines(cmd, callback=None):
        for line in ftp.list_lines:
            callback(line)
        return "226 Transfer complete"

    def fake_delete(name):
        key = f"{ftp.cwd_path}/{name}"
        if key not in ftp.remote_files:
            raise error_perm(f"550 {name}: No such file or directory")
        del ftp.remote_files[key]
        return "250 File removed"

    ftp.cwd.side_effect = fake_cwd
    ftp.mkd.side_effect = fake_mkd
    ftp.storbinary.side_effect = fake_storbinary
    ftp.retrbinary.side_effect = fake_retrbinary
    ftp.retrlines.side_effect = fake_retrlines
    ftp.delete.side_effect = fake_delete
    return ftp
