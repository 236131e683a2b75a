"""Command line entry point for the FTP binding.

Runs a single binding operation against the server described by a JSON
properties file, the same way the host runtime would invoke it.
"""

import argparse
import getpass
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .binding import FTPBinding, InvokeRequest, OperationKind
from .config.credentials import CredentialManager
from .config.settings import BindingSettings, load_properties
from .ftp.exceptions import FTPError
from .utils.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ftp-binding",
        description="Create, list, get or delete files on an FTP server.",
    )
    parser.add_argument(
        "--config", required=True, type=Path,
        help="JSON file with binding properties (rootPath, server, user, ...)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")

    operations = [kind.value for kind in OperationKind]
    parser.add_argument(
        "operation", choices=operations + ["store-password", "delete-password"],
        help="Binding operation, or store-password/delete-password to manage the keyring entry",
    )
    parser.add_argument("--filename", default="", help="Target file, relative to rootPath")
    parser.add_argument("--directory", default="", help="Directory override for list")
    parser.add_argument("--data-file", type=Path, help="Payload for create (default: stdin)")
    parser.add_argument("--output", type=Path, help="Write get content here instead of stdout")
    return parser


def _store_password(properties: dict, credentials: CredentialManager) -> int:
    settings = BindingSettings.from_properties(properties)
    password = getpass.getpass(f"Password for {settings.user}@{settings.host}: ")
    if not credentials.save_password(settings.host, settings.user, password):
        print("Could not save password to the system keyring", file=sys.stderr)
        return 1
    return 0


def _delete_password(properties: dict, credentials: CredentialManager) -> int:
    settings = BindingSettings.from_properties(properties)
    if not credentials.delete_password(settings.host, settings.user):
        print(f"No saved password for {settings.user}@{settings.host}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command line entry point.

    Returns:
        Exit code (0 for success)
    """
    args = build_parser().parse_args(argv)
    logger = setup_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        log_file=args.log_file,
    )

    credentials = CredentialManager()

    try:
        properties = load_properties(args.config)
        if args.operation == "store-password":
            return _store_password(properties, credentials)
        if args.operation == "delete-password":
            return _delete_password(properties, credentials)

        binding = FTPBinding(credentials=credentials)
        binding.init(properties)

        metadata = {}
        if args.filename:
            metadata["filename"] = args.filename
        if args.directory:
            metadata["directory"] = args.directory

        data = b""
        if args.operation == OperationKind.CREATE.value:
            data = args.data_file.read_bytes() if args.data_file else sys.stdin.buffer.read()

        response = binding.invoke(
            InvokeRequest(operation=args.operation, data=data, metadata=metadata)
        )
    except FTPError as e:
        print(f"Error ({type(e).__name__}): {e}", file=sys.stderr)
        return 1
    except OSError as e:
        logger.debug("Local I/O failure", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.operation == OperationKind.GET.value and args.output:
        args.output.write_bytes(response.data)
    elif response.data:
        sys.stdout.buffer.write(response.data)
        if args.operation != OperationKind.GET.value:
            sys.stdout.buffer.write(b"\n")
        sys.stdout.flush()

    return 0


if __name__ == "__main__":
    sys.exit(main())
