"""Root-confined path resolution for FTP binding requests.

Every filename or directory taken from a request goes through
``resolve`` or ``resolve_directory`` before it reaches an FTP command.
Untrusted input is cleaned as if it were rooted at ``/``, so ``..`` can
never climb above the configured root and absolute-looking input is
re-rooted under it. Cleaning is purely lexical: the result is always
``root/<cleaned path>``. Callers that serve a root mirrored on the local
filesystem can pass ``follow_links=True`` to have symlinks followed one
component at a time, with their targets scoped to the root as well.
"""

import os
import posixpath
import re
import stat
from dataclasses import dataclass

from ftp_binding.ftp.exceptions import SecurityError


# Same limit as Linux MAXSYMLINKS
MAX_SYMLINK_HOPS = 255

# FTP commands are line based; these can never be part of a path
_CONTROL_CHARS = re.compile(r"[\x00\r\n]")


@dataclass(frozen=True)
class ResolvedPath:
    """A filename resolved inside the root."""
    absolute_path: str
    directory: str
    base_name: str


def normalize_root(root: str) -> str:
    """
    Normalize a configured root path.

    Args:
        root: Root path from static configuration

    Returns:
        Cleaned root; an empty root means the FTP login root ``/``
    """
    if not root or not root.strip():
        return "/"
    cleaned = posixpath.normpath(root.strip())
    # POSIX keeps a leading "//"; FTP servers do not care for it
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _join(root: str, relative: str) -> str:
    if not relative:
        return root
    if root == ".":
        return relative
    return posixpath.join(root, relative)


def is_within(root: str, path: str) -> bool:
    """
    Check that ``path`` is ``root`` or one of its descendants.

    Both arguments must already be normalized.
    """
    if path == root:
        return True
    if root == ".":
        return not (
            path.startswith("/") or path == ".." or path.startswith("../")
        )
    prefix = root if root.endswith("/") else root + "/"
    return path.startswith(prefix)


def secure_join(root: str, unsafe: str, follow_links: bool = False) -> str:
    """
    Join untrusted input onto root without ever leaving it.

    Args:
        root: Configured root path
        unsafe: Untrusted relative or absolute-looking path
        follow_links: Evaluate symlinks found under a local copy of root

    Returns:
        ``root/<cleaned path>``

    Raises:
        SecurityError: If the input holds control characters, a symlink
            loop is detected, or the result would not be contained
    """
    root = normalize_root(root)
    unsafe = unsafe or ""

    if _CONTROL_CHARS.search(unsafe):
        raise SecurityError(root, unsafe, "control characters in path")

    current = ""
    pending = unsafe
    hops = 0

    while pending:
        head, _, pending = pending.partition("/")
        if head in ("", "."):
            continue
        if head == "..":
            current = posixpath.dirname(current)
            continue

        candidate = posixpath.join(current, head)
        if not follow_links:
            current = candidate
            continue

        local = _join(root, candidate)
        try:
            info = os.lstat(local)
            target = os.readlink(local) if stat.S_ISLNK(info.st_mode) else None
        except (OSError, ValueError):
            # Nothing on disk to follow, keep it lexical
            target = None

        if target is None:
            current = candidate
            continue

        hops += 1
        if hops > MAX_SYMLINK_HOPS:
            raise SecurityError(root, unsafe, "too many levels of symbolic links")

        if target.startswith("/"):
            current = ""
        pending = f"{target}/{pending}" if pending else target

    result = _join(root, current)
    if not is_within(root, result):
        raise SecurityError(root, unsafe)
    return result


def resolve(root: str, untrusted: str, follow_links: bool = False) -> ResolvedPath:
    """
    Resolve a request filename inside root.

    Args:
        root: Configured root path
        untrusted: Filename from request metadata
        follow_links: Passed through to ``secure_join``

    Returns:
        ResolvedPath split into parent directory and base name

    Raises:
        SecurityError: If the filename resolves to the root itself
            (it has no leaf inside root) or escapes it
    """
    root = normalize_root(root)
    absolute_path = secure_join(root, untrusted, follow_links=follow_links)

    if absolute_path == root:
        raise SecurityError(root, untrusted, "no file name inside root")

    directory, base_name = posixpath.split(absolute_path)
    if not directory:
        directory = "."

    if not base_name or "/" in base_name or not is_within(root, directory):
        raise SecurityError(root, untrusted)

    return ResolvedPath(
        absolute_path=absolute_path,
        directory=directory,
        base_name=base_name,
    )


def resolve_directory(root: str, untrusted_dir: str, follow_links: bool = False) -> str:
    """
    Resolve a request directory inside root.

    An empty directory resolves to the root itself.
    """
    return secure_join(root, untrusted_dir or "", follow_links=follow_links)
