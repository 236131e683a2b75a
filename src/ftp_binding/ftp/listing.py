"""LIST output parsing.

FTP servers format LIST replies freely; the two common shapes are the
Unix ``ls -l`` style and the MS-DOS/IIS style. Only the entry name and its
type are extracted.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class EntryType(Enum):
    """Type of a directory entry."""
    FILE = "file"
    FOLDER = "folder"
    LINK = "link"


@dataclass
class FileEntry:
    """A single entry of a directory listing."""
    name: str
    type: EntryType

    def to_dict(self) -> dict:
        """Convert to the binding's response shape."""
        return {"filename": self.name, "filetype": self.type.value}


@dataclass
class DirectoryListing:
    """Entries of one directory in server order."""
    directory: str
    entries: List[FileEntry]

    def to_dict(self) -> dict:
        """Convert to the binding's response shape."""
        return {
            "directory": self.directory,
            "fileInfos": [entry.to_dict() for entry in self.entries],
        }


DOS_PATTERN = re.compile(
    r"^\d{2}-\d{2}-\d{2,4}\s+\d{1,2}:\d{2}\s*(?:AM|PM)?\s+(<DIR>|[\d,]+)\s+(.+)$",
    re.IGNORECASE,
)

# mode, links, owner, optional group, size, month, day, time or year, name
UNIX_PATTERN = re.compile(
    r"^([-dlbcps][-rwxsStT]{9}[+@.]?)\s+\d+\s+\S+(?:\s+\S+)?\s+\d+"
    r"\s+\w{3}\s+\d{1,2}\s+(?:\d{1,2}:\d{2}|\d{4})\s(.+)$"
)

# "total 12" header emitted by ls-backed servers
TOTAL_PATTERN = re.compile(r"^total\s+\d+$", re.IGNORECASE)


def parse_list_line(line: str) -> Optional[FileEntry]:
    """
    Parse one line of LIST output.

    Args:
        line: Raw LIST line

    Returns:
        FileEntry, or None for blank lines and headers
    """
    line = line.rstrip("\r\n")
    if not line.strip() or TOTAL_PATTERN.match(line.strip()):
        return None

    dos_match = DOS_PATTERN.match(line.strip())
    if dos_match:
        size_or_dir, name = dos_match.groups()
        entry_type = EntryType.FOLDER if size_or_dir.upper() == "<DIR>" else EntryType.FILE
        return FileEntry(name=name, type=entry_type)

    unix_match = UNIX_PATTERN.match(line.strip())
    if unix_match:
        perms, name = unix_match.groups()
        if perms.startswith("d"):
            entry_type = EntryType.FOLDER
        elif perms.startswith("l"):
            entry_type = EntryType.LINK
            # "name -> target"
            name = name.split(" -> ", 1)[0]
        else:
            entry_type = EntryType.FILE
        return FileEntry(name=name, type=entry_type)

    # Bare name, as some minimal servers reply
    return FileEntry(name=line.strip(), type=EntryType.FILE)


def parse_list_lines(lines: List[str]) -> List[FileEntry]:
    """Parse LIST output, keeping the server's order."""
    entries = []
    for line in lines:
        entry = parse_list_line(line)
        if entry is not None:
            entries.append(entry)
    return entries
