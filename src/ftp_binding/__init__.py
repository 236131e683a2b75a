"""FTP output binding.

Exposes create, list, get and delete file operations on an FTP server
through a uniform request/response interface:
- FTPBinding: Operation dispatch and handlers
- ftp: Session protocol, root-confined paths, LIST parsing, exceptions
- config: Binding settings and keyring credentials
- utils: Logging with PII redaction, input validators
"""

__version__ = "1.0.0"
