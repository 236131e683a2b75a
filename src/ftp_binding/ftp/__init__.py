"""FTP operations module for the FTP binding.

This module handles all FTP-related functionality:
- FTPSession: Single-use session state machine and ftp_session helper
- Paths: Root-confined resolution of request filenames
- Listing: LIST output parsing
- Exceptions: Binding error types
"""
