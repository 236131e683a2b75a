"""Utility module for the FTP binding.

This module provides cross-cutting utilities:
- Logging: Configured logging with PII redaction
- Validators: Input validation for hosts, ports, servers and timeouts
"""
