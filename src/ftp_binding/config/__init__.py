"""Configuration module for the FTP binding.

This module handles binding settings and credentials:
- BindingSettings: Static properties parsing and request merging
- CredentialManager: Secure credential storage via keyring
"""
