"""Input validators for the FTP binding.

Provides validation functions for static configuration values like
hosts, ports, server addresses and timeouts.
"""

import re
from typing import Optional, Tuple


# IPv4 address pattern
IPV4_PATTERN = re.compile(
    r'^(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}'
    r'(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$'
)

# Hostname pattern (simplified)
HOSTNAME_PATTERN = re.compile(
    r'^(?=.{1,253}$)(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.[A-Za-z0-9-]{1,63})*$'
)

# Bracketed IPv6 literal with optional port, e.g. "[::1]:2121"
BRACKETED_SERVER_PATTERN = re.compile(r'^\[([0-9A-Fa-f:.]+)\](?::(\d+))?$')


def validate_ip_address(ip: str) -> Tuple[bool, Optional[str]]:
    """
    Validate an IPv4 address.

    Args:
        ip: IP address string to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not ip or not ip.strip():
        return False, "IP address is required"

    ip = ip.strip()

    if IPV4_PATTERN.match(ip):
        return True, None

    return False, f"Invalid IP address format: {ip}"


def validate_hostname(hostname: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a hostname.

    Args:
        hostname: Hostname string to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not hostname or not hostname.strip():
        return False, "Hostname is required"

    hostname = hostname.strip()

    if HOSTNAME_PATTERN.match(hostname):
        return True, None

    return False, f"Invalid hostname format: {hostname}"


def validate_host(host: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a host (IP address or hostname).

    Args:
        host: Host string to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not host or not host.strip():
        return False, "Host is required"

    host = host.strip()

    # Try IP first
    is_valid_ip, _ = validate_ip_address(host)
    if is_valid_ip:
        return True, None

    # Try hostname
    is_valid_hostname, _ = validate_hostname(host)
    if is_valid_hostname:
        return True, None

    # IPv6 literal
    if ":" in host and re.match(r'^[0-9A-Fa-f:.]+$', host):
        return True, None

    return False, f"Invalid host: {host}. Must be a valid IP address or hostname."


def validate_port(port: int) -> Tuple[bool, Optional[str]]:
    """
    Validate a port number.

    Args:
        port: Port number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(port, int):
        try:
            port = int(port)
        except (ValueError, TypeError):
            return False, "Port must be a number"

    if port < 1 or port > 65535:
        return False, f"Port must be between 1 and 65535, got {port}"

    return True, None


def validate_timeout(timeout: int) -> Tuple[bool, Optional[str]]:
    """
    Validate a timeout value in seconds.

    Args:
        timeout: Timeout in seconds

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(timeout, int):
        try:
            timeout = int(timeout)
        except (ValueError, TypeError):
            return False, "Timeout must be a number"

    if timeout < 5 or timeout > 300:
        return False, f"Timeout must be between 5 and 300 seconds, got {timeout}"

    return True, None


def split_server(server: str) -> Tuple[str, Optional[str]]:
    """
    Split a server address into host and port parts.

    Args:
        server: "host", "host:port", "[v6]" or "[v6]:port"

    Returns:
        Tuple of (host, port string or None)
    """
    server = server.strip()

    match = BRACKETED_SERVER_PATTERN.match(server)
    if match:
        return match.group(1), match.group(2)

    # A bare IPv6 literal has several colons and no port
    if server.count(":") == 1:
        host, _, port = server.partition(":")
        return host, port

    return server, None


def validate_server(server: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a server address of the form host[:port].

    Args:
        server: Server address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not server or not server.strip():
        return False, "Server is required"

    host, port = split_server(server)

    is_valid, error = validate_host(host)
    if not is_valid:
        return False, error

    if port is not None:
        is_valid, error = validate_port(port)
        if not is_valid:
            return False, error

    return True, None
