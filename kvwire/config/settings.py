"""
KV-Wire Configuration Settings

This module contains the protocol and server constants shared by the
server and the client. There is no environment or file based override;
components take these as constructor defaults instead.
"""

from dataclasses import dataclass


@dataclass
class Settings:
    """Protocol, store and logging settings."""

    # Network settings
    BACKLOG: int = 5
    RECV_CHUNK_SIZE: int = 4096

    # Framing settings (bytes, excluding the trailing newline)
    MAX_LINE_LENGTH: int = 4095
    CLIENT_MAX_LINE_LENGTH: int = 8191

    # Value / store settings
    MAX_VALUE_SIZE: int = 64 * 1024 * 1024
    MAX_STORE_BYTES: int = 256 * 1024 * 1024

    # Keys are signed 32-bit integers
    KEY_MIN: int = -(2 ** 31)
    KEY_MAX: int = 2 ** 31 - 1

    # Logging settings
    LOG_FORMAT: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


# Global settings instance
settings = Settings()
