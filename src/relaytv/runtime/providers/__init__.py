"""
Channel configuration providers.

Load a ChannelConfig from a channel file on disk.
"""

from .file_config_provider import FileChannelConfigProvider

__all__ = [
    "FileChannelConfigProvider",
]
