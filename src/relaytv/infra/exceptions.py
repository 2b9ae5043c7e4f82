"""
Custom exceptions for RelayTV operations.

This module provides custom exception classes for the kinds of errors
that can occur while running the channel.
"""


class RelayTVError(Exception):
    """Base exception for all RelayTV errors."""

    pass


class ConfigurationError(RelayTVError):
    """Raised when static channel configuration is invalid.

    Fatal at startup: the process refuses to run with an undefined timeline.
    """

    pass


class ProbeError(RelayTVError):
    """Raised when a live source cannot be reached or its data cannot be parsed."""

    pass


class TransportError(RelayTVError):
    """Raised when a viewer's channel is closed or unreachable."""

    pass
