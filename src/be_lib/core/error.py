# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Exception types used throughout batcheuphoria.

This module defines the library-specific exceptions: the common recoverable
error, configuration (contract) errors, transport failures of the execution
service, failed job abortions, and unsupported backend capabilities.
Each exception carries an associated exit code used by the CLI commands
to report failures consistently.
"""

from be_lib.core.config import CFG


class BEError(Exception):
    """Common exception type for all recoverable batcheuphoria errors."""

    exit_code = CFG.exit_codes.default


class BEConfigurationError(BEError):
    """Raised when an object is constructed in violation of its contract."""

    pass


class BETransportError(BEError):
    """Raised when the execution service cannot reach the backend."""

    pass


class BEAbortionError(BEError):
    """Raised when the backend refuses to abort the requested jobs."""

    pass


class BEUnsupportedOperationError(BEError):
    """Raised when a backend does not provide an optional capability."""

    pass
