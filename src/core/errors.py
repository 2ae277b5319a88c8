"""Cohost exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class CohostError(Exception):
    """Base exception for all Cohost failures."""


class CohostConfigError(CohostError):
    """Raised for invalid runtime configuration."""


class CohostValidationError(CohostError):
    """Raised for malformed input such as bad domains or retention counts."""


class CohostNotFoundError(CohostError):
    """Raised when an operation targets an absent domain or snapshot."""


class CohostImportError(CohostError):
    """Raised when the storage node cannot resolve, retrieve or pin content."""


class CohostStoreUnavailableError(CohostError):
    """Raised when the storage node cannot be reached at all."""


class CohostRegistryError(CohostError):
    """Raised for registry persistence, locking and lifecycle failures."""


class CohostTimeoutError(CohostImportError):
    """Raised when a reachable node does not answer before the request timeout."""
