# estree_shims/errors.py
"""
Error types for the estree-shims pipeline.

Hierarchy
─────────
  EstreeShimsError (base)
  ├── DumpLoadError            - ESTree JSON could not be read or is not a Program
  ├── ConfigError              - malformed configuration object or file
  └── InternalError            - tool bugs (should never happen)
      └── TraversalContractError - the traversal engine broke its contract

``DumpLoadError`` and ``ConfigError`` are infrastructure failures: the CLI
turns them into exit code 2.  ``InternalError`` is never downgraded into a
diagnostic by the checker runner; it always propagates.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "EstreeShimsError",
    "DumpLoadError",
    "ConfigError",
    "InternalError",
    "TraversalContractError",
]


class EstreeShimsError(Exception):
    """Base exception for all estree-shims errors."""

    def __init__(self, message: str, file: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.file = file

    def __str__(self) -> str:
        if self.file:
            return f"{self.file}: {self.message}"
        return self.message


class DumpLoadError(EstreeShimsError):
    """Raised when an ESTree JSON dump cannot be loaded."""


class ConfigError(EstreeShimsError):
    """Raised for invalid configuration values or files."""


class InternalError(EstreeShimsError):
    """Raised for conditions that indicate a bug, not bad input."""


class TraversalContractError(InternalError):
    """
    The traversal engine delivered events that violate its contract.

    Examples: a block exit with no matching entry, a variable declaration
    without a ``kind``, a block statement with no parent.
    """
