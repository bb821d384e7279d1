"""
extbuf exceptions.

This module defines the exception hierarchy for extbuf:

    ExtbufError (base)
    ├── ValidationError - Invalid parameter or configuration value
    ├── FormatError - Format string could not be rendered
    ├── ResourceError - Storage could not be allocated
    └── StateError - Invalid object state
"""

from .exceptions import (
    ExtbufError,
    FormatError,
    ResourceError,
    StateError,
    ValidationError,
)

__all__ = [
    # Base
    "ExtbufError",
    # Validation
    "ValidationError",
    # Formatting
    "FormatError",
    # Resource
    "ResourceError",
    # State
    "StateError",
]
