"""
extbuf exceptions.

This module defines the exception hierarchy for extbuf:

    ExtbufError (base)
    ├── ValidationError - Invalid parameter or configuration value
    ├── FormatError - Format string could not be rendered
    ├── ResourceError - Storage could not be allocated
    └── StateError - Invalid object state

Buffer operations never raise these for runtime conditions. A failed
allocation terminates the process, a bad bounded length is clamped with
a warning and a failed format is a no-op. What escapes to callers are
programming errors (bad configuration, negative lengths).

Usage:
    try:
        BufferConfig(growth_increment=0)
    except extbuf.ValidationError as e:
        print(f"Error {e.code}: {e}")
        print(f"Details: {e.details}")
"""

from typing import Any

__all__ = [
    "ExtbufError",
    "ValidationError",
    "FormatError",
    "ResourceError",
    "StateError",
]


class ExtbufError(Exception):
    """
    Base exception for all extbuf errors.

    Attributes
    ----------
    message : str
        Human-readable error description.
    code : str
        Stable, string-based error code (e.g., "INVALID_ARGUMENT").
    details : dict[str, Any]
        Structured context (e.g., {"growth_increment": 0}).
    """

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.args[0]!r}, code={self.code!r})"


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(ExtbufError, ValueError):
    """
    Invalid parameter value.

    Raised when a function receives an argument of the correct type
    but an inappropriate value (e.g., a growth increment of zero).

    This exception inherits from both ExtbufError and ValueError, so both work::

        except extbuf.ExtbufError:   # catches all extbuf errors
        except ValueError:           # catches validation errors (Pythonic)
    """

    def __init__(
        self,
        message: str,
        code: str = "INVALID_ARGUMENT",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)


# =============================================================================
# Format Errors
# =============================================================================


class FormatError(ExtbufError, ValueError):
    """
    A printf-style format could not be rendered.

    Common causes:
    - Too few or too many arguments for the format
    - Argument type does not match the conversion (``%d`` with a string)
    - Rendered text cannot be encoded with the configured encoding

    Meters translate this into a negative measurement; it does not escape
    from ``Buffer.append_formatted``.
    """

    def __init__(
        self,
        message: str,
        code: str = "FORMAT_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)


# =============================================================================
# Resource Errors
# =============================================================================


class ResourceError(ExtbufError, MemoryError):
    """
    Storage could not be allocated.

    Raised internally when growing a buffer fails. Buffers treat this as
    fatal: the failure is logged and the process exits with status 5.
    """

    def __init__(
        self,
        message: str,
        code: str = "RESOURCE_EXHAUSTED",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)


# =============================================================================
# State Errors
# =============================================================================


class StateError(ExtbufError, RuntimeError):
    """
    Invalid object state error.

    Raised when an operation is attempted on an object in an invalid state,
    such as measuring through a meter whose device cannot be opened.
    """

    def __init__(
        self,
        message: str,
        code: str = "STATE_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)
