"""
extbuf - Extensible NUL-terminated string buffers.

Build up output text of arbitrary length in small pieces without working
out the total size first. Buffers grow on demand, keep a NUL terminator
after their contents at all times, and can append formatted text whose
exact length is measured before it is written.

Quick Start
-----------

    >>> from extbuf import Buffer
    >>>
    >>> buf = Buffer()
    >>> buf.append("DW_TAG_")
    >>> buf.append_formatted("%s <%d>", "member", 3)
    >>> buf.get_string()
    'DW_TAG_member <3>'
    >>> buf.reset()           # reuse without reallocating
    >>> buf.destroy()         # release storage


Sharing Configuration
---------------------

Buffers draw their growth increment and format meter from a
``BufferContext``. Buffers built without one use the process default:

    >>> from extbuf import BufferConfig, BufferContext
    >>>
    >>> with BufferContext(BufferConfig(growth_increment=256)) as ctx:
    ...     buf = Buffer(ctx)
    ...     buf.reserve_capacity(4096)


Core Classes
------------

- `Buffer` - The growable string
- `BufferContext` - Growth increment and meter shared by many buffers
- `BufferConfig` - Validated settings for a context
- `MeasurementSink` / `ScratchMeter` - Formatted-length meters

Errors
------

Buffer operations do not raise for runtime conditions. Running out of
memory exits the process with status 5; a bounded append longer than
its input is clamped with a warning; an unrenderable format is skipped.
Programming errors raise `ValidationError`.
"""

from ._logging import setup_logging
from .buffer import EXIT_OUT_OF_MEMORY, Buffer, BufferState
from .config import DEFAULT_GROWTH_INCREMENT, BufferConfig
from .context import (
    BufferContext,
    close_default_context,
    default_context,
    set_default_context,
)
from .exceptions import (
    ExtbufError,
    FormatError,
    ResourceError,
    StateError,
    ValidationError,
)
from .measure import MeasurementSink, Meter, ScratchMeter

__all__ = [
    # Buffer
    "Buffer",
    "BufferState",
    "EXIT_OUT_OF_MEMORY",
    # Configuration
    "BufferConfig",
    "BufferContext",
    "DEFAULT_GROWTH_INCREMENT",
    "default_context",
    "set_default_context",
    "close_default_context",
    # Measurement
    "Meter",
    "MeasurementSink",
    "ScratchMeter",
    # Errors
    "ExtbufError",
    "ValidationError",
    "FormatError",
    "ResourceError",
    "StateError",
    # Logging
    "setup_logging",
]
