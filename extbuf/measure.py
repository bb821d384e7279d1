"""
Formatted-length measurement.

``Buffer.append_formatted`` must know exactly how many bytes a format
will produce before it writes into the buffer tail. Every strategy for
finding that out implements the ``Meter`` protocol, so the append path
calls ``meter.measure(fmt, args)`` and never branches on how.

Strategies:
- ``MeasurementSink`` writes the rendered text to the platform null
  device and reports how many bytes were accepted. The device is opened
  lazily and stays open until ``close()``.
- ``ScratchMeter`` renders into a fixed scratch area and reports the
  full length even when the text does not fit.

Both return -1 when the format cannot be rendered. The sink also returns
-1 when its device cannot be opened or written.
"""

from __future__ import annotations

import os
from typing import BinaryIO, Protocol, runtime_checkable

from ._format import FormatArgs, render, snprintf_into
from ._logging import scoped_logger
from .config import BufferConfig
from .exceptions import FormatError, StateError

__all__ = ["Meter", "MeasurementSink", "ScratchMeter", "create_meter", "null_device_name"]

_log = scoped_logger("measure")


@runtime_checkable
class Meter(Protocol):
    """Anything that can report the byte length of a rendered format."""

    def measure(self, fmt: str | bytes, args: FormatArgs) -> int: ...

    def close(self) -> None: ...


def null_device_name() -> str:
    """Name of the write-only null device ("nul" on Windows, "/dev/null" elsewhere)."""
    return os.devnull


class MeasurementSink:
    """
    Write-only null device used to count formatted bytes.

    The device is opened on the first measurement (or an explicit
    ``open()``) and reused until ``close()``. Closing is idempotent and a
    closed sink reopens on its next use.

    Example:
        >>> with MeasurementSink() as sink:
        ...     sink.measure("%s %s", ("x", "y"))
        3
    """

    def __init__(self, encoding: str = "utf-8", path: str | None = None):
        self._encoding = encoding
        self._path = path or null_device_name()
        self._handle: BinaryIO | None = None

    @property
    def path(self) -> str:
        """Device the sink writes to."""
        return self._path

    @property
    def closed(self) -> bool:
        """True when no device handle is open."""
        return self._handle is None

    def open(self) -> BinaryIO:
        """Open the device if needed and return the handle."""
        if self._handle is None:
            try:
                self._handle = open(self._path, "wb")
            except OSError as e:
                raise StateError(
                    f"cannot open measurement sink {self._path!r}: {e}",
                    details={"path": self._path},
                ) from e
            _log.debug("opened measurement sink", extra={"path": self._path})
        return self._handle

    def close(self) -> None:
        """Close the device handle. Safe to call repeatedly."""
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            _log.debug("closed measurement sink", extra={"path": self._path})

    def measure(self, fmt: str | bytes, args: FormatArgs) -> int:
        """Return the rendered length of ``fmt % args`` in bytes, or -1."""
        try:
            data = render(fmt, args, self._encoding)
        except FormatError as e:
            _log.debug("format measurement failed", extra={"error": str(e)})
            return -1
        try:
            return self.open().write(data)
        except (StateError, OSError) as e:
            _log.debug("measurement sink unusable", extra={"path": self._path, "error": str(e)})
            return -1

    def __enter__(self) -> MeasurementSink:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"MeasurementSink({self._path!r}, {state})"


class ScratchMeter:
    """
    Measures by rendering into a bounded scratch area.

    The scratch area only ever holds a prefix of the output; the reported
    length is always the full rendered length.
    """

    def __init__(self, encoding: str = "utf-8", size: int = 512):
        self._encoding = encoding
        self._scratch = bytearray(size)

    @property
    def size(self) -> int:
        """Size of the scratch area in bytes."""
        return len(self._scratch)

    def measure(self, fmt: str | bytes, args: FormatArgs) -> int:
        """Return the rendered length of ``fmt % args`` in bytes, or -1."""
        netlen = snprintf_into(self._scratch, 0, len(self._scratch), fmt, args, self._encoding)
        if netlen < 0:
            _log.debug("format measurement failed", extra={"format": repr(fmt)})
        return netlen

    def close(self) -> None:
        """Nothing to release."""

    def __repr__(self) -> str:
        return f"ScratchMeter(size={self.size})"


def create_meter(config: BufferConfig) -> Meter:
    """Build the meter selected by ``config.measure_strategy``."""
    if config.measure_strategy == "scratch":
        return ScratchMeter(config.encoding, config.scratch_size)
    return MeasurementSink(config.encoding)
