"""
Buffer - an extensible, NUL-terminated byte string.

Lets callers build up text of arbitrary length in small pieces without
computing the total size first. Only C strings are stored: input ends at
its first NUL, and the stored bytes are always followed by a NUL
terminator that ``length()`` does not count.

Memory Contract:
- A Buffer owns its storage exclusively; nothing it returns aliases it
- Storage is allocated lazily (first append, reservation or read)
- Capacity only grows, until ``destroy()`` releases the storage
- ``capacity() >= length() + 1`` whenever the buffer is allocated
- Running out of memory is fatal: the process exits with status 5

Growth:
- First allocation is ``max(requested, growth_increment) + 1`` bytes
- An append of ``n`` bytes that finds ``capacity - length <= n`` grows
  capacity by ``n``, to no less than ``growth_increment``
"""

from __future__ import annotations

import functools
import logging
import sys
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

from ._format import cstring_length, normalize_args, snprintf_into
from ._logging import scoped_logger
from .context import BufferContext, default_context
from .exceptions import ResourceError, ValidationError

__all__ = ["Buffer", "BufferState", "EXIT_OUT_OF_MEMORY"]

EXIT_OUT_OF_MEMORY = 5

_log = scoped_logger("buffer")

_F = TypeVar("_F", bound=Callable[..., Any])

Text = str | bytes | bytearray | memoryview


class BufferState(Enum):
    """Lifecycle state of a Buffer."""

    UNALLOCATED = "unallocated"
    ALLOCATED = "allocated"


def _fatal_on_exhaustion(method: _F) -> _F:
    """Turn any MemoryError raised by ``method`` into process exit."""

    @functools.wraps(method)
    def wrapper(self: Buffer, *args: Any, **kwargs: Any) -> Any:
        try:
            return method(self, *args, **kwargs)
        except MemoryError as e:
            error = e if isinstance(e, ResourceError) else ResourceError(
                f"out of memory in {method.__name__}",
                details={"operation": method.__name__},
            )
            if _log.isEnabledFor(logging.CRITICAL):
                _log.critical(str(error), extra=error.details)
            else:
                print(str(error), file=sys.stderr)
            raise SystemExit(EXIT_OUT_OF_MEMORY) from e

    return wrapper  # type: ignore[return-value]


def _check_length(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValidationError(f"{name} must be >= 0, got {value}", details={name: value})
    return value


class Buffer:
    """
    Growable, NUL-terminated byte string.

    Args:
        context: Shared growth policy and meter. Defaults to the process
            default context (see ``extbuf.default_context``).

    Example:
        >>> buf = Buffer()
        >>> buf.append("abc")
        >>> buf.append_formatted(" %d%%", 42)
        >>> buf.get_string()
        'abc 42%'
        >>> len(buf)
        7
        >>> buf.destroy()
    """

    def __init__(self, context: BufferContext | None = None):
        self._context = context or default_context()
        self._storage: bytearray | None = None
        self._used = 0

    # =========================================================================
    # State
    # =========================================================================

    @property
    def context(self) -> BufferContext:
        """Context supplying growth increment and meter."""
        return self._context

    @property
    def state(self) -> BufferState:
        """UNALLOCATED until storage exists, then ALLOCATED until destroy()."""
        if self._storage is None:
            return BufferState.UNALLOCATED
        return BufferState.ALLOCATED

    @property
    def allocated(self) -> bool:
        return self._storage is not None

    def length(self) -> int:
        """Number of stored bytes, excluding the terminator."""
        return self._used

    def capacity(self) -> int:
        """Allocated size in bytes, including room for the terminator."""
        return 0 if self._storage is None else len(self._storage)

    def __len__(self) -> int:
        return self._used

    # =========================================================================
    # Allocation
    # =========================================================================

    def _init_storage(self, min_len: int) -> None:
        if self._storage is not None:
            return
        size = max(min_len, self._context.growth_increment) + 1
        try:
            self._storage = bytearray(size)
        except MemoryError as e:
            raise ResourceError(
                f"out of memory allocating {size} bytes",
                details={"nbytes": size, "reallocating": False},
            ) from e
        self._used = 0

    def _allocate_more(self, increment: int) -> None:
        """Grow capacity by ``increment``, to no less than the growth increment."""
        old_size = self.capacity()
        new_size = max(old_size + increment, self._context.growth_increment)
        try:
            if self._storage is None:
                self._storage = bytearray(new_size)
            else:
                self._storage.extend(bytes(new_size - old_size))
        except MemoryError as e:
            raise ResourceError(
                f"out of memory re-allocating {new_size} bytes",
                details={"nbytes": new_size, "reallocating": True},
            ) from e
        _log.debug("buffer grown", extra={"nbytes": new_size, "previous": old_size})

    def _reserve(self, min_len: int) -> None:
        if self._storage is None and min_len == 0:
            self._init_storage(0)
            return
        if self.capacity() < min_len:
            self._allocate_more(min_len - self.capacity())
            self._storage[self._used] = 0

    @_fatal_on_exhaustion
    def reserve_capacity(self, min_len: int) -> None:
        """
        Make capacity at least ``min_len`` bytes without changing content.

        Use when the final size is known, to avoid repeated growth. The
        capacity becomes exactly ``min_len`` unless that is below the
        growth increment.

        Raises
        ------
            ValidationError: If ``min_len`` is negative.
        """
        self._reserve(_check_length("min_len", min_len))

    # =========================================================================
    # Appending
    # =========================================================================

    def _coerce(self, text: Text) -> bytes:
        if isinstance(text, str):
            return text.encode(self._context.encoding, "replace")
        if isinstance(text, (bytes, bytearray, memoryview)):
            return bytes(text)
        raise TypeError(f"expected str or bytes-like text, got {type(text).__name__}")

    def _append_internal(self, data: bytes, n: int) -> None:
        """Append ``data[:n]``; ``n`` is trusted to be within the C string."""
        if self._storage is None:
            self._init_storage(n)
        remaining = len(self._storage) - self._used
        if remaining <= n:
            self._allocate_more(n)
        self._storage[self._used : self._used + n] = data[:n]
        self._used += n
        self._storage[self._used] = 0

    @_fatal_on_exhaustion
    def append(self, text: Text | None) -> None:
        """
        Append ``text`` up to its first NUL.

        None and empty input are no-ops and do not allocate. Characters the
        configured encoding cannot represent are stored as its replacement
        character ("?" for UTF-8).
        """
        if text is None:
            return
        data = self._coerce(text)
        n = cstring_length(data)
        if n:
            self._append_internal(data, n)

    @_fatal_on_exhaustion
    def append_bounded(self, text: Text | None, n: int) -> None:
        """
        Append exactly ``n`` bytes of ``text``.

        If ``text`` holds fewer than ``n`` bytes before its first NUL, a
        warning is logged and ``n`` is clamped to that length.

        Raises
        ------
            ValidationError: If ``n`` is negative.
        """
        _check_length("n", n)
        data = b"" if text is None else self._coerce(text)
        full_len = cstring_length(data)
        if full_len < n:
            _log.warning(
                f"bad string length {full_len} < {n}",
                extra={"available": full_len, "requested": n},
            )
            n = full_len
        self._append_internal(data, n)

    def append_formatted(self, fmt: str | bytes, *args: Any) -> None:
        """
        Append ``fmt % args``.

        The output is measured first, capacity is made for it, and it is
        written straight into the buffer. If the format cannot be
        rendered the buffer is left unchanged.

        Example:
            >>> buf.append_formatted("%s=%d", "count", 3)
            >>> buf.append_formatted("%(name)s", {"name": "x"})
        """
        self.append_formatted_args(fmt, args)

    @_fatal_on_exhaustion
    def append_formatted_args(self, fmt: str | bytes, args: Any) -> None:
        """Like ``append_formatted``, with arguments given as a tuple or mapping."""
        values = normalize_args(args)
        netlen = self._context.measure(fmt, values)
        if netlen < 0:
            _log.debug("formatted append skipped", extra={"format": repr(fmt)})
            return

        self._reserve(self._used + netlen + 1)
        room = len(self._storage) - self._used
        expanded = snprintf_into(
            self._storage, self._used, room, fmt, values, self._context.encoding
        )
        if expanded < 0:
            return
        if room <= expanded:
            # Writer stored room - 1 bytes; only reachable if measurement lied.
            _log.debug("formatted append truncated", extra={"nbytes": expanded, "room": room})
            self._used += room - 1
        else:
            self._used += expanded

    # =========================================================================
    # Reading
    # =========================================================================

    @_fatal_on_exhaustion
    def get_string(self) -> str:
        """Contents as text. Never None; an empty buffer gives ``""``."""
        self._init_storage(self._context.growth_increment)
        return bytes(self._storage[: self._used]).decode(self._context.encoding, "replace")

    @_fatal_on_exhaustion
    def get_bytes(self) -> bytes:
        """Contents as bytes, without the terminator."""
        self._init_storage(self._context.growth_increment)
        return bytes(self._storage[: self._used])

    @_fatal_on_exhaustion
    def get_cstring(self) -> bytes:
        """Contents followed by the NUL terminator."""
        self._init_storage(self._context.growth_increment)
        return bytes(self._storage[: self._used + 1])

    @_fatal_on_exhaustion
    def get_copy(self) -> bytes | None:
        """
        Independent copy of the contents, or None if the buffer is empty.

        The copy is unaffected by anything done to the buffer afterwards.
        """
        if not self._used:
            return None
        return bytes(self._storage[: self._used])

    # =========================================================================
    # Reuse and release
    # =========================================================================

    @_fatal_on_exhaustion
    def reset(self) -> None:
        """Empty the buffer, keeping its capacity for reuse."""
        self._init_storage(self._context.growth_increment)
        self._used = 0
        self._storage[0] = 0

    def destroy(self) -> None:
        """Release storage and return to UNALLOCATED. Safe to call repeatedly."""
        self._storage = None
        self._used = 0

    def __enter__(self) -> Buffer:
        return self

    def __exit__(self, *exc: object) -> None:
        self.destroy()

    def __str__(self) -> str:
        return self.get_string()

    def __repr__(self) -> str:
        return f"Buffer(length={self._used}, capacity={self.capacity()}, state={self.state.value})"
