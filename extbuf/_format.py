"""
printf-style rendering into NUL-terminated byte storage.

Justification: Both meters and ``Buffer.append_formatted`` need the same
two operations: render a format to bytes (``render``) and write a
rendered format into a bounded region of a bytearray the way
``snprintf`` does (``snprintf_into``). Keeping them together guarantees
that a measured length and a written length agree byte for byte.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .exceptions import FormatError

__all__ = ["FormatArgs", "normalize_args", "render", "snprintf_into", "cstring_length"]

FormatArgs = tuple | Mapping[str, Any]

_NUL = 0


def cstring_length(data: bytes | bytearray | memoryview) -> int:
    """Return the number of bytes before the first NUL (all of them if none)."""
    if isinstance(data, memoryview):
        data = data.tobytes()
    index = data.find(b"\0")
    return len(data) if index < 0 else index


def normalize_args(args: Any) -> FormatArgs:
    """
    Collapse call arguments into what the ``%`` operator expects.

    A lone mapping is passed through so ``%(name)s`` formats work;
    anything else becomes a tuple.
    """
    if isinstance(args, Mapping):
        return args
    args = tuple(args)
    if len(args) == 1 and isinstance(args[0], Mapping):
        return args[0]
    return args


def render(fmt: str | bytes | bytearray, args: FormatArgs, encoding: str = "utf-8") -> bytes:
    """
    Render ``fmt % args`` to bytes, stopping at the first NUL.

    Raises
    ------
        FormatError: If the format cannot be applied to the arguments or
            the result cannot be encoded.
    """
    if not isinstance(fmt, (str, bytes, bytearray)):
        raise FormatError(
            f"format must be str or bytes, got {type(fmt).__name__}",
            details={"type": type(fmt).__name__},
        )
    try:
        if isinstance(fmt, str):
            data = (fmt % args).encode(encoding)
        else:
            data = bytes(fmt) % args
    except (TypeError, ValueError, KeyError, OverflowError, UnicodeEncodeError) as e:
        raise FormatError(f"cannot render format {fmt!r}: {e}", details={"format": fmt}) from e

    return data[: cstring_length(data)]


def snprintf_into(
    dest: bytearray,
    offset: int,
    size: int,
    fmt: str | bytes | bytearray,
    args: FormatArgs,
    encoding: str = "utf-8",
) -> int:
    """
    Write a rendered format into ``dest[offset:offset + size]``.

    At most ``size - 1`` bytes of text are stored, followed by a NUL.
    Nothing is written when ``size`` is 0. ``dest`` never changes length.

    Returns
    -------
        The full rendered length (which may exceed what was stored), or -1
        if the format could not be rendered.
    """
    try:
        data = render(fmt, args, encoding)
    except FormatError:
        return -1

    if size > 0:
        n = min(len(data), size - 1)
        dest[offset : offset + n] = data[:n]
        dest[offset + n] = _NUL
    return len(data)
