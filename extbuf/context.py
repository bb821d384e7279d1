"""
Shared buffer context.

A ``BufferContext`` carries what every Buffer needs but no Buffer owns:
the growth increment and the formatted-length meter. Buffers take a
context at construction; those built without one use the process
default context.

Usage::

    from extbuf import Buffer, BufferContext, BufferConfig

    with BufferContext(BufferConfig(growth_increment=64)) as ctx:
        buf = Buffer(ctx)
        buf.append_formatted("%d entries", 3)

Testing every growth path::

    ctx = BufferContext()
    with ctx.override_growth_increment(1):
        ...
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from ._format import FormatArgs
from ._logging import scoped_logger
from .config import BufferConfig, validate_growth_increment
from .measure import Meter, create_meter

__all__ = [
    "BufferContext",
    "default_context",
    "set_default_context",
    "close_default_context",
]

_log = scoped_logger("config")


class BufferContext:
    """
    Growth policy and measurement primitive shared by a group of buffers.

    Args:
        config: Buffer configuration. Defaults to ``BufferConfig()``.
        meter: Meter to use for formatted appends. Defaults to the one
            selected by ``config.measure_strategy``, created on first use.
    """

    def __init__(self, config: BufferConfig | None = None, meter: Meter | None = None):
        self._config = config or BufferConfig()
        self._growth_increment = self._config.growth_increment
        self._meter = meter

    @property
    def config(self) -> BufferConfig:
        """Configuration this context was built from."""
        return self._config

    @property
    def encoding(self) -> str:
        """Encoding for ``str`` input and output."""
        return self._config.encoding

    @property
    def growth_increment(self) -> int:
        """Minimum size for first allocation and for every reallocation."""
        return self._growth_increment

    @growth_increment.setter
    def growth_increment(self, value: int) -> None:
        self._growth_increment = validate_growth_increment(value)
        _log.debug("growth increment set", extra={"growth_increment": value})

    @contextmanager
    def override_growth_increment(self, value: int) -> Iterator[BufferContext]:
        """Temporarily replace the growth increment, restoring it on exit."""
        previous = self._growth_increment
        self.growth_increment = value
        try:
            yield self
        finally:
            self._growth_increment = previous

    @property
    def meter(self) -> Meter:
        """Meter for formatted appends, created on first access."""
        if self._meter is None:
            self._meter = create_meter(self._config)
        return self._meter

    def measure(self, fmt: str | bytes, args: FormatArgs) -> int:
        """Byte length of ``fmt % args``, or -1 if it cannot be rendered."""
        return self.meter.measure(fmt, args)

    def close(self) -> None:
        """Release the meter's resources. The meter reopens if used again."""
        if self._meter is not None:
            self._meter.close()

    def __enter__(self) -> BufferContext:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"BufferContext(growth_increment={self._growth_increment}, "
            f"measure_strategy={self._config.measure_strategy!r})"
        )


_default: BufferContext | None = None


def default_context() -> BufferContext:
    """Return the process default context, building it from the environment."""
    global _default
    if _default is None:
        _default = BufferContext(BufferConfig.from_env())
    return _default


def set_default_context(context: BufferContext | None) -> BufferContext | None:
    """
    Replace the process default context.

    Passing None makes the next ``default_context()`` call build a fresh
    one from the environment.

    Returns
    -------
        The previous default context (None if none was built yet).
    """
    global _default
    previous = _default
    _default = context
    return previous


def close_default_context() -> None:
    """Close the default context's meter, typically at process shutdown."""
    if _default is not None:
        _default.close()
