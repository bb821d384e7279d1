"""Configuration for buffer growth and formatted-length measurement."""

from __future__ import annotations

import codecs
import os
from dataclasses import dataclass, replace
from typing import Literal

from .exceptions import ValidationError

# How append_formatted sizes its output before writing it
MeasureStrategy = Literal["sink", "scratch"]

__all__ = ["BufferConfig", "MeasureStrategy", "DEFAULT_GROWTH_INCREMENT"]

# Nothing magic about this size. It is big enough to avoid most resizing.
DEFAULT_GROWTH_INCREMENT = 16

_STRATEGIES = ("sink", "scratch")

_ASCII_PROBE = "Az09 %.-"


@dataclass
class BufferConfig:
    r"""
    Configuration shared by every Buffer created from one context.

    Attributes
    ----------
        growth_increment: Minimum size for the first allocation and for
            every reallocation. Must be > 0. Default is 16. Tests set it
            to 1 to drive every growth path.

        encoding: Encoding applied to ``str`` input and formatted text,
            and used to decode ``Buffer.get_string()``. Must encode ASCII
            as itself, so UTF-16 and UTF-32 are rejected. Default "utf-8".

        measure_strategy: How formatted output is measured.
            - "sink": write to the null device and count bytes (default)
            - "scratch": render into a bounded scratch area

        scratch_size: Size of the scratch area for the "scratch"
            strategy. Default is 512.

    Example:
        >>> config = BufferConfig(growth_increment=64)
        >>> testing = config.override(growth_increment=1)
        >>> testing.growth_increment
        1
    """

    growth_increment: int = DEFAULT_GROWTH_INCREMENT
    encoding: str = "utf-8"
    measure_strategy: MeasureStrategy = "sink"
    scratch_size: int = 512

    def __post_init__(self) -> None:
        validate_growth_increment(self.growth_increment)
        if self.measure_strategy not in _STRATEGIES:
            allowed = ", ".join(f"'{s}'" for s in _STRATEGIES)
            raise ValidationError(
                f"Invalid measure_strategy: {self.measure_strategy!r}. Must be one of: {allowed}.",
                details={"measure_strategy": self.measure_strategy},
            )
        if isinstance(self.scratch_size, bool) or not isinstance(self.scratch_size, int):
            raise ValidationError(
                f"scratch_size must be an int, got {type(self.scratch_size).__name__}",
                details={"scratch_size": self.scratch_size},
            )
        if self.scratch_size <= 0:
            raise ValidationError(
                f"scratch_size must be > 0, got {self.scratch_size}",
                details={"scratch_size": self.scratch_size},
            )
        try:
            codecs.lookup(self.encoding)
        except LookupError as e:
            raise ValidationError(
                f"Unknown encoding: {self.encoding!r}",
                details={"encoding": self.encoding},
            ) from e
        # Stored text ends at the first NUL, so ASCII must encode as itself
        try:
            probe = _ASCII_PROBE.encode(self.encoding)
        except (LookupError, UnicodeError):
            probe = b""
        if probe != _ASCII_PROBE.encode("ascii"):
            raise ValidationError(
                f"Encoding {self.encoding!r} is not ASCII-compatible",
                details={"encoding": self.encoding},
            )

    def override(self, **kwargs: object) -> BufferConfig:
        """
        Create a new config with specified fields overridden.

        The original config is unchanged. The new config is validated.

        Args:
            **kwargs: Fields to override. Must be valid BufferConfig fields.

        Returns
        -------
            New BufferConfig with the specified fields changed.
        """
        return replace(self, **kwargs)

    @classmethod
    def from_env(cls) -> BufferConfig:
        """
        Build a config from the environment.

        Environment::

            EXTBUF_GROWTH_INCREMENT=<int > 0> (default: 16)
            EXTBUF_MEASURE=sink|scratch (default: sink)
        """
        kwargs: dict = {}
        raw = os.environ.get("EXTBUF_GROWTH_INCREMENT")
        if raw:
            try:
                kwargs["growth_increment"] = int(raw)
            except ValueError as e:
                raise ValidationError(
                    f"EXTBUF_GROWTH_INCREMENT must be an integer, got {raw!r}",
                    details={"EXTBUF_GROWTH_INCREMENT": raw},
                ) from e
        strategy = os.environ.get("EXTBUF_MEASURE")
        if strategy:
            kwargs["measure_strategy"] = strategy.lower()
        return cls(**kwargs)


def validate_growth_increment(value: object) -> int:
    """Return ``value`` if it is a usable growth increment, else raise ValidationError."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"growth_increment must be an int, got {type(value).__name__}",
            details={"growth_increment": value},
        )
    if value <= 0:
        raise ValidationError(
            f"growth_increment must be > 0, got {value}",
            details={"growth_increment": value},
        )
    return value
