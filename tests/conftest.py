"""
Global pytest fixtures for extbuf tests.

This module provides:
- Contexts with the default and the minimal growth increment
- A Buffer bound to the minimal-growth context
- A checker for (length, capacity, contents) triples
- Isolation of the process default context and the extbuf logger
"""

import logging

import pytest

from extbuf import Buffer, BufferConfig, BufferContext, close_default_context, set_default_context


@pytest.fixture(autouse=True)
def isolated_default_context():
    """Give every test a fresh process default context."""
    previous = set_default_context(None)
    yield
    close_default_context()
    set_default_context(previous)


@pytest.fixture(autouse=True)
def restore_logger():
    """Undo any logging reconfiguration a test performs."""
    log = logging.getLogger("extbuf")
    handlers = log.handlers[:]
    level = log.level
    yield
    log.handlers[:] = handlers
    log.setLevel(level)


@pytest.fixture
def context():
    """Context with the default configuration."""
    ctx = BufferContext()
    yield ctx
    ctx.close()


@pytest.fixture
def tiny_context():
    """Context with growth increment 1, which exercises every growth path."""
    ctx = BufferContext(BufferConfig(growth_increment=1))
    yield ctx
    ctx.close()


@pytest.fixture
def buf(tiny_context):
    """Fresh buffer on the minimal-growth context."""
    b = Buffer(tiny_context)
    yield b
    b.destroy()


@pytest.fixture
def validate_buffer():
    """Return a checker asserting length, capacity and contents of a buffer."""

    def check(b: Buffer, length: int, capacity: int, text: str) -> None:
        assert b.length() == length
        assert b.capacity() == capacity
        assert b.get_string() == text
        assert b.get_cstring() == text.encode() + b"\0"

    return check
