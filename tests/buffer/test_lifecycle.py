"""
Buffer lifecycle tests.

Verifies:
1. UNALLOCATED -> ALLOCATED -> UNALLOCATED state machine
2. destroy() is idempotent and safe on a never-allocated buffer
3. reset() empties without releasing capacity
4. Allocation failure terminates with status 5
"""

import logging

import pytest

import extbuf.buffer as buffer_module
from extbuf import EXIT_OUT_OF_MEMORY, Buffer, BufferState, default_context


def _no_memory(*args, **kwargs):
    raise MemoryError


class TestStateMachine:
    """State transitions."""

    def test_destroy_returns_to_unallocated(self, buf):
        """destroy() releases storage and zeroes length and capacity."""
        buf.append("abc")
        assert buf.state is BufferState.ALLOCATED

        buf.destroy()

        assert buf.state is BufferState.UNALLOCATED
        assert buf.capacity() == 0
        assert buf.length() == 0

    def test_destroy_is_idempotent(self, buf):
        """destroy() can be repeated."""
        buf.append("abc")
        buf.destroy()
        buf.destroy()

        assert buf.state is BufferState.UNALLOCATED

    def test_destroy_never_allocated(self, buf):
        """destroy() on a fresh buffer is a no-op."""
        buf.destroy()

        assert buf.state is BufferState.UNALLOCATED

    def test_reuse_after_destroy(self, buf, validate_buffer):
        """A destroyed buffer allocates afresh on next use."""
        buf.append("abcdef")
        buf.destroy()
        buf.append("a")

        validate_buffer(buf, 1, 2, "a")

    def test_context_manager_destroys(self, tiny_context):
        """Leaving a with block releases storage."""
        with Buffer(tiny_context) as b:
            b.append("scoped")
            assert b.allocated

        assert b.state is BufferState.UNALLOCATED

    def test_default_context_used(self):
        """A buffer built without a context uses the default context."""
        b = Buffer()

        assert b.context is default_context()

    def test_repr_and_str(self, buf):
        """repr() shows sizes; str() shows contents."""
        buf.append("hi")

        assert repr(buf) == "Buffer(length=2, capacity=3, state=allocated)"
        assert str(buf) == "hi"


class TestReset:
    """reset() semantics."""

    def test_reset_keeps_capacity(self, buf):
        """Capacity survives reset; contents do not."""
        buf.append("some text")
        capacity = buf.capacity()

        buf.reset()

        assert buf.length() == 0
        assert buf.get_string() == ""
        assert buf.capacity() == capacity

    def test_reset_unallocated_initializes(self, context):
        """reset() on a fresh buffer allocates empty storage."""
        b = Buffer(context)
        b.reset()

        assert b.capacity() == context.growth_increment + 1
        assert b.get_cstring() == b"\0"

    def test_reuse_after_reset_without_growth(self, buf):
        """Content shorter than the old content fits without growth."""
        buf.append("longer content")
        capacity = buf.capacity()
        buf.reset()
        buf.append("short")

        assert buf.get_string() == "short"
        assert buf.capacity() == capacity


class TestAllocationFailure:
    """Running out of memory is fatal."""

    def test_initial_allocation_failure_exits(self, buf, monkeypatch, caplog):
        """Failure on first allocation exits with status 5."""
        monkeypatch.setattr(buffer_module, "bytearray", _no_memory, raising=False)

        with caplog.at_level(logging.CRITICAL, logger="extbuf"):
            with pytest.raises(SystemExit) as exc_info:
                buf.append("abc")

        assert exc_info.value.code == EXIT_OUT_OF_MEMORY
        fatal = [r for r in caplog.records if r.levelno == logging.CRITICAL]
        assert len(fatal) == 1
        assert "out of memory allocating 4 bytes" in fatal[0].getMessage()
        assert fatal[0].nbytes == 4
        assert fatal[0].reallocating is False

    def test_reallocation_failure_exits(self, buf, monkeypatch, caplog):
        """Failure while growing exits with status 5."""
        buf.append("a")
        monkeypatch.setattr(buffer_module, "bytes", _no_memory, raising=False)

        with caplog.at_level(logging.CRITICAL, logger="extbuf"):
            with pytest.raises(SystemExit) as exc_info:
                buf.append("bcd")

        assert exc_info.value.code == EXIT_OUT_OF_MEMORY
        assert any("re-allocating 5 bytes" in r.getMessage() for r in caplog.records)

    def test_reservation_failure_exits(self, buf, monkeypatch):
        """Failure inside reserve_capacity() is fatal too."""
        monkeypatch.setattr(buffer_module, "bytearray", _no_memory, raising=False)

        with pytest.raises(SystemExit) as exc_info:
            buf.reserve_capacity(1 << 20)

        assert exc_info.value.code == EXIT_OUT_OF_MEMORY

    def test_diagnostic_reaches_stderr_with_logging_off(self, buf, monkeypatch, capsys):
        """The diagnostic is printed even when logging is disabled."""
        logging.getLogger("extbuf").setLevel(logging.CRITICAL + 10)
        monkeypatch.setattr(buffer_module, "bytearray", _no_memory, raising=False)

        with pytest.raises(SystemExit):
            buf.append("abc")

        assert "out of memory allocating 4 bytes" in capsys.readouterr().err

    def test_memory_error_outside_allocation_exits(self, buf, monkeypatch, caplog):
        """A MemoryError raised while preparing input is fatal too."""
        monkeypatch.setattr(buffer_module, "cstring_length", _no_memory)

        with caplog.at_level(logging.CRITICAL, logger="extbuf"):
            with pytest.raises(SystemExit) as exc_info:
                buf.append("abc")

        assert exc_info.value.code == EXIT_OUT_OF_MEMORY
        fatal = [r for r in caplog.records if r.levelno == logging.CRITICAL]
        assert fatal[0].getMessage() == "out of memory in append"
        assert fatal[0].operation == "append"

    def test_copy_failure_exits(self, buf, monkeypatch):
        """Running out of memory while copying the contents is fatal."""
        buf.append("abc")
        monkeypatch.setattr(buffer_module, "bytes", _no_memory, raising=False)

        with pytest.raises(SystemExit) as exc_info:
            buf.get_copy()

        assert exc_info.value.code == EXIT_OUT_OF_MEMORY
