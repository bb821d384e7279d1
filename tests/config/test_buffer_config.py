"""
BufferConfig tests.

Tests for extbuf.config:
- Defaults and validation
- override()
- Environment loading
"""

import pytest

from extbuf import DEFAULT_GROWTH_INCREMENT, BufferConfig, ValidationError


class TestDefaults:
    """Default values."""

    def test_defaults(self):
        """Defaults match the documented values."""
        config = BufferConfig()

        assert config.growth_increment == DEFAULT_GROWTH_INCREMENT == 16
        assert config.encoding == "utf-8"
        assert config.measure_strategy == "sink"
        assert config.scratch_size == 512


class TestValidation:
    """__post_init__ validation."""

    @pytest.mark.parametrize("value", [0, -1])
    def test_growth_increment_must_be_positive(self, value):
        """Growth increments <= 0 are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            BufferConfig(growth_increment=value)

        assert exc_info.value.code == "INVALID_ARGUMENT"
        assert exc_info.value.details == {"growth_increment": value}

    @pytest.mark.parametrize("value", [1.5, "16", True])
    def test_growth_increment_must_be_int(self, value):
        """Non-int growth increments are rejected."""
        with pytest.raises(ValidationError):
            BufferConfig(growth_increment=value)

    def test_unknown_strategy(self):
        """Only 'sink' and 'scratch' are accepted."""
        with pytest.raises(ValidationError, match="measure_strategy"):
            BufferConfig(measure_strategy="guess")

    def test_scratch_size_must_be_positive(self):
        """A zero-size scratch area is rejected."""
        with pytest.raises(ValidationError):
            BufferConfig(scratch_size=0)

    def test_unknown_encoding(self):
        """Encodings must be known to codecs."""
        with pytest.raises(ValidationError, match="encoding"):
            BufferConfig(encoding="no-such-codec")

    @pytest.mark.parametrize("encoding", ["utf-16", "utf-32", "utf-16-le", "rot13"])
    def test_encoding_must_keep_ascii(self, encoding):
        """Encodings that do not store ASCII byte for byte are rejected."""
        with pytest.raises(ValidationError, match="ASCII-compatible") as exc_info:
            BufferConfig(encoding=encoding)

        assert exc_info.value.details == {"encoding": encoding}

    @pytest.mark.parametrize("encoding", ["utf-8", "latin-1", "ascii", "cp1252"])
    def test_ascii_compatible_encodings_accepted(self, encoding):
        """Single-byte and UTF-8 encodings are fine."""
        assert BufferConfig(encoding=encoding).encoding == encoding

    def test_validation_error_is_value_error(self):
        """Validation failures can be caught as ValueError."""
        with pytest.raises(ValueError):
            BufferConfig(growth_increment=0)


class TestOverride:
    """override() copies."""

    def test_override_returns_new_config(self):
        """The original config is unchanged."""
        base = BufferConfig(growth_increment=64)
        testing = base.override(growth_increment=1)

        assert testing.growth_increment == 1
        assert base.growth_increment == 64

    def test_override_validates(self):
        """Overrides go through validation."""
        with pytest.raises(ValidationError):
            BufferConfig().override(growth_increment=0)


class TestFromEnv:
    """Environment loading."""

    def test_empty_environment(self, monkeypatch):
        """Without variables, defaults apply."""
        monkeypatch.delenv("EXTBUF_GROWTH_INCREMENT", raising=False)
        monkeypatch.delenv("EXTBUF_MEASURE", raising=False)

        assert BufferConfig.from_env() == BufferConfig()

    def test_reads_variables(self, monkeypatch):
        """EXTBUF_GROWTH_INCREMENT and EXTBUF_MEASURE are honored."""
        monkeypatch.setenv("EXTBUF_GROWTH_INCREMENT", "128")
        monkeypatch.setenv("EXTBUF_MEASURE", "SCRATCH")

        config = BufferConfig.from_env()

        assert config.growth_increment == 128
        assert config.measure_strategy == "scratch"

    def test_unparsable_increment(self, monkeypatch):
        """A non-integer increment raises ValidationError."""
        monkeypatch.setenv("EXTBUF_GROWTH_INCREMENT", "lots")

        with pytest.raises(ValidationError, match="EXTBUF_GROWTH_INCREMENT"):
            BufferConfig.from_env()

    def test_zero_increment(self, monkeypatch):
        """A zero increment from the environment is rejected."""
        monkeypatch.setenv("EXTBUF_GROWTH_INCREMENT", "0")

        with pytest.raises(ValidationError):
            BufferConfig.from_env()
