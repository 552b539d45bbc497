"""Tests for core/session/types.py — SessionParameters validation and cache keys."""

from dataclasses import replace

import numpy as np
import pytest

from core.session.types import SessionParameters, SessionState
from core.spectral.buffer import SampleBuffer
from core.spectral.errors import InvalidInputError, RangeError
from core.spectral.types import WindowKind


class TestValidation:
    def test_defaults(self, stereo_buffer: SampleBuffer) -> None:
        params = SessionParameters(source=stereo_buffer)
        assert params.trim_range is None
        assert params.window_length == 1024
        assert params.window_kind is WindowKind.HANN
        assert params.channel is None
        assert params.color_scheme is None

    def test_trim_range_normalised_to_floats(self, stereo_buffer: SampleBuffer) -> None:
        params = SessionParameters(source=stereo_buffer, trim_range=(0, 1))
        assert params.trim_range == (0.0, 1.0)

    @pytest.mark.parametrize("trim", [(-0.1, 0.5), (0.2, 1.5), (0.5, 0.5), (0.8, 0.1)])
    def test_bad_trim_range(self, stereo_buffer: SampleBuffer, trim) -> None:
        with pytest.raises(RangeError):
            SessionParameters(source=stereo_buffer, trim_range=trim)

    @pytest.mark.parametrize("length", [0, -256, 2.5, True])
    def test_bad_window_length(self, stereo_buffer: SampleBuffer, length) -> None:
        with pytest.raises(InvalidInputError, match="window_length"):
            SessionParameters(source=stereo_buffer, window_length=length)

    def test_numpy_integer_window_length(self, stereo_buffer: SampleBuffer) -> None:
        params = SessionParameters(source=stereo_buffer, window_length=np.int64(512))
        assert params.window_length == 512
        assert type(params.window_length) is int

    def test_window_kind_from_string(self, stereo_buffer: SampleBuffer) -> None:
        params = SessionParameters(source=stereo_buffer, window_kind="rectangular")
        assert params.window_kind is WindowKind.RECTANGULAR

    def test_unknown_window_kind(self, stereo_buffer: SampleBuffer) -> None:
        with pytest.raises(InvalidInputError, match="Unknown window kind"):
            SessionParameters(source=stereo_buffer, window_kind="triangle")

    def test_channel_out_of_range(self, stereo_buffer: SampleBuffer) -> None:
        with pytest.raises(InvalidInputError, match="out of range"):
            SessionParameters(source=stereo_buffer, channel=2)

    def test_source_must_be_buffer(self) -> None:
        with pytest.raises(InvalidInputError, match="SampleBuffer"):
            SessionParameters(source=np.zeros(10))  # type: ignore[arg-type]

    def test_replace_revalidates(self, session_params: SessionParameters) -> None:
        with pytest.raises(RangeError):
            replace(session_params, trim_range=(0.0, 10.0))
        assert session_params.trim_range is None


class TestCacheKey:
    def test_equal_content_gives_equal_key(self) -> None:
        a = SampleBuffer.from_channels([0.1, 0.2, 0.3], 8000)
        b = SampleBuffer.from_channels([0.1, 0.2, 0.3], 8000)
        assert SessionParameters(source=a).cache_key() == SessionParameters(source=b).cache_key()

    def test_colour_scheme_excluded(self, session_params: SessionParameters) -> None:
        recoloured = replace(session_params, color_scheme="magma")
        assert recoloured.cache_key() == session_params.cache_key()

    @pytest.mark.parametrize(
        "changes",
        [
            {"window_length": 512},
            {"window_kind": "hamming"},
            {"trim_range": (0.0, 0.5)},
            {"channel": 1},
        ],
    )
    def test_analysis_fields_change_key(self, session_params: SessionParameters, changes) -> None:
        assert replace(session_params, **changes).cache_key() != session_params.cache_key()


def test_state_values() -> None:
    assert [s.value for s in SessionState] == ["idle", "computing", "error"]
