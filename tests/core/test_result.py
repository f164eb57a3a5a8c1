"""
Tests for the Result[P] envelope.

Validates:
    - Generic type parameter works with arbitrary payload types
    - Frozen immutability
    - Default warnings and has_warning()
    - Timer section accounting
"""

from dataclasses import FrozenInstanceError, dataclass

import pytest

from pysequential.core.compute.timing import Timer
from pysequential.core.result import Result


@dataclass(frozen=True)
class FakeParams:
    """Minimal payload for testing."""
    value: float


class TestResultConstruction:

    def test_basic_creation(self):
        result = Result(
            params=FakeParams(value=42.0),
            info={"method": "test"},
            timing={"total_seconds": 0.01},
            backend_name="cpu_gs_recursion",
        )
        assert result.params.value == 42.0
        assert result.info["method"] == "test"
        assert result.timing["total_seconds"] == 0.01
        assert result.backend_name == "cpu_gs_recursion"

    def test_timing_optional(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None, backend_name="cpu")
        assert result.timing is None

    def test_warnings_default_empty(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None, backend_name="cpu")
        assert result.warnings == ()


class TestImmutability:

    def test_cannot_reassign_params(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None, backend_name="cpu")
        with pytest.raises(FrozenInstanceError):
            result.params = FakeParams(2.0)


class TestHasWarning:

    def test_substring_match(self):
        result = Result(
            params=FakeParams(1.0), info={}, timing=None, backend_name="cpu",
            warnings=("lower bound at analysis 2 exceeded the upper bound",),
        )
        assert result.has_warning("analysis 2")
        assert not result.has_warning("analysis 3")


class TestTimer:

    def test_sections_reported(self):
        timer = Timer()
        timer.start()
        with timer.section('bounds'):
            pass
        with timer.section('bounds'):
            pass
        timer.stop()
        out = timer.result()
        assert set(out) == {'total_seconds', 'bounds'}
        assert out['total_seconds'] >= out['bounds'] >= 0.0

    def test_result_before_stop(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError):
            timer.result()


class TestWithParams:

    def test_metadata_kept(self):
        result = Result(
            params=FakeParams(1.0), info={"method": "x"}, timing=None,
            backend_name="cpu", warnings=("w",),
        )
        swapped = result.with_params(FakeParams(2.0))
        assert swapped.params.value == 2.0
        assert swapped.info is result.info
        assert swapped.warnings == ("w",)
        assert result.params.value == 1.0
