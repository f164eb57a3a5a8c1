"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pysequential.gsd import gs_design


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture(scope="session")
def ldof_one_sided():
    """Three equally spaced looks, one-sided O'Brien-Fleming-type bounds."""
    return gs_design(k=3, test_type=1, sfu="ldof")


@pytest.fixture(scope="session")
def asymmetric_design():
    """The package default: test type 4 with HSD(-4) / HSD(-2) spending."""
    return gs_design()
