"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def normal_data(rng):
    """50 draws from N(10, 2^2)."""
    return rng.normal(10.0, 2.0, size=50)


@pytest.fixture
def regression_data(rng):
    """Two-column (x, y) data set with y = 2 + 3x + noise."""
    n = 60
    x = rng.uniform(0, 10, n)
    y = 2.0 + 3.0 * x + rng.normal(0, 1, n)
    return np.column_stack([x, y])


@pytest.fixture
def grouped_data(rng):
    """Values with string group labels 'b', 'a', 'c' (in order of first appearance)."""
    labels = np.array(['b', 'a', 'c'] * 10)
    offsets = {'a': 0.0, 'b': 10.0, 'c': 20.0}
    values = np.array([offsets[k] for k in labels]) + rng.normal(0, 1, labels.size)
    return values, labels
