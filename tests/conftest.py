"""Pytest configuration and shared fixtures."""
import numpy as np
import pytest
from fixtures.operators import make_conv_operator

from convinfer.infrastructure.registry import create_default_registry


@pytest.fixture
def registry():
    """
    Provide a fresh registry with the built-in layers.
    
    Returns:
        LayerRegistry: A new registry; tests may register extra creators on it.
    """
    return create_default_registry()


@pytest.fixture
def conv_operator():
    """
    Provide a valid 3 -> 4 channel, 3x3 convolution operator with bias.
    
    Returns:
        RuntimeOperator: Operator built with fixed random weights.
    """
    return make_conv_operator(in_channels=3, out_channels=4, kernel_size=(3, 3))


@pytest.fixture
def rng():
    """Provide a seeded numpy random generator."""
    return np.random.default_rng(42)
