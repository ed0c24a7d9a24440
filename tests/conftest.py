"""
Test configuration and fixtures for hmm-decoder.

This file contains pytest configuration and shared fixtures
for testing the hmm-decoder package.
"""

import pytest
import numpy as np
from pathlib import Path

from hmm_decoder.config import reset_config
from hmm_decoder.hmm.model import HiddenMarkovModel


WEATHER_MODEL_TEXT = """\
2 2 2
Rainy Sunny
Walk Shop
a:
0.7 0.3
0.4 0.6
b:
0.1 0.9
0.6 0.4
pi:
0.6 0.4
"""

WEATHER_OBSERVATIONS_TEXT = """\
3
first
Walk
second
Walk Shop
third
Shop Shop Walk
"""


@pytest.fixture(autouse=True)
def clean_config():
    """Every test starts from the default configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def weather_text():
    """Model-file text of the Rainy/Sunny model."""
    return WEATHER_MODEL_TEXT


@pytest.fixture
def observations_text():
    """Observation-file text with three sequences."""
    return WEATHER_OBSERVATIONS_TEXT


@pytest.fixture
def weather_model():
    """Two-state Rainy/Sunny model with Walk/Shop observations."""
    return HiddenMarkovModel.from_text(WEATHER_MODEL_TEXT)


@pytest.fixture
def random_model():
    """Three-state, four-symbol model with reproducible random distributions."""
    rng = np.random.default_rng(7)
    return HiddenMarkovModel(
        states=["s0", "s1", "s2"],
        outputs=["a", "b", "c", "d"],
        transitions=rng.dirichlet(np.ones(3), size=3),
        emissions=rng.dirichlet(np.ones(4), size=3),
        initial=rng.dirichlet(np.ones(3)),
    )


@pytest.fixture
def model_file(tmp_path) -> Path:
    """Weather model written to disk."""
    path = tmp_path / "weather.hmm"
    path.write_text(WEATHER_MODEL_TEXT)
    return path


@pytest.fixture
def observation_file(tmp_path) -> Path:
    """Three observation sequences for the weather model."""
    path = tmp_path / "walks.obs"
    path.write_text(WEATHER_OBSERVATIONS_TEXT)
    return path


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
