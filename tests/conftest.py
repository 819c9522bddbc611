"""Shared fixtures: synthetic images sized to the default analysis grid."""
import numpy as np
import pytest

RED = (220, 30, 30)
GREEN = (30, 160, 60)
BLUE = (40, 60, 200)


@pytest.fixture
def block_image():
    """Wide central red band with narrow green and blue strips at the edges."""
    image = np.zeros((200, 200, 3), dtype=np.uint8)
    image[:, :30] = GREEN
    image[:, 30:170] = RED
    image[:, 170:] = BLUE
    return image


@pytest.fixture
def two_tone_image():
    """Left half red, right half blue, equally saturated."""
    image = np.zeros((200, 200, 3), dtype=np.uint8)
    image[:, :100] = (200, 40, 40)
    image[:, 100:] = (40, 40, 200)
    return image


@pytest.fixture
def near_black_image():
    return np.full((200, 200, 3), 3, dtype=np.uint8)


@pytest.fixture
def noisy_image():
    rng = np.random.RandomState(0)
    return rng.randint(30, 220, size=(200, 200, 3)).astype(np.uint8)
