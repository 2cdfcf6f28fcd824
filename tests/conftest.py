"""Pytest fixtures for dice_core tests."""

import numpy as np
import pytest
from pathlib import Path
import tempfile


@pytest.fixture
def sample_grayscale_image():
    """Create a sample grayscale image."""
    np.random.seed(42)
    return (np.random.rand(100, 100) * 255).astype(np.uint8)


@pytest.fixture
def sample_rgb_image():
    """Create a sample RGB image."""
    np.random.seed(42)
    return (np.random.rand(100, 100, 3) * 255).astype(np.uint8)


@pytest.fixture
def sample_16bit_image():
    """Create a sample 16-bit grayscale image."""
    np.random.seed(42)
    return (np.random.rand(100, 100) * 65535).astype(np.uint16)


def _speckle(size, seed=42):
    np.random.seed(seed)
    x, y = np.meshgrid(np.arange(size), np.arange(size))

    pattern = np.zeros((size, size), dtype=np.float64)

    # Add multiple speckle sizes
    for freq in [10, 20, 30, 50]:
        phase_x = np.random.rand() * 2 * np.pi
        phase_y = np.random.rand() * 2 * np.pi
        pattern += np.sin(2 * np.pi * x / freq + phase_x) * np.sin(2 * np.pi * y / freq + phase_y)

    # Add random noise
    pattern += np.random.randn(size, size) * 0.3

    # Normalize to 0-255
    pattern = (pattern - pattern.min()) / (pattern.max() - pattern.min())
    return (pattern * 255).astype(np.uint8)


@pytest.fixture
def sample_speckle_pattern():
    """Create a synthetic 200x200 speckle pattern for DIC testing."""
    return _speckle(200)


@pytest.fixture
def large_speckle_pattern():
    """Create a 400x400 speckle pattern (room for the 200/50 pixel shift)."""
    return _speckle(400, seed=7)


@pytest.fixture
def speckle_image(sample_speckle_pattern):
    """Speckle pattern wrapped in an Image."""
    from dice_core.core.image import Image

    return Image.from_array(sample_speckle_pattern, name="speckle")


@pytest.fixture
def large_speckle_image(large_speckle_pattern):
    """Large speckle pattern wrapped in an Image."""
    from dice_core.core.image import Image

    return Image.from_array(large_speckle_pattern, name="large_speckle")


@pytest.fixture
def ramp_image():
    """Linear intensity ramp I(x, y) = 2x + 3y on a 60x60 grid."""
    from dice_core.core.image import Image

    x, y = np.meshgrid(np.arange(60, dtype=np.float64), np.arange(60, dtype=np.float64))
    return Image(2.0 * x + 3.0 * y, name="ramp")


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_image_file(sample_grayscale_image, temp_dir):
    """Create a temporary image file."""
    from PIL import Image

    filepath = temp_dir / "sample.png"
    Image.fromarray(sample_grayscale_image).save(filepath)

    return filepath


@pytest.fixture
def sampling_parameters():
    """Create default sampling parameters for testing."""
    from dice_core.core.parameters import SamplingParameters

    return SamplingParameters()
