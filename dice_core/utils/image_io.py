"""
Image file codec.

Reads raster files into ``Image`` objects and writes row-major intensity
buffers back to disk through Pillow.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray
from PIL import Image as PILImage, UnidentifiedImageError

from ..core.errors import LoadError
from ..core.image import Image

logger = logging.getLogger(__name__)


# Supported image formats
SUPPORTED_FORMATS = {".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff"}

# Formats written with full float precision
FLOAT_FORMATS = {".tif", ".tiff"}

# Palette modes and the colour mode their entries expand to
PALETTE_MODES = {"P": "RGB", "PA": "RGBA"}


def validate_image_format(img_array: NDArray) -> Tuple[bool, str]:
    """
    Validate a decoded image array.

    Supported formats:
    - Grayscale (H x W)
    - RGB / RGBA (H x W x 3 or 4)
    - Integer or floating point samples

    Args:
        img_array: Image array to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if img_array is None:
        return False, "Image is None"

    if img_array.ndim not in (2, 3):
        return False, f"Invalid dimensions: {img_array.ndim}, expected 2 or 3"

    if img_array.ndim == 3 and img_array.shape[2] not in (3, 4):
        return False, f"Invalid number of channels: {img_array.shape[2]}"

    if not (np.issubdtype(img_array.dtype, np.integer) or np.issubdtype(img_array.dtype, np.floating)):
        return False, f"Unsupported dtype: {img_array.dtype}"

    if img_array.shape[0] == 0 or img_array.shape[1] == 0:
        return False, "Image is empty"

    return True, ""


def read_image(path: Union[str, Path]) -> Image:
    """
    Load a single image file.

    Args:
        path: Path to image file

    Returns:
        Loaded Image

    Raises:
        LoadError: If the file is missing, unreadable or in an unsupported format
    """
    path = Path(path)

    if not path.is_file():
        raise LoadError(f"Image not found: {path}")

    if path.suffix.lower() not in SUPPORTED_FORMATS:
        raise LoadError(f"Unsupported format: {path.suffix}")

    try:
        with PILImage.open(path) as pil_img:
            # Palette entries and 1-bit / grey+alpha samples are not intensities
            if pil_img.mode in PALETTE_MODES:
                pil_img = pil_img.convert(PALETTE_MODES[pil_img.mode])
            elif pil_img.mode in ("1", "LA"):
                pil_img = pil_img.convert("L")
            img_array = np.array(pil_img)
    except (OSError, UnidentifiedImageError) as e:
        raise LoadError(f"Could not decode {path}: {e}") from e

    is_valid, error = validate_image_format(img_array)
    if not is_valid:
        raise LoadError(f"Invalid image format for {path}: {error}")

    logger.debug("Loaded %s (%dx%d, %s)", path, img_array.shape[1], img_array.shape[0], img_array.dtype)
    return Image.from_array(img_array, name=path.name, path=str(path.parent))


def load_images(paths: Union[str, Path, List[Union[str, Path]]]) -> List[Image]:
    """
    Load images from file paths.

    Args:
        paths: Single path or list of paths

    Returns:
        List of Image objects

    Raises:
        LoadError: If any file cannot be loaded
    """
    if isinstance(paths, (str, Path)):
        paths = [paths]

    return [read_image(path) for path in paths]


def write_image(
    path: Union[str, Path],
    width: int,
    height: int,
    buffer: ArrayLike,
) -> None:
    """
    Write a row-major intensity buffer to an image file.

    TIFF files keep float precision (32-bit float samples); every other
    format is rounded and clipped to 8 bits.

    Args:
        path: Destination file
        width: Raster width
        height: Raster height
        buffer: width * height intensities, row-major

    Raises:
        ValueError: If the buffer size does not match, or the format is unsupported
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported format: {path.suffix}")

    data = np.asarray(buffer, dtype=np.float64).ravel()
    if width <= 0 or height <= 0 or data.size != width * height:
        raise ValueError(
            f"Buffer of {data.size} values does not match a {width}x{height} raster"
        )
    data = data.reshape(height, width)

    if suffix in FLOAT_FORMATS:
        pil_img = PILImage.fromarray(data.astype(np.float32))
    else:
        pil_img = PILImage.fromarray(np.clip(np.rint(data), 0, 255).astype(np.uint8))

    pil_img.save(path)
    logger.debug("Wrote %dx%d raster to %s", width, height, path)
