"""
Image class for dice_core.

An immutable 2D grid of intensity values shared read-only by every subset
that samples it.
"""

from __future__ import annotations

import logging
import operator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .errors import OutOfRange, SampleOutOfBounds
from .parameters import InterpolationMethod
from ..algorithms.interpolation import interpolate, padded_bcoef

logger = logging.getLogger(__name__)


def _pixel_index(value, extent: int, axis: str) -> int:
    """Convert an integral coordinate to an index in ``[0, extent)``."""
    try:
        idx = operator.index(value)
    except TypeError:
        try:
            as_float = float(value)
        except (TypeError, ValueError):
            raise OutOfRange(f"{axis}={value!r} is not a pixel coordinate")
        if not as_float.is_integer():
            raise OutOfRange(f"{axis}={value!r} is not an integral pixel coordinate")
        idx = int(as_float)

    if not 0 <= idx < extent:
        raise OutOfRange(f"{axis}={idx} outside [0, {extent})")
    return idx


@dataclass(frozen=True, eq=False)
class Image:
    """
    Intensity image for subset sampling.

    Intensities are stored as float64 with their raw values (an 8-bit image
    keeps its 0-255 range). The buffer is read-only after construction.

    Attributes:
        intensities: Grayscale values (float64, shape: H x W, read-only)
        name: Image name (file name for loaded images)
        path: Directory the image was loaded from
    """

    intensities: NDArray[np.float64] = field(repr=False)
    name: str = "array"
    path: str = ""
    _bcoef_cache: Dict[int, NDArray[np.float64]] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self):
        """Validate and freeze the intensity buffer."""
        data = np.array(self.intensities, dtype=np.float64, order="C")
        if data.ndim != 2:
            raise ValueError(f"Image data must be 2D, got {data.ndim} dimensions")
        if data.shape[0] == 0 or data.shape[1] == 0:
            raise ValueError(f"Image must not be empty, got shape {data.shape}")

        data.setflags(write=False)
        object.__setattr__(self, "intensities", data)

    @property
    def height(self) -> int:
        return self.intensities.shape[0]

    @property
    def width(self) -> int:
        return self.intensities.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        """(height, width)"""
        return self.intensities.shape

    def at(self, x, y) -> float:
        """
        Intensity of pixel (x, y).

        Args:
            x: Column index in [0, width)
            y: Row index in [0, height)

        Returns:
            Stored intensity

        Raises:
            OutOfRange: If (x, y) is not an integral pixel inside the image
        """
        ix = _pixel_index(x, self.width, "x")
        iy = _pixel_index(y, self.height, "y")
        return float(self.intensities[iy, ix])

    def __call__(self, x, y) -> float:
        return self.at(x, y)

    def contains(self, x: ArrayLike, y: ArrayLike) -> NDArray[np.bool_]:
        """
        Test whether coordinates lie inside the continuous image extent.

        The extent is [0, width-1] x [0, height-1], the span of the pixel
        centres; for integral coordinates this is the same as
        [0, width) x [0, height).
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        return (x >= 0) & (x <= self.width - 1) & (y >= 0) & (y <= self.height - 1)

    def _check_inside(self, xs: NDArray[np.float64], ys: NDArray[np.float64]) -> None:
        inside = self.contains(xs, ys)
        if not inside.all():
            bad = int(np.flatnonzero(~inside)[0])
            raise SampleOutOfBounds(
                f"Point {bad} at ({xs[bad]}, {ys[bad]}) lies outside image "
                f"{self.name!r} of size {self.width}x{self.height} "
                f"({int(inside.size - inside.sum())} of {inside.size} points outside)"
            )

    def lookup(self, x: ArrayLike, y: ArrayLike) -> NDArray[np.float64]:
        """
        Direct lookup of integral pixel coordinates.

        Raises:
            SampleOutOfBounds: If any coordinate lies outside the image
        """
        xs = np.asarray(x).ravel()
        ys = np.asarray(y).ravel()
        self._check_inside(xs, ys)
        return self.intensities[ys.astype(np.intp), xs.astype(np.intp)]

    def bcoef(self, border: int = 20) -> NDArray[np.float64]:
        """
        Biquintic B-spline coefficients of the edge-padded intensities.

        Computed on first use for a given border and cached.
        """
        cached = self._bcoef_cache.get(border)
        if cached is None:
            logger.debug("Computing B-spline coefficients for %r (border=%d)", self.name, border)
            cached = padded_bcoef(self.intensities, border)
            cached.setflags(write=False)
            self._bcoef_cache[border] = cached
        return cached

    def interpolate(
        self,
        x: ArrayLike,
        y: ArrayLike,
        method: Union[str, InterpolationMethod] = InterpolationMethod.KEYS_FOURTH,
        border: int = 20,
    ) -> NDArray[np.float64]:
        """
        Sub-pixel sampling at arbitrary coordinates.

        Args:
            x: X-coordinates (any shape, flattened)
            y: Y-coordinates (same size as x)
            method: Interpolation order
            border: B-spline coefficient padding (BSPLINE_QUINTIC only)

        Returns:
            1D float64 array of sampled intensities

        Raises:
            SampleOutOfBounds: If any coordinate lies outside the image extent
        """
        xs = np.asarray(x, dtype=np.float64).ravel()
        ys = np.asarray(y, dtype=np.float64).ravel()
        if xs.shape != ys.shape:
            raise ValueError(f"x and y sizes differ: {xs.size} vs {ys.size}")
        self._check_inside(xs, ys)

        method = InterpolationMethod(method)
        if method == InterpolationMethod.BSPLINE_QUINTIC:
            return interpolate(
                self.intensities, xs, ys, method, bcoef=self.bcoef(border), border=border
            )
        return interpolate(self.intensities, xs, ys, method)

    def save(self, filepath: Union[str, Path]) -> None:
        """Write the intensities to an image file."""
        from ..utils.image_io import write_image

        write_image(filepath, self.width, self.height, self.intensities.ravel())

    @staticmethod
    def _rgb_to_grayscale(img: NDArray) -> NDArray[np.float64]:
        """Convert RGB(A) to grayscale using ITU-R 601-2 luma transform."""
        img_double = img.astype(np.float64)
        return (
            0.299 * img_double[:, :, 0] +
            0.587 * img_double[:, :, 1] +
            0.114 * img_double[:, :, 2]
        )

    @classmethod
    def from_array(cls, img_array: ArrayLike, name: str = "array", path: str = "") -> "Image":
        """
        Create image from numpy array.

        Args:
            img_array: Grayscale (H x W) or colour (H x W x 3 or 4) data
            name: Optional name for the image
            path: Optional source directory

        Returns:
            Image instance
        """
        data = np.asarray(img_array)
        if data.ndim == 3 and data.shape[2] in (3, 4):
            data = cls._rgb_to_grayscale(data)
        return cls(data, name=name, path=path)

    @classmethod
    def from_file(cls, filepath: Union[str, Path]) -> "Image":
        """
        Load image from file.

        Raises:
            LoadError: If the file is unreadable or the format unsupported
        """
        from ..utils.image_io import read_image

        return read_image(filepath)


def load(filepath: Union[str, Path]) -> Image:
    """Load an image from disk (see ``Image.from_file``)."""
    return Image.from_file(filepath)
