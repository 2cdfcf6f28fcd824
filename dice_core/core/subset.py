"""
Subset class for dice_core.

Equivalent to DICe's Subset: an ordered set of pixel coordinates around a
point of interest, with reference and deformed intensity buffers sampled
from an Image.
"""

from __future__ import annotations

import logging
import math
import operator
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .deformation import DeformationMap
from .errors import ConstructionError, IndexOutOfRange, UninitializedAccess
from .image import Image
from .modes import InitMode
from .parameters import SamplingParameters

logger = logging.getLogger(__name__)


def _coordinate_array(values: ArrayLike, axis: str) -> NDArray[np.int64]:
    """Convert a coordinate sequence to a read-only 1D int64 array."""
    try:
        arr = np.asarray(values)
    except (TypeError, ValueError) as e:
        raise ConstructionError(f"{axis} coordinates are not numeric: {e}") from e

    if arr.ndim != 1:
        raise ConstructionError(
            f"{axis} coordinates must be one-dimensional, got shape {arr.shape}"
        )
    if arr.size and not (np.issubdtype(arr.dtype, np.integer) or np.issubdtype(arr.dtype, np.floating)):
        raise ConstructionError(f"{axis} coordinates are not numeric: dtype {arr.dtype}")
    if np.issubdtype(arr.dtype, np.floating) and not np.all(np.mod(arr, 1) == 0):
        raise ConstructionError(f"{axis} coordinates must be integral pixel locations")

    coords = arr.astype(np.int64)
    coords.setflags(write=False)
    return coords


class Subset:
    """
    Pixel neighbourhood of one point of interest.

    The coordinate order is fixed at construction: buffer index ``i``
    always refers to pixel ``(x(i), y(i))``. Each intensity buffer is
    either unset or holds exactly ``num_pixels()`` values.

    A Subset is driven by a single thread at a time. Distinct subsets may
    sample the same Image concurrently.

    Attributes:
        parameters: Sampling parameters (interpolation order, ...)
    """

    def __init__(
        self,
        centroid_x: float,
        centroid_y: float,
        x_coords: ArrayLike,
        y_coords: ArrayLike,
        parameters: Optional[SamplingParameters] = None,
    ):
        """
        Create a subset from explicit coordinates.

        The centroid is stored as given; it need not be the mean of the
        coordinates.

        Args:
            centroid_x: X-coordinate of the point of interest
            centroid_y: Y-coordinate of the point of interest
            x_coords: Pixel x-coordinates, in subset order
            y_coords: Pixel y-coordinates, same length as x_coords
            parameters: Sampling parameters (defaults to SamplingParameters())

        Raises:
            ConstructionError: If the coordinate arrays are empty, differ in
                length, or hold non-integral values
        """
        x = _coordinate_array(x_coords, "x")
        y = _coordinate_array(y_coords, "y")
        if x.size != y.size:
            raise ConstructionError(
                f"Coordinate arrays differ in length: {x.size} x vs {y.size} y"
            )
        if x.size == 0:
            raise ConstructionError("A subset needs at least one pixel")

        if parameters is None:
            parameters = SamplingParameters()
        parameters.validate()

        self._cx = centroid_x
        self._cy = centroid_y
        self._x = x
        self._y = y
        self._ref: Optional[NDArray[np.float64]] = None
        self._def: Optional[NDArray[np.float64]] = None
        self.parameters = parameters

        logger.debug(
            "Created subset at (%s, %s) with %d pixels", centroid_x, centroid_y, x.size
        )

    @classmethod
    def from_coordinates(
        cls,
        centroid_x: float,
        centroid_y: float,
        x_coords: ArrayLike,
        y_coords: ArrayLike,
        parameters: Optional[SamplingParameters] = None,
    ) -> "Subset":
        """Create a subset of arbitrary shape (see ``__init__``)."""
        return cls(centroid_x, centroid_y, x_coords, y_coords, parameters)

    @classmethod
    def from_rectangle(
        cls,
        centroid_x: float,
        centroid_y: float,
        width: int,
        height: int,
        parameters: Optional[SamplingParameters] = None,
    ) -> "Subset":
        """
        Create a rectangular subset centred on (centroid_x, centroid_y).

        The rectangle starts at ``x0 = ceil(cx - width / 2)`` and
        ``y0 = ceil(cy - height / 2)`` and spans ``width`` columns and
        ``height`` rows. Odd extents around an integral centroid are
        symmetric; even extents reach one pixel further towards -x / -y.
        Pixels are ordered row by row.

        Raises:
            ConstructionError: If width or height is not a positive integer
        """
        try:
            width = operator.index(width)
            height = operator.index(height)
        except TypeError:
            raise ConstructionError(
                f"Subset width and height must be integers, got {width!r} x {height!r}"
            )
        if width <= 0 or height <= 0:
            raise ConstructionError(
                f"Subset width and height must be positive, got {width} x {height}"
            )

        x0 = math.ceil(centroid_x - width / 2)
        y0 = math.ceil(centroid_y - height / 2)
        xx, yy = np.meshgrid(
            np.arange(x0, x0 + width, dtype=np.int64),
            np.arange(y0, y0 + height, dtype=np.int64),
        )
        return cls(centroid_x, centroid_y, xx.ravel(), yy.ravel(), parameters)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def num_pixels(self) -> int:
        return int(self._x.size)

    def __len__(self) -> int:
        return self.num_pixels()

    def centroid_x(self) -> float:
        return self._cx

    def centroid_y(self) -> float:
        return self._cy

    def _index(self, i) -> int:
        try:
            idx = operator.index(i)
        except TypeError:
            raise IndexOutOfRange(f"Subset index must be an integer, got {i!r}")
        if not 0 <= idx < self._x.size:
            raise IndexOutOfRange(
                f"Subset index {idx} out of range for {self._x.size} pixels"
            )
        return idx

    def _buffer(self, mode: InitMode) -> NDArray[np.float64]:
        buffer = self._ref if mode == InitMode.FILL_REF_INTENSITIES else self._def
        if buffer is None:
            raise UninitializedAccess(
                f"The {InitMode(mode).buffer_name} intensities have not been initialized"
            )
        return buffer

    def x(self, i) -> int:
        """X-coordinate of pixel i."""
        return int(self._x[self._index(i)])

    def y(self, i) -> int:
        """Y-coordinate of pixel i."""
        return int(self._y[self._index(i)])

    def ref_intensities(self, i) -> float:
        """Reference intensity of pixel i."""
        idx = self._index(i)
        return float(self._buffer(InitMode.FILL_REF_INTENSITIES)[idx])

    def def_intensities(self, i) -> float:
        """Deformed intensity of pixel i."""
        idx = self._index(i)
        return float(self._buffer(InitMode.FILL_DEF_INTENSITIES)[idx])

    @property
    def x_coords(self) -> NDArray[np.int64]:
        """Read-only x-coordinates in subset order."""
        return self._x

    @property
    def y_coords(self) -> NDArray[np.int64]:
        """Read-only y-coordinates in subset order."""
        return self._y

    @property
    def ref_buffer(self) -> Optional[NDArray[np.float64]]:
        """Read-only view of the reference intensities (None if unset)."""
        return None if self._ref is None else self._readonly(self._ref)

    @property
    def def_buffer(self) -> Optional[NDArray[np.float64]]:
        """Read-only view of the deformed intensities (None if unset)."""
        return None if self._def is None else self._readonly(self._def)

    @staticmethod
    def _readonly(buffer: NDArray[np.float64]) -> NDArray[np.float64]:
        view = buffer.view()
        view.setflags(write=False)
        return view

    def is_initialized(self, mode: InitMode = InitMode.FILL_REF_INTENSITIES) -> bool:
        """Check whether the buffer selected by ``mode`` holds values."""
        if InitMode(mode) == InitMode.FILL_REF_INTENSITIES:
            return self._ref is not None
        return self._def is not None

    def bounding_box(self) -> Tuple[int, int, int, int]:
        """Inclusive pixel bounds as (min_x, min_y, max_x, max_y)."""
        return (
            int(self._x.min()),
            int(self._y.min()),
            int(self._x.max()),
            int(self._y.max()),
        )

    # -------------------------------------------------------------------------
    # Sampling
    # -------------------------------------------------------------------------

    def sample(
        self,
        image: Image,
        deformation: Optional[DeformationMap] = None,
    ) -> NDArray[np.float64]:
        """
        Sample the subset from an image without storing the result.

        Without a deformation every pixel is looked up directly. With one,
        each pixel is mapped about the centroid and the image is
        interpolated at the mapped location.

        Raises:
            SampleOutOfBounds: If any (mapped) coordinate lies outside the image
        """
        if deformation is None:
            return image.lookup(self._x, self._y)

        mapped_x, mapped_y = deformation.apply(self._x, self._y, self._cx, self._cy)
        return image.interpolate(
            mapped_x,
            mapped_y,
            method=self.parameters.interpolation,
            border=self.parameters.bspline_border,
        )

    def initialize(
        self,
        image: Image,
        deformation: Optional[DeformationMap] = None,
        mode: Optional[InitMode] = None,
    ) -> None:
        """
        Fill an intensity buffer by sampling ``image``.

        ``initialize(image)`` fills the reference buffer by direct lookup;
        ``initialize(image, deformation, FILL_DEF_INTENSITIES)`` fills the
        deformed buffer through the map. The whole subset is sampled before
        the buffer is touched, so a failing call leaves it unchanged.
        Repeated calls overwrite the buffer in place.

        Args:
            image: Image to sample
            deformation: Optional map applied about the centroid (not retained)
            mode: Target buffer; defaults to FILL_DEF_INTENSITIES when a
                deformation is given and FILL_REF_INTENSITIES otherwise

        Raises:
            SampleOutOfBounds: If any (mapped) coordinate lies outside the image
        """
        if mode is None:
            mode = InitMode.FILL_REF_INTENSITIES if deformation is None else InitMode.FILL_DEF_INTENSITIES
        mode = InitMode(mode)

        values = self.sample(image, deformation)

        if mode == InitMode.FILL_REF_INTENSITIES:
            if self._ref is None:
                self._ref = np.empty(self._x.size, dtype=np.float64)
            self._ref[:] = values
        else:
            if self._def is None:
                self._def = np.empty(self._x.size, dtype=np.float64)
            self._def[:] = values

        logger.debug(
            "Initialized %s intensities of subset (%s, %s) from %r",
            mode.buffer_name, self._cx, self._cy, image.name,
        )

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def mean(self, mode: InitMode = InitMode.FILL_REF_INTENSITIES) -> float:
        """Mean intensity of the selected buffer."""
        return float(np.mean(self._buffer(InitMode(mode))))

    def sum_of_squared_deviations(self, mode: InitMode = InitMode.FILL_REF_INTENSITIES) -> float:
        """Sum of squared differences from the mean of the selected buffer."""
        buffer = self._buffer(InitMode(mode))
        return float(np.sum((buffer - buffer.mean()) ** 2))

    def gamma(self) -> float:
        """
        Zero-normalized sum of squared differences between the buffers.

        0 for identical patterns (up to an affine intensity change), 4 for
        fully anti-correlated ones.

        Raises:
            UninitializedAccess: If either buffer is unset
            ValueError: If either buffer has no contrast
        """
        ref = self._buffer(InitMode.FILL_REF_INTENSITIES)
        deformed = self._buffer(InitMode.FILL_DEF_INTENSITIES)

        ref_zero = ref - ref.mean()
        def_zero = deformed - deformed.mean()
        ref_norm = np.sqrt(np.sum(ref_zero ** 2))
        def_norm = np.sqrt(np.sum(def_zero ** 2))
        if ref_norm == 0.0 or def_norm == 0.0:
            raise ValueError("gamma is undefined for a subset without contrast")

        return float(np.sum((def_zero / def_norm - ref_zero / ref_norm) ** 2))

    def diff_ref_def(self) -> float:
        """Largest absolute difference between reference and deformed intensities."""
        ref = self._buffer(InitMode.FILL_REF_INTENSITIES)
        deformed = self._buffer(InitMode.FILL_DEF_INTENSITIES)
        return float(np.max(np.abs(ref - deformed)))

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def write(
        self,
        path: Union[str, Path],
        use_deformed: bool = False,
        colormap: Optional[str] = None,
    ) -> None:
        """
        Write the selected intensity buffer as a bounding-box raster.

        Raises:
            UninitializedAccess: If the selected buffer is unset
        """
        from ..visualization import write_subset

        write_subset(self, path, use_deformed=use_deformed, colormap=colormap)

    def __repr__(self) -> str:
        return (
            f"Subset(centroid=({self._cx}, {self._cy}), num_pixels={self.num_pixels()}, "
            f"ref={'set' if self._ref is not None else 'unset'}, "
            f"def={'set' if self._def is not None else 'unset'})"
        )
