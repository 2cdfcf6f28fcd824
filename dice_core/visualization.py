"""
Diagnostic output of subset intensities.

Reconstructs a bounding-box raster from a subset's coordinates and one of
its intensity buffers and writes it to disk. Used for visual inspection
only, never inside a correlation loop.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray
from PIL import Image as PILImage

from .core.errors import UninitializedAccess
from .core.modes import InitMode
from .utils.colormaps import apply_colormap
from .utils.image_io import write_image

if TYPE_CHECKING:
    from .core.subset import Subset

logger = logging.getLogger(__name__)


def subset_raster(
    subset: "Subset",
    use_deformed: bool = False,
) -> Tuple[int, int, NDArray[np.float64], NDArray[np.bool_]]:
    """
    Lay a subset's intensities out on its bounding box.

    Args:
        subset: Subset to render
        use_deformed: Use the deformed buffer instead of the reference one

    Returns:
        Tuple of (width, height, row-major buffer, mask of subset pixels).
        Bounding-box pixels not in the subset are 0 in the buffer.

    Raises:
        UninitializedAccess: If the selected buffer is unset
    """
    mode = InitMode.from_flag(use_deformed)
    values = subset.def_buffer if use_deformed else subset.ref_buffer
    if values is None:
        raise UninitializedAccess(
            f"Cannot write the {mode.buffer_name} intensities before they are initialized"
        )

    min_x, min_y, max_x, max_y = subset.bounding_box()
    width = max_x - min_x + 1
    height = max_y - min_y + 1

    raster = np.zeros((height, width), dtype=np.float64)
    mask = np.zeros((height, width), dtype=np.bool_)
    rows = subset.y_coords - min_y
    cols = subset.x_coords - min_x
    raster[rows, cols] = values
    mask[rows, cols] = True

    return width, height, raster.ravel(), mask.ravel()


def write_subset(
    subset: "Subset",
    path: Union[str, Path],
    use_deformed: bool = False,
    colormap: Optional[str] = None,
) -> None:
    """
    Write a subset's intensities to an image file.

    Without a colormap the raw intensities go through the image codec
    (float precision for TIFF). With one, a false-colour RGB image is
    written, pixels outside the subset left black.

    Args:
        subset: Subset to write
        path: Destination file
        use_deformed: Write the deformed buffer instead of the reference one
        colormap: Optional colormap name (see ``get_colormap``)

    Raises:
        UninitializedAccess: If the selected buffer is unset
    """
    width, height, buffer, mask = subset_raster(subset, use_deformed)

    if colormap is None:
        write_image(path, width, height, buffer)
    else:
        rgb = apply_colormap(
            buffer.reshape(height, width),
            cmap_name=colormap,
            mask=mask.reshape(height, width),
        )
        PILImage.fromarray(rgb).save(Path(path))

    logger.info(
        "Wrote %s intensities of subset (%s, %s) to %s",
        InitMode.from_flag(use_deformed).buffer_name,
        subset.centroid_x(), subset.centroid_y(), path,
    )
