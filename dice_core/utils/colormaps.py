"""
Colormap utilities for subset visualization.
"""

from typing import Optional, Tuple

import matplotlib
import numpy as np
from matplotlib.colors import Colormap, LinearSegmentedColormap, Normalize
from numpy.typing import NDArray


def get_colormap(name: str = "dice") -> Colormap:
    """
    Get colormap for intensity visualization.

    Args:
        name: Colormap name. Options:
            - 'dice': Blue-cyan-green-yellow-red (default)
            - any matplotlib colormap name ('gray', 'viridis', 'jet', ...)

    Returns:
        Matplotlib colormap

    Raises:
        ValueError: If the name is unknown
    """
    if name == "dice":
        colors = [
            (0.0, 0.0, 0.5),   # Dark blue
            (0.0, 0.0, 1.0),   # Blue
            (0.0, 1.0, 1.0),   # Cyan
            (0.0, 1.0, 0.0),   # Green
            (1.0, 1.0, 0.0),   # Yellow
            (1.0, 0.0, 0.0),   # Red
            (0.5, 0.0, 0.0),   # Dark red
        ]
        return LinearSegmentedColormap.from_list("dice", colors)

    try:
        return matplotlib.colormaps[name]
    except KeyError:
        raise ValueError(f"Unknown colormap: {name}")


def apply_colormap(
    data: NDArray[np.float64],
    cmap_name: str = "dice",
    vmin: Optional[float] = None,
    vmax: Optional[float] = None,
    mask: Optional[NDArray[np.bool_]] = None,
    background: Tuple[int, int, int] = (0, 0, 0),
) -> NDArray[np.uint8]:
    """
    Apply colormap to data array.

    Args:
        data: 2D data array
        cmap_name: Colormap name
        vmin: Minimum value for normalization (None = auto over the mask)
        vmax: Maximum value for normalization (None = auto over the mask)
        mask: Pixels to colour; others get ``background`` (None = all)
        background: RGB colour outside the mask

    Returns:
        RGB image as uint8 array (H x W x 3)
    """
    cmap = get_colormap(cmap_name)
    if mask is None:
        mask = np.ones(data.shape, dtype=np.bool_)

    result = np.zeros((*data.shape, 3), dtype=np.uint8)
    result[:, :] = background
    if not np.any(mask):
        return result

    # Auto range
    if vmin is None:
        vmin = float(np.min(data[mask]))
    if vmax is None:
        vmax = float(np.max(data[mask]))

    norm = Normalize(vmin=vmin, vmax=vmax)
    rgba = cmap(norm(data))
    rgb = (rgba[..., :3] * 255).astype(np.uint8)

    result[mask] = rgb[mask]
    return result
