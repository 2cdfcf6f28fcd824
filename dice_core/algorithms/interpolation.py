"""
Sub-pixel intensity interpolation.

Implements nearest, bilinear, Keys fourth-order cubic convolution and
biquintic B-spline sampling of an intensity array at arbitrary (x, y)
locations. Coordinates are expected inside the continuous image extent
``[0, w-1] x [0, h-1]``; stencil neighbours that fall past the last row or
column take the nearest edge value.

Every kernel returns the stored pixel bit-for-bit when both coordinates are
integral, so the identity map and integer shifts never pick up
interpolation error.

All Numba-accelerated functions are at module level and release the GIL, so
distinct subsets can be sampled from several threads at once.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.typing import NDArray
from numba import njit
from scipy.fft import fft, ifft

from ..core.parameters import InterpolationMethod


# Quintic B-spline values at the integers -2..2
_BSPLINE_KERNEL = np.array([1/120, 13/60, 11/20, 13/60, 1/120], dtype=np.float64)

# Keys cubic convolution parameter
_KEYS_A = -0.5


# =============================================================================
# Module-level Numba-accelerated functions
# =============================================================================

@njit(cache=True)
def _clamp(i: int, n: int) -> int:
    if i < 0:
        return 0
    if i > n - 1:
        return n - 1
    return i


@njit(cache=True, fastmath=True)
def _keys_weight(t: float) -> float:
    """
    Keys cubic convolution kernel with a = -0.5.

    W(0) = 1 and W(+-1) = W(+-2) = 0, so the kernel interpolates the samples.
    """
    at = abs(t)
    a = _KEYS_A

    if at < 1.0:
        return ((a + 2.0) * at - (a + 3.0)) * at * at + 1.0
    elif at < 2.0:
        return ((a * at - 5.0 * a) * at + 8.0 * a) * at - 4.0 * a
    return 0.0


@njit(cache=True, fastmath=True)
def _quintic_bspline(t: float) -> float:
    """
    Evaluate quintic B-spline basis function at t.

    The quintic B-spline is defined over [-3, 3] and is zero outside.
    B(0) = 11/20, B(1) = 13/60, B(2) = 1/120.
    """
    at = abs(t)

    if at >= 3.0:
        return 0.0
    elif at >= 2.0:
        tmp = 3.0 - at
        return tmp * tmp * tmp * tmp * tmp / 120.0
    elif at >= 1.0:
        t2 = at * at
        t3 = t2 * at
        t4 = t3 * at
        t5 = t4 * at
        return (5.0 * t5 - 45.0 * t4 + 150.0 * t3 - 210.0 * t2 + 75.0 * at + 51.0) / 120.0
    else:
        t2 = at * at
        t4 = t2 * t2
        t5 = t4 * at
        return (66.0 - 60.0 * t2 + 30.0 * t4 - 10.0 * t5) / 120.0


@njit(cache=True, nogil=True)
def nearest_batch(
    data: NDArray[np.float64],
    xs: NDArray[np.float64],
    ys: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Nearest-neighbour sampling; ties round towards +x / +y."""
    n = xs.shape[0]
    h, w = data.shape
    result = np.empty(n, dtype=np.float64)

    for idx in range(n):
        ix = _clamp(int(np.floor(xs[idx] + 0.5)), w)
        iy = _clamp(int(np.floor(ys[idx] + 0.5)), h)
        result[idx] = data[iy, ix]

    return result


@njit(cache=True, nogil=True, fastmath=True)
def bilinear_batch(
    data: NDArray[np.float64],
    xs: NDArray[np.float64],
    ys: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Bilinear sampling at N points."""
    n = xs.shape[0]
    h, w = data.shape
    result = np.empty(n, dtype=np.float64)

    for idx in range(n):
        x = xs[idx]
        y = ys[idx]
        ix = int(np.floor(x))
        iy = int(np.floor(y))
        fx = x - ix
        fy = y - iy

        x0 = _clamp(ix, w)
        y0 = _clamp(iy, h)
        if fx == 0.0 and fy == 0.0:
            result[idx] = data[y0, x0]
            continue

        x1 = _clamp(ix + 1, w)
        y1 = _clamp(iy + 1, h)
        top = (1.0 - fx) * data[y0, x0] + fx * data[y0, x1]
        bottom = (1.0 - fx) * data[y1, x0] + fx * data[y1, x1]
        result[idx] = (1.0 - fy) * top + fy * bottom

    return result


@njit(cache=True, nogil=True, fastmath=True)
def keys_batch(
    data: NDArray[np.float64],
    xs: NDArray[np.float64],
    ys: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Keys fourth-order (4 x 4 stencil) cubic convolution at N points."""
    n = xs.shape[0]
    h, w = data.shape
    result = np.empty(n, dtype=np.float64)

    for idx in range(n):
        x = xs[idx]
        y = ys[idx]
        ix = int(np.floor(x))
        iy = int(np.floor(y))
        fx = x - ix
        fy = y - iy

        if fx == 0.0 and fy == 0.0:
            result[idx] = data[_clamp(iy, h), _clamp(ix, w)]
            continue

        value = 0.0
        for j in range(-1, 3):
            wy = _keys_weight(fy - j)
            row = _clamp(iy + j, h)
            for i in range(-1, 3):
                wx = _keys_weight(fx - i)
                value += data[row, _clamp(ix + i, w)] * wx * wy

        result[idx] = value

    return result


@njit(cache=True, nogil=True, fastmath=True)
def bspline_batch(
    data: NDArray[np.float64],
    bcoef: NDArray[np.float64],
    border: int,
    xs: NDArray[np.float64],
    ys: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Biquintic B-spline sampling at N points.

    Args:
        data: Original intensity array (used for integral coordinates)
        bcoef: B-spline coefficients of ``data`` padded by ``border``
        border: Padding applied before computing ``bcoef``
        xs: X-coordinates in image coordinates
        ys: Y-coordinates in image coordinates

    Returns:
        Interpolated values at each point
    """
    n = xs.shape[0]
    h, w = data.shape
    result = np.empty(n, dtype=np.float64)

    for idx in range(n):
        x = xs[idx]
        y = ys[idx]
        ix = int(np.floor(x))
        iy = int(np.floor(y))
        fx = x - ix
        fy = y - iy

        if fx == 0.0 and fy == 0.0:
            result[idx] = data[_clamp(iy, h), _clamp(ix, w)]
            continue

        bx0 = ix + border
        by0 = iy + border
        value = 0.0
        for j in range(-2, 4):
            by = _quintic_bspline(fy - j)
            for i in range(-2, 4):
                bx = _quintic_bspline(fx - i)
                value += bcoef[by0 + j, bx0 + i] * bx * by

        result[idx] = value

    return result


# =============================================================================
# Coefficient preparation
# =============================================================================

def pad_edges(data: NDArray[np.float64], border: int) -> NDArray[np.float64]:
    """Pad an array by replicating its edge rows and columns."""
    return np.pad(data, border, mode="edge")


def compute_bcoef(data: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Compute biquintic B-spline coefficients.

    The coefficients are obtained by deconvolving the data with the sampled
    quintic kernel, rows first, then columns, using the FFT.

    Args:
        data: Input 2D array (must be at least 5x5 or empty)

    Returns:
        B-spline coefficients (same size as input)

    Raises:
        ValueError: If array is smaller than 5x5 and not empty
    """
    if data.size == 0:
        return np.zeros_like(data, dtype=np.float64)

    if data.shape[0] < 5 or data.shape[1] < 5:
        raise ValueError(
            "Array for B-spline coefficients must be >= 5x5 or empty"
        )

    kernel = _BSPLINE_KERNEL
    h, w = data.shape

    kernel_x = np.zeros(w, dtype=np.complex128)
    kernel_x[:3] = kernel[2:]
    kernel_x[-2:] = kernel[:2]
    kernel_x_fft = fft(kernel_x)

    kernel_y = np.zeros(h, dtype=np.complex128)
    kernel_y[:3] = kernel[2:]
    kernel_y[-2:] = kernel[:2]
    kernel_y_fft = fft(kernel_y)

    # Rows, then columns
    result = np.real(ifft(fft(data, axis=1) / kernel_x_fft[np.newaxis, :], axis=1))
    result = np.real(ifft(fft(result, axis=0) / kernel_y_fft[:, np.newaxis], axis=0))

    return np.ascontiguousarray(result, dtype=np.float64)


def padded_bcoef(data: NDArray[np.float64], border: int) -> NDArray[np.float64]:
    """B-spline coefficients of ``data`` after edge padding by ``border``."""
    return compute_bcoef(pad_edges(data, border))


# =============================================================================
# Dispatch
# =============================================================================

def interpolate(
    data: NDArray[np.float64],
    xs: NDArray[np.float64],
    ys: NDArray[np.float64],
    method: InterpolationMethod = InterpolationMethod.KEYS_FOURTH,
    bcoef: Optional[NDArray[np.float64]] = None,
    border: int = 0,
) -> NDArray[np.float64]:
    """
    Sample ``data`` at the points (xs[i], ys[i]).

    Coordinates are not bounds-checked here; callers validate them against
    the image extent first.

    Args:
        data: 2D intensity array
        xs: X-coordinates
        ys: Y-coordinates (same length as xs)
        method: Interpolation order
        bcoef: Padded B-spline coefficients, required for BSPLINE_QUINTIC
        border: Padding used when computing ``bcoef``

    Returns:
        1D float64 array of sampled values
    """
    xs = np.ascontiguousarray(xs, dtype=np.float64).ravel()
    ys = np.ascontiguousarray(ys, dtype=np.float64).ravel()
    method = InterpolationMethod(method)

    if method == InterpolationMethod.NEAREST:
        return nearest_batch(data, xs, ys)
    if method == InterpolationMethod.BILINEAR:
        return bilinear_batch(data, xs, ys)
    if method == InterpolationMethod.KEYS_FOURTH:
        return keys_batch(data, xs, ys)

    if bcoef is None:
        border = max(border, 3)
        bcoef = padded_bcoef(data, border)
    return bspline_batch(data, bcoef, border, xs, ys)
