"""
Exception types raised by the subset/sampling layer.

Every error also derives from the builtin exception used for the same
condition elsewhere in the package, so ``except ValueError`` and friends
keep working for callers that do not care about the finer distinction.
"""


class DICeError(Exception):
    """Base class for all dice_core errors."""


class ConstructionError(DICeError, ValueError):
    """Invalid subset shape parameters or coordinate arrays."""


class IndexOutOfRange(DICeError, IndexError):
    """Subset accessor index is not in ``[0, num_pixels())``."""


class UninitializedAccess(DICeError, RuntimeError):
    """An intensity buffer was read before it was populated."""


class SampleOutOfBounds(DICeError, IndexError):
    """A raw or mapped coordinate lies outside the sampled image."""


class OutOfRange(DICeError, IndexError):
    """Direct image lookup outside ``[0, width) x [0, height)``."""


class LoadError(DICeError, OSError):
    """An image file could not be read or decoded."""
