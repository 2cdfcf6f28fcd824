"""Core data structures for dice_core."""

from .errors import (
    DICeError,
    ConstructionError,
    IndexOutOfRange,
    UninitializedAccess,
    SampleOutOfBounds,
    OutOfRange,
    LoadError,
)
from .modes import InitMode
from .parameters import InterpolationMethod, SamplingParameters
from .image import Image
from .deformation import DeformationMap
from .subset import Subset

__all__ = [
    "DICeError",
    "ConstructionError",
    "IndexOutOfRange",
    "UninitializedAccess",
    "SampleOutOfBounds",
    "OutOfRange",
    "LoadError",
    "InitMode",
    "InterpolationMethod",
    "SamplingParameters",
    "Image",
    "DeformationMap",
    "Subset",
]
