"""
dice_core - subset sampling core for Digital Image Correlation (DIC).

Defines pixel subsets around points of interest, samples their reference
intensities from an image and re-samples them through a deformation map
for comparison against a deformed image.

Reference:
    Digital Image Correlation Engine (DICe)
    D.Z. Turner, Sandia National Laboratories
"""

import logging

from .core.errors import (
    DICeError,
    ConstructionError,
    IndexOutOfRange,
    UninitializedAccess,
    SampleOutOfBounds,
    OutOfRange,
    LoadError,
)
from .core.modes import InitMode, FILL_REF_INTENSITIES, FILL_DEF_INTENSITIES
from .core.parameters import InterpolationMethod, SamplingParameters
from .core.image import Image, load
from .core.deformation import DeformationMap
from .core.subset import Subset
from .visualization import write_subset
from .runtime import Runtime

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "DICeError",
    "ConstructionError",
    "IndexOutOfRange",
    "UninitializedAccess",
    "SampleOutOfBounds",
    "OutOfRange",
    "LoadError",
    "InitMode",
    "FILL_REF_INTENSITIES",
    "FILL_DEF_INTENSITIES",
    "InterpolationMethod",
    "SamplingParameters",
    "Image",
    "load",
    "DeformationMap",
    "Subset",
    "write_subset",
    "Runtime",
]
