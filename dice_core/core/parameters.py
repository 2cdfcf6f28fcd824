"""
Sampling parameters configuration.

Stores the settings shared by every subset sampled with them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class InterpolationMethod(str, Enum):
    """Sub-pixel interpolation orders."""

    NEAREST = "nearest"
    BILINEAR = "bilinear"
    KEYS_FOURTH = "keys_fourth"          # Keys cubic convolution, a = -0.5
    BSPLINE_QUINTIC = "bspline_quintic"  # Biquintic B-spline on prefiltered coefficients


@dataclass
class SamplingParameters:
    """
    Subset sampling parameters.

    Attributes:
        interpolation: Interpolation used for mapped (fractional) coordinates
        bspline_border: Edge padding of the B-spline coefficient array (>= 3)
        verbose: Route diagnostic text to the output stream
        num_threads: Worker threads of the Runtime pool (None = executor default)
    """

    interpolation: InterpolationMethod = InterpolationMethod.KEYS_FOURTH
    bspline_border: int = 20
    verbose: bool = False
    num_threads: Optional[int] = None

    def validate(self) -> bool:
        """
        Validate parameters are within acceptable ranges.

        Returns:
            True if parameters are valid, raises ValueError otherwise
        """
        if not isinstance(self.interpolation, InterpolationMethod):
            try:
                self.interpolation = InterpolationMethod(self.interpolation)
            except ValueError:
                raise ValueError(
                    f"Unknown interpolation method: {self.interpolation!r}"
                )

        if self.bspline_border < 3:
            raise ValueError(
                f"bspline_border must be >= 3, got {self.bspline_border}"
            )

        if self.num_threads is not None and self.num_threads < 1:
            raise ValueError(f"num_threads must be >= 1, got {self.num_threads}")

        return True

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "interpolation": InterpolationMethod(self.interpolation).value,
            "bspline_border": self.bspline_border,
            "verbose": self.verbose,
            "num_threads": self.num_threads,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "SamplingParameters":
        """Create from dictionary."""
        params = cls(
            interpolation=InterpolationMethod(
                d.get("interpolation", InterpolationMethod.KEYS_FOURTH.value)
            ),
            bspline_border=d.get("bspline_border", 20),
            verbose=d.get("verbose", False),
            num_threads=d.get("num_threads"),
        )
        params.validate()
        return params
