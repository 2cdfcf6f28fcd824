"""
Deformation map for subset sampling.

Holds the shape-function parameters estimated by a correlation solver and
maps reference coordinates into the deformed image. Equivalent to DICe's
Def_Map.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields, replace
from typing import Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

Coordinate = Union[float, NDArray[np.float64]]


@dataclass(frozen=True)
class DeformationMap:
    """
    First-order deformation of a subset about its centroid.

    For a point (x, y) and a centroid (cx, cy), with dx = x - cx and
    dy = y - cy::

        Dx = (1 + ex) * dx + gxy * dy
        Dy = (1 + ey) * dy + gxy * dx
        x' = cos(theta) * Dx - sin(theta) * Dy + u + cx
        y' = sin(theta) * Dx + cos(theta) * Dy + v + cy

    Attributes:
        u: Displacement in x (pixels)
        v: Displacement in y (pixels)
        theta: Rotation (radians, counter-clockwise in image coordinates)
        ex: Normal strain in x
        ey: Normal strain in y
        gxy: Shear strain
    """

    u: float = 0.0
    v: float = 0.0
    theta: float = 0.0
    ex: float = 0.0
    ey: float = 0.0
    gxy: float = 0.0

    @classmethod
    def identity(cls) -> "DeformationMap":
        """Return the map that leaves every coordinate in place."""
        return cls()

    def is_translation(self) -> bool:
        """Check whether only u and v are non-zero."""
        return self.theta == 0.0 and self.ex == 0.0 and self.ey == 0.0 and self.gxy == 0.0

    def is_identity(self) -> bool:
        """Check whether every parameter is zero."""
        return self.u == 0.0 and self.v == 0.0 and self.is_translation()

    def apply(
        self,
        x: Union[Coordinate, ArrayLike],
        y: Union[Coordinate, ArrayLike],
        cx: float = 0.0,
        cy: float = 0.0,
    ) -> Tuple[Coordinate, Coordinate]:
        """
        Map reference coordinates into the deformed configuration.

        Accepts scalars or arrays (broadcast elementwise). A pure
        translation is applied as x + u, y + v with no other arithmetic,
        so integer shifts of integer coordinates stay exact.

        Args:
            x: Reference x-coordinate(s)
            y: Reference y-coordinate(s)
            cx: X-coordinate the rotation and strains are taken about
            cy: Y-coordinate the rotation and strains are taken about

        Returns:
            Tuple of mapped (x', y')
        """
        if np.ndim(x) or np.ndim(y):
            x = np.asarray(x, dtype=np.float64)
            y = np.asarray(y, dtype=np.float64)

        if self.is_translation():
            return x + self.u, y + self.v

        dx = x - cx
        dy = y - cy
        stretched_x = (1.0 + self.ex) * dx + self.gxy * dy
        stretched_y = (1.0 + self.ey) * dy + self.gxy * dx

        cos_t = math.cos(self.theta)
        sin_t = math.sin(self.theta)
        mapped_x = cos_t * stretched_x - sin_t * stretched_y + self.u + cx
        mapped_y = sin_t * stretched_x + cos_t * stretched_y + self.v + cy
        return mapped_x, mapped_y

    def updated(self, **changes: float) -> "DeformationMap":
        """Return a copy with the given parameters replaced."""
        return replace(self, **changes)

    def to_array(self) -> NDArray[np.float64]:
        """Parameters as an array ordered u, v, theta, ex, ey, gxy."""
        return np.array(
            [self.u, self.v, self.theta, self.ex, self.ey, self.gxy],
            dtype=np.float64,
        )

    @classmethod
    def from_array(cls, params: ArrayLike) -> "DeformationMap":
        """
        Create from a parameter vector.

        Accepts the two displacement components alone, or all six
        parameters in the order returned by ``to_array``.
        """
        values = np.asarray(params, dtype=np.float64).ravel()
        if values.size not in (2, 6):
            raise ValueError(
                f"Expected 2 or 6 deformation parameters, got {values.size}"
            )
        return cls(*(float(p) for p in values))

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "DeformationMap":
        """Create from dictionary; missing parameters default to zero."""
        return cls(**{f.name: float(d.get(f.name, 0.0)) for f in fields(cls)})
