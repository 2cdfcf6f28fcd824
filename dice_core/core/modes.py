"""
Buffer selection for subset initialization.

Equivalent to DICe's Subset_Init_Mode.
"""

from enum import IntEnum


class InitMode(IntEnum):
    """
    Selects which intensity buffer ``Subset.initialize`` writes.

    Examples:
        >>> subset.initialize(ref_image)
        >>> subset.initialize(def_image, deformation, InitMode.FILL_DEF_INTENSITIES)
        >>> if subset.is_initialized(InitMode.FILL_DEF_INTENSITIES):
        ...     print(subset.gamma())
    """

    FILL_REF_INTENSITIES = 0
    FILL_DEF_INTENSITIES = 1

    @property
    def buffer_name(self) -> str:
        """Human readable name of the buffer this mode targets."""
        if self is InitMode.FILL_REF_INTENSITIES:
            return "reference"
        return "deformed"

    @classmethod
    def from_flag(cls, use_deformed: bool) -> "InitMode":
        """Return the mode matching a ``use_deformed`` switch."""
        return cls.FILL_DEF_INTENSITIES if use_deformed else cls.FILL_REF_INTENSITIES


FILL_REF_INTENSITIES = InitMode.FILL_REF_INTENSITIES
FILL_DEF_INTENSITIES = InitMode.FILL_DEF_INTENSITIES
