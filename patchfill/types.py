"""Shared type definitions for the local inpainting pipeline."""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive pixel rectangle enclosing every masked pixel."""

    min_x: int
    max_x: int
    min_y: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def height(self) -> int:
        return self.max_y - self.min_y + 1

    def expand(self, padding: int, width: int, height: int) -> "BoundingBox":
        """Grow the box by ``padding`` on every side, clipped to the image."""

        return BoundingBox(
            min_x=max(0, self.min_x - padding),
            max_x=min(width - 1, self.max_x + padding),
            min_y=max(0, self.min_y - padding),
            max_y=min(height - 1, self.max_y + padding),
        )

    def slices(self) -> Tuple[slice, slice]:
        """Row and column slices selecting the box from an HxW array."""

        return slice(self.min_y, self.max_y + 1), slice(self.min_x, self.max_x + 1)


@dataclass(frozen=True)
class ReferenceColor:
    """Mean RGB of the healthy texture around the masked region."""

    r: float
    g: float
    b: float

    def as_array(self) -> np.ndarray:
        return np.array([self.r, self.g, self.b], dtype=np.float64)


@dataclass(frozen=True)
class DonorMatch:
    """Donor pixel chosen for one masked pixel."""

    x: int
    y: int
    distance: float


@dataclass
class MaskAnalysis:
    """AlphaMap and bounding box derived from a mask."""

    alpha: np.ndarray
    bbox: Optional[BoundingBox]
    threshold: float

    @property
    def is_empty(self) -> bool:
        return self.bbox is None

    @property
    def masked(self) -> np.ndarray:
        return self.alpha > self.threshold


@dataclass
class DonorStats:
    """How many target pixels received a donor during synthesis."""

    filled: int = 0
    missing: int = 0

    @property
    def total(self) -> int:
        return self.filled + self.missing


@dataclass
class InpaintResult:
    """Output of one pipeline call, with the intermediate stage data.

    ``stages`` holds copies of the working buffer after synthesis and after
    diffusion when the pipeline was created with ``keep_stages=True``.
    """

    image: np.ndarray
    analysis: MaskAnalysis
    reference: Optional[ReferenceColor] = None
    iterations: int = 0
    donors: Optional[DonorStats] = None
    stages: Dict[str, np.ndarray] = field(default_factory=dict)
