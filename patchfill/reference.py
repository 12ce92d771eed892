"""Local reference color estimation around the masked region."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from patchfill.config import ReferenceConfig
from patchfill.errors import NoReferenceSample
from patchfill.types import BoundingBox, ReferenceColor

logger = logging.getLogger(__name__)


def estimate_reference(
    original: np.ndarray,
    alpha: np.ndarray,
    bbox: BoundingBox,
    config: Optional[ReferenceConfig] = None,
) -> ReferenceColor:
    """Mean RGB over the unmasked pixels of the padded bounding box.

    Raises:
        NoReferenceSample: if the padded region contains no pixel with alpha
            below ``config.threshold``.
    """

    config = config or ReferenceConfig()
    height, width = alpha.shape
    rows, cols = bbox.expand(config.ring_size, width, height).slices()
    eligible = alpha[rows, cols] < config.threshold
    count = int(eligible.sum())
    if count == 0:
        raise NoReferenceSample()
    samples = original[rows, cols, :3][eligible].astype(np.float64)
    mean = samples.sum(axis=0) / count
    reference = ReferenceColor(r=float(mean[0]), g=float(mean[1]), b=float(mean[2]))
    logger.debug("Reference color %s from %d samples", reference, count)
    return reference
