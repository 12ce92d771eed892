"""Mask analysis: alpha map, bounding box and input validation.

The engine reads coverage from the mask's alpha channel only. Helpers here
also build such masks from a painted brush layer or from a grayscale matte.
"""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from patchfill.errors import DimensionMismatch
from patchfill.types import BoundingBox, MaskAnalysis
from patchfill.utils.vision import as_uint8, ensure_rgba

logger = logging.getLogger(__name__)


def mask_alpha(mask: np.ndarray) -> np.ndarray:
    """Return the HxW uint8 coverage plane of ``mask``.

    A 2-D mask is already the coverage plane. Color masks contribute their
    alpha channel; masks without one are fully opaque and cover every pixel.
    """

    mask = np.asarray(mask)
    if mask.ndim == 2:
        return as_uint8(mask)
    return ensure_rgba(mask)[..., 3]


def validate_inputs(image: np.ndarray, mask: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Normalize the source to RGBA and the mask to its alpha plane.

    Raises:
        DimensionMismatch: if the mask and the source differ in size.
    """

    rgba = ensure_rgba(image)
    alpha = mask_alpha(mask)
    if alpha.shape != rgba.shape[:2]:
        raise DimensionMismatch(
            f"Mask size {alpha.shape[1]}x{alpha.shape[0]} does not match "
            f"image size {rgba.shape[1]}x{rgba.shape[0]}"
        )
    return rgba, alpha


def analyze_mask(mask: np.ndarray, threshold: float = 0.05) -> MaskAnalysis:
    """Build the AlphaMap and the bounding box of pixels above ``threshold``."""

    alpha = mask_alpha(mask).astype(np.float32) / 255.0
    masked = alpha > threshold
    rows = np.flatnonzero(masked.any(axis=1))
    if rows.size == 0:
        logger.debug("Mask is empty at threshold %.3f", threshold)
        return MaskAnalysis(alpha=alpha, bbox=None, threshold=threshold)
    cols = np.flatnonzero(masked.any(axis=0))
    bbox = BoundingBox(
        min_x=int(cols[0]),
        max_x=int(cols[-1]),
        min_y=int(rows[0]),
        max_y=int(rows[-1]),
    )
    logger.debug("Mask covers %d pixels inside %s", int(masked.sum()), bbox)
    return MaskAnalysis(alpha=alpha, bbox=bbox, threshold=threshold)


def prepare_brush_mask(strokes: np.ndarray, threshold: int = 1) -> np.ndarray:
    """Flatten a painted brush layer into a hard-edged RGBA mask.

    Pixels whose stroke alpha exceeds ``threshold`` become opaque white, all
    others transparent black.
    """

    painted = ensure_rgba(strokes)[..., 3] > threshold
    mask = np.zeros(painted.shape + (4,), dtype=np.uint8)
    mask[painted] = 255
    return mask


def luminance_to_alpha(matte: np.ndarray) -> np.ndarray:
    """Turn a white-on-black matte into an RGBA mask with coverage in alpha."""

    rgba = ensure_rgba(matte)
    luma = rgba[..., :3].astype(np.float32).mean(axis=-1)
    mask = np.zeros_like(rgba)
    mask[..., :3] = 255
    mask[..., 3] = np.clip(np.rint(luma), 0, 255).astype(np.uint8)
    return mask
