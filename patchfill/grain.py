"""Grain resynthesis and final alpha compositing."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from patchfill.config import GrainConfig
from patchfill.utils.vision import quantize

logger = logging.getLogger(__name__)


def add_grain(
    working: np.ndarray,
    alpha: np.ndarray,
    rng: np.random.Generator,
    config: Optional[GrainConfig] = None,
) -> None:
    """Add luma-dependent uniform noise to reconstructed pixels in place.

    Each pixel draws one value in ``[-amplitude / 2, amplitude / 2)`` and adds
    it to all three color channels, so the noise shifts brightness without
    tinting. Dark pixels get the stronger amplitude.
    """

    config = config or GrainConfig()
    targets = alpha > config.threshold
    if not targets.any():
        return
    pixels = working[targets][:, :3].astype(np.float64)
    luma = pixels.sum(axis=1) / 3.0
    amplitude = np.where(luma < config.dark_luma, config.dark_amplitude, config.light_amplitude)
    grain = (rng.random(pixels.shape[0]) - 0.5) * amplitude
    working[targets, :3] = quantize(pixels + grain[:, None])


def composite(original: np.ndarray, working: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """Blend ``working`` over ``original`` weighted by ``alpha``.

    Returns a new, fully opaque buffer. Pixels with zero alpha keep the
    original color bytes.
    """

    output = original.copy()
    weighted = alpha > 0
    weight = alpha[weighted].astype(np.float64)[:, None]
    blended = working[weighted][:, :3] * weight + original[weighted][:, :3] * (1.0 - weight)
    output[weighted, :3] = quantize(blended)
    output[..., 3] = 255
    logger.debug("Composited %d pixels", int(weighted.sum()))
    return output
