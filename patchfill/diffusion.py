"""Constrained diffusion inside the masked region.

A small mixing weight applied over many iterations acts as a low-pass filter
restricted to masked pixels: patch seams soften while texture outside the
mask stays untouched.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from patchfill.config import DEFAULT_PASSES, DiffusionConfig
from patchfill.types import BoundingBox

logger = logging.getLogger(__name__)


def iterations_for_passes(passes: Optional[int], config: Optional[DiffusionConfig] = None) -> int:
    """Map the caller's ``passes`` knob to a bounded iteration count.

    ``passes`` is divided by ``passes_per_iteration`` and clamped, so the
    default of 1200 passes yields 300 iterations.
    """

    config = config or DiffusionConfig()
    if not passes:
        passes = DEFAULT_PASSES
    iterations = math.floor(passes / config.passes_per_iteration)
    return int(min(config.max_iterations, max(config.min_iterations, iterations)))


def _wavefronts(targets: np.ndarray):
    """Group target coordinates by anti-diagonal ``x + y``, in ascending order.

    In a row-major sweep a pixel reads its upper and left neighbours after
    they were updated and its lower and right neighbours before. Both updated
    neighbours lie on the previous anti-diagonal, so each diagonal can be
    updated at once and the sweep result is unchanged.
    """

    ys, xs = np.nonzero(targets)
    diagonals = ys + xs
    order = np.argsort(diagonals, kind="stable")
    ys, xs, diagonals = ys[order], xs[order], diagonals[order]
    bounds = np.flatnonzero(np.diff(diagonals)) + 1
    return list(zip(np.split(ys, bounds), np.split(xs, bounds)))


def diffuse(
    working: np.ndarray,
    alpha: np.ndarray,
    bbox: BoundingBox,
    iterations: int,
    config: Optional[DiffusionConfig] = None,
) -> None:
    """Blend masked pixels of ``working`` toward their 4-neighbour mean.

    Each iteration sweeps the bounding box in row-major order and updates
    pixels in place, so a pixel sees the new values of the neighbours above
    and to its left. Neighbours outside the image are skipped, and every
    store is rounded to 8 bits.
    """

    config = config or DiffusionConfig()
    height, width = alpha.shape
    window = bbox.expand(1, width, height)
    rows, cols = window.slices()
    targets = alpha[rows, cols] > config.threshold
    if iterations <= 0 or not targets.any():
        return

    # Zero border: neighbours beyond the window are outside the image.
    padded = np.pad(working[rows, cols, :3].astype(np.float64), ((1, 1), (1, 1), (0, 0)))
    inside = np.pad(np.ones(targets.shape), 1)
    fronts = []
    for ys, xs in _wavefronts(targets):
        py, px = ys + 1, xs + 1
        counts = inside[py - 1, px] + inside[py + 1, px] + inside[py, px - 1] + inside[py, px + 1]
        fronts.append((py, px, np.maximum(counts, 1.0)[:, None]))

    mix = config.mix
    for _ in range(iterations):
        for py, px, counts in fronts:
            sums = padded[py - 1, px] + padded[py + 1, px] + padded[py, px - 1] + padded[py, px + 1]
            blended = padded[py, px] * (1.0 - mix) + (sums / counts) * mix
            padded[py, px] = np.clip(np.rint(blended), 0, 255)

    working[rows, cols, :3] = padded[1:-1, 1:-1].astype(np.uint8)
    logger.debug("Diffused %d pixels over %d iterations", int(targets.sum()), iterations)
