"""Patch donor synthesis.

Every target pixel borrows the color of an unmasked donor found on a spiral
of concentric rings around it. Donors are ranked by the L1 distance of their
raw color to the local reference color, and the chosen donor is pulled toward
that reference before it is written, so donors exposed differently from the
surroundings of the hole do not leave blotches.

Search order is radius ascending, then angle ascending. A donor replaces the
current best only on a strictly smaller distance, and the search stops after
the first ring whose running best is below ``match_threshold``. The result is
therefore the first good-enough donor, not the global minimum.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Tuple

import numpy as np

from patchfill.config import SynthesisConfig
from patchfill.types import BoundingBox, DonorMatch, DonorStats, ReferenceColor
from patchfill.utils.vision import quantize

logger = logging.getLogger(__name__)


def spiral_offsets(config: Optional[SynthesisConfig] = None) -> np.ndarray:
    """Ordered search table of ``(ring, dx, dy)`` rows.

    ``dx``/``dy`` are unrounded float offsets; callers round ``x + dx`` half
    up. Rows are grouped by ring with ``angle_count`` rows per ring.
    """

    config = config or SynthesisConfig()
    radii = np.arange(config.radius_step, config.search_radius, config.radius_step, dtype=np.float64)
    angles = np.arange(config.angle_count, dtype=np.float64) * (2.0 * math.pi / config.angle_count)
    rings = np.repeat(np.arange(radii.size, dtype=np.float64), angles.size)
    dx = (radii[:, None] * np.cos(angles)[None, :]).ravel()
    dy = (radii[:, None] * np.sin(angles)[None, :]).ravel()
    return np.stack([rings, dx, dy], axis=-1)


def _round_half_up(values):
    return np.floor(values + 0.5).astype(np.int64)


def find_donor(
    x: int,
    y: int,
    original: np.ndarray,
    alpha: np.ndarray,
    reference: ReferenceColor,
    config: Optional[SynthesisConfig] = None,
) -> Optional[DonorMatch]:
    """Search the spiral around ``(x, y)`` for a donor pixel.

    Returns ``None`` when no unmasked in-bounds pixel lies on any ring.
    """

    config = config or SynthesisConfig()
    height, width = alpha.shape
    target = reference.as_array()
    offsets = spiral_offsets(config)
    best: Optional[DonorMatch] = None
    for start in range(0, offsets.shape[0], config.angle_count):
        for _, dx, dy in offsets[start:start + config.angle_count]:
            sx = int(math.floor(x + dx + 0.5))
            sy = int(math.floor(y + dy + 0.5))
            if not (0 <= sx < width and 0 <= sy < height):
                continue
            if alpha[sy, sx] >= config.donor_threshold:
                continue
            distance = float(np.abs(original[sy, sx, :3].astype(np.float64) - target).sum())
            if best is None or distance < best.distance:
                best = DonorMatch(x=sx, y=sy, distance=distance)
        if best is not None and best.distance < config.match_threshold:
            break
    return best


def search_donors(
    xs: np.ndarray,
    ys: np.ndarray,
    original: np.ndarray,
    alpha: np.ndarray,
    reference: ReferenceColor,
    config: Optional[SynthesisConfig] = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Vectorized ``find_donor`` over many target pixels.

    Returns:
        ``(donor_x, donor_y, distance, found)`` arrays aligned with ``xs``.
        Entries where ``found`` is False carry no meaning.
    """

    config = config or SynthesisConfig()
    height, width = alpha.shape
    xs = np.asarray(xs, dtype=np.int64)
    ys = np.asarray(ys, dtype=np.int64)
    count = xs.size
    donor_x = np.zeros(count, dtype=np.int64)
    donor_y = np.zeros(count, dtype=np.int64)
    distance = np.full(count, np.inf)
    offsets = spiral_offsets(config)
    if count == 0 or offsets.shape[0] == 0:
        return donor_x, donor_y, distance, np.zeros(count, dtype=bool)

    num_rings = offsets.shape[0] // config.angle_count
    rings = offsets[:, 0].astype(np.int64)
    distance_map = np.abs(original[..., :3].astype(np.float64) - reference.as_array()).sum(axis=-1)

    for start in range(0, count, config.batch_size):
        stop = min(start + config.batch_size, count)
        cand_x = _round_half_up(xs[start:stop, None] + offsets[None, :, 1])
        cand_y = _round_half_up(ys[start:stop, None] + offsets[None, :, 2])
        inside = (cand_x >= 0) & (cand_x < width) & (cand_y >= 0) & (cand_y < height)
        safe_x = np.clip(cand_x, 0, width - 1)
        safe_y = np.clip(cand_y, 0, height - 1)
        eligible = inside & (alpha[safe_y, safe_x] < config.donor_threshold)
        dist = np.where(eligible, distance_map[safe_y, safe_x], np.inf)

        ring_best = dist.reshape(dist.shape[0], num_rings, config.angle_count).min(axis=2)
        running = np.minimum.accumulate(ring_best, axis=1)
        hit = running < config.match_threshold
        last_ring = np.where(hit.any(axis=1), hit.argmax(axis=1), num_rings - 1)
        dist = np.where(rings[None, :] <= last_ring[:, None], dist, np.inf)

        choice = dist.argmin(axis=1)
        rows = np.arange(dist.shape[0])
        donor_x[start:stop] = cand_x[rows, choice]
        donor_y[start:stop] = cand_y[rows, choice]
        distance[start:stop] = dist[rows, choice]

    return donor_x, donor_y, distance, np.isfinite(distance)


def synthesize(
    original: np.ndarray,
    working: np.ndarray,
    alpha: np.ndarray,
    bbox: BoundingBox,
    reference: ReferenceColor,
    config: Optional[SynthesisConfig] = None,
) -> DonorStats:
    """Fill every target pixel of ``working`` from a color-corrected donor.

    Donors are read from ``original`` only. Targets without a donor keep
    their current value in ``working``.
    """

    config = config or SynthesisConfig()
    rows, cols = bbox.slices()
    ys, xs = np.nonzero(alpha[rows, cols] > config.target_threshold)
    ys = ys + bbox.min_y
    xs = xs + bbox.min_x
    if xs.size == 0:
        return DonorStats()

    donor_x, donor_y, _, found = search_donors(xs, ys, original, alpha, reference, config)
    donors = original[donor_y[found], donor_x[found], :3].astype(np.float64)
    corrected = donors + (reference.as_array() - donors) * config.correction_factor
    working[ys[found], xs[found], :3] = quantize(corrected)

    stats = DonorStats(filled=int(found.sum()), missing=int((~found).sum()))
    logger.debug("Synthesized %d pixels, %d without donor", stats.filled, stats.missing)
    return stats
