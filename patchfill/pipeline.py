"""End-to-end local inpainting pipeline."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from patchfill.config import InpaintConfig
from patchfill.diffusion import diffuse, iterations_for_passes
from patchfill.grain import add_grain, composite
from patchfill.mask import analyze_mask, validate_inputs
from patchfill.reference import estimate_reference
from patchfill.synthesis import synthesize
from patchfill.types import InpaintResult

logger = logging.getLogger(__name__)


class LocalInpaintPipeline:
    """Orchestrates the five reconstruction phases over one image.

    Flow:
        1) Mask analysis: alpha map and bounding box. An empty mask returns
           the source unchanged.
        2) Reference estimation: mean color of the unmasked ring around the
           bounding box.
        3) Donor synthesis: spiral search and color correction, written into
           the working buffer.
        4) Diffusion: seam smoothing restricted to masked pixels.
        5) Grain and compositing: photographic noise, then alpha blending of
           the working buffer over the original.

    Buffers: ``original`` is a read-only snapshot used for every lookup,
    ``working`` is mutated by phases 3 to 5, and the output is a fresh array
    produced by compositing. None of them outlives the call.
    """

    def __init__(
        self,
        config: Optional[InpaintConfig] = None,
        rng: Optional[np.random.Generator] = None,
        keep_stages: bool = False,
    ) -> None:
        self.config = (config or InpaintConfig()).validate()
        self.rng = rng
        self.keep_stages = keep_stages

    def _generator(self, seed: Optional[int]) -> np.random.Generator:
        if seed is not None:
            return np.random.default_rng(seed)
        if self.rng is not None:
            return self.rng
        return np.random.default_rng(self.config.grain.seed)

    def __call__(
        self,
        image: np.ndarray,
        mask: np.ndarray,
        passes: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> InpaintResult:
        image, mask_plane = validate_inputs(image, mask)
        analysis = analyze_mask(mask_plane, self.config.mask.threshold)
        if analysis.is_empty:
            return InpaintResult(image=image.copy(), analysis=analysis)

        bbox = analysis.bbox
        alpha = analysis.alpha
        original = image.copy()
        original.setflags(write=False)
        working = original.copy()

        reference = estimate_reference(original, alpha, bbox, self.config.reference)

        donors = synthesize(original, working, alpha, bbox, reference, self.config.synthesis)
        if donors.missing:
            logger.warning(
                "%d of %d masked pixels found no donor within %d px and keep their original color",
                donors.missing,
                donors.total,
                self.config.synthesis.search_radius,
            )
        stages = {}
        if self.keep_stages:
            stages["synthesis"] = working.copy()

        iterations = iterations_for_passes(passes, self.config.diffusion)
        diffuse(working, alpha, bbox, iterations, self.config.diffusion)
        if self.keep_stages:
            stages["diffusion"] = working.copy()

        add_grain(working, alpha, self._generator(seed), self.config.grain)
        output = composite(original, working, alpha)

        return InpaintResult(
            image=output,
            analysis=analysis,
            reference=reference,
            iterations=iterations,
            donors=donors,
            stages=stages,
        )
