"""Local texture-synthesis inpainting.

Refills a masked region of an RGBA image from nearby texture: spiral donor
search with reference color correction, constrained diffusion, grain
resynthesis and alpha compositing. Runs entirely on local pixel buffers.
"""

from patchfill.api import inpaint, inpaint_array, inpaint_async
from patchfill.config import (
    DEFAULT_PASSES,
    DiffusionConfig,
    GrainConfig,
    InpaintConfig,
    InpaintOptions,
    MaskConfig,
    ReferenceConfig,
    SynthesisConfig,
)
from patchfill.errors import DecodeError, DimensionMismatch, InpaintError, NoReferenceSample
from patchfill.pipeline import LocalInpaintPipeline
from patchfill.types import (
    BoundingBox,
    DonorMatch,
    DonorStats,
    InpaintResult,
    MaskAnalysis,
    ReferenceColor,
)

__all__ = [
    "inpaint",
    "inpaint_array",
    "inpaint_async",
    "LocalInpaintPipeline",
    "DEFAULT_PASSES",
    "DiffusionConfig",
    "GrainConfig",
    "InpaintConfig",
    "InpaintOptions",
    "MaskConfig",
    "ReferenceConfig",
    "SynthesisConfig",
    "DecodeError",
    "DimensionMismatch",
    "InpaintError",
    "NoReferenceSample",
    "BoundingBox",
    "DonorMatch",
    "DonorStats",
    "InpaintResult",
    "MaskAnalysis",
    "ReferenceColor",
]
