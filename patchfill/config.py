"""Configuration dataclasses for the local inpainting pipeline."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

DEFAULT_PASSES = 1200


@dataclass
class MaskConfig:
    """Settings for mask analysis.

    Attributes:
        threshold: Alpha above which a pixel counts as masked. Masked pixels
            define the bounding box of the region to reconstruct.
    """

    threshold: float = 0.05


@dataclass
class ReferenceConfig:
    """Settings for local reference color estimation.

    Attributes:
        ring_size: Padding in pixels added on every side of the bounding box
            to form the sampling region.
        threshold: Only pixels whose alpha is below this value are sampled.
    """

    ring_size: int = 15
    threshold: float = 0.1


@dataclass
class SynthesisConfig:
    """Settings for the spiral donor search.

    Attributes:
        search_radius: Exclusive upper bound of the search radius in pixels.
        radius_step: Distance between two consecutive search rings.
        angle_count: Number of evenly spaced samples on each ring.
        match_threshold: The search stops after the first ring whose best
            L1 distance to the reference is below this value.
        correction_factor: Fraction of the reference/donor offset applied to
            the donor color.
        donor_threshold: Donors must have alpha below this value.
        target_threshold: Pixels with alpha above this value are filled.
        batch_size: Number of target pixels searched per vectorized batch.
    """

    search_radius: int = 100
    radius_step: int = 8
    angle_count: int = 8
    match_threshold: float = 15.0
    correction_factor: float = 0.85
    donor_threshold: float = 0.05
    target_threshold: float = 0.1
    batch_size: int = 4096


@dataclass
class DiffusionConfig:
    """Settings for constrained diffusion.

    Attributes:
        mix: Weight of the 4-neighbour mean in each blending step.
        passes_per_iteration: Caller passes are divided by this value to
            obtain the iteration count.
        min_iterations: Lower bound on the iteration count.
        max_iterations: Upper bound on the iteration count.
        threshold: Pixels with alpha above this value are diffused.
    """

    mix: float = 0.08
    passes_per_iteration: int = 4
    min_iterations: int = 10
    max_iterations: int = 400
    threshold: float = 0.05


@dataclass
class GrainConfig:
    """Settings for grain resynthesis.

    Attributes:
        dark_luma: Luma below which the dark amplitude is used.
        dark_amplitude: Peak-to-peak noise amplitude for dark pixels.
        light_amplitude: Peak-to-peak noise amplitude for other pixels.
        threshold: Pixels with alpha above this value receive grain.
        seed: Optional seed for the grain generator. ``None`` draws fresh
            entropy on every call.
    """

    dark_luma: float = 50.0
    dark_amplitude: float = 4.0
    light_amplitude: float = 2.0
    threshold: float = 0.1
    seed: Optional[int] = None


@dataclass
class InpaintConfig:
    """Top-level configuration for the local inpainting pipeline."""

    mask: MaskConfig = field(default_factory=MaskConfig)
    reference: ReferenceConfig = field(default_factory=ReferenceConfig)
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    diffusion: DiffusionConfig = field(default_factory=DiffusionConfig)
    grain: GrainConfig = field(default_factory=GrainConfig)

    def validate(self) -> "InpaintConfig":
        thresholds = {
            "mask.threshold": self.mask.threshold,
            "reference.threshold": self.reference.threshold,
            "synthesis.donor_threshold": self.synthesis.donor_threshold,
            "synthesis.target_threshold": self.synthesis.target_threshold,
            "diffusion.threshold": self.diffusion.threshold,
            "grain.threshold": self.grain.threshold,
        }
        for name, value in thresholds.items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.reference.ring_size < 0:
            raise ValueError("reference.ring_size must be non-negative.")
        if self.synthesis.search_radius <= 0 or self.synthesis.radius_step <= 0:
            raise ValueError("synthesis.search_radius and radius_step must be positive.")
        if self.synthesis.angle_count <= 0:
            raise ValueError("synthesis.angle_count must be positive.")
        if self.synthesis.batch_size <= 0:
            raise ValueError("synthesis.batch_size must be positive.")
        if not 0.0 <= self.diffusion.mix <= 1.0:
            raise ValueError(f"diffusion.mix must be within [0, 1], got {self.diffusion.mix}")
        if self.diffusion.passes_per_iteration <= 0:
            raise ValueError("diffusion.passes_per_iteration must be positive.")
        if not 0 <= self.diffusion.min_iterations <= self.diffusion.max_iterations:
            raise ValueError("diffusion iteration bounds must satisfy 0 <= min <= max.")
        return self


@dataclass
class InpaintOptions:
    """Caller-facing options of a single inpainting call.

    Attributes:
        passes: Quality knob. It is not the diffusion iteration count: the
            pipeline divides it by ``DiffusionConfig.passes_per_iteration``
            and clamps the result. Falsy values fall back to the default.
        seed: Optional grain seed overriding ``GrainConfig.seed``.
    """

    passes: Optional[int] = DEFAULT_PASSES
    seed: Optional[int] = None

    @classmethod
    def coerce(cls, options: Any) -> "InpaintOptions":
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if isinstance(options, Mapping):
            unknown = set(options) - {"passes", "seed"}
            if unknown:
                raise ValueError(f"Unknown inpaint options: {sorted(unknown)}")
            return cls(**dict(options))
        raise TypeError(f"Unsupported options type: {type(options).__name__}")
