import argparse
import logging
import os
import sys
from typing import List, Optional

import cv2
import numpy as np

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from patchfill.config import (
    DEFAULT_PASSES,
    DiffusionConfig,
    GrainConfig,
    InpaintConfig,
    ReferenceConfig,
    SynthesisConfig,
)
from patchfill.mask import luminance_to_alpha
from patchfill.pipeline import LocalInpaintPipeline


def _load_rgba(path: str) -> np.ndarray:
    image = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise FileNotFoundError(f"Cannot read image: {path}")
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    if image.shape[-1] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)


def _save_rgba(path: str, image: np.ndarray) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    cv2.imwrite(path, cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA))


def _save_stages(outdir: str, alpha: np.ndarray, stages: dict) -> None:
    os.makedirs(outdir, exist_ok=True)
    cv2.imwrite(os.path.join(outdir, "alpha_map.png"), np.clip(np.rint(alpha * 255), 0, 255).astype("uint8"))
    for name, buffer in stages.items():
        _save_rgba(os.path.join(outdir, f"working_{name}.png"), buffer)


def _build_config(args: argparse.Namespace) -> InpaintConfig:
    return InpaintConfig(
        reference=ReferenceConfig(ring_size=args.ring_size),
        synthesis=SynthesisConfig(
            search_radius=args.search_radius,
            match_threshold=args.match_threshold,
            correction_factor=args.correction_factor,
        ),
        diffusion=DiffusionConfig(mix=args.mix),
        grain=GrainConfig(seed=args.seed),
    )


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Local patch-based inpainting.")
    parser.add_argument("--image", required=True, help="Source image path")
    parser.add_argument("--mask", required=True, help="Mask image path")
    parser.add_argument("--out", default="outputs/inpainted.png", help="Output image path")
    parser.add_argument(
        "--mask-mode",
        default="alpha",
        choices=["alpha", "luma"],
        help="Read coverage from the mask alpha channel or from its brightness",
    )
    parser.add_argument("--passes", type=int, default=DEFAULT_PASSES, help="Quality knob (passes / 4 iterations)")
    parser.add_argument("--seed", type=int, default=None, help="Grain seed")
    parser.add_argument("--ring-size", type=int, default=15)
    parser.add_argument("--search-radius", type=int, default=100)
    parser.add_argument("--match-threshold", type=float, default=15.0)
    parser.add_argument("--correction-factor", type=float, default=0.85)
    parser.add_argument("--mix", type=float, default=0.08)
    parser.add_argument("--debug-dir", default=None, help="Directory for alpha map and working buffers")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    image = _load_rgba(args.image)
    mask = _load_rgba(args.mask)
    if args.mask_mode == "luma":
        mask = luminance_to_alpha(mask)

    pipeline = LocalInpaintPipeline(_build_config(args), keep_stages=args.debug_dir is not None)
    result = pipeline(image, mask, passes=args.passes)
    _save_rgba(args.out, result.image)
    if args.debug_dir:
        _save_stages(args.debug_dir, result.analysis.alpha, result.stages)
    if result.analysis.is_empty:
        print(f"mask is empty, source copied to {args.out}")
    else:
        print(f"inpainted image saved to {args.out}")


if __name__ == "__main__":
    main()
