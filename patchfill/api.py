"""Encoded-image entry points used by the editor.

``inpaint`` and ``inpaint_async`` take the source and the mask as encoded
rasters (bytes, data URLs or base64) and return a PNG of the same size.
Every failure surfaces as one exception for the whole call.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Union

import numpy as np

from patchfill.config import InpaintConfig, InpaintOptions
from patchfill.pipeline import LocalInpaintPipeline
from patchfill.types import InpaintResult
from patchfill.utils.codec import EncodedImage, decode_image, encode_png

logger = logging.getLogger(__name__)

OptionsLike = Union[InpaintOptions, dict, None]


def _run(
    image: np.ndarray,
    mask: np.ndarray,
    options: OptionsLike,
    config: Optional[InpaintConfig],
    rng: Optional[np.random.Generator] = None,
) -> InpaintResult:
    options = InpaintOptions.coerce(options)
    pipeline = LocalInpaintPipeline(config, rng=rng)
    return pipeline(image, mask, passes=options.passes, seed=options.seed)


def _encode_result(source: EncodedImage, result: InpaintResult) -> Any:
    if result.analysis.is_empty:
        return source
    return encode_png(result.image, data_url=isinstance(source, str))


def inpaint_array(
    image: np.ndarray,
    mask: np.ndarray,
    options: OptionsLike = None,
    config: Optional[InpaintConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Inpaint decoded pixel arrays and return the RGBA result."""

    return _run(image, mask, options, config, rng).image


def inpaint(
    source: EncodedImage,
    mask: EncodedImage,
    options: OptionsLike = None,
    config: Optional[InpaintConfig] = None,
) -> EncodedImage:
    """Inpaint an encoded image.

    Returns a PNG data URL when ``source`` is a string, PNG bytes otherwise.
    An empty mask returns ``source`` itself.
    """

    image = decode_image(source)
    mask_pixels = decode_image(mask)
    return _encode_result(source, _run(image, mask_pixels, options, config))


async def inpaint_async(
    source: EncodedImage,
    mask: EncodedImage,
    options: OptionsLike = None,
    config: Optional[InpaintConfig] = None,
) -> EncodedImage:
    """Awaitable ``inpaint``.

    Both inputs decode concurrently; processing starts once both are ready
    and runs in a worker thread. A started call cannot be cancelled midway.
    """

    image, mask_pixels = await asyncio.gather(
        asyncio.to_thread(decode_image, source),
        asyncio.to_thread(decode_image, mask),
    )
    result = await asyncio.to_thread(_run, image, mask_pixels, options, config)
    logger.debug("Async inpaint finished with %d diffusion iterations", result.iterations)
    return await asyncio.to_thread(_encode_result, source, result)
