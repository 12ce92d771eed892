"""Utility helpers for pixel buffer conversion and quantization."""

import numpy as np

from patchfill.errors import DimensionMismatch


def to_uint8(image: np.ndarray) -> np.ndarray:
    """Convert float images in [0, 1] to uint8."""

    image = np.clip(image, 0.0, 1.0)
    return (image * 255).round().astype("uint8")


def quantize(values: np.ndarray) -> np.ndarray:
    """Round to nearest (ties to even) and clamp to the uint8 range.

    This is how every write into a pixel buffer is stored, so intermediate
    float results never leak between phases.
    """

    return np.clip(np.rint(values), 0, 255).astype("uint8")


def as_uint8(image: np.ndarray) -> np.ndarray:
    if image.dtype == np.uint8:
        return image
    if np.issubdtype(image.dtype, np.floating):
        return to_uint8(image)
    if image.dtype == np.bool_:
        return image.astype("uint8") * 255
    return np.clip(image, 0, 255).astype("uint8")


def ensure_rgba(image: np.ndarray) -> np.ndarray:
    """Return an HxWx4 uint8 RGBA view of ``image``.

    Grayscale and RGB inputs gain an opaque alpha channel.
    """

    image = as_uint8(np.asarray(image))
    if image.ndim == 2:
        image = image[..., None]
    if image.ndim != 3:
        raise DimensionMismatch(f"Expected an HxW or HxWxC image, got shape {image.shape}")
    channels = image.shape[-1]
    if channels == 4:
        return image
    if channels == 1:
        image = np.repeat(image, 3, axis=-1)
    elif channels != 3:
        raise DimensionMismatch(f"Unsupported channel count: {channels}")
    alpha = np.full(image.shape[:2] + (1,), 255, dtype="uint8")
    return np.concatenate([image, alpha], axis=-1)
