"""Exceptions raised by the inpainting pipeline."""


class InpaintError(Exception):
    """Base class for every failure of an inpainting call."""


class DecodeError(InpaintError, ValueError):
    """The source image or the mask could not be decoded to pixels."""


class DimensionMismatch(InpaintError, ValueError):
    """Mask and source differ in size, or an array has an unusable shape."""


class NoReferenceSample(InpaintError, RuntimeError):
    """The ring around the masked region holds no unmasked pixel."""

    def __init__(self, message: str = "cannot estimate reference color") -> None:
        super().__init__(message)
