"""Resize and pixel-mode helpers applied before encoding."""
import logging

from PIL import Image

from converter.conversion.models import FormatSpec

logger = logging.getLogger("converter.resize")

_ALPHA_MODES = ("RGBA", "LA", "PA", "La", "RGBa")


def fit_within(img: Image.Image, max_width: int, max_height: int) -> Image.Image:
    """
    Scale image down to fit within (max_width, max_height), maintaining aspect ratio.
    Never upscales; returns a copy when the image already fits.
    """
    w, h = img.size
    if w <= max_width and h <= max_height:
        return img.copy()
    out = img.copy()
    out.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)
    logger.debug("Resized %sx%s -> %sx%s", w, h, out.width, out.height)
    return out


def has_alpha(img: Image.Image) -> bool:
    return img.mode in _ALPHA_MODES or "transparency" in img.info


def prepare_for_codec(img: Image.Image, spec: FormatSpec) -> Image.Image:
    """Convert pixel mode to one the codec accepts. Keeps transparency when the codec can store it."""
    if img.mode in spec.modes:
        return img
    target = "RGBA" if has_alpha(img) and "RGBA" in spec.modes else "RGB"
    logger.debug("Converting mode %s -> %s for %s", img.mode, target, spec.pil_format)
    return img.convert(target)
