"""Image conversion engine: decode, icon resize, encode, validate."""
import logging
import time
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from converter import config as app_config
from converter.conversion.models import OutputFormat, parse_format
from converter.conversion.resize import fit_within, prepare_for_codec
from converter.errors import DecodeError, EncodeError, ValidationError

logger = logging.getLogger("converter.service")


class ConversionEngine:
    """Converts one image file into one of the supported output formats."""

    def __init__(self, icon_max_size: Optional[int] = None, quality: Optional[int] = None):
        self.icon_max_size = icon_max_size or app_config.ICON_MAX_SIZE
        self.quality = quality or app_config.DEFAULT_QUALITY
        logger.info("ConversionEngine initialized (icon_max_size=%s, quality=%s)", self.icon_max_size, self.quality)

    def convert(
        self,
        input_path: Union[str, Path],
        target_format: Union[str, OutputFormat],
        output_path: Union[str, Path],
    ) -> None:
        """Convert input_path to target_format at output_path.

        The format is checked before any file is opened. Raises DecodeError, EncodeError
        or ValidationError with the underlying cause; a partially written output is left
        in place.
        """
        fmt = parse_format(target_format)
        src, dest = Path(input_path), Path(output_path)
        logger.info("Converting %s -> %s", src.name, fmt.value)

        img = self._decode(src)
        if fmt.spec.requires_resize:
            img = fit_within(img, self.icon_max_size, self.icon_max_size)
        self._encode(img, fmt, dest)
        self._validate(dest)
        logger.info("Converted %s -> %s", src.name, dest.name)

    @staticmethod
    def _decode(path: Path) -> Image.Image:
        try:
            with Image.open(path) as img:
                img.load()
                return img.copy()
        except Exception as e:
            logger.error("Failed to decode image %s: %s", path, e)
            raise DecodeError("Failed to decode image", e) from e

    def _save_options(self, fmt: OutputFormat, img: Image.Image) -> dict:
        if fmt == OutputFormat.JPG:
            return {"quality": self.quality, "optimize": True}
        if fmt == OutputFormat.WEBP:
            return {"quality": self.quality}
        if fmt == OutputFormat.ICO:
            # Single frame at the fitted size; Pillow's default size ladder would drop non-square sizes
            return {"sizes": [img.size]}
        return {}

    def _encode(self, img: Image.Image, fmt: OutputFormat, dest: Path) -> None:
        spec = fmt.spec
        try:
            out_img = prepare_for_codec(img, spec)
            out_img.save(str(dest), format=spec.pil_format, **self._save_options(fmt, out_img))
        except Exception as e:
            logger.error("Failed to save output image %s: %s", dest, e)
            raise EncodeError("Image conversion failed", e) from e

    @staticmethod
    def _validate(path: Path) -> None:
        try:
            with Image.open(path) as img:
                img.load()
                logger.debug("Validated %s (%s %sx%s)", path.name, img.format, img.width, img.height)
        except Exception as e:
            logger.error("Failed to reopen and validate output image %s: %s", path, e)
            raise ValidationError("Failed to reopen output image", e) from e

    def cleanup_upload(self, path: Path) -> None:
        """Remove uploaded file after processing."""
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove upload %s: %s", path, e)

    def purge_expired_artifacts(self, max_age_seconds: int, output_dir: Optional[Path] = None) -> int:
        """Delete artifacts older than max_age_seconds. Returns how many were removed."""
        root = Path(output_dir or app_config.OUTPUT_DIR)
        if max_age_seconds <= 0 or not root.is_dir():
            return 0
        cutoff = time.time() - max_age_seconds
        removed = 0
        for f in root.iterdir():
            try:
                if f.is_file() and f.stat().st_mtime < cutoff:
                    f.unlink()
                    removed += 1
            except OSError as e:
                logger.warning("Could not remove expired artifact %s: %s", f, e)
        if removed:
            logger.info("Purged %s expired artifact(s) from %s", removed, root)
        return removed


# Singleton
_conversion_engine: Optional[ConversionEngine] = None


def get_conversion_engine() -> ConversionEngine:
    global _conversion_engine
    if _conversion_engine is None:
        _conversion_engine = ConversionEngine()
    return _conversion_engine
