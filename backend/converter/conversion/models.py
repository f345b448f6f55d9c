"""Conversion task and output format models."""
from enum import Enum
from pathlib import Path
from typing import NamedTuple, Union

from converter.errors import UnsupportedFormatError


class TaskStatus(str, Enum):
    CREATED = "created"
    UPLOADING = "uploading"
    CONVERTING = "converting"
    READY = "ready"
    FAILED = "failed"


class OutputFormat(str, Enum):
    PNG = "png"
    JPG = "jpg"
    GIF = "gif"
    BMP = "bmp"
    WEBP = "webp"
    ICO = "ico"
    TIFF = "tiff"

    @property
    def spec(self) -> "FormatSpec":
        return FORMAT_TABLE[self]

    @property
    def extension(self) -> str:
        return self.value


class FormatSpec(NamedTuple):
    """Codec entry for one output format."""

    pil_format: str
    media_type: str
    requires_resize: bool
    # Pixel modes the encoder takes as-is; anything else is converted first
    modes: tuple[str, ...]


FORMAT_TABLE: dict[OutputFormat, FormatSpec] = {
    OutputFormat.PNG: FormatSpec("PNG", "image/png", False, ("1", "L", "LA", "P", "RGB", "RGBA")),
    OutputFormat.JPG: FormatSpec("JPEG", "image/jpeg", False, ("L", "RGB")),
    OutputFormat.GIF: FormatSpec("GIF", "image/gif", False, ("L", "P", "RGB", "RGBA")),
    OutputFormat.BMP: FormatSpec("BMP", "image/bmp", False, ("1", "L", "P", "RGB")),
    OutputFormat.WEBP: FormatSpec("WEBP", "image/webp", False, ("RGB", "RGBA")),
    OutputFormat.ICO: FormatSpec("ICO", "image/vnd.microsoft.icon", True, ("RGB", "RGBA")),
    OutputFormat.TIFF: FormatSpec("TIFF", "image/tiff", False, ("1", "L", "LA", "P", "RGB", "RGBA")),
}

SUPPORTED_FORMATS = [f.value for f in OutputFormat]


def parse_format(value: Union[str, OutputFormat, None]) -> OutputFormat:
    """Map a requested format (case-insensitive, optional leading dot) onto the closed set."""
    if isinstance(value, OutputFormat):
        return value
    name = (value or "").strip().lower().lstrip(".")
    try:
        return OutputFormat(name)
    except ValueError:
        raise UnsupportedFormatError(
            f"Unsupported output format: {value!r} (expected one of {', '.join(SUPPORTED_FORMATS)})"
        ) from None


class Task(NamedTuple):
    """One conversion request. Immutable once the id is allocated."""

    task_id: int
    filename: str
    target_format: OutputFormat


class ReceivedUpload(NamedTuple):
    path: Path
    filename: str
