"""Output artifact naming."""
from pathlib import PurePath
from typing import Union

from converter.conversion.models import OutputFormat
from converter.errors import InvalidNameError


def output_name(original_filename: str, task_id: int, target_extension: Union[str, OutputFormat]) -> str:
    """Return ``{stem}_{task_id}.{extension}`` for an uploaded filename.

    Only the final extension is dropped, so ``archive.tar.gz`` keeps ``archive.tar``.
    """
    if isinstance(target_extension, OutputFormat):
        target_extension = target_extension.extension
    # Client filenames may carry Windows separators
    base = PurePath((original_filename or "").replace("\\", "/")).name
    stem = PurePath(base).stem if base else ""
    if not stem or stem in (".", ".."):
        raise InvalidNameError(f"No usable file stem in {original_filename!r}")
    return f"{stem}_{task_id}.{target_extension}"
