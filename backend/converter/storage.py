"""Artifact lookup for downloads. Read-only."""
import logging
import mimetypes
from pathlib import Path
from typing import Optional

from converter import config as app_config
from converter.conversion.models import OutputFormat
from converter.errors import NotFoundError

logger = logging.getLogger("converter.storage")


def resolve_artifact(name: str, output_dir: Optional[Path] = None) -> Path:
    """Return the stored artifact for name, or raise NotFoundError."""
    root = Path(output_dir or app_config.OUTPUT_DIR).resolve()
    path = (root / name).resolve()
    if path.parent != root:
        logger.warning("Rejected artifact name outside storage root: %r", name)
        raise NotFoundError("File not found")
    if not path.is_file():
        logger.info("File not found: %s", path)
        raise NotFoundError("File not found")
    logger.info("Serving file from path: %s", path)
    return path


def media_type_for(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    try:
        return OutputFormat(ext).spec.media_type
    except ValueError:
        pass
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"
