"""
Safe single-file move used by every mutating operation.

safe_move never overwrites. Within one filesystem it is a plain rename;
across filesystems it copies to a temporary file next to the destination,
renames that into place and only then removes the source.
"""

import errno
import logging
import os
import shutil
import tempfile
from pathlib import Path

from .errors import DestinationExistsError, MoveError
from .utils import normalize_path

logger = logging.getLogger(__name__)


def _copy_across_devices(source: Path, destination: Path) -> None:
    fd, tmp_name = tempfile.mkstemp(
        dir=destination.parent, prefix=f".{destination.name}.", suffix=".part"
    )
    os.close(fd)
    tmp = Path(tmp_name)
    try:
        shutil.copy2(source, tmp)
        os.replace(tmp, destination)
    except OSError as e:
        try:
            tmp.unlink()
        except FileNotFoundError:
            pass
        raise MoveError(source, destination, str(e)) from e

    try:
        source.unlink()
    except OSError as e:
        raise MoveError(
            source, destination, f"copied, but the source could not be removed: {e}"
        ) from e


def safe_move(source, destination) -> Path:
    """
    Move one file, creating the destination's parent directories.

    Args:
        source: File to move
        destination: Full destination path (not a directory to move into)

    Returns:
        The normalized destination path

    Raises:
        DestinationExistsError: If something already exists at destination
        MoveError: For any other failure; the OSError is chained as __cause__
    """
    source = normalize_path(source)
    destination = normalize_path(destination)

    if os.path.lexists(destination):
        raise DestinationExistsError(source, destination)

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise MoveError(source, destination, str(e)) from e

    try:
        os.rename(source, destination)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise MoveError(source, destination, e.strerror or str(e)) from e
        logger.debug("Cross-device move, copying %s -> %s", source, destination)
        _copy_across_devices(source, destination)

    logger.debug("Moved %s -> %s", source, destination)
    return destination
