"""
Zip archive extraction for OneRoster bulk exports.

The pipeline itself only ever sees an extracted directory; this module is
the thin collaborator the CLI uses to get one.
"""

from __future__ import annotations

import zipfile
from pathlib import Path

from roster_kernel.exceptions import ArchiveUnreadableError
from roster_kernel.logging_config import get_logger

logger = get_logger("ingestion.archive")


def extract_archive(archive_path: Path, target_dir: Path) -> Path:
    """
    Extract ``archive_path`` into ``target_dir`` and return ``target_dir``.

    Raises:
        ArchiveUnreadableError: archive missing, not a zip, or containing a
            member whose path would land outside ``target_dir``.
    """
    archive_path = Path(archive_path)
    target_dir = Path(target_dir)
    if not archive_path.is_file():
        raise ArchiveUnreadableError(str(archive_path), "file does not exist")

    try:
        with zipfile.ZipFile(archive_path) as zf:
            root = target_dir.resolve()
            for member in zf.namelist():
                dest = (root / member).resolve()
                if root != dest and root not in dest.parents:
                    raise ArchiveUnreadableError(str(archive_path), f"unsafe member path {member!r}")
            target_dir.mkdir(parents=True, exist_ok=True)
            zf.extractall(target_dir)
            members = len(zf.namelist())
    except zipfile.BadZipFile as exc:
        raise ArchiveUnreadableError(str(archive_path), str(exc)) from exc

    logger.info("archive_extracted", extra={"archive": str(archive_path), "members": members})
    return target_dir
