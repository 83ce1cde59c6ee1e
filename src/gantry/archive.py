"""Stream a directory tree into a gzip-compressed tar build context."""

import logging
import os
import stat
import tarfile
from typing import BinaryIO

from gantry.errors import ArchiveFailed, SourceNotFound

log = logging.getLogger(__name__)


class _MultiWriter:
    """Duplicate every write to all wrapped sinks."""

    def __init__(self, writers: tuple[BinaryIO, ...]) -> None:
        self._writers = writers

    def write(self, data: bytes) -> int:
        for writer in self._writers:
            writer.write(data)
        return len(data)


def archive_name(path: str, root: str) -> str:
    """Return the archive-relative name for *path* under *root*.

    The root prefix is removed and any leading separator stripped, so
    extracting the archive anywhere reproduces the tree relative to root.
    """
    name = path.removeprefix(root).lstrip(os.sep)
    if os.altsep:
        name = name.lstrip(os.altsep).replace(os.altsep, "/")
    return name.replace(os.sep, "/")


def _check_source(src: str) -> None:
    try:
        st = os.stat(src)
    except OSError as e:
        raise SourceNotFound(f"Unable to archive {src}: {e.strerror or e}") from e
    if not stat.S_ISDIR(st.st_mode):
        raise SourceNotFound(f"Unable to archive {src}: not a directory")
    if not os.access(src, os.R_OK | os.X_OK):
        raise SourceNotFound(f"Unable to archive {src}: permission denied")


def _raise_walk_error(error: OSError) -> None:
    raise error


def _add_entry(tar: tarfile.TarFile, path: str, name: str) -> bool:
    """Write one header (and content for regular files). Return False if skipped."""
    info = tar.gettarinfo(path, arcname=name)
    if info is None:
        # Sockets and other types tar cannot represent.
        log.debug("skipping unsupported file type: %s", path)
        return False
    if info.isreg():
        with open(path, "rb") as f:
            tar.addfile(info, f)
    else:
        tar.addfile(info)
    return True


def tar_directory(src: str | os.PathLike[str], *writers: BinaryIO) -> int:
    """Write a gzip tar of every file and directory under *src* to *writers*.

    Directories precede their children. Symlinks and special files are
    stored as headers only. Returns the number of entries written.

    Raises SourceNotFound when *src* is missing or unreadable, and
    ArchiveFailed for any error during the walk. Output written before an
    ArchiveFailed is incomplete and must be discarded.
    """
    root = os.path.abspath(os.fspath(src))
    _check_source(root)

    count = 0
    try:
        with tarfile.open(fileobj=_MultiWriter(writers), mode="w|gz") as tar:
            for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
                dirnames.sort()
                if dirpath != root:
                    _add_entry(tar, dirpath, archive_name(dirpath, root))
                    count += 1

                # Symlinked directories are listed in dirnames but never walked.
                leaves = sorted(
                    filenames + [d for d in dirnames if os.path.islink(os.path.join(dirpath, d))]
                )
                for leaf in leaves:
                    path = os.path.join(dirpath, leaf)
                    if _add_entry(tar, path, archive_name(path, root)):
                        count += 1
    except (OSError, tarfile.TarError) as e:
        raise ArchiveFailed(f"Unable to archive {root}: {e}") from e

    log.debug("archived %d entries from %s", count, root)
    return count
