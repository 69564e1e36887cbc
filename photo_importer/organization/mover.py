import errno
import os
import stat
import shutil
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from .. import config
from ..exceptions import (
    DestinationConflictError,
    FileOperationError,
    IntegrityError,
    NonRegularSourceError,
)
from ..scanning.hasher import FileHasher


class PlacementOutcome(Enum):
    COPIED = "copied"
    ALREADY_PRESENT = "already_present"


def partial_path(dest: Path) -> Path:
    return dest.with_name(f"{config.PARTIAL_PREFIX}{dest.name}{config.PARTIAL_SUFFIX}")


class FilePlacer:
    """
    Copies a file into the archive and proves the result.

    An existing destination is never overwritten: if it already holds the
    expected content the placement is a no-op, otherwise it is a conflict.
    This also holds for a destination that appears while the copy runs.
    Either way the destination is re-hashed before success is reported.
    """

    def __init__(self, hasher: Optional[FileHasher] = None):
        self.hasher = hasher or FileHasher()

    def place(self, src: Path, dest: Path, expected_hash: str) -> PlacementOutcome:
        try:
            src_stat = src.stat()
        except OSError as e:
            raise FileOperationError(f"Cannot stat source {src}: {e}") from e
        if not stat.S_ISREG(src_stat.st_mode):
            raise NonRegularSourceError(f"Can not copy non-regular source file {src}")

        if dest.exists():
            outcome = self._check_existing(dest, expected_hash)
        elif self._copy(src, dest, src_stat):
            outcome = PlacementOutcome.COPIED
        else:
            logging.warning(f"Destination appeared while copying: {dest}")
            outcome = self._check_existing(dest, expected_hash)

        self.validate(dest, expected_hash)
        return outcome

    def validate(self, dest: Path, expected_hash: str):
        """Re-reads dest and raises IntegrityError unless it hashes to expected_hash."""
        actual = self.hasher.compute_hash(dest)
        if actual != expected_hash:
            raise IntegrityError(
                f"Hash mismatch after placement at {dest}: expected {expected_hash}, got {actual}"
            )

    def _check_existing(self, dest: Path, expected_hash: str) -> PlacementOutcome:
        if not self.hasher.matches(dest, expected_hash):
            raise DestinationConflictError(
                f"Destination {dest} exists and has different content"
            )
        logging.debug(f"Destination already holds {expected_hash}: {dest}")
        return PlacementOutcome.ALREADY_PRESENT

    def _copy(self, src: Path, dest: Path, src_stat: os.stat_result) -> bool:
        """
        Streams src into a hidden sibling of dest, syncs it, carries over the
        source mtime, then links it into place. A failed copy never leaves a
        file at dest.

        Returns False, leaving dest alone, if dest came into existence in the
        meantime.
        """
        tmp = partial_path(dest)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            with open(src, 'rb') as fsrc, open(tmp, 'wb') as fdst:
                shutil.copyfileobj(fsrc, fdst, config.COPY_CHUNK_SIZE)
                fdst.flush()
                os.fsync(fdst.fileno())
            os.utime(tmp, ns=(src_stat.st_mtime_ns, src_stat.st_mtime_ns))
            placed = _link_into_place(tmp, dest)
            tmp.unlink(missing_ok=True)
            return placed
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise FileOperationError(f"Copy {src} -> {dest} failed: {e}") from e
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise


# link() failures that mean "this filesystem has no hard links"
_NO_HARDLINK_ERRNOS = {errno.EPERM, errno.EXDEV, errno.ENOTSUP, errno.EOPNOTSUPP, errno.EMLINK}


def _link_into_place(tmp: Path, dest: Path) -> bool:
    """
    Publishes tmp under dest without replacing anything already there.
    Falls back to a rename where hard links are unsupported; that path can
    only refuse a dest that exists before the rename.
    """
    try:
        os.link(tmp, dest)
        return True
    except FileExistsError:
        return False
    except OSError as e:
        if e.errno not in _NO_HARDLINK_ERRNOS:
            raise
    if dest.exists():
        return False
    os.replace(tmp, dest)
    return True
