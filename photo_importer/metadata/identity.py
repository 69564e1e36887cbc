import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..exceptions import FileHashError, IdentityExtractionError
from ..models import CandidateFile, CaptureIdentity
from ..scanning.hasher import FileHasher
from .extract import MetadataExtractor


def mtime_datetime(path: Path) -> datetime:
    """Last-modified time as a local, second-precision datetime."""
    return datetime.fromtimestamp(path.stat().st_mtime).replace(microsecond=0)


class IdentityExtractor:
    def __init__(self,
                 hasher: Optional[FileHasher] = None,
                 metadata: Optional[MetadataExtractor] = None):
        self.hasher = hasher or FileHasher()
        self.metadata = metadata or MetadataExtractor()

    def extract(self, candidate: CandidateFile) -> CaptureIdentity:
        """
        Derives the capture identity of a candidate.

        Raises IdentityExtractionError only if the file itself cannot be read;
        unusable metadata falls back to the file's modification time.
        """
        try:
            content_hash = self.hasher.compute_hash(candidate.path)
        except FileHashError as e:
            raise IdentityExtractionError(str(e)) from e

        capture_dt = self.metadata.try_extract_capture_time(candidate.path, candidate.kind)
        if capture_dt is None:
            try:
                capture_dt = mtime_datetime(candidate.path)
            except OSError as e:
                raise IdentityExtractionError(f"Cannot stat {candidate.path}: {e}") from e
            logging.debug(f"{candidate.path}: no capture time, using mtime {capture_dt}")

        return CaptureIdentity(capture_datetime=capture_dt.replace(microsecond=0),
                               content_hash=content_hash)
