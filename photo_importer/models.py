from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class CandidateFile:
    """
    An image file found during a scan.
    """
    path: Path
    ext: str                # lower-cased, with leading dot
    kind: str               # jpg/png/tiff


@dataclass(frozen=True)
class CaptureIdentity:
    """
    Identifies a logical import unit: capture time plus content hash.
    Two files with equal identities are the same unit, whatever their paths.
    """
    capture_datetime: datetime
    content_hash: str

    @property
    def datetime_key(self) -> str:
        """Fixed-width YYYYMMDDHHMMSS encoding used by the index and file names."""
        dt = self.capture_datetime
        return (f"{dt.year:04d}{dt.month:02d}{dt.day:02d}"
                f"{dt.hour:02d}{dt.minute:02d}{dt.second:02d}")


class ImportStatus(Enum):
    IMPORTED = "imported"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ImportResult:
    """
    Outcome of processing one candidate file.
    """
    source: Path
    status: ImportStatus
    identity: Optional[CaptureIdentity] = None
    destination: Optional[Path] = None
    reason: Optional[str] = None

    already_placed: bool = False     # destination held matching content before this run
    index_committed: bool = False    # a new index record was written for this file
    source_removed: bool = False
    integrity_failure: bool = False  # destination may be corrupt
    warnings: List[str] = field(default_factory=list)


@dataclass
class RunSummary:
    results: List[ImportResult] = field(default_factory=list)
    stopped: bool = False

    def _count(self, status: ImportStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def imported(self) -> int:
        return self._count(ImportStatus.IMPORTED)

    @property
    def skipped(self) -> int:
        return self._count(ImportStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(ImportStatus.FAILED)

    @property
    def total(self) -> int:
        return len(self.results)
