import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed, wait
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from tqdm import tqdm

from .config import ImportConfig
from .database.db import DBManager
from .database.ops import DedupIndex
from .exceptions import IntegrityError, PhotoImporterError
from .metadata.identity import IdentityExtractor
from .models import CandidateFile, ImportResult, ImportStatus, RunSummary
from .organization.mover import FilePlacer, PlacementOutcome
from .organization.rules import resolve_destination
from .scanning.filesystem import DiskScanner
from . import reporting

ResultCallback = Callable[[ImportResult], None]


class KeyedLocks:
    """
    One lock per key, created on demand and dropped when nobody holds it.
    Serializes work on the same capture identity across worker threads.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Tuple[str, str], list] = {}  # key -> [lock, holders]

    @contextmanager
    def hold(self, key: Tuple[str, str]) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        entry[0].acquire()
        try:
            yield
        finally:
            entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


class ImportOrchestrator:
    def __init__(self,
                 index: DedupIndex,
                 config: ImportConfig,
                 extractor: Optional[IdentityExtractor] = None,
                 placer: Optional[FilePlacer] = None,
                 scanner: Optional[DiskScanner] = None):
        self.index = index
        self.config = config
        self.extractor = extractor or IdentityExtractor()
        self.placer = placer or FilePlacer()
        self.scanner = scanner or DiskScanner()
        self._identity_locks = KeyedLocks()
        self._stop = threading.Event()

    def request_stop(self):
        """Stops the run after the files currently in flight."""
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def collect_candidates(self) -> List[CandidateFile]:
        src_root = self.config.source_root
        archive_root = self.config.archive_root
        skip_dirs = set()
        # Never re-import the archive when it lives inside the source tree
        if archive_root == src_root or src_root in archive_root.parents:
            skip_dirs.add(archive_root)
        return list(self.scanner.scan(src_root, self.config.exclude, skip_dirs))

    def import_all(self, on_result: Optional[ResultCallback] = reporting.log_result) -> RunSummary:
        """
        Imports every candidate under the source root.

        Each file is handled independently; one failure never stops the run.
        Results are collected into a RunSummary and, if on_result is given,
        handed to it as each file finishes.
        """
        src_root = self.config.source_root
        if not src_root.is_dir():
            raise FileNotFoundError(f"Source path {src_root} does not exist.")

        logging.info(f"Scanning {src_root}...")
        candidates = self.collect_candidates()
        logging.info(f"Found {len(candidates)} candidate files.")

        summary = RunSummary()
        if not candidates:
            return summary

        workers = self.config.max_workers
        progress = tqdm(total=len(candidates), desc="Importing", disable=not self.config.progress)

        def record(result: ImportResult):
            summary.results.append(result)
            progress.update(1)
            if on_result:
                on_result(result)

        try:
            if workers <= 1:
                self._run_sequential(candidates, record)
            else:
                self._run_parallel(candidates, workers, record)
        finally:
            progress.close()

        summary.stopped = self.stop_requested
        return summary

    def _interrupted(self):
        logging.warning("Interrupted; finishing files in progress.")
        self.request_stop()

    def _run_sequential(self, candidates: List[CandidateFile], record: ResultCallback):
        try:
            for candidate in candidates:
                if self.stop_requested:
                    return
                record(self._process_guarded(candidate))
        except KeyboardInterrupt:
            self._interrupted()

    def _run_parallel(self, candidates: List[CandidateFile], workers: int, record: ResultCallback):
        logging.info(f"Parallel import: {workers} workers")
        reported = set()
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._process_unless_stopped, c) for c in candidates]
            try:
                for future in as_completed(futures):
                    reported.add(future)
                    result = future.result()
                    if result is not None:
                        record(result)
            except KeyboardInterrupt:
                self._interrupted()
                # Unstarted files are dropped; running ones finish and are still reported
                for future in futures:
                    future.cancel()
                wait(futures)
                for future in futures:
                    if future in reported or future.cancelled():
                        continue
                    result = future.result()
                    if result is not None:
                        record(result)

    def _process_unless_stopped(self, candidate: CandidateFile) -> Optional[ImportResult]:
        if self.stop_requested:
            return None
        return self._process_guarded(candidate)

    def _process_guarded(self, candidate: CandidateFile) -> ImportResult:
        """process_file, with unexpected errors confined to the one file."""
        try:
            return self.process_file(candidate)
        except Exception as e:
            logging.exception(f"Unexpected error importing {candidate.path}")
            return ImportResult(candidate.path, ImportStatus.FAILED, reason=f"Unexpected error: {e}")

    def process_file(self, candidate: CandidateFile) -> ImportResult:
        """
        Runs one candidate through identify -> check index -> place ->
        validate -> commit -> optional source removal.
        """
        src = candidate.path
        logging.debug(f"Processing {src}")

        try:
            identity = self.extractor.extract(candidate)
        except PhotoImporterError as e:
            return ImportResult(src, ImportStatus.FAILED, reason=str(e))

        key = (identity.datetime_key, identity.content_hash)
        dest = resolve_destination(identity, candidate.ext, self.config.archive_root)

        with self._identity_locks.hold(key):
            processed = self.index.contains(*key)
            if processed and not self.config.force:
                return ImportResult(src, ImportStatus.SKIPPED, identity=identity,
                                    destination=dest, reason="Already processed")

            try:
                outcome = self.placer.place(src, dest, identity.content_hash)
            except IntegrityError as e:
                return ImportResult(src, ImportStatus.FAILED, identity=identity,
                                    destination=dest, reason=str(e), integrity_failure=True)
            except PhotoImporterError as e:
                return ImportResult(src, ImportStatus.FAILED, identity=identity,
                                    destination=dest, reason=str(e))

            result = ImportResult(src, ImportStatus.IMPORTED, identity=identity, destination=dest,
                                  already_placed=outcome is PlacementOutcome.ALREADY_PRESENT)
            if not processed:
                result.index_committed = self.index.insert(*key)

        if self.config.delete_source:
            try:
                src.unlink()
                result.source_removed = True
            except OSError as e:
                result.warnings.append(f"Delete attempt failed: {e}")

        return result


class PhotoImporterApp:
    def __init__(self, config: ImportConfig):
        self.config = config
        self.db_manager = DBManager(config.db_path)

    def run(self, on_result: Optional[ResultCallback] = reporting.log_result) -> RunSummary:
        """
        Opens the index at config.db_path and imports config.source_root into config.archive_root.
        Raises IndexUnavailableError if the index cannot be opened.
        """
        with self.db_manager as conn:
            index = DedupIndex(conn, self.db_manager.write_lock)
            orchestrator = ImportOrchestrator(index, self.config)
            summary = orchestrator.import_all(on_result=on_result)
            logging.info(f"Index now holds {index.count()} records.")
        return summary
