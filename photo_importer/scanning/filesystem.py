import os
import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional, Set

from .. import config
from ..models import CandidateFile


def classify(path: Path) -> Optional[str]:
    """Returns the image kind for path, or None if it is not importable."""
    if path.name.startswith("._"):
        # AppleDouble resource forks carry an image extension but no image
        return None
    return config.EXT_TO_KIND.get(path.suffix.lower())


def is_excluded(path: Path, patterns: Iterable[str]) -> bool:
    """True if any non-empty pattern occurs in the path string."""
    text = str(path)
    return any(p and p in text for p in patterns)


class DiskScanner:
    def scan(self,
             root: Path,
             exclude: Iterable[str] = (),
             skip_dirs: Optional[Set[Path]] = None) -> Iterator[CandidateFile]:
        """
        Generator that yields a CandidateFile for every importable image under root.

        Args:
            exclude: Path substrings; matching files are not candidates.
            skip_dirs: Directories that are not descended into (e.g. the archive
                       itself when it lives inside the source tree).
        """
        patterns = tuple(exclude)
        skip_dirs = skip_dirs or set()

        for path in self._iter_files(root, skip_dirs):
            kind = classify(path)
            if kind is None:
                continue
            if is_excluded(path, patterns):
                logging.debug(f"Excluded: {path}")
                continue
            yield CandidateFile(path=path, ext=path.suffix.lower(), kind=kind)

    def _iter_files(self, root: Path, skip_dirs: Set[Path]) -> Iterator[Path]:
        """Depth-first walker using os.scandir for speed."""
        stack = [root]
        while stack:
            current = stack.pop()
            if skip_dirs and any(sd == current or sd in current.parents for sd in skip_dirs):
                logging.debug(f"Skipping directory: {current}")
                continue

            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError:
                logging.warning(f"Cannot read directory: {current}")
                continue

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            files = []
            for e in entries:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_file(follow_symlinks=False):
                    files.append(Path(e.path))

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

            for f in files:
                yield f
