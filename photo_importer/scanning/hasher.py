import hashlib
from pathlib import Path

from .. import config
from ..exceptions import FileHashError


class FileHasher:
    """
    Content fingerprinting for import identities and copy validation.

    MD5 gives the 128-bit digest used in index keys and archive file names.
    It is an identity check against accidental change, not a security boundary.
    """

    def compute_hash(self, path: Path) -> str:
        """Streams the whole file through MD5 and returns the hex digest."""
        h = hashlib.md5()
        try:
            with open(path, 'rb') as f:
                while chunk := f.read(config.HASH_CHUNK_SIZE):
                    h.update(chunk)
        except OSError as e:
            raise FileHashError(f"Cannot hash {path}: {e}") from e
        return h.hexdigest()

    def matches(self, path: Path, expected_hash: str) -> bool:
        return self.compute_hash(path) == expected_hash
