import pytest
import sqlite3
from pathlib import Path
from typing import Optional

from PIL import Image

from photo_importer.database.schema import init_schema
from photo_importer.database.ops import DedupIndex


@pytest.fixture
def conn():
    """Returns an in-memory SQLite connection with the schema initialized."""
    c = sqlite3.connect(":memory:", check_same_thread=False)
    init_schema(c)
    try:
        yield c
    finally:
        c.close()

@pytest.fixture
def index(conn):
    """Returns a DedupIndex attached to the in-memory DB."""
    return DedupIndex(conn)


def _save_image(path: Path, fmt: str, taken: Optional[str], color) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", (16, 16), color)
    if taken is None:
        img.save(path, fmt)
    else:
        exif = Image.Exif()
        exif[306] = taken  # IFD0 DateTime
        img.save(path, fmt, exif=exif)
    return path

@pytest.fixture
def make_jpeg():
    """Writes a small JPEG, optionally with an EXIF 'YYYY:MM:DD HH:MM:SS' date."""
    def _make(path: Path, taken: Optional[str] = None, color=(200, 30, 30)) -> Path:
        return _save_image(path, "JPEG", taken, color)
    return _make

@pytest.fixture
def make_png():
    def _make(path: Path, taken: Optional[str] = None, color=(30, 30, 200)) -> Path:
        return _save_image(path, "PNG", taken, color)
    return _make
