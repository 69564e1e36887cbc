"""
Configuration constants for the photo importer.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

# --- File Type Definitions ---
JPEG_EXTS = {'.jpg', '.jpeg', '.jpe'}
PNG_EXTS = {'.png'}
TIFF_EXTS = {'.tif', '.tiff'}

# Extension to Kind Mapping
# Anything not listed here is not an import candidate
EXT_TO_KIND = {}
for ext in JPEG_EXTS: EXT_TO_KIND[ext] = 'jpg'
for ext in PNG_EXTS: EXT_TO_KIND[ext] = 'png'
for ext in TIFF_EXTS: EXT_TO_KIND[ext] = 'tiff'

# Kinds whose embedded EXIF block is read with exifread.
# PNG is handled separately through Pillow's eXIf support.
EXIF_KINDS = {'jpg', 'tiff'}

# --- Metadata Parsing ---
DATE_TAGS = [
    'EXIF DateTimeOriginal',
    'EXIF DateTimeDigitized',
    'Image DateTime',
]

# Numeric EXIF tags as exposed by Pillow's Image.getexif()
EXIF_IFD_POINTER = 0x8769
PNG_DATE_TAGS = [
    (EXIF_IFD_POINTER, 36867),  # DateTimeOriginal
    (EXIF_IFD_POINTER, 36868),  # DateTimeDigitized
    (None, 306),                # DateTime (IFD0)
]

# --- Hashing & Copying ---
HASH_CHUNK_SIZE = 1024 * 1024  # 1 MB chunks for reading
COPY_CHUNK_SIZE = 1024 * 1024

# In-progress copies live next to their destination under this name
PARTIAL_PREFIX = "."
PARTIAL_SUFFIX = ".partial"

# --- Index & Logging ---
DEFAULT_DB_PATH = Path.home() / ".photo_importer" / "photo_importer.sqlite3"
LOG_FILE_NAME = "photo_importer.log"

# --- Concurrency ---
DEFAULT_WORKERS = 1


@dataclass(frozen=True)
class ImportConfig:
    """
    Settings for one import run. Built once by the CLI and handed to the
    orchestrator explicitly.
    """
    source_root: Path
    archive_root: Path
    db_path: Path = DEFAULT_DB_PATH
    delete_source: bool = False
    force: bool = False
    exclude: Tuple[str, ...] = ()
    max_workers: int = DEFAULT_WORKERS
    progress: bool = True
