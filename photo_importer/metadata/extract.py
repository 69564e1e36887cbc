import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import exifread
from PIL import Image

from .. import config


class MetadataExtractor:
    """
    Reads the embedded capture time of an image, if it has a usable one.

    Strategies:
      - JPEG / TIFF: 'exifread' (fast, Python-native).
      - PNG: Pillow's eXIf chunk support.

    Nothing here raises for bad metadata. A missing, corrupt or unparseable
    date is reported as None and the caller decides on the fallback.
    """

    def try_extract_capture_time(self, path: Path, kind: str) -> Optional[datetime]:
        if kind in config.EXIF_KINDS:
            return self._from_exifread(path)
        if kind == 'png':
            return self._from_pillow(path)
        return None

    def _from_exifread(self, path: Path) -> Optional[datetime]:
        try:
            with path.open('rb') as f:
                # details=False speeds up processing significantly
                tags = exifread.process_file(f, details=False)
        except Exception as e:
            logging.debug(f"ExifRead failed for {path}: {e}")
            return None

        for tag in config.DATE_TAGS:
            if tag in tags:
                dt = parse_exif_date(str(tags[tag]))
                if dt:
                    logging.debug(f"{path}: {tag} = {dt}")
                    return dt
        return None

    def _from_pillow(self, path: Path) -> Optional[datetime]:
        try:
            with Image.open(path) as img:
                exif = img.getexif()
                values = []
                for ifd, tag in config.PNG_DATE_TAGS:
                    source = exif.get_ifd(ifd) if ifd is not None else exif
                    values.append(source.get(tag))
        except Exception as e:
            logging.debug(f"Pillow could not read EXIF from {path}: {e}")
            return None

        for value in values:
            if value:
                dt = parse_exif_date(str(value))
                if dt:
                    return dt
        return None


def parse_exif_date(dt_str: str) -> Optional[datetime]:
    """
    Parses the EXIF "YYYY:MM:DD HH:MM:SS" form. Sub-second suffixes are
    dropped; placeholder dates such as "0000:00:00 00:00:00" yield None.
    """
    clean = dt_str.strip().strip('\x00').strip()
    if not clean:
        return None
    clean = clean.replace(':', '-', 2)
    if '.' in clean:
        clean = clean.split('.')[0]
    try:
        return datetime.strptime(clean, "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return None
