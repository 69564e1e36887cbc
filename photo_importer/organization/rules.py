from pathlib import Path

from ..models import CaptureIdentity


def resolve_destination(identity: CaptureIdentity, ext: str, archive_root: Path) -> Path:
    """
    Maps an identity to its archive path:
    {archive_root}/{YYYY}/{MM}/{DD}/{datetime_key}_{content_hash}{ext}

    Depends only on its arguments, so the same unit always lands on the same
    path no matter where it was imported from.
    """
    dt = identity.capture_datetime
    folder = archive_root / f"{dt.year:04d}" / f"{dt.month:02d}" / f"{dt.day:02d}"
    return folder / f"{identity.datetime_key}_{identity.content_hash}{ext}"
