import argparse
import logging
import sqlite3
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .core import PhotoImporterApp
from .database.ops import DedupIndex
from .exceptions import IndexUnavailableError, PhotoImporterError
from .metadata.identity import IdentityExtractor
from .models import CandidateFile
from .organization.rules import resolve_destination
from .reporting import log_summary, write_csv_report
from .scanning.filesystem import classify

def setup_logging(log_file: Path, verbose: bool):
    """Sets up logging to both console and a file next to the index."""
    log_level = logging.DEBUG if verbose else logging.INFO

    log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)
    logging.getLogger("PIL").setLevel(logging.WARNING)

def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(prog="photo-importer", description="Image rename and import tool")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Process all files for import")
    imp.add_argument("-f", "--from", dest="src", type=Path, required=True, help="Location to import from")
    imp.add_argument("-t", "--to", dest="dest", type=Path, required=True, help="Location to put imported files to")
    imp.add_argument("-d", "--db", type=Path, default=config.DEFAULT_DB_PATH,
                     help=f"Location of the database (default: {config.DEFAULT_DB_PATH})")
    imp.add_argument("--delete", action="store_true",
                     help="If set, original files will be deleted as part of the import process")
    imp.add_argument("-i", "--force-import", dest="force", action="store_true",
                     help="Force import even if already processed")
    imp.add_argument("-e", "--exclude", action="append", default=[],
                     help="Skip files whose path contains this text (repeatable)")
    imp.add_argument("--workers", type=int, default=config.DEFAULT_WORKERS,
                     help="Number of parallel workers for hashing and copying")
    imp.add_argument("--report-csv", type=Path, default=None, help="Write a per-file CSV report to this path")
    imp.add_argument("--no-progress", action="store_true", help="Do not draw a progress bar")
    imp.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    look = sub.add_parser("lookup", help="Show identity and import state of files")
    look.add_argument("files", nargs="+", type=Path, help="Files to look up")
    look.add_argument("-d", "--db", type=Path, default=config.DEFAULT_DB_PATH, help="Location of the database")
    look.add_argument("-t", "--to", dest="dest", type=Path, default=None,
                      help="Archive root, to show where each file would be placed")

    return p.parse_args(argv)

def run_import(args) -> int:
    src_root = args.src.resolve()
    dest_root = args.dest.resolve()
    db_path = args.db.expanduser().resolve()

    try:
        setup_logging(db_path.parent / config.LOG_FILE_NAME, args.verbose)
    except OSError as e:
        logging.error(f"Index unavailable; aborting. Cannot create {db_path.parent}: {e}")
        return 1

    logging.info("=== Photo Importer Started ===")
    logging.info(f"Source: {src_root}")
    logging.info(f"Dest:   {dest_root}")
    logging.info(f"Index:  {db_path}")

    import_config = config.ImportConfig(
        source_root=src_root,
        archive_root=dest_root,
        db_path=db_path,
        delete_source=args.delete,
        force=args.force,
        exclude=tuple(args.exclude),
        max_workers=args.workers,
        progress=not args.no_progress,
    )

    app = PhotoImporterApp(import_config)
    try:
        summary = app.run()
    except IndexUnavailableError:
        logging.exception("Index unavailable; aborting.")
        return 1
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return 1
    except Exception:
        logging.exception("Fatal error during import.")
        return 1

    log_summary(summary)
    if args.report_csv:
        write_csv_report(summary, args.report_csv)

    if summary.stopped:
        logging.warning("Operation cancelled by user.")
        return 1
    return 0

def run_lookup(args) -> int:
    db_path = args.db.expanduser().resolve()
    if not db_path.exists():
        raise SystemExit(f"DB not found: {db_path}")

    conn = sqlite3.connect(db_path)
    try:
        index = DedupIndex(conn)
        extractor = IdentityExtractor()
        for path in args.files:
            kind = classify(path)
            if kind is None:
                print(f"{path}: not an importable image")
                continue
            try:
                identity = extractor.extract(CandidateFile(path=path, ext=path.suffix.lower(), kind=kind))
            except PhotoImporterError as e:
                print(f"{path}: {e}")
                continue

            indexed = index.contains(identity.datetime_key, identity.content_hash)
            print(f"{path}:")
            print(f"  capture_time:  {identity.capture_datetime.isoformat(sep=' ')}")
            print(f"  hash:          {identity.content_hash}")
            print(f"  key:           {identity.datetime_key}_{identity.content_hash}")
            print(f"  indexed:       {'yes' if indexed else 'no'}")
            if args.dest:
                dest = resolve_destination(identity, path.suffix.lower(), args.dest.resolve())
                print(f"  destination:   {dest}")
                print(f"  dest_exists:   {'yes' if dest.exists() else 'no'}")
    finally:
        conn.close()
    return 0

def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.command == "import":
        return run_import(args)
    return run_lookup(args)

if __name__ == "__main__":
    sys.exit(main())
