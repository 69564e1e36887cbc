import csv
import logging
from pathlib import Path

from .models import ImportResult, ImportStatus, RunSummary


def log_result(result: ImportResult):
    """Reports one per-file outcome with its source path."""
    src = result.source
    if result.status is ImportStatus.IMPORTED:
        if result.already_placed:
            logging.info(f"{src}: destination already correct at {result.destination}")
        else:
            logging.info(f"{src}: copied to {result.destination}")
    elif result.status is ImportStatus.SKIPPED:
        logging.info(f"{src}: already processed before. SKIP")
    elif result.integrity_failure:
        logging.critical(f"{src}: INTEGRITY FAILURE, check {result.destination}: {result.reason}")
    else:
        logging.error(f"{src}: {result.reason}")

    for warning in result.warnings:
        logging.warning(f"{src}: {warning}")


def log_summary(summary: RunSummary):
    logging.info(
        f"Import {'stopped' if summary.stopped else 'complete'}: "
        f"{summary.imported} imported, {summary.skipped} skipped, "
        f"{summary.failed} failed ({summary.total} files)."
    )
    corrupt = [r for r in summary.results if r.integrity_failure]
    if corrupt:
        logging.critical(f"{len(corrupt)} destination(s) failed validation and may be corrupt:")
        for r in corrupt:
            logging.critical(f"  {r.destination}")


def write_csv_report(summary: RunSummary, output_csv: Path):
    """Writes one row per processed file."""
    headers = [
        "Source Path",
        "Status",
        "Destination Path",
        "Datetime Key",
        "Content Hash",
        "Notes",
    ]

    with open(output_csv, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        for r in summary.results:
            notes = [r.reason] if r.reason else []
            if r.already_placed:
                notes.append("Destination already present")
            if r.source_removed:
                notes.append("Source removed")
            notes.extend(r.warnings)
            writer.writerow([
                str(r.source),
                r.status.value,
                str(r.destination) if r.destination else "",
                r.identity.datetime_key if r.identity else "",
                r.identity.content_hash if r.identity else "",
                "; ".join(notes),
            ])

    logging.info(f"Report written: {output_csv}")
