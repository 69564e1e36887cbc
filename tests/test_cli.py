import csv
import pytest
from pathlib import Path

from photo_importer.main import main, parse_args


def _images(root: Path):
    return sorted(p for p in root.rglob("*") if p.is_file() and p.suffix == ".jpg")


def test_parse_import_flags(tmp_path):
    args = parse_args([
        "import", "-f", "src", "-t", "dst", "-d", "idx.db",
        "--delete", "-i", "-e", "cache", "-e", "thumbs", "--workers", "3",
    ])
    assert args.command == "import"
    assert args.src == Path("src")
    assert args.dest == Path("dst")
    assert args.db == Path("idx.db")
    assert args.delete and args.force
    assert args.exclude == ["cache", "thumbs"]
    assert args.workers == 3

def test_parse_import_defaults():
    args = parse_args(["import", "--from", "a", "--to", "b"])
    assert not args.delete
    assert not args.force
    assert args.exclude == []
    assert args.db.name == "photo_importer.sqlite3"

def test_import_requires_source_and_destination():
    with pytest.raises(SystemExit):
        parse_args(["import", "--to", "b"])


def test_import_twice(tmp_path, make_jpeg):
    src = tmp_path / "card"
    dest = tmp_path / "archive"
    db = tmp_path / "state" / "index.sqlite3"
    make_jpeg(src / "DCIM" / "a.jpg", taken="2020:05:01 10:00:00")
    (src / "DCIM" / "notes.txt").write_text("ignored")
    argv = ["import", "-f", str(src), "-t", str(dest), "-d", str(db), "--no-progress"]

    assert main(argv) == 0
    placed = _images(dest)
    assert len(placed) == 1
    assert placed[0].parent == dest / "2020" / "05" / "01"

    assert main(argv) == 0
    assert _images(dest) == placed

def test_import_writes_report(tmp_path, make_jpeg):
    src = tmp_path / "card"
    make_jpeg(src / "a.jpg", taken="2020:05:01 10:00:00")
    report = tmp_path / "report.csv"

    code = main(["import", "-f", str(src), "-t", str(tmp_path / "archive"),
                 "-d", str(tmp_path / "index.sqlite3"), "--no-progress",
                 "--report-csv", str(report)])

    assert code == 0
    with open(report, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[1][0] == str((src / "a.jpg").resolve())
    assert rows[1][1] == "imported"

def test_missing_source_is_fatal(tmp_path):
    code = main(["import", "-f", str(tmp_path / "nope"), "-t", str(tmp_path / "archive"),
                 "-d", str(tmp_path / "index.sqlite3"), "--no-progress"])
    assert code == 1

def test_unavailable_index_is_fatal(tmp_path, make_jpeg):
    src = tmp_path / "card"
    make_jpeg(src / "a.jpg", taken="2020:05:01 10:00:00")
    # A directory where the database file should be
    db = tmp_path / "index.sqlite3"
    db.mkdir()

    code = main(["import", "-f", str(src), "-t", str(tmp_path / "archive"),
                 "-d", str(db), "--no-progress"])

    assert code == 1
    assert not (tmp_path / "archive").exists()


def test_uncreatable_index_folder_is_fatal(tmp_path, make_jpeg):
    src = tmp_path / "card"
    make_jpeg(src / "a.jpg", taken="2020:05:01 10:00:00")
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a folder")

    code = main(["import", "-f", str(src), "-t", str(tmp_path / "archive"),
                 "-d", str(blocker / "state" / "index.sqlite3"), "--no-progress"])

    assert code == 1
    assert not (tmp_path / "archive").exists()


def test_lookup_reports_index_state(tmp_path, make_jpeg, capsys):
    src = tmp_path / "card"
    dest = tmp_path / "archive"
    db = tmp_path / "index.sqlite3"
    photo = make_jpeg(src / "a.jpg", taken="2020:05:01 10:00:00")
    main(["import", "-f", str(src), "-t", str(dest), "-d", str(db), "--no-progress"])
    capsys.readouterr()

    assert main(["lookup", "-d", str(db), "-t", str(dest), str(photo), str(src / "x.txt")]) == 0

    out = capsys.readouterr().out
    assert "20200501100000_" in out
    assert "indexed:       yes" in out
    assert "dest_exists:   yes" in out
    assert "not an importable image" in out

def test_lookup_missing_db(tmp_path):
    with pytest.raises(SystemExit):
        main(["lookup", "-d", str(tmp_path / "none.db"), str(tmp_path / "a.jpg")])
