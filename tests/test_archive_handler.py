import zipfile

import pytest

from comicshrink.core.archive_handler import ArchiveHandler
from comicshrink.errors import ExtractionError, RepackageError

from conftest import make_zip, read_zip

ENTRIES = {
    "001.png": b"\x89PNG page one",
    "chapter2/002.jpg": b"\xff\xd8 page two",
    "chapter2/extras/ComicInfo.xml": b"<ComicInfo/>",
}


def snapshot(directory):
    return {
        p.relative_to(directory).as_posix(): p.read_bytes()
        for p in directory.rglob("*") if p.is_file()
    }


def test_extract_zip_recreates_paths(tmp_path, logger):
    archive = make_zip(tmp_path / "comic.cbz", ENTRIES)
    dest = tmp_path / "out"
    dest.mkdir()

    ArchiveHandler.extract_zip(archive, dest, logger)

    assert snapshot(dest) == ENTRIES


def test_extract_then_repackage_round_trip(tmp_path, logger):
    archive = make_zip(tmp_path / "comic.cbz", ENTRIES)
    dest = tmp_path / "out"
    dest.mkdir()
    ArchiveHandler.extract_zip(archive, dest, logger)

    output = tmp_path / "repacked.cbz"
    ArchiveHandler.create_cbz(dest, output, logger)

    assert read_zip(output) == read_zip(archive)


def test_create_cbz_is_sorted_and_deflated(tmp_path):
    source = tmp_path / "src"
    for name in ["b/010.png", "002.png", "a/001.png", "001.png"]:
        path = source / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(name.encode() * 50)

    output = tmp_path / "out.cbz"
    ArchiveHandler.create_cbz(source, output)

    with zipfile.ZipFile(output) as zf:
        infos = zf.infolist()
    assert [i.filename for i in infos] == ["001.png", "002.png", "a/001.png", "b/010.png"]
    assert all(i.compress_type == zipfile.ZIP_DEFLATED for i in infos)


def test_create_cbz_leaves_no_temporary_files(tmp_path):
    source = tmp_path / "src"
    source.mkdir()
    (source / "001.webp").write_bytes(b"data")
    out_dir = tmp_path / "dest"
    out_dir.mkdir()

    ArchiveHandler.create_cbz(source, out_dir / "book.cbz")

    assert [p.name for p in out_dir.iterdir()] == ["book.cbz"]


def test_create_cbz_overwrites_existing_output(tmp_path):
    source = tmp_path / "src"
    source.mkdir()
    (source / "001.webp").write_bytes(b"new")
    output = tmp_path / "book.cbz"
    output.write_bytes(b"stale")

    ArchiveHandler.create_cbz(source, output)

    assert read_zip(output) == {"001.webp": b"new"}


def test_create_cbz_failure_raises_repackage_error(tmp_path):
    source = tmp_path / "src"
    source.mkdir()
    (source / "001.webp").write_bytes(b"data")
    output = tmp_path / "missing_dir" / "book.cbz"

    with pytest.raises(RepackageError):
        ArchiveHandler.create_cbz(source, output)
    assert not output.exists()


def test_extract_zip_rejects_bad_archive(tmp_path):
    archive = tmp_path / "broken.cbz"
    archive.write_bytes(b"definitely not a zip")
    with pytest.raises(ExtractionError):
        ArchiveHandler.extract_zip(archive, tmp_path)


def test_extract_zip_rejects_path_traversal(tmp_path):
    archive = make_zip(tmp_path / "evil.cbz", {"../escape.txt": b"x"})
    dest = tmp_path / "out"
    dest.mkdir()
    with pytest.raises(ExtractionError, match="traversal"):
        ArchiveHandler.extract_zip(archive, dest)
    assert not (tmp_path / "escape.txt").exists()


def test_fallback_extracts_zip_labelled_as_cbr(tmp_path, logger):
    zipped = make_zip(tmp_path / "real.cbz", ENTRIES)
    mislabeled = tmp_path / "mislabeled.cbr"
    mislabeled.write_bytes(zipped.read_bytes())

    direct = tmp_path / "direct"
    direct.mkdir()
    ArchiveHandler.extract_zip(zipped, direct)
    fallback = tmp_path / "fallback"
    fallback.mkdir()
    ArchiveHandler.extract_with_fallback(mislabeled, fallback, logger)

    assert snapshot(fallback) == snapshot(direct)


def test_fallback_clears_partial_output_before_retry(tmp_path, monkeypatch):
    archive = make_zip(tmp_path / "book.cbr", {"001.png": b"page"})
    dest = tmp_path / "out"
    dest.mkdir()

    def partial_rar(archive_path, extract_dir, logger=None):
        (extract_dir / "partial").mkdir()
        (extract_dir / "partial" / "junk.bin").write_bytes(b"junk")
        raise ExtractionError("truncated RAR")

    monkeypatch.setattr(ArchiveHandler, "extract_rar", partial_rar)
    ArchiveHandler.extract_with_fallback(archive, dest)

    assert snapshot(dest) == {"001.png": b"page"}


def test_fallback_reports_both_failures(tmp_path):
    archive = tmp_path / "garbage.cbr"
    archive.write_bytes(b"neither rar nor zip")
    dest = tmp_path / "out"
    dest.mkdir()

    with pytest.raises(ExtractionError, match="both RAR and ZIP"):
        ArchiveHandler.extract_with_fallback(archive, dest)


def test_create_cbz_keeps_empty_directories(tmp_path):
    archive = tmp_path / "book.cbz"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("extras/", b"")
        zf.writestr("pages/001.png", b"page")
    dest = tmp_path / "extracted"
    dest.mkdir()
    ArchiveHandler.extract_zip(archive, dest)

    output = tmp_path / "repacked.cbz"
    ArchiveHandler.create_cbz(dest, output)

    with zipfile.ZipFile(output) as zf:
        assert zf.namelist() == ["extras/", "pages/001.png"]
