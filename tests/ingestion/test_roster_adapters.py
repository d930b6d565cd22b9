"""Tests for source adapters: CSV reading and zip extraction."""

import zipfile
from pathlib import Path

import pytest

from roster_ingestion.adapters import CsvSourceAdapter, SourceAdapter, extract_archive
from roster_kernel.exceptions import ArchiveUnreadableError

from tests.ingestion.roster_fixtures import write_minimal_dataset, zip_directory


def _write(path: Path, text: str, encoding: str = "utf-8") -> Path:
    path.write_text(text, encoding=encoding, newline="")
    return path


class TestCsvSourceAdapter:
    def test_read_yields_dicts(self, tmp_path):
        path = _write(tmp_path / "orgs.csv", "sourcedId,name\norg-1,North\norg-2,South\n")
        rows = list(CsvSourceAdapter().read(path, {}))
        assert rows == [{"sourcedId": "org-1", "name": "North"}, {"sourcedId": "org-2", "name": "South"}]

    def test_bom_and_header_whitespace_stripped(self, tmp_path):
        path = _write(tmp_path / "orgs.csv", "\ufeffsourcedId , name\norg-1,North\n")
        adapter = CsvSourceAdapter()
        assert adapter.read_header(path, {}) == ("sourcedId", "name")
        assert list(adapter.read(path, {})) == [{"sourcedId": "org-1", "name": "North"}]

    def test_custom_delimiter(self, tmp_path):
        path = _write(tmp_path / "orgs.csv", "sourcedId;name\norg-1;North\n")
        rows = list(CsvSourceAdapter().read(path, {"delimiter": ";"}))
        assert rows == [{"sourcedId": "org-1", "name": "North"}]

    def test_quoted_list_cell_kept_whole(self, tmp_path):
        path = _write(tmp_path / "users.csv", 'sourcedId,orgSourcedIds\nusr-1,"org-1,org-2"\n')
        rows = list(CsvSourceAdapter().read(path, {}))
        assert rows[0]["orgSourcedIds"] == "org-1,org-2"

    def test_read_header_of_empty_file_is_none(self, tmp_path):
        path = _write(tmp_path / "empty.csv", "")
        assert CsvSourceAdapter().read_header(path, {}) is None

    def test_short_rows_padded_and_blank_lines_skipped(self, tmp_path):
        path = _write(tmp_path / "orgs.csv", "sourcedId,name,type\norg-1,North\n\norg-2,South,school\n")
        rows = list(CsvSourceAdapter().read(path, {}))
        assert rows == [
            {"sourcedId": "org-1", "name": "North", "type": None},
            {"sourcedId": "org-2", "name": "South", "type": "school"},
        ]

    def test_read_numbered_counts_blank_lines(self, tmp_path):
        path = _write(tmp_path / "orgs.csv", "sourcedId\norg-1\n\n\norg-2\n")
        assert list(CsvSourceAdapter().read_numbered(path, {})) == [
            (1, {"sourcedId": "org-1"}),
            (4, {"sourcedId": "org-2"}),
        ]

    def test_undecodable_bytes_raise_unicode_error(self, tmp_path):
        path = tmp_path / "orgs.csv"
        path.write_bytes(b"sourcedId\norg-\xff\n")
        with pytest.raises(UnicodeDecodeError):
            list(CsvSourceAdapter().read(path, {}))

    def test_satisfies_source_adapter_protocol(self):
        assert isinstance(CsvSourceAdapter(), SourceAdapter)


class TestExtractArchive:
    def test_extracts_every_member(self, tmp_path):
        source = write_minimal_dataset(tmp_path / "src")
        archive = zip_directory(source, tmp_path / "export.zip")

        target = extract_archive(archive, tmp_path / "out")

        names = sorted(p.name for p in target.iterdir())
        assert names == sorted(p.name for p in source.iterdir())

    def test_missing_archive(self, tmp_path):
        with pytest.raises(ArchiveUnreadableError) as exc_info:
            extract_archive(tmp_path / "nope.zip", tmp_path / "out")
        assert exc_info.value.code == "ARCHIVE_UNREADABLE"

    def test_corrupt_archive(self, tmp_path):
        archive = tmp_path / "bad.zip"
        archive.write_bytes(b"this is not a zip file")
        with pytest.raises(ArchiveUnreadableError):
            extract_archive(archive, tmp_path / "out")

    def test_member_escaping_target_refused(self, tmp_path):
        archive = tmp_path / "evil.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../escape.csv", "sourcedId\n")
        with pytest.raises(ArchiveUnreadableError, match="unsafe member path"):
            extract_archive(archive, tmp_path / "out")
        assert not (tmp_path / "escape.csv").exists()
