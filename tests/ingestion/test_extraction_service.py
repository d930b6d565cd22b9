"""Tests for extracting the CSV directory into typed RosterTables."""

from datetime import date

import pytest

from roster_ingestion.domain.types import ClassRecord, UserRecord
from roster_ingestion.services import extract_csvs_to_tables
from roster_kernel.exceptions import ExtractionDirectoryNotFoundError, StructuralError

from tests.ingestion.roster_fixtures import insert_blank_line, write_dataset


class TestExtractCsvsToTables:
    def test_full_dataset_row_counts(self, full_dataset_dir):
        tables = extract_csvs_to_tables(full_dataset_dir)
        assert tables.row_counts() == {
            "manifest": 17,
            "users": 8,
            "classes": 4,
            "orgs": 4,
            "enrollments": 9,
            "academicSessions": 2,
        }

    def test_rows_are_typed_and_ordered(self, full_dataset_dir):
        tables = extract_csvs_to_tables(full_dataset_dir)

        assert all(isinstance(u, UserRecord) for u in tables.users)
        assert [c.sourced_id for c in tables.classes] == ["cls-math-7", "cls-sci-7", "cls-eng-7", "cls-hist-8"]
        english = tables.classes[2]
        assert isinstance(english, ClassRecord)
        assert english.term_sourced_ids == ("term-2024-fall", "sy-2024")
        assert [u.source_row for u in tables.users] == list(range(1, 9))
        assert tables.academic_sessions[1].start_date == date(2024, 8, 26)
        assert tables.users[6].org_sourced_ids == ("org-dist-100", "org-sch-222-456")

    def test_absent_tables_are_empty(self, tmp_path):
        write_dataset(tmp_path, {"orgs.csv": [{"sourcedId": "org-1", "name": "N", "type": "school"}]})
        tables = extract_csvs_to_tables(tmp_path)
        assert len(tables.orgs) == 1
        assert tables.users == ()
        assert tables.enrollments == ()

    def test_source_row_counts_blank_lines(self, full_dataset_dir):
        insert_blank_line(full_dataset_dir / "users.csv", before_data_row=3)

        tables = extract_csvs_to_tables(full_dataset_dir)

        assert len(tables.users) == 8
        assert [u.source_row for u in tables.users] == [1, 2, 4, 5, 6, 7, 8, 9]

    def test_missing_directory_is_structural(self, tmp_path):
        with pytest.raises(ExtractionDirectoryNotFoundError) as exc_info:
            extract_csvs_to_tables(tmp_path / "missing")
        assert isinstance(exc_info.value, StructuralError)
