"""Tests for manifest parsing and the manifest/file check."""

import pytest

from roster_ingestion.domain.schemas import MANIFEST_FILE, ONEROSTER_HEADERS
from roster_ingestion.services import check_manifest_and_files, parse_manifest
from roster_kernel.exceptions import InvalidManifestError, ManifestNotFoundError, StructuralError

from tests.ingestion.roster_fixtures import write_csv, write_manifest


class TestParseManifest:
    def test_declared_files_and_expected_headers(self, full_dataset_dir):
        manifest = parse_manifest(full_dataset_dir / MANIFEST_FILE)

        assert manifest.declared_files["orgs.csv"] == "bulk"
        assert manifest.declared_files["results.csv"] == "absent"
        assert manifest.expected_headers["users.csv"] == ONEROSTER_HEADERS["users.csv"]
        assert "results.csv" not in manifest.expected_headers
        assert manifest.get("oneroster.version") == "1.1"

    def test_missing_manifest(self, tmp_path):
        with pytest.raises(ManifestNotFoundError) as exc_info:
            parse_manifest(tmp_path / MANIFEST_FILE)
        assert isinstance(exc_info.value, StructuralError)

    def test_bad_manifest_header(self, tmp_path):
        write_csv(tmp_path / MANIFEST_FILE, ("name", "value"), [{"name": "file.orgs", "value": "bulk"}])
        with pytest.raises(InvalidManifestError):
            parse_manifest(tmp_path / MANIFEST_FILE)

    def test_delta_mode_is_required(self, tmp_path):
        write_manifest(tmp_path, ["orgs.csv"], mode="delta")
        manifest = parse_manifest(tmp_path / MANIFEST_FILE)
        assert "orgs.csv" in manifest.expected_headers


class TestCheckManifestAndFiles:
    def test_valid_export(self, full_dataset_dir):
        result = check_manifest_and_files(full_dataset_dir / MANIFEST_FILE, full_dataset_dir)
        assert result.is_valid
        assert result.missing_files == frozenset()
        assert result.invalid_headers == frozenset()

    def test_declared_file_absent(self, full_dataset_dir):
        (full_dataset_dir / "enrollments.csv").unlink()
        result = check_manifest_and_files(full_dataset_dir / MANIFEST_FILE, full_dataset_dir)
        assert result.missing_files == frozenset({"enrollments.csv"})
        assert not result.is_valid

    def test_file_names_compared_case_sensitively(self, full_dataset_dir):
        (full_dataset_dir / "orgs.csv").rename(full_dataset_dir / "Orgs.csv")
        result = check_manifest_and_files(full_dataset_dir / MANIFEST_FILE, full_dataset_dir)
        assert "orgs.csv" in result.missing_files

    def test_reordered_header_is_invalid(self, full_dataset_dir):
        header = list(ONEROSTER_HEADERS["orgs.csv"])
        header[3], header[4] = header[4], header[3]
        write_csv(full_dataset_dir / "orgs.csv", header, [])
        result = check_manifest_and_files(full_dataset_dir / MANIFEST_FILE, full_dataset_dir)
        assert result.invalid_headers == frozenset({"orgs.csv"})

    def test_empty_declared_file_is_invalid(self, full_dataset_dir):
        (full_dataset_dir / "classes.csv").write_text("")
        result = check_manifest_and_files(full_dataset_dir / MANIFEST_FILE, full_dataset_dir)
        assert "classes.csv" in result.invalid_headers

    def test_absent_file_not_required(self, tmp_path):
        write_csv(tmp_path / "orgs.csv", ONEROSTER_HEADERS["orgs.csv"], [])
        write_manifest(tmp_path, ["orgs.csv"])
        result = check_manifest_and_files(tmp_path / MANIFEST_FILE, tmp_path)
        assert result.is_valid

    def test_logs_summary(self, full_dataset_dir, captured_logs):
        check_manifest_and_files(full_dataset_dir / MANIFEST_FILE, full_dataset_dir)
        logs = [r for r in captured_logs() if r["message"] == "manifest_checked"]
        assert logs and logs[0]["missing_files"] == []

    def test_undecodable_declared_file_is_invalid_not_raised(self, full_dataset_dir):
        path = full_dataset_dir / "orgs.csv"
        path.write_bytes(b"\xff" + path.read_bytes())

        result = check_manifest_and_files(full_dataset_dir / MANIFEST_FILE, full_dataset_dir)

        assert result.invalid_headers == frozenset({"orgs.csv"})
        assert result.missing_files == frozenset()

    def test_undecodable_manifest_is_structural(self, full_dataset_dir):
        manifest = full_dataset_dir / MANIFEST_FILE
        manifest.write_bytes(manifest.read_bytes() + b"file.extra,\xff\r\n")

        with pytest.raises(InvalidManifestError):
            check_manifest_and_files(manifest, full_dataset_dir)
