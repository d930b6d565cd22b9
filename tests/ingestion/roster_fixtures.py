"""
OneRoster 1.1 CSV fixture data sets.

Two data sets share the same district and school:

    full      4 orgs, 8 users, 4 classes, 9 enrollments.  Scoped to
              org-sch-222-456 it yields 3 courses, 7 users and 8 enrollments;
              the remaining rows belong to a sibling school.
    minimal   2 orgs, 2 users, 3 classes, 8 enrollments.  The last two
              enrollment rows repeat a (user, class) pair with another role.

Rows are plain dicts keyed by OneRoster column name so tests can copy and
tweak them before writing.  Missing columns are written as blank cells.
"""

from __future__ import annotations

import copy
import csv
import zipfile
from pathlib import Path

from roster_ingestion.domain.schemas import MANIFEST_FILE, MANIFEST_HEADER, ONEROSTER_HEADERS

MODIFIED = "2024-08-15T10:00:00.000Z"

DISTRICT = {
    "sourcedId": "org-dist-100", "status": "active", "dateLastModified": MODIFIED,
    "name": "Oak Valley District", "type": "district", "identifier": "OVD",
}
SCHOOL = {
    "sourcedId": "org-sch-222-456", "status": "active", "dateLastModified": MODIFIED,
    "name": "Oak Valley Middle School", "type": "school", "identifier": "OVMS",
    "parentSourcedId": "org-dist-100",
}
SCIENCE_DEPT = {
    "sourcedId": "org-dept-222-sci", "status": "active", "dateLastModified": MODIFIED,
    "name": "Science Department", "type": "department", "parentSourcedId": "org-sch-222-456",
}
SIBLING_SCHOOL = {
    "sourcedId": "org-sch-333-789", "status": "active", "dateLastModified": MODIFIED,
    "name": "Oak Valley High School", "type": "school", "identifier": "OVHS",
    "parentSourcedId": "org-dist-100",
}

FALL_TERM = {
    "sourcedId": "term-2024-fall", "status": "active", "dateLastModified": MODIFIED,
    "title": "Fall 2024", "type": "term", "startDate": "2024-08-26", "endDate": "2024-12-20",
    "parentSourcedId": "sy-2024", "schoolYear": "2025",
}
SCHOOL_YEAR = {
    "sourcedId": "sy-2024", "status": "active", "dateLastModified": MODIFIED,
    "title": "2024-2025", "type": "schoolYear", "startDate": "2024-08-01", "endDate": "2025-06-30",
    "schoolYear": "2025",
}


def _class(sourced_id: str, title: str, code: str, school: str, terms: str = "term-2024-fall") -> dict:
    return {
        "sourcedId": sourced_id, "status": "active", "dateLastModified": MODIFIED,
        "title": title, "grades": "07", "courseSourcedId": f"crs-{code.lower()}",
        "classCode": code, "classType": "scheduled", "location": "",
        "schoolSourcedId": school, "termSourcedIds": terms,
    }


def _user(
    sourced_id: str,
    role: str,
    given: str,
    family: str,
    orgs: str = "org-sch-222-456",
    username: str = "",
    identifier: str = "",
) -> dict:
    return {
        "sourcedId": sourced_id, "status": "active", "dateLastModified": MODIFIED,
        "enabledUser": "true", "orgSourcedIds": orgs, "role": role, "username": username,
        "givenName": given, "familyName": family, "identifier": identifier,
        "email": f"{given.lower()}.{family.lower()}@oakvalley.example.org",
    }


def _enrollment(sourced_id: str, class_id: str, user_id: str, role: str, school: str = "org-sch-222-456") -> dict:
    return {
        "sourcedId": sourced_id, "status": "active", "dateLastModified": MODIFIED,
        "classSourcedId": class_id, "schoolSourcedId": school, "userSourcedId": user_id,
        "role": role, "primary": "true" if role == "teacher" else "false",
        "beginDate": "2024-08-26", "endDate": "2024-12-20",
    }


MATH = _class("cls-math-7", "Math 7", "MATH7", "org-sch-222-456")
SCIENCE = _class("cls-sci-7", "Science 7", "SCI7", "org-sch-222-456")
ENGLISH = _class("cls-eng-7", "English 7", "ENG7", "org-sch-222-456", terms="term-2024-fall,sy-2024")
HISTORY = _class("cls-hist-8", "History 8", "HIST8", "org-sch-333-789")

TEACHER_ADA = _user("usr-t-001", "teacher", "Ada", "Lovelace", username="alovelace")
TEACHER_GRACE = _user("usr-t-002", "teacher", "Grace", "Hopper", username="ghopper")
STUDENT_ALAN = _user("usr-s-001", "student", "Alan", "Turing", identifier="S1001")
STUDENT_KATHERINE = _user("usr-s-002", "student", "Katherine", "Johnson", identifier="S1002")
STUDENT_DOROTHY = _user("usr-s-003", "student", "Dorothy", "Vaughan", identifier="S1003")
STUDENT_MARY = _user("usr-s-004", "student", "Mary", "Jackson", identifier="S1004")
ADMIN_EDSGER = _user("usr-a-001", "administrator", "Edsger", "Dijkstra", orgs="org-dist-100,org-sch-222-456")
OTHER_SCHOOL_STUDENT = _user("usr-s-900", "student", "Barbara", "Liskov", orgs="org-sch-333-789")

FULL_DATASET: dict[str, list[dict]] = {
    "orgs.csv": [DISTRICT, SCHOOL, SCIENCE_DEPT, SIBLING_SCHOOL],
    "academicSessions.csv": [SCHOOL_YEAR, FALL_TERM],
    "classes.csv": [MATH, SCIENCE, ENGLISH, HISTORY],
    "users.csv": [
        TEACHER_ADA, TEACHER_GRACE, STUDENT_ALAN, STUDENT_KATHERINE,
        STUDENT_DOROTHY, STUDENT_MARY, ADMIN_EDSGER, OTHER_SCHOOL_STUDENT,
    ],
    "enrollments.csv": [
        _enrollment("enr-001", "cls-math-7", "usr-t-001", "teacher"),
        _enrollment("enr-002", "cls-sci-7", "usr-t-002", "teacher"),
        _enrollment("enr-003", "cls-eng-7", "usr-t-001", "teacher"),
        _enrollment("enr-004", "cls-math-7", "usr-s-001", "student"),
        _enrollment("enr-005", "cls-math-7", "usr-s-002", "student"),
        _enrollment("enr-006", "cls-sci-7", "usr-s-003", "student"),
        _enrollment("enr-007", "cls-eng-7", "usr-s-004", "student"),
        _enrollment("enr-008", "cls-eng-7", "usr-s-001", "student"),
        _enrollment("enr-900", "cls-hist-8", "usr-s-900", "student", school="org-sch-333-789"),
    ],
}

MINIMAL_DATASET: dict[str, list[dict]] = {
    "orgs.csv": [DISTRICT, SCHOOL],
    "academicSessions.csv": [FALL_TERM],
    "classes.csv": [MATH, SCIENCE, ENGLISH],
    "users.csv": [TEACHER_ADA, STUDENT_ALAN],
    "enrollments.csv": [
        _enrollment("enr-m-001", "cls-math-7", "usr-t-001", "teacher"),
        _enrollment("enr-m-002", "cls-sci-7", "usr-t-001", "teacher"),
        _enrollment("enr-m-003", "cls-eng-7", "usr-t-001", "teacher"),
        _enrollment("enr-m-004", "cls-math-7", "usr-s-001", "student"),
        _enrollment("enr-m-005", "cls-sci-7", "usr-s-001", "student"),
        _enrollment("enr-m-006", "cls-eng-7", "usr-s-001", "student"),
        # Same pairs as enr-m-001 and enr-m-002 with another role
        _enrollment("enr-m-007", "cls-math-7", "usr-t-001", "proctor"),
        _enrollment("enr-m-008", "cls-sci-7", "usr-t-001", "administrator"),
    ],
}


def full_dataset() -> dict[str, list[dict]]:
    """Deep copy of the full data set, safe to mutate."""
    return copy.deepcopy(FULL_DATASET)


def minimal_dataset() -> dict[str, list[dict]]:
    """Deep copy of the minimal data set, safe to mutate."""
    return copy.deepcopy(MINIMAL_DATASET)


def write_csv(path: Path, header: tuple[str, ...] | list[str], rows: list[dict]) -> Path:
    """Write rows under header; keys missing from a row become blank cells."""
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in rows:
            writer.writerow([row.get(column, "") for column in header])
    return path


def write_manifest(directory: Path, present: list[str], mode: str = "bulk") -> Path:
    """manifest.csv declaring every file in ``present`` with ``mode`` and the rest absent."""
    properties = [
        {"propertyName": "manifest.version", "value": "1.0"},
        {"propertyName": "oneroster.version", "value": "1.1"},
    ]
    for file_name in sorted(ONEROSTER_HEADERS):
        table = file_name[: -len(".csv")]
        properties.append(
            {"propertyName": f"file.{table}", "value": mode if file_name in present else "absent"}
        )
    properties.append({"propertyName": "source.systemName", "value": "Oak Valley SIS"})
    return write_csv(directory / MANIFEST_FILE, MANIFEST_HEADER, properties)


def write_dataset(directory: Path, tables: dict[str, list[dict]]) -> Path:
    """Write every table plus a matching manifest into directory."""
    directory.mkdir(parents=True, exist_ok=True)
    for file_name, rows in tables.items():
        write_csv(directory / file_name, ONEROSTER_HEADERS[file_name], rows)
    write_manifest(directory, list(tables))
    return directory


def write_full_dataset(directory: Path) -> Path:
    return write_dataset(directory, full_dataset())


def write_minimal_dataset(directory: Path) -> Path:
    return write_dataset(directory, minimal_dataset())


def zip_directory(directory: Path, archive_path: Path) -> Path:
    """Zip every file in directory (flat) into archive_path."""
    with zipfile.ZipFile(archive_path, "w") as zf:
        for path in sorted(directory.iterdir()):
            if path.is_file():
                zf.write(path, arcname=path.name)
    return archive_path


def insert_blank_line(path: Path, before_data_row: int) -> Path:
    """Insert an empty line so it sits where data row ``before_data_row`` was."""
    lines = path.read_text(encoding="utf-8").splitlines(keepends=True)
    lines.insert(before_data_row, "\r\n")
    path.write_text("".join(lines), encoding="utf-8", newline="")
    return path
