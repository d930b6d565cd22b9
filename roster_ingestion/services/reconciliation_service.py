"""
Reconciliation service: apply one organization's slice of the roster to the target store.

Flow per run:
    organizations (topological, parent before child)
    -> users (scope-filtered, deterministic usernames)
    -> classes as courses
    -> enrollments (only against users and courses upserted in this run)

Per-row problems are ReferentialErrors raised inside the service and turned
into SkippedRecords; they never abort the run.  Fatal configuration errors
are raised before the first write.
"""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping, Sequence, TypeVar
from uuid import UUID, uuid4

from roster_config.schema import SyncConfig
from roster_kernel.domain.clock import Clock, SystemClock
from roster_kernel.exceptions import (
    ReferentialError,
    ScopeOrganizationNotFoundError,
    UnresolvedParentError,
    UnresolvedReferenceError,
)
from roster_kernel.logging_config import LogContext, get_logger

from roster_ingestion.domain.types import (
    ENTITY_COURSE,
    ENTITY_ENROLLMENT,
    ENTITY_ORGANIZATION,
    ENTITY_USER,
    STATUS_TO_BE_DELETED,
    SYNC_ENTITY_TYPES,
    AcademicSessionRecord,
    ClassRecord,
    EnrollmentRecord,
    EntityCounts,
    OrgRecord,
    RosterTables,
    SkippedRecord,
    SyncReport,
    UserRecord,
)
from roster_ingestion.store.base import TargetStore

logger = get_logger("ingestion.reconciliation_service")

# Skip reason codes
DUPLICATE_SOURCED_ID = "DUPLICATE_SOURCED_ID"
MARKED_FOR_DELETION = "MARKED_FOR_DELETION"
UNRESOLVED_PARENT = "UNRESOLVED_PARENT"
PARENT_CYCLE = "PARENT_CYCLE"
UNRESOLVED_ORG = "UNRESOLVED_ORG"
UNRESOLVED_USER = "UNRESOLVED_USER"
UNRESOLVED_CLASS = "UNRESOLVED_CLASS"

_USERNAME_DISALLOWED = re.compile(r"[^a-z0-9._@-]")
_FALLBACK_USERNAME = "user"

R = TypeVar("R", OrgRecord, UserRecord, ClassRecord, EnrollmentRecord, AcademicSessionRecord)


# =============================================================================
# Username derivation
# =============================================================================


def normalize_username(raw: str) -> str:
    """Lowercase and drop every character outside ``[a-z0-9._@-]``."""
    return _USERNAME_DISALLOWED.sub("", raw.strip().lower())


def derive_username(user: UserRecord) -> str:
    """
    Base username for a user that has no account yet.

    First non-empty of: CSV username, ``given.family``, identifier, sourcedId.
    Always returns a non-empty string made of ``[a-z0-9._@-]``.
    """
    candidates = [user.username]
    if user.given_name and user.family_name:
        candidates.append(f"{user.given_name}.{user.family_name}")
    candidates.extend([user.identifier, user.sourced_id])
    for candidate in candidates:
        if candidate:
            normalized = normalize_username(candidate)
            if normalized:
                return normalized
    return _FALLBACK_USERNAME


# =============================================================================
# Organization graph
# =============================================================================


@dataclass
class OrgGraph:
    """
    Parent/child structure of the org table.

    ``order`` holds every org whose ancestor chain ends at a root, parents
    first.  ``unresolved`` maps every other org to its skip code and the
    parent reference that broke the chain.
    """

    orgs: dict[str, OrgRecord]
    children: dict[str, list[str]]
    order: list[str]
    unresolved: dict[str, tuple[str, str]]

    @classmethod
    def build(cls, orgs: Mapping[str, OrgRecord]) -> OrgGraph:
        children: dict[str, list[str]] = {sid: [] for sid in orgs}
        roots: list[str] = []
        for sid, org in orgs.items():
            parent = org.parent_sourced_id
            if parent is None:
                roots.append(sid)
            elif parent in orgs and parent != sid:
                children[parent].append(sid)

        order: list[str] = []
        queue = deque(roots)
        while queue:
            sid = queue.popleft()
            order.append(sid)
            queue.extend(children[sid])

        reached = set(order)
        unresolved: dict[str, tuple[str, str]] = {}
        for sid in orgs:
            if sid not in reached:
                unresolved[sid] = cls._diagnose(sid, orgs)
        return cls(orgs=dict(orgs), children=children, order=order, unresolved=unresolved)

    @staticmethod
    def _diagnose(sid: str, orgs: Mapping[str, OrgRecord]) -> tuple[str, str]:
        """Walk up from an unreachable org: either a parent is missing or the chain loops."""
        seen: set[str] = set()
        current = sid
        while True:
            seen.add(current)
            parent = orgs[current].parent_sourced_id
            # An unreached org always has a parent.
            if parent not in orgs:
                return UNRESOLVED_PARENT, parent or ""
            if parent in seen:
                return PARENT_CYCLE, parent
            current = parent

    def descendants(self, sid: str) -> set[str]:
        """sid and every org below it (resolved or not)."""
        found: set[str] = set()
        stack = [sid]
        while stack:
            current = stack.pop()
            if current in found:
                continue
            found.add(current)
            stack.extend(self.children.get(current, ()))
        return found

    def ancestors(self, sid: str) -> list[str]:
        """Parent chain above sid, nearest first, stopping at a missing parent or loop."""
        chain: list[str] = []
        seen = {sid}
        parent = self.orgs[sid].parent_sourced_id
        while parent is not None and parent in self.orgs and parent not in seen:
            chain.append(parent)
            seen.add(parent)
            parent = self.orgs[parent].parent_sourced_id
        return chain


# =============================================================================
# Run state
# =============================================================================


@dataclass
class _SyncRun:
    """Counters, skip log and resolved ids accumulated during one run."""

    counts: dict[str, EntityCounts] = field(
        default_factory=lambda: {name: EntityCounts() for name in SYNC_ENTITY_TYPES}
    )
    skipped: list[SkippedRecord] = field(default_factory=list)
    org_ids: dict[str, UUID] = field(default_factory=dict)
    user_ids: dict[str, UUID] = field(default_factory=dict)
    course_ids: dict[str, UUID] = field(default_factory=dict)
    claimed_usernames: dict[str, str] = field(default_factory=dict)

    def skip(self, entity_type: str, record: R, code: str, message: str) -> None:
        self.counts[entity_type].skipped += 1
        self.skipped.append(
            SkippedRecord(
                entity_type=entity_type,
                sourced_id=record.sourced_id,
                source_row=record.source_row,
                code=code,
                message=message,
            )
        )
        logger.warning(
            "record_skipped",
            extra={
                "entity_type": entity_type,
                "sourced_id": record.sourced_id,
                "source_row": record.source_row,
                "code": code,
            },
        )

    def record_upsert(self, entity_type: str, created: bool) -> None:
        if created:
            self.counts[entity_type].created += 1
        else:
            self.counts[entity_type].updated += 1


def _first_occurrences(
    records: Sequence[R],
    entity_type: str,
    run: _SyncRun,
) -> Iterator[R]:
    """Yield records whose sourcedId has not been seen yet; skip the rest."""
    seen: set[str] = set()
    for record in records:
        if record.sourced_id in seen:
            run.skip(
                entity_type,
                record,
                DUPLICATE_SOURCED_ID,
                f"sourcedId {record.sourced_id!r} already appeared earlier in the table",
            )
            continue
        seen.add(record.sourced_id)
        yield record


def _index_first(records: Iterable[R]) -> dict[str, R]:
    index: dict[str, R] = {}
    for record in records:
        index.setdefault(record.sourced_id, record)
    return index


# =============================================================================
# Service
# =============================================================================


class ReconciliationService:
    """Synchronizes the slice of a RosterTables under one scope org into a TargetStore."""

    def __init__(
        self,
        store: TargetStore,
        config: SyncConfig | None = None,
        clock: Clock | None = None,
    ):
        self._store = store
        self._config = config or SyncConfig()
        self._clock = clock or SystemClock()

    def synchronise(self, scope_org: str, tables: RosterTables) -> SyncReport:
        """
        Apply the in-scope organizations, users, courses and enrollments.

        Raises:
            ScopeOrganizationNotFoundError: scope_org is not in the org table.
        """
        run_id = str(uuid4())
        started_at = self._clock.now()
        run = _SyncRun()

        with LogContext.bind(
            correlation_id=run_id, scope_org=scope_org, producer="roster_sync", stage="reconcile"
        ):
            logger.info("sync_started", extra={"row_counts": tables.row_counts()})

            orgs = {r.sourced_id: r for r in _first_occurrences(tables.orgs, ENTITY_ORGANIZATION, run)}
            if scope_org not in orgs:
                raise ScopeOrganizationNotFoundError(scope_org)

            graph = OrgGraph.build(orgs)
            unit_orgs = graph.descendants(scope_org)
            scoped_orgs = unit_orgs | set(graph.ancestors(scope_org))

            with LogContext.bind(entity_type=ENTITY_ORGANIZATION):
                self._sync_organizations(graph, scoped_orgs, run)
            with LogContext.bind(entity_type=ENTITY_USER):
                self._sync_users(tables.users, unit_orgs, run)
            with LogContext.bind(entity_type=ENTITY_COURSE):
                self._sync_courses(tables.classes, tables.academic_sessions, unit_orgs, run)
            with LogContext.bind(entity_type=ENTITY_ENROLLMENT):
                self._sync_enrollments(tables.enrollments, tables.classes, graph, unit_orgs, run)

            report = SyncReport(
                run_id=run_id,
                scope_org=scope_org,
                counts=run.counts,
                skipped=tuple(run.skipped),
                started_at=started_at,
                completed_at=self._clock.now(),
            )
            logger.info(
                "sync_completed",
                extra={
                    "counts": {k: v.to_dict() for k, v in run.counts.items()},
                    "skipped": len(run.skipped),
                },
            )
        return report

    # -------------------------------------------------------------------------
    # Organizations
    # -------------------------------------------------------------------------

    def _sync_organizations(self, graph: OrgGraph, scoped_orgs: set[str], run: _SyncRun) -> None:
        for sid, (code, parent) in graph.unresolved.items():
            org = graph.orgs[sid]
            if code == PARENT_CYCLE:
                message = f"Parent chain of {sid!r} loops back through {parent!r}"
            else:
                message = f"Parent {parent!r} is not in the org table"
            run.skip(ENTITY_ORGANIZATION, org, code, message)

        for sid in graph.order:
            org = graph.orgs[sid]
            if sid not in scoped_orgs:
                run.counts[ENTITY_ORGANIZATION].out_of_scope += 1
                continue
            if org.status == STATUS_TO_BE_DELETED:
                run.skip(ENTITY_ORGANIZATION, org, MARKED_FOR_DELETION, "Organization is marked tobedeleted")
                continue
            try:
                self._apply_organization(org, run)
            except ReferentialError as exc:
                run.skip(ENTITY_ORGANIZATION, org, exc.reason_code, str(exc))

    def _apply_organization(self, org: OrgRecord, run: _SyncRun) -> None:
        parent_id = None
        if org.parent_sourced_id is not None:
            parent_id = run.org_ids.get(org.parent_sourced_id)
            if parent_id is None:
                raise UnresolvedParentError(org.sourced_id, org.parent_sourced_id)

        result = self._store.upsert_organization(
            org.sourced_id,
            {
                "name": org.name,
                "org_type": org.org_type,
                "identifier": org.identifier,
                "parent_id": parent_id,
            },
        )
        run.org_ids[org.sourced_id] = result.entity_id
        run.record_upsert(ENTITY_ORGANIZATION, result.created)
        logger.debug("org_upserted", extra={"sourced_id": org.sourced_id, "was_created": result.created})

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def _sync_users(self, users: Sequence[UserRecord], unit_orgs: set[str], run: _SyncRun) -> None:
        in_scope: list[UserRecord] = []
        for user in users:
            if unit_orgs.isdisjoint(user.org_sourced_ids):
                run.counts[ENTITY_USER].out_of_scope += 1
            else:
                in_scope.append(user)

        for user in _first_occurrences(in_scope, ENTITY_USER, run):
            if user.status == STATUS_TO_BE_DELETED:
                run.skip(ENTITY_USER, user, MARKED_FOR_DELETION, "User is marked tobedeleted")
                continue
            self._apply_user(user, run)

    def _allocate_username(self, user: UserRecord, run: _SyncRun) -> str:
        """Stored username for a known user, else the first free ``base``, ``base1``, ``base2`` ..."""
        existing = self._store.find_user_by_sourced_id(user.sourced_id)
        if existing is not None:
            return existing.username

        base = derive_username(user)
        candidate = base
        suffix = 0
        while True:
            claimed_by = run.claimed_usernames.get(candidate)
            if claimed_by is None or claimed_by == user.sourced_id:
                holder = self._store.find_user_by_username(candidate)
                if holder is None or holder.sourced_id in (None, user.sourced_id):
                    break
            suffix += 1
            candidate = f"{base}{suffix}"

        if candidate != base:
            logger.info(
                "username_disambiguated",
                extra={"sourced_id": user.sourced_id, "base": base, "username": candidate},
            )
        return candidate

    def _apply_user(self, user: UserRecord, run: _SyncRun) -> None:
        username = self._allocate_username(user, run)
        result = self._store.upsert_user(
            user.sourced_id,
            {
                "username": username,
                "role": user.role,
                "given_name": user.given_name,
                "family_name": user.family_name,
                "email": user.email,
                "identifier": user.identifier,
                "enabled": user.enabled,
            },
        )
        run.claimed_usernames[username] = user.sourced_id
        run.user_ids[user.sourced_id] = result.entity_id
        run.record_upsert(ENTITY_USER, result.created)
        logger.debug("user_upserted", extra={"sourced_id": user.sourced_id, "was_created": result.created})

    # -------------------------------------------------------------------------
    # Classes -> courses
    # -------------------------------------------------------------------------

    def _sync_courses(
        self,
        classes: Sequence[ClassRecord],
        sessions: Sequence[AcademicSessionRecord],
        unit_orgs: set[str],
        run: _SyncRun,
    ) -> None:
        terms = _index_first(sessions)
        in_scope: list[ClassRecord] = []
        for cls in classes:
            if cls.school_sourced_id in unit_orgs:
                in_scope.append(cls)
            else:
                run.counts[ENTITY_COURSE].out_of_scope += 1

        for cls in _first_occurrences(in_scope, ENTITY_COURSE, run):
            if cls.status == STATUS_TO_BE_DELETED:
                run.skip(ENTITY_COURSE, cls, MARKED_FOR_DELETION, "Class is marked tobedeleted")
                continue
            try:
                self._apply_course(cls, terms, run)
            except ReferentialError as exc:
                run.skip(ENTITY_COURSE, cls, exc.reason_code, str(exc))

    def _resolve_term(
        self, cls: ClassRecord, terms: Mapping[str, AcademicSessionRecord]
    ) -> AcademicSessionRecord | None:
        for term_id in cls.term_sourced_ids:
            term = terms.get(term_id)
            if term is not None:
                return term
        if cls.term_sourced_ids:
            logger.warning(
                "term_unresolved",
                extra={"sourced_id": cls.sourced_id, "term_sourced_ids": list(cls.term_sourced_ids)},
            )
        return None

    def _apply_course(
        self,
        cls: ClassRecord,
        terms: Mapping[str, AcademicSessionRecord],
        run: _SyncRun,
    ) -> None:
        org_id = run.org_ids.get(cls.school_sourced_id)
        if org_id is None:
            raise UnresolvedReferenceError(
                ENTITY_COURSE, cls.sourced_id, ENTITY_ORGANIZATION, cls.school_sourced_id, UNRESOLVED_ORG
            )

        term = self._resolve_term(cls, terms)
        result = self._store.upsert_course(
            cls.sourced_id,
            {
                "fullname": cls.title,
                "shortname": cls.class_code or cls.sourced_id,
                "class_type": cls.class_type,
                "organization_id": org_id,
                "term_sourced_id": term.sourced_id if term else None,
                "term_title": term.title if term else None,
                "start_date": term.start_date if term else None,
                "end_date": term.end_date if term else None,
            },
        )
        run.course_ids[cls.sourced_id] = result.entity_id
        run.record_upsert(ENTITY_COURSE, result.created)
        logger.debug("course_upserted", extra={"sourced_id": cls.sourced_id, "was_created": result.created})

    # -------------------------------------------------------------------------
    # Enrollments
    # -------------------------------------------------------------------------

    def _sync_enrollments(
        self,
        enrollments: Sequence[EnrollmentRecord],
        classes: Sequence[ClassRecord],
        graph: OrgGraph,
        unit_orgs: set[str],
        run: _SyncRun,
    ) -> None:
        class_index = _index_first(classes)
        in_scope: list[EnrollmentRecord] = []
        for enrollment in enrollments:
            cls = class_index.get(enrollment.class_sourced_id)
            school = cls.school_sourced_id if cls is not None else enrollment.school_sourced_id
            if school in unit_orgs:
                in_scope.append(enrollment)
            else:
                run.counts[ENTITY_ENROLLMENT].out_of_scope += 1

        for enrollment in _first_occurrences(in_scope, ENTITY_ENROLLMENT, run):
            if enrollment.status == STATUS_TO_BE_DELETED:
                run.skip(ENTITY_ENROLLMENT, enrollment, MARKED_FOR_DELETION, "Enrollment is marked tobedeleted")
                continue
            try:
                self._apply_enrollment(enrollment, graph, run)
            except ReferentialError as exc:
                run.skip(ENTITY_ENROLLMENT, enrollment, exc.reason_code, str(exc))

    def _apply_enrollment(self, enrollment: EnrollmentRecord, graph: OrgGraph, run: _SyncRun) -> None:
        sid = enrollment.sourced_id
        school = enrollment.school_sourced_id
        if school is not None and school not in graph.orgs:
            raise UnresolvedReferenceError(ENTITY_ENROLLMENT, sid, ENTITY_ORGANIZATION, school, UNRESOLVED_ORG)

        user_id = run.user_ids.get(enrollment.user_sourced_id)
        if user_id is None:
            raise UnresolvedReferenceError(
                ENTITY_ENROLLMENT, sid, ENTITY_USER, enrollment.user_sourced_id, UNRESOLVED_USER
            )
        course_id = run.course_ids.get(enrollment.class_sourced_id)
        if course_id is None:
            raise UnresolvedReferenceError(
                ENTITY_ENROLLMENT, sid, ENTITY_COURSE, enrollment.class_sourced_id, UNRESOLVED_CLASS
            )

        result = self._store.upsert_enrollment(
            user_id,
            course_id,
            {
                "role": self._config.map_role(enrollment.role),
                "sourced_id": sid,
                "is_primary": enrollment.primary,
                "begin_date": enrollment.begin_date,
                "end_date": enrollment.end_date,
            },
        )
        run.record_upsert(ENTITY_ENROLLMENT, result.created)
        logger.debug("enrollment_upserted", extra={"sourced_id": sid, "was_created": result.created})
