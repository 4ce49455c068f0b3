"""Read-only job store contract and concrete adapters."""

from __future__ import annotations

import re
import sqlite3
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from job_router.types import JobRecord, SortDirection

_LEADING_DIGITS = re.compile(r"^\s*\+?(\d+)")

_SQL_DIRECTIONS = {SortDirection.ASC: "ASC", SortDirection.DESC: "DESC"}


class JobStore(Protocol):
    """Queries the chat router is allowed to run against job postings."""

    def list_by_salary(
        self, direction: SortDirection, title_filter: str | None, limit: int
    ) -> list[JobRecord]:
        """Jobs ordered by numeric salary."""

    def list_recent(self, title_filter: str | None, limit: int) -> list[JobRecord]:
        """Jobs ordered by creation time, newest first."""

    def fetch_many(self, ids: Sequence[int], limit: int) -> list[JobRecord]:
        """Jobs for the given ids, at most `limit` of them."""

    def all_jobs(self) -> list[JobRecord]:
        """Every job, used to build the vector index."""


def parse_salary(salary_text: str, currency_suffix: str = " EGP") -> int:
    """Numeric value of a formatted salary such as `"25,000 EGP"`.

    Mirrors an unsigned integer cast: the leading digits after removing the
    currency suffix and thousands separators, or 0 when there are none.
    """
    cleaned = salary_text.replace(currency_suffix, "") if currency_suffix else salary_text
    match = _LEADING_DIGITS.match(cleaned.replace(",", ""))
    return int(match.group(1)) if match else 0


class InMemoryJobStore:
    """Deterministic job store used for tests and local prototyping."""

    def __init__(
        self, records: Iterable[JobRecord] = (), *, currency_suffix: str = " EGP"
    ) -> None:
        self._records: dict[int, JobRecord] = {record.id: record for record in records}
        self.currency_suffix = currency_suffix

    def list_by_salary(
        self, direction: SortDirection, title_filter: str | None, limit: int
    ) -> list[JobRecord]:
        candidates = self._filtered(title_filter)
        # stable sort keeps insertion order for equal salaries
        ranked = sorted(
            candidates,
            key=lambda record: parse_salary(record.salary_text, self.currency_suffix),
            reverse=direction is SortDirection.DESC,
        )
        return ranked[: max(limit, 0)]

    def list_recent(self, title_filter: str | None, limit: int) -> list[JobRecord]:
        ranked = sorted(
            self._filtered(title_filter),
            key=lambda record: (record.posted_at, record.id),
            reverse=True,
        )
        return ranked[: max(limit, 0)]

    def fetch_many(self, ids: Sequence[int], limit: int) -> list[JobRecord]:
        found = [self._records[job_id] for job_id in ids if job_id in self._records]
        return found[: max(limit, 0)]

    def all_jobs(self) -> list[JobRecord]:
        return list(self._records.values())

    def _filtered(self, title_filter: str | None) -> list[JobRecord]:
        if not title_filter:
            return list(self._records.values())
        needle = title_filter.lower()
        return [record for record in self._records.values() if needle in record.title.lower()]


_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS employers (id INTEGER PRIMARY KEY, name TEXT NOT NULL UNIQUE)",
    """
    CREATE TABLE IF NOT EXISTS jobs (
        id INTEGER PRIMARY KEY,
        employer_id INTEGER NOT NULL REFERENCES employers(id),
        title TEXT NOT NULL,
        location TEXT NOT NULL DEFAULT '',
        salary TEXT NOT NULL DEFAULT '',
        description TEXT NOT NULL DEFAULT '',
        created_at TEXT NOT NULL
    )
    """,
    "CREATE TABLE IF NOT EXISTS tags (id INTEGER PRIMARY KEY, name TEXT NOT NULL UNIQUE)",
    """
    CREATE TABLE IF NOT EXISTS job_tag (
        job_id INTEGER NOT NULL REFERENCES jobs(id),
        tag_id INTEGER NOT NULL REFERENCES tags(id),
        PRIMARY KEY (job_id, tag_id)
    )
    """,
)

_SELECT_JOBS = """
    SELECT jobs.id, jobs.title, jobs.location, jobs.salary, jobs.description,
           jobs.created_at, employers.name
    FROM jobs JOIN employers ON employers.id = jobs.employer_id
"""

_TITLE_FILTER = " WHERE jobs.title LIKE ? ESCAPE '\\'"


class SqliteJobStore:
    """SQLite-backed store.

    Every value coming from a routing decision is passed as a bound parameter;
    the only SQL fragment chosen at runtime is the sort keyword, taken from a
    fixed map keyed by `SortDirection`.
    """

    def __init__(self, path: str | Path, *, currency_suffix: str = " EGP") -> None:
        self.path = Path(path)
        self.currency_suffix = currency_suffix

    def initialize(self) -> None:
        with sqlite3.connect(self.path) as conn:
            for statement in _SCHEMA:
                conn.execute(statement)
            conn.commit()

    def add_job(self, record: JobRecord) -> None:
        """Insert a job with its employer and tags (seeding helper)."""
        with sqlite3.connect(self.path) as conn:
            employer_id = _upsert_name(conn, "employers", record.company_name)
            conn.execute(
                "INSERT OR REPLACE INTO jobs(id, employer_id, title, location, salary, description, created_at) "
                "VALUES(?, ?, ?, ?, ?, ?, ?)",
                (
                    record.id,
                    employer_id,
                    record.title,
                    record.location,
                    record.salary_text,
                    record.description,
                    _to_utc(record.posted_at).isoformat(),
                ),
            )
            conn.execute("DELETE FROM job_tag WHERE job_id = ?", (record.id,))
            for tag in sorted(record.tag_names):
                tag_id = _upsert_name(conn, "tags", tag)
                conn.execute(
                    "INSERT OR IGNORE INTO job_tag(job_id, tag_id) VALUES(?, ?)",
                    (record.id, tag_id),
                )
            conn.commit()

    def list_by_salary(
        self, direction: SortDirection, title_filter: str | None, limit: int
    ) -> list[JobRecord]:
        order = _SQL_DIRECTIONS[direction]
        sql = _SELECT_JOBS
        params: list[object] = []
        if title_filter:
            sql += _TITLE_FILTER
            params.append(_like_pattern(title_filter))
        sql += (
            " ORDER BY CAST(REPLACE(REPLACE(jobs.salary, ?, ''), ',', '') AS INTEGER) "
            f"{order}, jobs.id ASC LIMIT ?"
        )
        params.extend([self.currency_suffix, max(limit, 0)])
        return self._query(sql, params)

    def list_recent(self, title_filter: str | None, limit: int) -> list[JobRecord]:
        sql = _SELECT_JOBS
        params: list[object] = []
        if title_filter:
            sql += _TITLE_FILTER
            params.append(_like_pattern(title_filter))
        sql += " ORDER BY jobs.created_at DESC, jobs.id DESC LIMIT ?"
        params.append(max(limit, 0))
        return self._query(sql, params)

    def fetch_many(self, ids: Sequence[int], limit: int) -> list[JobRecord]:
        wanted = [int(job_id) for job_id in ids]
        if not wanted or limit <= 0:
            return []
        placeholders = ", ".join("?" for _ in wanted)
        records = self._query(f"{_SELECT_JOBS} WHERE jobs.id IN ({placeholders})", wanted)
        by_id = {record.id: record for record in records}
        ordered = [by_id[job_id] for job_id in dict.fromkeys(wanted) if job_id in by_id]
        return ordered[:limit]

    def all_jobs(self) -> list[JobRecord]:
        return self._query(_SELECT_JOBS + " ORDER BY jobs.id ASC", [])

    def _query(self, sql: str, params: Sequence[object]) -> list[JobRecord]:
        with sqlite3.connect(self.path) as conn:
            rows = conn.execute(sql, params).fetchall()
            tags = _load_tags(conn, [row[0] for row in rows])
        return [
            JobRecord(
                id=row[0],
                title=row[1],
                location=row[2],
                salary_text=row[3],
                description=row[4],
                posted_at=_parse_timestamp(row[5]),
                company_name=row[6],
                tag_names=frozenset(tags.get(row[0], ())),
            )
            for row in rows
        ]


def _load_tags(conn: sqlite3.Connection, job_ids: list[int]) -> dict[int, list[str]]:
    if not job_ids:
        return {}
    placeholders = ", ".join("?" for _ in job_ids)
    rows = conn.execute(
        "SELECT job_tag.job_id, tags.name FROM job_tag JOIN tags ON tags.id = job_tag.tag_id "
        f"WHERE job_tag.job_id IN ({placeholders})",
        job_ids,
    ).fetchall()
    tags: dict[int, list[str]] = {}
    for job_id, name in rows:
        tags.setdefault(job_id, []).append(name)
    return tags


def _upsert_name(conn: sqlite3.Connection, table: str, name: str) -> int:
    # table is one of two internal constants, never user input
    conn.execute(f"INSERT OR IGNORE INTO {table}(name) VALUES(?)", (name,))
    row = conn.execute(f"SELECT id FROM {table} WHERE name = ?", (name,)).fetchone()
    return int(row[0])


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_timestamp(value: str) -> datetime:
    return _to_utc(datetime.fromisoformat(value))
