"""SQLiteStore — local file-based store, the default backend.

Schema:
  users     — one row per identity; preferences kept as a JSON column.
  projects  — one row per project; tech stack and stats as JSON columns.
  sessions  — one row per review session, indexed by project.
  comments  — one row per issue, indexed by session. A session's comment set
              is replaced inside a single transaction.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import asdict

from codelens_store.base import BaseStore, PersistenceError, check_comment_owner, check_fields
from codelens_store.models import (
    COMMENT_FIELDS,
    SESSION_FIELDS,
    Category,
    Comment,
    Project,
    ProjectStats,
    ReviewSession,
    ReviewStatus,
    Severity,
    User,
    UserPreferences,
    utc_now,
)

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id           TEXT PRIMARY KEY,
    email        TEXT NOT NULL,
    name         TEXT,
    preferences  TEXT DEFAULT '{}',
    created_at   TEXT
);
CREATE TABLE IF NOT EXISTS projects (
    id           TEXT PRIMARY KEY,
    owner_id     TEXT NOT NULL,
    name         TEXT NOT NULL,
    description  TEXT,
    tech_stack   TEXT DEFAULT '[]',
    style_guide  TEXT,
    created_at   TEXT,
    stats        TEXT DEFAULT '{}'
);
CREATE TABLE IF NOT EXISTS sessions (
    id             TEXT PRIMARY KEY,
    project_id     TEXT NOT NULL,
    user_id        TEXT NOT NULL,
    title          TEXT,
    code           TEXT,
    language       TEXT,
    status         TEXT,
    summary        TEXT,
    quality_score  INTEGER,
    issue_count    INTEGER,
    created_at     TEXT,
    updated_at     TEXT
);
CREATE TABLE IF NOT EXISTS comments (
    id           TEXT PRIMARY KEY,
    session_id   TEXT NOT NULL,
    line_number  INTEGER NOT NULL,
    severity     TEXT,
    category     TEXT,
    content      TEXT,
    suggestion   TEXT,
    is_resolved  INTEGER DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_projects_owner   ON projects (owner_id);
CREATE INDEX IF NOT EXISTS idx_sessions_project ON sessions (project_id);
CREATE INDEX IF NOT EXISTS idx_comments_session ON comments (session_id);
"""

_SESSION_COLUMNS = (
    "id",
    "project_id",
    "user_id",
    "title",
    "code",
    "language",
    "status",
    "summary",
    "quality_score",
    "issue_count",
    "created_at",
    "updated_at",
)
_COMMENT_COLUMNS = (
    "id",
    "session_id",
    "line_number",
    "severity",
    "category",
    "content",
    "suggestion",
    "is_resolved",
)


class SQLiteStore(BaseStore):
    """Stores every entity in a local SQLite database file.

    The database file path defaults to `.codelens.db` in the current working
    directory. Configure via .codelens.yml: `store_path: /path/to/codelens.db`.
    """

    def __init__(self, db_path: str = ".codelens.db"):
        try:
            self._conn = sqlite3.connect(db_path)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not open database {db_path}: {e}") from e

    @contextmanager
    def _guard(self):
        """Translate driver errors into PersistenceError."""
        try:
            yield
        except sqlite3.Error as e:
            raise PersistenceError(f"SQLite operation failed: {e}") from e

    # -- users ---------------------------------------------------------------

    def get_user(self, user_id: str) -> User | None:
        with self._guard():
            row = self._conn.execute("SELECT * FROM users WHERE id=?", (user_id,)).fetchone()
        return self._row_to_user(row) if row else None

    def save_user(self, user: User) -> None:
        with self._guard(), self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO users (id, email, name, preferences, created_at) VALUES (?, ?, ?, ?, ?)",
                (user.id, user.email, user.name, json.dumps(asdict(user.preferences)), user.created_at),
            )

    # -- projects ------------------------------------------------------------

    def get_projects_by_owner(self, owner_id: str) -> list[Project]:
        with self._guard():
            rows = self._conn.execute(
                "SELECT * FROM projects WHERE owner_id=? ORDER BY created_at DESC",
                (owner_id,),
            ).fetchall()
        return [self._row_to_project(r) for r in rows]

    def get_project(self, project_id: str) -> Project | None:
        with self._guard():
            row = self._conn.execute("SELECT * FROM projects WHERE id=?", (project_id,)).fetchone()
        return self._row_to_project(row) if row else None

    def create_project(self, project: Project) -> None:
        with self._guard(), self._conn:
            self._conn.execute(
                """
                INSERT INTO projects
                  (id, owner_id, name, description, tech_stack, style_guide, created_at, stats)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    project.id,
                    project.owner_id,
                    project.name,
                    project.description,
                    json.dumps(project.tech_stack),
                    project.style_guide,
                    project.created_at,
                    json.dumps(asdict(project.stats)),
                ),
            )

    # -- sessions ------------------------------------------------------------

    def get_sessions_by_project(self, project_id: str) -> list[ReviewSession]:
        with self._guard():
            rows = self._conn.execute(
                "SELECT * FROM sessions WHERE project_id=? ORDER BY updated_at DESC",
                (project_id,),
            ).fetchall()
        return [self._row_to_session(r) for r in rows]

    def get_session(self, session_id: str) -> ReviewSession | None:
        with self._guard():
            row = self._conn.execute("SELECT * FROM sessions WHERE id=?", (session_id,)).fetchone()
        return self._row_to_session(row) if row else None

    def create_session(self, session: ReviewSession) -> None:
        values = asdict(session)
        values["status"] = ReviewStatus(session.status).value
        with self._guard(), self._conn:
            self._conn.execute(
                f"INSERT INTO sessions ({', '.join(_SESSION_COLUMNS)}) "
                f"VALUES ({', '.join('?' for _ in _SESSION_COLUMNS)})",
                tuple(values[c] for c in _SESSION_COLUMNS),
            )

        try:
            self._bump_total_reviews(session.project_id)
        except Exception as e:
            logger.warning("Could not bump review counter for project %s: %s", session.project_id, e)

    def _bump_total_reviews(self, project_id: str) -> None:
        with self._conn:
            row = self._conn.execute("SELECT stats FROM projects WHERE id=?", (project_id,)).fetchone()
            if row is None:
                return
            stats = json.loads(row["stats"] or "{}")
            stats["total_reviews"] = stats.get("total_reviews", 0) + 1
            self._conn.execute("UPDATE projects SET stats=? WHERE id=?", (json.dumps(stats), project_id))

    def update_session(self, session_id: str, **changes) -> ReviewSession | None:
        check_fields(changes, SESSION_FIELDS, "session")
        changes["updated_at"] = utc_now()
        if "status" in changes:
            changes["status"] = ReviewStatus(changes["status"]).value
        assignments = ", ".join(f"{name}=?" for name in changes)
        with self._guard():
            with self._conn:
                cursor = self._conn.execute(
                    f"UPDATE sessions SET {assignments} WHERE id=?",
                    (*changes.values(), session_id),
                )
            if cursor.rowcount == 0:
                return None
        return self.get_session(session_id)

    # -- comments ------------------------------------------------------------

    def get_comments_by_session(self, session_id: str) -> list[Comment]:
        with self._guard():
            rows = self._conn.execute(
                "SELECT * FROM comments WHERE session_id=? ORDER BY line_number, rowid",
                (session_id,),
            ).fetchall()
        return [self._row_to_comment(r) for r in rows]

    def save_comments(self, session_id: str, comments: list[Comment]) -> None:
        check_comment_owner(session_id, comments)
        rows = [self._comment_values(c) for c in comments]
        with self._guard(), self._conn:
            self._conn.execute("DELETE FROM comments WHERE session_id=?", (session_id,))
            self._conn.executemany(
                f"INSERT INTO comments ({', '.join(_COMMENT_COLUMNS)}) "
                f"VALUES ({', '.join('?' for _ in _COMMENT_COLUMNS)})",
                rows,
            )

    def update_comment(self, comment_id: str, **changes) -> Comment | None:
        check_fields(changes, COMMENT_FIELDS, "comment")
        if not changes:
            return self._get_comment(comment_id)
        values = self._comment_values_partial(changes)
        assignments = ", ".join(f"{name}=?" for name in values)
        with self._guard():
            with self._conn:
                cursor = self._conn.execute(
                    f"UPDATE comments SET {assignments} WHERE id=?",
                    (*values.values(), comment_id),
                )
            if cursor.rowcount == 0:
                return None
        return self._get_comment(comment_id)

    def _get_comment(self, comment_id: str) -> Comment | None:
        with self._guard():
            row = self._conn.execute("SELECT * FROM comments WHERE id=?", (comment_id,)).fetchone()
        return self._row_to_comment(row) if row else None

    def close(self) -> None:
        self._conn.close()

    # -- row mapping ---------------------------------------------------------

    @staticmethod
    def _comment_values(comment: Comment) -> tuple:
        return (
            comment.id,
            comment.session_id,
            comment.line_number,
            Severity(comment.severity).value,
            Category(comment.category).value,
            comment.content,
            comment.suggestion,
            int(comment.is_resolved),
        )

    @staticmethod
    def _comment_values_partial(changes: dict) -> dict:
        values = dict(changes)
        if "severity" in values:
            values["severity"] = Severity(values["severity"]).value
        if "category" in values:
            values["category"] = Category(values["category"]).value
        if "is_resolved" in values:
            values["is_resolved"] = int(values["is_resolved"])
        return values

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        prefs = json.loads(row["preferences"] or "{}")
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"] or "",
            preferences=UserPreferences(**prefs),
            created_at=row["created_at"] or "",
        )

    @staticmethod
    def _row_to_project(row: sqlite3.Row) -> Project:
        return Project(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            description=row["description"],
            tech_stack=json.loads(row["tech_stack"] or "[]"),
            style_guide=row["style_guide"],
            created_at=row["created_at"] or "",
            stats=ProjectStats(**json.loads(row["stats"] or "{}")),
        )

    @staticmethod
    def _row_to_session(row: sqlite3.Row) -> ReviewSession:
        return ReviewSession(
            id=row["id"],
            project_id=row["project_id"],
            user_id=row["user_id"],
            code=row["code"] or "",
            title=row["title"] or "",
            language=row["language"] or "plaintext",
            status=ReviewStatus(row["status"] or "in_progress"),
            summary=row["summary"],
            quality_score=row["quality_score"],
            issue_count=row["issue_count"],
            created_at=row["created_at"] or "",
            updated_at=row["updated_at"] or "",
        )

    @staticmethod
    def _row_to_comment(row: sqlite3.Row) -> Comment:
        return Comment(
            id=row["id"],
            session_id=row["session_id"],
            line_number=row["line_number"],
            severity=Severity(row["severity"] or "info"),
            category=Category(row["category"] or "refactor"),
            content=row["content"] or "",
            suggestion=row["suggestion"],
            is_resolved=bool(row["is_resolved"]),
        )
