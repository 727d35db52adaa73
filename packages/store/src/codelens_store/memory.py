"""MemoryStore — dict-backed store used as the in-process fake and as the
base of document-style backends.

Data lives in four flat collections keyed by entity id, the same shape the
GistStore persists:

  {"users": {id: {...}}, "projects": {...}, "sessions": {...}, "comments": {...}}

Subclasses that persist somewhere else override _load() and _flush().
"""

from __future__ import annotations

import logging
from dataclasses import asdict, replace

from codelens_store.base import BaseStore, check_comment_owner, check_fields
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

COLLECTIONS = ("users", "projects", "sessions", "comments")


class MemoryStore(BaseStore):
    """Keeps every record in process memory; nothing survives a restart."""

    def __init__(self):
        self._data = empty_collections()

    def _load(self) -> dict[str, dict[str, dict]]:
        return self._data

    def _flush(self, data: dict[str, dict[str, dict]]) -> None:
        self._data = data

    # -- users ---------------------------------------------------------------

    def get_user(self, user_id: str) -> User | None:
        raw = self._load()["users"].get(user_id)
        return user_from_dict(raw) if raw else None

    def save_user(self, user: User) -> None:
        data = self._load()
        data["users"][user.id] = to_dict(user)
        self._flush(data)

    # -- projects ------------------------------------------------------------

    def get_projects_by_owner(self, owner_id: str) -> list[Project]:
        projects = [project_from_dict(p) for p in self._load()["projects"].values() if p.get("owner_id") == owner_id]
        return sorted(projects, key=lambda p: p.created_at, reverse=True)

    def get_project(self, project_id: str) -> Project | None:
        raw = self._load()["projects"].get(project_id)
        return project_from_dict(raw) if raw else None

    def create_project(self, project: Project) -> None:
        data = self._load()
        data["projects"][project.id] = to_dict(project)
        self._flush(data)

    # -- sessions ------------------------------------------------------------

    def get_sessions_by_project(self, project_id: str) -> list[ReviewSession]:
        sessions = [
            session_from_dict(s) for s in self._load()["sessions"].values() if s.get("project_id") == project_id
        ]
        return sorted(sessions, key=lambda s: s.updated_at, reverse=True)

    def get_session(self, session_id: str) -> ReviewSession | None:
        raw = self._load()["sessions"].get(session_id)
        return session_from_dict(raw) if raw else None

    def create_session(self, session: ReviewSession) -> None:
        data = self._load()
        data["sessions"][session.id] = to_dict(session)
        self._flush(data)

        try:
            data = self._load()
            project = data["projects"].get(session.project_id)
            if project is not None:
                project["stats"]["total_reviews"] = project["stats"].get("total_reviews", 0) + 1
                self._flush(data)
        except Exception as e:
            logger.warning("Could not bump review counter for project %s: %s", session.project_id, e)

    def update_session(self, session_id: str, **changes) -> ReviewSession | None:
        check_fields(changes, SESSION_FIELDS, "session")
        data = self._load()
        raw = data["sessions"].get(session_id)
        if raw is None:
            return None
        updated = replace(session_from_dict(raw), **{**changes, "updated_at": utc_now()})
        data["sessions"][session_id] = to_dict(updated)
        self._flush(data)
        return session_from_dict(data["sessions"][session_id])

    # -- comments ------------------------------------------------------------

    def get_comments_by_session(self, session_id: str) -> list[Comment]:
        comments = [
            comment_from_dict(c) for c in self._load()["comments"].values() if c.get("session_id") == session_id
        ]
        return sorted(comments, key=lambda c: c.line_number)

    def save_comments(self, session_id: str, comments: list[Comment]) -> None:
        check_comment_owner(session_id, comments)
        data = self._load()
        kept = {cid: c for cid, c in data["comments"].items() if c.get("session_id") != session_id}
        kept.update({c.id: to_dict(c) for c in comments})
        # Swap the whole collection so readers never see a half-replaced set.
        data = {**data, "comments": kept}
        self._flush(data)

    def update_comment(self, comment_id: str, **changes) -> Comment | None:
        check_fields(changes, COMMENT_FIELDS, "comment")
        data = self._load()
        raw = data["comments"].get(comment_id)
        if raw is None:
            return None
        updated = replace(comment_from_dict(raw), **changes)
        data["comments"][comment_id] = to_dict(updated)
        self._flush(data)
        return comment_from_dict(data["comments"][comment_id])


# ---------------------------------------------------------------------------
# Record <-> dict conversion, shared with GistStore
# ---------------------------------------------------------------------------


def to_dict(record) -> dict:
    d = asdict(record)
    for key, value in d.items():
        if isinstance(value, (ReviewStatus, Severity, Category)):
            d[key] = value.value
    return d


def user_from_dict(d: dict) -> User:
    prefs = d.get("preferences") or {}
    return User(
        id=d["id"],
        email=d.get("email", d["id"]),
        name=d.get("name", ""),
        preferences=UserPreferences(
            onboarding_completed=prefs.get("onboarding_completed", False),
            primary_languages=list(prefs.get("primary_languages", [])),
            preferred_style=prefs.get("preferred_style", "balanced"),
        ),
        created_at=d.get("created_at", ""),
    )


def project_from_dict(d: dict) -> Project:
    stats = d.get("stats") or {}
    return Project(
        id=d["id"],
        owner_id=d.get("owner_id", ""),
        name=d.get("name", ""),
        description=d.get("description"),
        tech_stack=list(d.get("tech_stack", [])),
        style_guide=d.get("style_guide"),
        created_at=d.get("created_at", ""),
        stats=ProjectStats(
            total_reviews=stats.get("total_reviews", 0),
            issues_fixed=stats.get("issues_fixed", 0),
            security_score=stats.get("security_score", 100),
        ),
    )


def session_from_dict(d: dict) -> ReviewSession:
    return ReviewSession(
        id=d["id"],
        project_id=d.get("project_id", ""),
        user_id=d.get("user_id", ""),
        code=d.get("code", ""),
        title=d.get("title", ""),
        language=d.get("language", "plaintext"),
        status=ReviewStatus(d.get("status", "in_progress")),
        summary=d.get("summary"),
        quality_score=d.get("quality_score"),
        issue_count=d.get("issue_count"),
        created_at=d.get("created_at", ""),
        updated_at=d.get("updated_at", ""),
    )


def comment_from_dict(d: dict) -> Comment:
    return Comment(
        id=d["id"],
        session_id=d.get("session_id", ""),
        line_number=d.get("line_number", 1),
        severity=Severity(d.get("severity", "info")),
        category=Category(d.get("category", "refactor")),
        content=d.get("content", ""),
        suggestion=d.get("suggestion"),
        is_resolved=d.get("is_resolved", False),
    )


def empty_collections() -> dict[str, dict[str, dict]]:
    return {name: {} for name in COLLECTIONS}
