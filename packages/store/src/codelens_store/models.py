"""Entity models for the review store.

Decoupled from codelens_core so the store layer can be used independently.
Timestamps are ISO-8601 UTC strings, matching how records are persisted.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


class ReviewStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    ARCHIVED = "archived"


class Severity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    INFO = "info"


class Category(str, Enum):
    SECURITY = "security"
    PERFORMANCE = "performance"
    STYLE = "style"
    BUG = "bug"
    REFACTOR = "refactor"


STYLES = ("strict", "balanced", "relaxed")


@dataclass
class UserPreferences:
    onboarding_completed: bool = False
    primary_languages: list[str] = field(default_factory=list)
    preferred_style: str = "balanced"  # "strict" | "balanced" | "relaxed"


@dataclass
class User:
    """The acting identity. The e-mail address doubles as the user id."""

    id: str
    email: str
    name: str
    preferences: UserPreferences = field(default_factory=UserPreferences)
    created_at: str = field(default_factory=utc_now)


@dataclass
class ProjectStats:
    total_reviews: int = 0
    issues_fixed: int = 0
    security_score: int = 100


@dataclass
class Project:
    """A container of review sessions.

    Only ``stats.total_reviews`` changes after creation, bumped by the store
    whenever a session is created under the project.
    """

    id: str
    owner_id: str
    name: str
    description: str | None = None
    tech_stack: list[str] = field(default_factory=list)
    style_guide: str | None = None  # free-text instructions passed to the AI
    created_at: str = field(default_factory=utc_now)
    stats: ProjectStats = field(default_factory=ProjectStats)


@dataclass
class ReviewSession:
    """One review attempt against one snippet of code within a project.

    A resolved session always carries quality_score == 100 and has no comments.
    """

    id: str
    project_id: str
    user_id: str
    code: str
    title: str = ""
    language: str = "plaintext"
    status: ReviewStatus = ReviewStatus.IN_PROGRESS
    summary: str | None = None
    quality_score: int | None = None
    issue_count: int | None = None
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)


@dataclass
class Comment:
    """A single issue raised by an analysis, owned by exactly one session."""

    id: str
    session_id: str
    line_number: int  # 1-based; 1 when the issue could not be localized
    severity: Severity
    category: Category
    content: str
    suggestion: str | None = None
    is_resolved: bool = False


SESSION_FIELDS = frozenset(ReviewSession.__dataclass_fields__) - {"id", "created_at"}
COMMENT_FIELDS = frozenset(Comment.__dataclass_fields__) - {"id", "session_id"}
