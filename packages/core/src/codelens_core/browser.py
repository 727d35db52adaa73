"""Project and session browsing: read-mostly queries over the store."""

from __future__ import annotations

from dataclasses import dataclass, field

from codelens_core.errors import ValidationError
from codelens_store.base import BaseStore
from codelens_store.models import Project, ReviewSession, ReviewStatus, User, new_id

_RECENT_LIMIT = 5


@dataclass
class DashboardStats:
    """Aggregates across every project the user owns."""

    total_reviews: int = 0
    resolved_reviews: int = 0
    avg_score: int = 0
    recent_activity: list[ReviewSession] = field(default_factory=list)


def create_project(
    store: BaseStore,
    user: User,
    name: str,
    description: str | None = None,
    style_guide: str | None = None,
) -> Project:
    if not name.strip():
        raise ValidationError("Project name must not be empty.")
    project = Project(
        id=new_id(),
        owner_id=user.id,
        name=name.strip(),
        description=description,
        tech_stack=list(user.preferences.primary_languages),
        style_guide=style_guide,
    )
    store.create_project(project)
    return project


def list_projects(store: BaseStore, user: User) -> list[Project]:
    return store.get_projects_by_owner(user.id)


def list_sessions(store: BaseStore, project_id: str) -> list[ReviewSession]:
    return store.get_sessions_by_project(project_id)


def dashboard(store: BaseStore, user: User) -> DashboardStats:
    """Count reviews, resolved sessions and the average of recorded scores."""
    sessions: list[ReviewSession] = []
    for project in store.get_projects_by_owner(user.id):
        sessions.extend(store.get_sessions_by_project(project.id))

    # Sessions that never finished an analysis carry no score and are skipped.
    scores = [s.quality_score for s in sessions if s.quality_score]
    recent = sorted(sessions, key=lambda s: s.updated_at, reverse=True)[:_RECENT_LIMIT]
    return DashboardStats(
        total_reviews=len(sessions),
        resolved_reviews=sum(1 for s in sessions if s.status == ReviewStatus.RESOLVED),
        avg_score=round(sum(scores) / len(scores)) if scores else 0,
        recent_activity=recent,
    )
