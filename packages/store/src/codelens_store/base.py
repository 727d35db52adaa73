"""Abstract store interface.

Every storage backend (SQLite, in-memory, Gist) implements this interface.
The review orchestrator depends on BaseStore, not on a concrete backend, so
backends are swappable and tests can run against MemoryStore.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from codelens_store.models import Comment, Project, ReviewSession, User


class PersistenceError(Exception):
    """Storage is unavailable. Fatal to the calling flow; never retried."""


class BaseStore(ABC):
    """Durable storage for users, projects, review sessions and comments.

    All methods may raise PersistenceError. Read methods return None or an
    empty list for unknown ids.
    """

    # -- users ---------------------------------------------------------------

    @abstractmethod
    def get_user(self, user_id: str) -> User | None:
        """Return the user with this id, or None."""

    @abstractmethod
    def save_user(self, user: User) -> None:
        """Insert or replace a user."""

    # -- projects ------------------------------------------------------------

    @abstractmethod
    def get_projects_by_owner(self, owner_id: str) -> list[Project]:
        """Return the owner's projects, newest first."""

    @abstractmethod
    def get_project(self, project_id: str) -> Project | None:
        """Return a single project, or None."""

    @abstractmethod
    def create_project(self, project: Project) -> None:
        """Append a project."""

    # -- sessions ------------------------------------------------------------

    @abstractmethod
    def get_sessions_by_project(self, project_id: str) -> list[ReviewSession]:
        """Return the project's sessions, most recently updated first."""

    @abstractmethod
    def get_session(self, session_id: str) -> ReviewSession | None:
        """Return a single session, or None."""

    @abstractmethod
    def create_session(self, session: ReviewSession) -> None:
        """Append a session and bump the owning project's review counter.

        The counter bump is best-effort: if it fails, the failure is logged and
        the session is still created.
        """

    @abstractmethod
    def update_session(self, session_id: str, **changes) -> ReviewSession | None:
        """Merge ``changes`` into the session and return the updated record.

        Every update stamps a fresh ``updated_at``, overriding any value the
        caller passed. Returns None if the session does not exist. Raises
        ValueError on unknown field names.
        """

    # -- comments ------------------------------------------------------------

    @abstractmethod
    def get_comments_by_session(self, session_id: str) -> list[Comment]:
        """Return the session's comments ordered by line number."""

    @abstractmethod
    def save_comments(self, session_id: str, comments: list[Comment]) -> None:
        """Atomically replace the session's comment set with ``comments``.

        An empty list clears the session's comments. Raises ValueError if any
        comment belongs to a different session.
        """

    @abstractmethod
    def update_comment(self, comment_id: str, **changes) -> Comment | None:
        """Merge ``changes`` into a single comment. Returns None if missing."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional; the default is a no-op so callers can always call close().
        """


def check_comment_owner(session_id: str, comments: list[Comment]) -> None:
    for comment in comments:
        if comment.session_id != session_id:
            raise ValueError(
                f"Comment {comment.id} belongs to session {comment.session_id!r}, not {session_id!r}."
            )


def check_fields(changes: dict, allowed: frozenset[str], kind: str) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Unknown {kind} field(s): {', '.join(sorted(unknown))}")
