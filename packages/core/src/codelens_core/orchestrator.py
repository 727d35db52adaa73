"""Review orchestration: the state machine behind a single review.

One ReviewOrchestrator drives one active review from an empty editor through
analysis to issues, fix preview and resolution. It owns the in-memory state
and is the only place that pairs store writes with analyzer calls.

Phases:

    IDLE ──edit──▶ EDITING ──analyze──▶ ANALYZING ──▶ CLEAN      (no comments)
                                                  └─▶ REVIEWING  (comments, fix)
    REVIEWING ──preview_fix──▶ FIX_PREVIEW ──apply_fix──▶ RESOLVED
    any phase ──edit──▶ EDITING          any phase ──clear──▶ IDLE

Whether a result is clean is decided by comment presence alone; the score is
informational. Clean results persist status ``resolved`` with score 100.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from codelens_core.analysis import PERFECT_SCORE, AnalysisRequest, AnalysisResult
from codelens_core.errors import AnalysisFailed, PersistenceError, ValidationError
from codelens_core.report import build_report
from codelens_core.utils.code import read_source_file
from codelens_store.base import BaseStore
from codelens_store.models import Comment, Project, ReviewSession, ReviewStatus, User, new_id

logger = logging.getLogger(__name__)


class ReviewPhase(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    ANALYZING = "analyzing"
    CLEAN = "clean"
    REVIEWING = "reviewing"
    FIX_PREVIEW = "fix_preview"
    RESOLVED = "resolved"


class WriteState(str, Enum):
    """Whether the last optimistic transition has been confirmed by storage."""

    IDLE = "idle"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


_VIEWS = {ReviewPhase.REVIEWING: "issues", ReviewPhase.FIX_PREVIEW: "diff"}


@dataclass
class ReviewState:
    project: Project | None = None
    session: ReviewSession | None = None
    code: str = ""
    comments: list[Comment] = field(default_factory=list)
    fix_candidate: str | None = None
    score: int = 0
    summary: str | None = None
    language: str | None = None
    phase: ReviewPhase = ReviewPhase.IDLE
    error: str | None = None
    write_state: WriteState = WriteState.IDLE

    @property
    def is_clean(self) -> bool:
        return self.phase in (ReviewPhase.CLEAN, ReviewPhase.RESOLVED)

    @property
    def active_view(self) -> str:
        return _VIEWS.get(self.phase, "editor")


class ReviewOrchestrator:
    """Coordinates one review session between the store and the analyzer.

    Dependencies are passed in explicitly so tests can substitute a
    MemoryStore and a fake analyzer.
    """

    def __init__(self, store: BaseStore, analyzer, user: User, max_chars: int | None = None):
        self._store = store
        self._analyzer = analyzer
        self._user = user
        self._max_chars = max_chars
        self._state = ReviewState()
        self._in_flight = False

    @property
    def state(self) -> ReviewState:
        return self._state

    @property
    def is_analyzing(self) -> bool:
        return self._in_flight

    # ------------------------------------------------------------------ #
    # Initialization                                                      #
    # ------------------------------------------------------------------ #

    def open_project(self, project_id: str) -> ReviewState:
        """Start a blank review inside a project. No session exists until the first analysis."""
        project = self._store.get_project(project_id)
        if project is None or project.owner_id != self._user.id:
            raise ValidationError(f"Project {project_id} not found.")
        self._state = ReviewState(project=project)
        return self._state

    def load_session(self, session_id: str) -> ReviewState:
        """Rebuild the review state from a persisted session and its comments."""
        session = self._store.get_session(session_id)
        if session is None or session.user_id != self._user.id:
            raise ValidationError(f"Session {session_id} not found.")
        project = self._store.get_project(session.project_id)
        if project is None:
            logger.warning("Session %s refers to missing project %s", session.id, session.project_id)
        elif project.owner_id != self._user.id:
            raise ValidationError(f"Session {session_id} not found.")
        comments = self._store.get_comments_by_session(session.id)

        score = session.quality_score or 0
        if score == PERFECT_SCORE and not comments:
            phase = ReviewPhase.CLEAN
        elif comments:
            phase = ReviewPhase.REVIEWING
        elif session.code:
            phase = ReviewPhase.EDITING
        else:
            phase = ReviewPhase.IDLE

        self._state = ReviewState(
            project=project,
            session=session,
            code=session.code,
            comments=comments,
            score=score,
            summary=session.summary,
            language=session.language,
            phase=phase,
        )
        return self._state

    # ------------------------------------------------------------------ #
    # Editing                                                             #
    # ------------------------------------------------------------------ #

    def edit(self, code: str) -> None:
        """Replace the working code and drop every result derived from older code.

        Runs synchronously so stale issues are never shown next to newer code,
        even while an analysis is in flight.
        """
        st = self._state
        st.code = code
        if st.comments or st.fix_candidate is not None or st.is_clean or st.score or st.summary:
            st.comments = []
            st.fix_candidate = None
            st.score = 0
            st.summary = None
            st.language = None
        st.phase = ReviewPhase.EDITING if code else ReviewPhase.IDLE

    def import_file(self, path: str) -> None:
        """Load a local file into the editor as if its content had been typed."""
        try:
            content = read_source_file(path)
        except (OSError, ValueError) as e:
            raise ValidationError(f"Could not import {path}: {e}") from e
        self.edit(content)

    def clear(self) -> None:
        st = self._state
        st.code = ""
        st.comments = []
        st.fix_candidate = None
        st.error = None
        st.score = 0
        st.summary = None
        st.language = None
        st.phase = ReviewPhase.IDLE

    def preview_fix(self) -> None:
        if self._state.fix_candidate is None:
            raise ValidationError("There is no proposed fix to preview.")
        self._state.phase = ReviewPhase.FIX_PREVIEW

    def close_preview(self) -> None:
        if self._state.phase is ReviewPhase.FIX_PREVIEW:
            self._state.phase = ReviewPhase.REVIEWING

    # ------------------------------------------------------------------ #
    # Analysis                                                            #
    # ------------------------------------------------------------------ #

    async def analyze(self) -> AnalysisResult:
        """Run one analysis of the current code.

        Raises ValidationError without touching state when the code is blank,
        the project context is missing or another analysis is running.
        AnalysisFailed leaves prior comments and fix candidate in place.
        PersistenceError after the analyzer returned means the in-memory state
        has advanced but storage may not have.
        """
        st = self._state
        if self._in_flight:
            raise ValidationError("An analysis is already running for this review.")
        if not st.code.strip():
            raise ValidationError("Please enter some code to analyze.")
        if st.project is None:
            raise ValidationError("Project context is missing. Open a project or session first.")
        if self._max_chars and len(st.code) > self._max_chars:
            raise ValidationError(f"Code is too long to analyze ({len(st.code)} > {self._max_chars} characters).")

        code = st.code
        previous_phase = st.phase
        self._in_flight = True
        st.phase = ReviewPhase.ANALYZING
        st.error = None
        try:
            try:
                session = self._ensure_session(code)
                request = AnalysisRequest(
                    code=code,
                    preferred_style=self._user.preferences.preferred_style,
                    primary_languages=list(self._user.preferences.primary_languages),
                    style_guide=st.project.style_guide,
                )
                result = await self._analyzer.analyze(request)
            except (AnalysisFailed, PersistenceError) as e:
                st.error = str(e)
                logger.warning("Analysis of session %s failed: %s", st.session.id if st.session else "-", e)
                raise
            self._apply_result(session, result)
        finally:
            self._in_flight = False
            # Only reached still ANALYZING when no result was applied; an edit
            # made during the call has already moved the phase on.
            if st.phase is ReviewPhase.ANALYZING:
                st.phase = previous_phase
        return result

    def _ensure_session(self, code: str) -> ReviewSession:
        st = self._state
        if st.session is None:
            session = ReviewSession(
                id=new_id(),
                project_id=st.project.id,
                user_id=self._user.id,
                code=code,
                title=f"Review {datetime.now().strftime('%H:%M:%S')}",
                status=ReviewStatus.IN_PROGRESS,
            )
            self._store.create_session(session)
            st.session = session
            logger.info("Created session %s in project %s", session.id, st.project.id)
        else:
            st.session = self._store.update_session(st.session.id, code=code) or st.session
        return st.session

    def _apply_result(self, session: ReviewSession, result: AnalysisResult) -> None:
        st = self._state
        comments = [
            Comment(
                id=new_id(),
                session_id=session.id,
                line_number=draft.line_number,
                severity=draft.severity,
                category=draft.category,
                content=draft.content,
                suggestion=draft.suggestion,
            )
            for draft in result.comments
        ]
        clean = not comments
        score = PERFECT_SCORE if clean else result.score
        if clean and result.score != PERFECT_SCORE:
            logger.info("No issues reported for session %s; treating score %d as clean", session.id, result.score)

        st.comments = comments
        st.score = score
        st.fix_candidate = None if clean else result.refactored_code
        st.summary = result.summary
        st.language = result.language
        st.phase = ReviewPhase.CLEAN if clean else ReviewPhase.REVIEWING

        try:
            self._store.save_comments(session.id, comments)
            updated = self._store.update_session(
                session.id,
                language=result.language,
                summary=result.summary,
                quality_score=score,
                status=ReviewStatus.RESOLVED if clean else ReviewStatus.OPEN,
                issue_count=len(comments),
            )
        except PersistenceError as e:
            st.error = f"Analysis finished but could not be saved: {e}"
            logger.error("Could not persist analysis of session %s: %s", session.id, e)
            raise
        st.session = updated or st.session

    # ------------------------------------------------------------------ #
    # Fix application                                                     #
    # ------------------------------------------------------------------ #

    def apply_fix(self) -> None:
        """Replace the code with the fix candidate and resolve the session.

        Local-first: the in-memory transition happens before storage is
        touched. ``state.write_state`` is PENDING while the writes run and
        ends CONFIRMED or FAILED; a failure is not rolled back.
        """
        st = self._state
        if st.fix_candidate is None:
            raise ValidationError("There is no proposed fix to apply.")
        if st.session is None:
            raise ValidationError("Run an analysis before applying a fix.")

        fixed = st.fix_candidate
        st.code = fixed
        st.comments = []
        st.fix_candidate = None
        st.score = PERFECT_SCORE
        st.error = None
        st.phase = ReviewPhase.RESOLVED
        st.session = replace(
            st.session,
            code=fixed,
            status=ReviewStatus.RESOLVED,
            quality_score=PERFECT_SCORE,
            issue_count=0,
        )

        st.write_state = WriteState.PENDING
        try:
            updated = self._store.update_session(
                st.session.id,
                code=fixed,
                status=ReviewStatus.RESOLVED,
                quality_score=PERFECT_SCORE,
                issue_count=0,
            )
            self._store.save_comments(st.session.id, [])
        except PersistenceError as e:
            st.write_state = WriteState.FAILED
            st.error = f"Fix applied locally but could not be saved: {e}"
            logger.error("Could not persist fix for session %s: %s", st.session.id, e)
            raise
        st.write_state = WriteState.CONFIRMED
        st.session = updated or st.session

    # ------------------------------------------------------------------ #
    # Export                                                              #
    # ------------------------------------------------------------------ #

    def export_report(self) -> str:
        return build_report(self._state)
