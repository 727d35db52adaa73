"""Identity lookup. Users are keyed by e-mail; there are no passwords."""

from __future__ import annotations

import logging
from dataclasses import replace

from codelens_core.errors import ValidationError
from codelens_store.base import BaseStore
from codelens_store.models import STYLES, User, UserPreferences

logger = logging.getLogger(__name__)


def register(
    store: BaseStore,
    name: str,
    email: str,
    primary_languages: list[str] | None = None,
    preferred_style: str = "balanced",
) -> User:
    email = email.strip().lower()
    if not email or "@" not in email:
        raise ValidationError(f"Not a valid e-mail address: {email!r}")
    if preferred_style not in STYLES:
        raise ValidationError(f"Unknown style {preferred_style!r}. Choose one of: {', '.join(STYLES)}.")
    if store.get_user(email) is not None:
        raise ValidationError("User already exists.")

    user = User(
        id=email,
        email=email,
        name=name,
        preferences=UserPreferences(
            onboarding_completed=bool(primary_languages),
            primary_languages=list(primary_languages or []),
            preferred_style=preferred_style,
        ),
    )
    store.save_user(user)
    logger.info("Registered user %s", email)
    return user


def login(store: BaseStore, email: str) -> User:
    user = store.get_user(email.strip().lower())
    if user is None:
        raise ValidationError("User not found. Please register.")
    return user


def update_preferences(store: BaseStore, user: User, **changes) -> User:
    if "preferred_style" in changes and changes["preferred_style"] not in STYLES:
        raise ValidationError(f"Unknown style {changes['preferred_style']!r}.")
    updated = replace(user, preferences=replace(user.preferences, **changes))
    store.save_user(updated)
    return updated
