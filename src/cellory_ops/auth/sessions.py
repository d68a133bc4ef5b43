"""Database-backed session store."""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func, text
from sqlmodel import Session, select

from cellory_ops.migrations.alembic_runner import upgrade_head
from cellory_ops.storage.common import as_utc, build_engine, utc_now
from cellory_ops.storage.sqlmodel_models import AppUser, AuthSession

DEFAULT_SESSION_MAX_AGE = timedelta(days=30)
DEFAULT_SESSION_UPDATE_AGE = timedelta(hours=24)


@dataclass(slots=True)
class SessionView:
    """Authenticated session joined with its user."""

    session_token: str
    user_id: str
    user_email: str
    user_name: str | None
    expires_at: datetime


class SessionRepository:
    """Look up, create and refresh sessions.

    Lookups slide the expiry forward once the session was last refreshed
    more than ``update_age`` ago. Database errors are not handled here; see
    :func:`cellory_ops.auth.safe.safe_session_lookup`.
    """

    def __init__(
        self,
        database_url: str,
        *,
        max_age: timedelta = DEFAULT_SESSION_MAX_AGE,
        update_age: timedelta = DEFAULT_SESSION_UPDATE_AGE,
    ) -> None:
        self.database_url = database_url
        self.max_age = max_age
        self.update_age = update_age
        self.engine = build_engine(database_url)

    def close(self) -> None:
        self.engine.dispose()

    def init_schema(self) -> None:
        upgrade_head(self.database_url)

    def ping(self) -> None:
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    def counts(self) -> dict[str, int]:
        with Session(self.engine) as session:
            return {
                "sessions": int(session.exec(select(func.count()).select_from(AuthSession)).one()),
                "users": int(session.exec(select(func.count()).select_from(AppUser)).one()),
            }

    def create_user(self, email: str, name: str | None = None) -> str:
        user_id = uuid.uuid4().hex
        with Session(self.engine) as session:
            session.add(AppUser(id=user_id, email=email, name=name, created_at=utc_now()))
            session.commit()
        return user_id

    def create_session(
        self,
        user_id: str,
        *,
        token: str | None = None,
        now: datetime | None = None,
    ) -> str:
        session_token = token or secrets.token_urlsafe(32)
        expires = (now or utc_now()) + self.max_age
        with Session(self.engine) as session:
            session.add(AuthSession(session_token=session_token, user_id=user_id, expires=expires))
            session.commit()
        return session_token

    def get_session(self, token: str, *, now: datetime | None = None) -> SessionView | None:
        current = now or utc_now()
        with Session(self.engine) as session:
            row = session.exec(
                select(AuthSession, AppUser)
                .join(AppUser, AppUser.id == AuthSession.user_id)  # type: ignore[arg-type]
                .where(AuthSession.session_token == token),
            ).first()
            if row is None:
                return None
            auth_session, user = row
            expires = as_utc(auth_session.expires)
            if expires <= current:
                return None

            view = SessionView(
                session_token=token,
                user_id=user.id,
                user_email=user.email,
                user_name=user.name,
                expires_at=expires,
            )
            # Last refreshed at expires - max_age; slide once update_age has passed.
            if expires - self.max_age + self.update_age <= current:
                view.expires_at = current + self.max_age
                auth_session.expires = view.expires_at
                session.add(auth_session)
                session.commit()
            return view

    def delete_session(self, token: str) -> bool:
        with Session(self.engine) as session:
            auth_session = session.get(AuthSession, token)
            if auth_session is None:
                return False
            session.delete(auth_session)
            session.commit()
        return True
