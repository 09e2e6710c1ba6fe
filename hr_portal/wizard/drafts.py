from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..core.database import get_sessionmaker, init_db, utcnow
from ..core.models import WizardDraft

logger = logging.getLogger(__name__)

DRAFT_TYPE = "employment"


class DraftCacheError(Exception):
    """The local draft store could not be read or written."""


class DraftCache:
    """Wizard drafts on the local SQLite file, keyed by (user, record, type)."""

    def __init__(self, database_url: str | None = None, draft_type: str = DRAFT_TYPE):
        self.draft_type = draft_type
        self.database_url = database_url
        self._sessions: sessionmaker | None = None

    def _open(self) -> sessionmaker:
        """Open the store on first use; an unusable store surfaces as DraftCacheError."""
        if self._sessions is None:
            try:
                init_db(self.database_url)
                self._sessions = get_sessionmaker(self.database_url)
            except (SQLAlchemyError, OSError) as exc:
                raise DraftCacheError(f"Unable to open draft store: {exc}") from exc
        return self._sessions

    def _find(self, s, user_id: str, record_key: str) -> WizardDraft | None:
        stmt = select(WizardDraft).where(
            WizardDraft.user_id == user_id,
            WizardDraft.record_key == record_key,
            WizardDraft.draft_type == self.draft_type,
        )
        return s.execute(stmt).scalar_one_or_none()

    def save(self, user_id: str, record_key: str, snapshot: dict[str, Any]) -> None:
        try:
            payload = json.dumps(snapshot)
        except (TypeError, ValueError) as exc:
            raise DraftCacheError(f"Draft {record_key} is not serializable: {exc}") from exc

        try:
            with self._open()() as s:
                row = self._find(s, user_id, record_key)
                if row is None:
                    row = WizardDraft(user_id=user_id, record_key=record_key, draft_type=self.draft_type)
                    s.add(row)
                row.payload = payload
                row.current_step = snapshot.get("current_step", "employment")
                row.updated_at = utcnow()
                s.commit()
        except SQLAlchemyError as exc:
            raise DraftCacheError(f"Unable to save draft {record_key}: {exc}") from exc

    def load(self, user_id: str, record_key: str) -> dict[str, Any] | None:
        try:
            with self._open()() as s:
                row = self._find(s, user_id, record_key)
                payload = row.payload if row is not None else None
        except SQLAlchemyError as exc:
            raise DraftCacheError(f"Unable to load draft {record_key}: {exc}") from exc
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except ValueError as exc:
            raise DraftCacheError(f"Draft {record_key} is corrupt: {exc}") from exc

    def discard(self, user_id: str, record_key: str) -> bool:
        stmt = delete(WizardDraft).where(
            WizardDraft.user_id == user_id,
            WizardDraft.record_key == record_key,
            WizardDraft.draft_type == self.draft_type,
        )
        try:
            with self._open()() as s:
                removed = s.execute(stmt).rowcount
                s.commit()
        except SQLAlchemyError as exc:
            raise DraftCacheError(f"Unable to discard draft {record_key}: {exc}") from exc
        return bool(removed)

    def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        stmt = (
            select(WizardDraft)
            .where(WizardDraft.user_id == user_id, WizardDraft.draft_type == self.draft_type)
            .order_by(WizardDraft.updated_at.desc(), WizardDraft.id.desc())
        )
        try:
            with self._open()() as s:
                return [
                    {
                        "record_key": row.record_key,
                        "current_step": row.current_step,
                        "updated_at": row.updated_at,
                    }
                    for row in s.execute(stmt).scalars()
                ]
        except SQLAlchemyError as exc:
            raise DraftCacheError(f"Unable to list drafts for {user_id}: {exc}") from exc
