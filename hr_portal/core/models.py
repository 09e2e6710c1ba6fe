from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base, utcnow


class WizardDraft(Base):
    """Serialized wizard snapshot, one per user/record/draft type."""

    __tablename__ = "wizard_drafts"
    __table_args__ = (UniqueConstraint("user_id", "record_key", "draft_type", name="uq_wizard_drafts_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    record_key: Mapped[str] = mapped_column(String)
    draft_type: Mapped[str] = mapped_column(String, default="employment")

    # JSON snapshot produced by WizardSnapshot.to_dict()
    payload: Mapped[str] = mapped_column(Text)
    current_step: Mapped[str] = mapped_column(String, default="employment")

    # audit
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
