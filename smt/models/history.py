"""Evaluation audit trail model."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Identity, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from smt.database import Base


class EvaluationHistory(Base):
    """Evaluation history records - append-only, never updated or deleted."""

    __tablename__ = "evaluation_history"

    history_id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    # Tie-breaker for entries written in the same instant by one operation
    sequence: Mapped[int] = mapped_column(BigInteger, Identity(), unique=True)
    evaluation_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("measurement_evaluations.evaluation_id"),
        nullable=False,
        index=True,
    )
    change_type: Mapped[str] = mapped_column(String(32), nullable=False)
    previous_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    new_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    previous_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    change_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    validation_results: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_by: Mapped[str | None] = mapped_column(Text, nullable=True)  # None = system
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
