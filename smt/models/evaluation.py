"""Measurement evaluation model."""

from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from smt.database import Base
from smt.engine.status import INITIAL_STATUS


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class EvaluationKey:
    """Natural identity of an evaluation."""

    service_id: str
    measurement_id: str
    campaign_id: str


class MeasurementEvaluation(Base):
    """One service's compliance state for one measurement within one campaign."""

    __tablename__ = "measurement_evaluations"

    evaluation_id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    service_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("services.service_id"), nullable=False
    )
    measurement_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("measurements.measurement_id"), nullable=False
    )
    campaign_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("campaigns.campaign_id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=INITIAL_STATUS.value
    )
    evidence_location: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    validation_report: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "service_id",
            "measurement_id",
            "campaign_id",
            name="uq_evaluations_service_measurement_campaign",
        ),
    )

    @classmethod
    def initial(cls, key: EvaluationKey) -> "MeasurementEvaluation":
        """Fresh record for a triple that has never been evaluated."""
        now = utcnow()
        return cls(
            evaluation_id=str(uuid4()),
            service_id=key.service_id,
            measurement_id=key.measurement_id,
            campaign_id=key.campaign_id,
            status=INITIAL_STATUS.value,
            evidence_location=None,
            notes=None,
            validation_report=None,
            created_at=now,
            updated_at=now,
        )

    @property
    def key(self) -> EvaluationKey:
        return EvaluationKey(self.service_id, self.measurement_id, self.campaign_id)
