"""Catalog models - only the fields the lifecycle and rollups read."""

from sqlalchemy import ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from smt.database import Base


class Journey(Base):
    """Top of the containment hierarchy."""

    __tablename__ = "journeys"

    journey_id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)


class Activity(Base):
    """Activity - belongs to at most one journey."""

    __tablename__ = "activities"

    activity_id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    journey_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("journeys.journey_id"), nullable=True
    )


class Service(Base):
    """Service - belongs to at most one activity."""

    __tablename__ = "services"

    service_id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    activity_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("activities.activity_id"), nullable=True
    )


class MaturityModel(Base):
    __tablename__ = "maturity_models"

    maturity_model_id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)


class Measurement(Base):
    """A checkable capability statement of a maturity model."""

    __tablename__ = "measurements"

    measurement_id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    maturity_model_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("maturity_models.maturity_model_id"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)


class Campaign(Base):
    """Time-boxed assessment round applying one maturity model."""

    __tablename__ = "campaigns"

    campaign_id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    maturity_model_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("maturity_models.maturity_model_id"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
