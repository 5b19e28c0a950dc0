"""Initial schema - catalog, measurement_evaluations, evaluation_history.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "journeys",
        sa.Column("journey_id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
    )

    op.create_table(
        "activities",
        sa.Column("activity_id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("journey_id", sa.UUID(), sa.ForeignKey("journeys.journey_id"), nullable=True),
    )

    op.create_table(
        "services",
        sa.Column("service_id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column(
            "activity_id", sa.UUID(), sa.ForeignKey("activities.activity_id"), nullable=True
        ),
    )

    op.create_table(
        "maturity_models",
        sa.Column("maturity_model_id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
    )

    op.create_table(
        "measurements",
        sa.Column("measurement_id", sa.UUID(), primary_key=True),
        sa.Column(
            "maturity_model_id",
            sa.UUID(),
            sa.ForeignKey("maturity_models.maturity_model_id"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
    )

    op.create_table(
        "campaigns",
        sa.Column("campaign_id", sa.UUID(), primary_key=True),
        sa.Column(
            "maturity_model_id",
            sa.UUID(),
            sa.ForeignKey("maturity_models.maturity_model_id"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
    )

    op.create_table(
        "measurement_evaluations",
        sa.Column("evaluation_id", sa.UUID(), primary_key=True),
        sa.Column("service_id", sa.UUID(), sa.ForeignKey("services.service_id"), nullable=False),
        sa.Column(
            "measurement_id",
            sa.UUID(),
            sa.ForeignKey("measurements.measurement_id"),
            nullable=False,
        ),
        sa.Column("campaign_id", sa.UUID(), sa.ForeignKey("campaigns.campaign_id"), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="not_implemented"),
        sa.Column("evidence_location", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("validation_report", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_unique_constraint(
        "uq_evaluations_service_measurement_campaign",
        "measurement_evaluations",
        ["service_id", "measurement_id", "campaign_id"],
    )
    op.create_index(
        "ix_measurement_evaluations_campaign_id",
        "measurement_evaluations",
        ["campaign_id"],
    )

    op.create_table(
        "evaluation_history",
        sa.Column("history_id", sa.UUID(), primary_key=True),
        sa.Column("sequence", sa.BigInteger(), sa.Identity(), nullable=False, unique=True),
        sa.Column(
            "evaluation_id",
            sa.UUID(),
            sa.ForeignKey("measurement_evaluations.evaluation_id"),
            nullable=False,
        ),
        sa.Column("change_type", sa.String(32), nullable=False),
        sa.Column("previous_status", sa.String(32), nullable=True),
        sa.Column("new_status", sa.String(32), nullable=True),
        sa.Column("previous_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("change_reason", sa.Text(), nullable=True),
        sa.Column("validation_results", sa.Text(), nullable=True),
        sa.Column("changed_by", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_evaluation_history_evaluation_id",
        "evaluation_history",
        ["evaluation_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_evaluation_history_evaluation_id", table_name="evaluation_history")
    op.drop_table("evaluation_history")
    op.drop_index(
        "ix_measurement_evaluations_campaign_id", table_name="measurement_evaluations"
    )
    op.drop_table("measurement_evaluations")
    op.drop_table("campaigns")
    op.drop_table("measurements")
    op.drop_table("maturity_models")
    op.drop_table("services")
    op.drop_table("activities")
    op.drop_table("journeys")
