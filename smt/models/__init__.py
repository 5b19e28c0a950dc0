"""Database models."""

from smt.models.catalog import Activity, Campaign, Journey, MaturityModel, Measurement, Service
from smt.models.evaluation import EvaluationKey, MeasurementEvaluation
from smt.models.history import EvaluationHistory

__all__ = [
    "Activity",
    "Campaign",
    "Journey",
    "MaturityModel",
    "Measurement",
    "Service",
    "EvaluationKey",
    "MeasurementEvaluation",
    "EvaluationHistory",
]
